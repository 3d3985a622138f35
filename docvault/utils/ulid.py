"""Lexicographically sortable identifiers (ULID, Crockford base32).

48 bits of millisecond timestamp followed by 80 random bits, encoded as 26
characters so that string order matches creation order.
"""

from __future__ import annotations

import os
import threading
import time
from datetime import UTC, datetime

_ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
_DECODE = {char: index for index, char in enumerate(_ALPHABET)}

_lock = threading.Lock()
_last_ms = -1
_last_random = 0


def _encode(value: int, length: int) -> str:
    chars = []
    for _ in range(length):
        chars.append(_ALPHABET[value & 0x1F])
        value >>= 5
    return "".join(reversed(chars))


def new_ulid(timestamp_ms: int | None = None) -> str:
    """Return a new ULID string.

    Identifiers minted within the same millisecond increment the random part,
    so they stay strictly ordered within the process.
    """
    global _last_ms, _last_random

    ms = int(time.time() * 1000) if timestamp_ms is None else timestamp_ms
    with _lock:
        if ms == _last_ms:
            random_part = (_last_random + 1) & ((1 << 80) - 1)
        else:
            random_part = int.from_bytes(os.urandom(10), "big")
        _last_ms = ms
        _last_random = random_part

    return _encode(ms, 10) + _encode(random_part, 16)


def ulid_timestamp(value: str) -> datetime:
    """Decode the creation time embedded in a ULID string.

    Raises:
        ValueError: If ``value`` is not a valid ULID
    """
    if len(value) != 26:
        raise ValueError(f"Invalid ULID length: {value!r}")
    ms = 0
    try:
        for char in value[:10].upper():
            ms = (ms << 5) | _DECODE[char]
    except KeyError as exc:
        raise ValueError(f"Invalid ULID character in {value!r}") from exc
    return datetime.fromtimestamp(ms / 1000, tz=UTC)
