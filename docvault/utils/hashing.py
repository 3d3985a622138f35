"""Content hashing for document registration."""

import hashlib
from pathlib import Path

HASH_CHUNK_SIZE = 1 << 20


def compute_sha256_file(file_path: Path, chunk_size: int = HASH_CHUNK_SIZE) -> str:
    """Hex SHA-256 of a file's bytes, read in ``chunk_size`` blocks.

    Large scans are never held in memory whole. OSError from opening or
    reading propagates so the caller can fail the registration.
    """
    digest = hashlib.sha256()
    with file_path.open("rb") as stream:
        for block in iter(lambda: stream.read(chunk_size), b""):
            digest.update(block)
    return digest.hexdigest()
