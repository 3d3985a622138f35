"""Utility modules for common operations."""

from docvault.utils.hashing import compute_sha256_file
from docvault.utils.ulid import new_ulid, ulid_timestamp

__all__ = [
    "compute_sha256_file",
    "new_ulid",
    "ulid_timestamp",
]
