"""Path utilities for directory and file operations."""

from __future__ import annotations

import shutil
from pathlib import Path

COMPANION_SUFFIXES: tuple[str, ...] = (".yaml", ".txt")


def get_relative_path(path: Path, base: Path) -> Path:
    """Get ``path`` relative to ``base``, falling back to the bare file name."""
    try:
        return path.relative_to(base)
    except ValueError:
        return Path(path.name)


def validate_within_root(path: Path, root: Path) -> Path:
    """Resolve ``path`` and ensure it resides within ``root``.

    Raises:
        ValueError: If the resolved path escapes ``root``
    """
    resolved_path = Path(path).resolve()
    resolved_root = Path(root).resolve()
    if not resolved_path.is_relative_to(resolved_root):
        raise ValueError(f"Path {resolved_path} is outside allowed root {resolved_root}")
    return resolved_path


def companion_paths(path: Path) -> list[Path]:
    """Return the sidecar paths that travel with ``path`` (``a.pdf`` -> ``a.pdf.yaml``)."""
    return [path.with_name(path.name + suffix) for suffix in COMPANION_SUFFIXES]


def is_companion_file(path: Path) -> bool:
    """True when ``path`` is a sidecar whose base file exists on disk."""
    if path.suffix.lower() not in COMPANION_SUFFIXES:
        return False
    base = path.with_name(path.name[: -len(path.suffix)])
    return base.is_file()


def move_file(src: Path, dst: Path) -> Path:
    """Move ``src`` to ``dst``, creating parent directories first."""
    dst.parent.mkdir(parents=True, exist_ok=True)
    # shutil.move falls back to copy+delete across filesystems
    return Path(shutil.move(str(src), str(dst)))
