"""Ingress discovery: enumerate dropped files and prune emptied directories."""

import logging
import os
from collections.abc import Iterator
from pathlib import Path

logger = logging.getLogger(__name__)

TEXT_EXTENSIONS = frozenset({".txt", ".rtf"})
WORD_EXTENSIONS = frozenset({".doc", ".docx", ".odf"})
PDF_EXTENSIONS = frozenset({".pdf"})
IMAGE_EXTENSIONS = frozenset({".png", ".jpg", ".jpeg", ".tiff"})

PROCESSABLE_EXTENSIONS = TEXT_EXTENSIONS | WORD_EXTENSIONS | PDF_EXTENSIONS | IMAGE_EXTENSIONS

# Uploads are written as ".<name>.part" and renamed once complete
PARTIAL_UPLOAD_SUFFIX = ".part"


def classify_family(extension: str) -> str | None:
    """Classify an extension into an extraction family.

    Args:
        extension: File extension including the dot

    Returns:
        One of ``text``, ``word``, ``pdf``, ``image``, or None if unsupported
    """
    ext = extension.lower()
    if ext in TEXT_EXTENSIONS:
        return "text"
    if ext in WORD_EXTENSIONS:
        return "word"
    if ext in PDF_EXTENSIONS:
        return "pdf"
    if ext in IMAGE_EXTENSIONS:
        return "image"
    return None


def is_processable(path: Path) -> bool:
    return path.suffix.lower() in PROCESSABLE_EXTENSIONS


def iter_files(root: Path) -> Iterator[Path]:
    """Yield every non-directory entry under ``root`` in a stable order.

    Directories (and the root itself) and uploads still being written are
    never yielded. Symlinks are yielded as-is; the caller stats them.

    Raises:
        FileNotFoundError: If ``root`` does not exist
    """
    if not root.exists():
        raise FileNotFoundError(f"Directory not found: {root}")

    def _on_error(exc: OSError) -> None:
        logger.warning("Unable to read directory %s: %s", exc.filename, exc)

    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
        dirnames.sort()
        for filename in sorted(filenames):
            if is_partial_upload(filename):
                continue
            yield Path(dirpath) / filename


def delete_empty_dirs(root: Path) -> int:
    """Remove empty directories under ``root`` bottom-up.

    The root itself is never removed. A directory that cannot be removed is
    logged and left behind.

    Returns:
        Number of directories removed
    """
    removed = 0
    for dirpath, _dirnames, _filenames in os.walk(root, topdown=False):
        current = Path(dirpath)
        if current == root:
            continue
        try:
            if any(current.iterdir()):
                continue
            current.rmdir()
        except OSError as exc:
            logger.warning("Unable to remove empty directory %s: %s", current, exc)
            continue
        removed += 1
        logger.debug("Removed empty directory %s", current)
    return removed


def partial_upload_name(filename: str) -> str:
    """Name an upload carries while its bytes are still being written."""
    return f".{filename}{PARTIAL_UPLOAD_SUFFIX}"


def is_partial_upload(filename: str) -> bool:
    return filename.startswith(".") and filename.endswith(PARTIAL_UPLOAD_SUFFIX)
