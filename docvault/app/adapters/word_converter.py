"""Word-processor document conversion (DOCX via python-docx)."""

from __future__ import annotations

import zipfile
from collections.abc import Callable
from pathlib import Path

from docvault.errors import ExtractionError, UnsupportedConversionError

WordConverter = Callable[[Path], str]


def convert_word_document(file_path: Path) -> str:
    """Extract text from a word-processor document.

    Only ``.docx`` is handled in-process; ``.doc`` and ``.odf`` need an
    external converter and raise ``UnsupportedConversionError``.

    Args:
        file_path: Path to document

    Returns:
        Paragraph and table text joined by blank lines

    Raises:
        UnsupportedConversionError: If the format has no converter
        ExtractionError: If the document cannot be parsed
    """
    extension = file_path.suffix.lower()
    if extension != ".docx":
        raise UnsupportedConversionError(f"No converter configured for {extension} documents")

    from docx import Document
    from docx.opc.exceptions import PackageNotFoundError

    try:
        doc = Document(str(file_path))
    except (PackageNotFoundError, zipfile.BadZipFile, KeyError, ValueError) as exc:
        raise ExtractionError(f"could not decode {file_path.name}: {exc}") from exc

    text_parts = [para.text for para in doc.paragraphs if para.text.strip()]

    for table in doc.tables:
        for row in table.rows:
            row_text = " | ".join(cell.text.strip() for cell in row.cells)
            if row_text.strip():
                text_parts.append(row_text)

    return "\n\n".join(text_parts)
