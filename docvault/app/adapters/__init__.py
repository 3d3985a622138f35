"""Concrete adapters wiring application ports to built-in implementations."""

from __future__ import annotations

from .route_table import DocumentRouteTable
from .sqlite_store import SQLiteDocumentStore
from .tantivy_index import TantivyIndexAdapter
from .tesseract_ocr import TesseractOCRAdapter, UnavailableOCRAdapter
from .word_converter import WordConverter, convert_word_document

__all__ = [
    "DocumentRouteTable",
    "SQLiteDocumentStore",
    "TantivyIndexAdapter",
    "TesseractOCRAdapter",
    "UnavailableOCRAdapter",
    "WordConverter",
    "convert_word_document",
]
