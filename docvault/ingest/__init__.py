"""Document discovery and text extraction for ingress files."""

from docvault.ingest.discover import (
    PROCESSABLE_EXTENSIONS,
    classify_family,
    delete_empty_dirs,
    iter_files,
)
from docvault.ingest.extract import ExtractionOutcome, ExtractorChain

__all__ = [
    "PROCESSABLE_EXTENSIONS",
    "ExtractionOutcome",
    "ExtractorChain",
    "classify_family",
    "delete_empty_dirs",
    "iter_files",
]
