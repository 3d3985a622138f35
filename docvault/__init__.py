"""docvault - watched-folder document ingestion with full-text search.

Documents dropped into an ingress directory are extracted (directly or via OCR),
registered into SQLite and a Tantivy index, and moved into durable storage.
"""

__version__ = "0.1.0"
__author__ = "docvault Contributors"

from docvault.config import Settings, get_settings

__all__ = ["Settings", "get_settings", "__version__"]
