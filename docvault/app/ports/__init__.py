"""Port interfaces for the docvault application layer.

Domain logic depends on these protocols, never on concrete implementations.
"""

__all__ = [
    "Document",
    "DocumentStorePort",
    "PatchableField",
    "SearchHit",
    "SearchPage",
    "SearchIndexPort",
    "OCRPort",
    "RoutePublisherPort",
    "DOCUMENT_URL_PREFIX",
    "document_url",
]

from docvault.app.ports.document_store import Document, DocumentStorePort, PatchableField
from docvault.app.ports.index import SearchHit, SearchIndexPort, SearchPage
from docvault.app.ports.ocr import OCRPort
from docvault.app.ports.routes import DOCUMENT_URL_PREFIX, RoutePublisherPort, document_url
