"""Tantivy-backed search index adapter."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any

import tantivy

from docvault.app.ports.index import SearchHit, SearchIndexPort, SearchPage
from docvault.index.build import (
    BODY_FIELD,
    DEFAULT_SEARCH_FIELDS,
    ID_FIELD,
    NAME_FIELD,
    open_index,
)
from docvault.index.search import build_query_string

logger = logging.getLogger(__name__)


class TantivyIndexAdapter(SearchIndexPort):
    """Full-text index keyed by document id.

    Tantivy allows a single writer per index, so the adapter holds one writer
    for its lifetime and serialises writes with a lock. The reader is reloaded
    after every commit so searches see the change immediately.
    """

    def __init__(self, index_dir: Path | None, *, heap_size: int = 50_000_000) -> None:
        self._index_dir = index_dir
        self._index = open_index(index_dir)
        self._writer: Any = self._index.writer(heap_size=heap_size, num_threads=1)
        self._lock = threading.Lock()

    def add_document(self, document_id: str, name: str, text: str) -> None:
        doc = tantivy.Document()
        doc.add_text(ID_FIELD, document_id)
        doc.add_text(NAME_FIELD, name)
        doc.add_text(BODY_FIELD, text or "")

        with self._lock:
            self._delete_term(document_id)
            self._open_writer().add_document(doc)
            self._commit()
        logger.debug("Indexed document %s", document_id)

    def delete_document(self, document_id: str) -> None:
        with self._lock:
            self._delete_term(document_id)
            self._commit()
        logger.debug("Removed document %s from index", document_id)

    def search(self, query: str, *, limit: int = 10, offset: int = 0) -> SearchPage:
        query_string = build_query_string(query)
        try:
            parsed_query = self._index.parse_query(
                query_string, default_field_names=DEFAULT_SEARCH_FIELDS
            )
        except Exception as e:
            raise ValueError(f"Invalid query syntax: {e}") from e

        searcher = self._index.searcher()
        result = searcher.search(parsed_query, limit=max(1, limit), count=True, offset=max(0, offset))

        hits: list[SearchHit] = []
        for score, doc_address in result.hits:
            doc = searcher.doc(doc_address)
            identifier = _first_value(doc.to_dict(), ID_FIELD)
            if identifier:
                hits.append(SearchHit(id=identifier, score=float(score)))

        total = result.count if result.count is not None else len(hits)
        return SearchPage(total=total, hits=hits)

    def num_docs(self) -> int:
        """Number of live documents in the index."""
        return int(self._index.searcher().num_docs)

    def close(self) -> None:
        """Commit pending changes and release the writer lock."""
        with self._lock:
            if self._writer is None:
                return
            self._commit()
            wait_merging = getattr(self._writer, "wait_merging_threads", None)
            if callable(wait_merging):
                wait_merging()
            self._writer = None

    def _open_writer(self) -> Any:
        if self._writer is None:
            raise RuntimeError("Search index is closed")
        return self._writer

    def _delete_term(self, document_id: str) -> None:
        writer = self._open_writer()
        delete_by_term = getattr(writer, "delete_documents_by_term", None)
        if callable(delete_by_term):
            delete_by_term(ID_FIELD, document_id)
        else:  # pragma: no cover - older bindings
            writer.delete_documents(ID_FIELD, document_id)

    def _commit(self) -> None:
        self._open_writer().commit()
        self._index.reload()


def _first_value(doc_dict: dict[str, Any], field_name: str) -> str:
    values = doc_dict.get(field_name) or []
    if not values:
        return ""
    value = values[0]
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="ignore")
    return str(value)
