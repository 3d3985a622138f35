"""SQLite-backed document store."""

from __future__ import annotations

import logging
import sqlite3
import threading
from datetime import UTC, datetime
from pathlib import Path

from docvault.app.ports.document_store import Document, DocumentStorePort, PatchableField

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;

CREATE TABLE IF NOT EXISTS documents (
  id TEXT PRIMARY KEY,
  name TEXT NOT NULL,
  path TEXT NOT NULL UNIQUE,
  ingress_time TEXT NOT NULL,
  folder TEXT NOT NULL DEFAULT '',
  hash TEXT NOT NULL,
  document_type TEXT NOT NULL,
  full_text TEXT NOT NULL DEFAULT '',
  url TEXT NOT NULL DEFAULT '',
  updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_documents_hash ON documents(hash);
CREATE INDEX IF NOT EXISTS idx_documents_folder ON documents(folder);
"""

_COLUMNS = "id, name, path, ingress_time, folder, hash, document_type, full_text, url"

_PATCHABLE: dict[str, str] = {"url": "url", "folder": "folder"}


def _now() -> str:
    return datetime.now(UTC).isoformat()


class SQLiteDocumentStore(DocumentStorePort):
    """Document store over a single shared SQLite connection.

    The connection is opened with ``check_same_thread=False`` and every
    statement runs under one re-entrant lock, so the ingestion worker and
    request handlers can share the instance.
    """

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = str(db_path)
        if self._db_path != ":memory:":
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()
        self._con = sqlite3.connect(self._db_path, check_same_thread=False)
        self._con.row_factory = sqlite3.Row
        self._con.executescript(SCHEMA_SQL)
        self._con.commit()

    def save(self, document: Document) -> Document:
        with self._lock:
            existing = self._fetch_one("SELECT " + _COLUMNS + " FROM documents WHERE path = ?", (document.path,))
            if existing is not None and existing.id != document.id:
                # Identity is never reassigned: the row owning the path keeps its id.
                document = document.model_copy(update={"id": existing.id})

            self._con.execute(
                """
                INSERT INTO documents (
                  id, name, path, ingress_time, folder, hash, document_type, full_text, url, updated_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(path) DO UPDATE SET
                  name = excluded.name,
                  ingress_time = excluded.ingress_time,
                  folder = excluded.folder,
                  hash = excluded.hash,
                  document_type = excluded.document_type,
                  full_text = excluded.full_text,
                  url = excluded.url,
                  updated_at = excluded.updated_at
                """,
                (
                    document.id,
                    document.name,
                    document.path,
                    document.ingress_time.isoformat(),
                    document.folder,
                    document.hash,
                    document.document_type,
                    document.full_text,
                    document.url,
                    _now(),
                ),
            )
            self._con.commit()
        logger.debug("Saved document %s at %s", document.id, document.path)
        return document

    def get(self, document_id: str) -> Document | None:
        return self._fetch_one(
            "SELECT " + _COLUMNS + " FROM documents WHERE id = ?", (document_id,)
        )

    def get_by_path(self, path: str) -> Document | None:
        return self._fetch_one("SELECT " + _COLUMNS + " FROM documents WHERE path = ?", (path,))

    def get_by_hash(self, content_hash: str) -> Document | None:
        return self._fetch_one(
            "SELECT " + _COLUMNS + " FROM documents WHERE hash = ? ORDER BY id LIMIT 1",
            (content_hash,),
        )

    def list_folder(self, folder: str) -> list[Document]:
        return self._fetch_all(
            "SELECT " + _COLUMNS + " FROM documents WHERE folder = ? ORDER BY id", (folder,)
        )

    def list_newest(self, limit: int, offset: int = 0) -> list[Document]:
        # ULIDs sort by creation time, so id order is ingress order.
        return self._fetch_all(
            "SELECT " + _COLUMNS + " FROM documents ORDER BY id DESC LIMIT ? OFFSET ?",
            (max(0, limit), max(0, offset)),
        )

    def list_all(self) -> list[Document]:
        return self._fetch_all("SELECT " + _COLUMNS + " FROM documents ORDER BY id", ())

    def count(self) -> int:
        with self._lock:
            row = self._con.execute("SELECT COUNT(*) FROM documents").fetchone()
        return int(row[0])

    def delete(self, document_id: str) -> bool:
        with self._lock:
            cursor = self._con.execute("DELETE FROM documents WHERE id = ?", (document_id,))
            self._con.commit()
        return cursor.rowcount > 0

    def update_field(self, document_id: str, field: PatchableField, value: str) -> bool:
        column = _PATCHABLE.get(field)
        if column is None:
            raise ValueError(f"Field '{field}' cannot be patched")
        with self._lock:
            cursor = self._con.execute(
                f"UPDATE documents SET {column} = ?, updated_at = ? WHERE id = ?",
                (value, _now(), document_id),
            )
            self._con.commit()
        return cursor.rowcount > 0

    def close(self) -> None:
        with self._lock:
            self._con.close()

    def _fetch_one(self, sql: str, params: tuple) -> Document | None:
        with self._lock:
            row = self._con.execute(sql, params).fetchone()
        return _row_to_document(row) if row is not None else None

    def _fetch_all(self, sql: str, params: tuple) -> list[Document]:
        with self._lock:
            rows = self._con.execute(sql, params).fetchall()
        return [_row_to_document(row) for row in rows]


def _row_to_document(row: sqlite3.Row) -> Document:
    return Document(
        id=row["id"],
        name=row["name"],
        path=row["path"],
        ingress_time=datetime.fromisoformat(row["ingress_time"]),
        folder=row["folder"],
        hash=row["hash"],
        document_type=row["document_type"],
        full_text=row["full_text"],
        url=row["url"],
    )
