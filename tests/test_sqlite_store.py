"""Tests for the SQLite document store."""

from __future__ import annotations

from pathlib import Path

import pytest

from docvault.app.adapters import SQLiteDocumentStore
from docvault.app.ports import Document
from docvault.utils.ulid import new_ulid


def _document(path: Path, **overrides) -> Document:
    values = {
        "id": new_ulid(),
        "name": path.name,
        "path": str(path),
        "folder": "",
        "hash": "a" * 64,
        "document_type": path.suffix,
        "full_text": "text",
    }
    values.update(overrides)
    return Document(**values)


class TestSQLiteDocumentStore:
    def test_save_and_get(self, store: SQLiteDocumentStore, temp_dir: Path):
        document = _document(temp_dir / "a.txt")

        store.save(document)

        fetched = store.get(document.id)
        assert fetched == document
        assert store.get_by_path(document.path) == document
        assert store.get("0" * 26) is None

    def test_save_on_existing_path_keeps_first_id(self, store: SQLiteDocumentStore, temp_dir: Path):
        first = store.save(_document(temp_dir / "a.txt", full_text="old"))

        second = store.save(_document(temp_dir / "a.txt", full_text="new"))

        assert second.id == first.id
        assert store.count() == 1
        stored = store.get(first.id)
        assert stored is not None and stored.full_text == "new"

    def test_get_by_hash_returns_oldest(self, store: SQLiteDocumentStore, temp_dir: Path):
        older = store.save(_document(temp_dir / "a.txt", hash="f" * 64))
        store.save(_document(temp_dir / "b.txt", hash="f" * 64))

        match = store.get_by_hash("f" * 64)

        assert match is not None and match.id == older.id
        assert store.get_by_hash("e" * 64) is None

    def test_list_newest_paginates_newest_first(self, store: SQLiteDocumentStore, temp_dir: Path):
        saved = [store.save(_document(temp_dir / f"{n}.txt")) for n in range(5)]

        first_page = store.list_newest(2)
        second_page = store.list_newest(2, offset=2)

        assert [d.id for d in first_page] == [saved[4].id, saved[3].id]
        assert [d.id for d in second_page] == [saved[2].id, saved[1].id]

    def test_list_folder(self, store: SQLiteDocumentStore, temp_dir: Path):
        store.save(_document(temp_dir / "tax" / "a.txt", folder="tax"))
        store.save(_document(temp_dir / "b.txt"))

        assert [d.name for d in store.list_folder("tax")] == ["a.txt"]
        assert [d.name for d in store.list_folder("")] == ["b.txt"]

    def test_update_field(self, store: SQLiteDocumentStore, temp_dir: Path):
        document = store.save(_document(temp_dir / "a.txt"))

        assert store.update_field(document.id, "url", "/document/view/x")
        assert store.update_field(document.id, "folder", "archive")
        assert not store.update_field("0" * 26, "url", "/nowhere")

        stored = store.get(document.id)
        assert stored is not None
        assert stored.url == "/document/view/x"
        assert stored.folder == "archive"

    def test_update_field_rejects_other_columns(self, store: SQLiteDocumentStore, temp_dir: Path):
        document = store.save(_document(temp_dir / "a.txt"))

        with pytest.raises(ValueError):
            store.update_field(document.id, "path", "/etc/passwd")  # type: ignore[arg-type]

    def test_delete(self, store: SQLiteDocumentStore, temp_dir: Path):
        document = store.save(_document(temp_dir / "a.txt"))

        assert store.delete(document.id)
        assert not store.delete(document.id)
        assert store.count() == 0

    def test_data_persists_across_connections(self, temp_dir: Path):
        db_path = temp_dir / "db" / "docs.db"
        first = SQLiteDocumentStore(db_path)
        document = first.save(_document(temp_dir / "a.txt"))
        first.close()

        second = SQLiteDocumentStore(db_path)
        try:
            assert second.get(document.id) == document
        finally:
            second.close()


def test_document_requires_absolute_path():
    with pytest.raises(ValueError):
        Document(id=new_ulid(), name="a", path="relative/a.txt", hash="x", document_type=".txt")
