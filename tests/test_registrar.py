"""Tests for the document registrar."""

from __future__ import annotations

import hashlib
from pathlib import Path

import pytest

from docvault.app.adapters import DocumentRouteTable, SQLiteDocumentStore, TantivyIndexAdapter
from docvault.app.registrar import DocumentRegistrar
from docvault.config import Settings
from docvault.errors import RegistrationError


def _drop(settings: Settings, relative: str, content: str) -> Path:
    path = settings.get_ingress_dir() / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def test_register_creates_row_route_copy_and_deletes_original(
    settings: Settings,
    registrar: DocumentRegistrar,
    store: SQLiteDocumentStore,
    index: TantivyIndexAdapter,
    routes: DocumentRouteTable,
) -> None:
    source = _drop(settings, "letters/note.txt", "pay the invoice")

    registration = registrar.register(source, "pay the invoice")

    assert registration.ok
    document = registration.document
    assert document is not None
    expected_path = settings.get_document_dir() / "letters" / "note.txt"
    assert document.path == str(expected_path)
    assert document.folder == "letters"
    assert document.document_type == ".txt"
    assert document.hash == hashlib.sha256(b"pay the invoice").hexdigest()
    assert document.url == f"/document/view/{document.id}"

    stored = store.get(document.id)
    assert stored is not None
    assert stored.url == document.url
    assert routes.resolve(document.url) == expected_path
    assert expected_path.read_text(encoding="utf-8") == "pay the invoice"
    assert not source.exists()
    assert [hit.id for hit in index.search("invoice").hits] == [document.id]
    assert [stage.status for stage in registration.stages] == ["completed"] * 4


def test_register_moves_original_when_not_deleting(
    move_settings: Settings,
    store: SQLiteDocumentStore,
    index: TantivyIndexAdapter,
    routes: DocumentRouteTable,
) -> None:
    registrar = DocumentRegistrar(settings=move_settings, store=store, index=index, routes=routes)
    source = _drop(move_settings, "deep/nested/note.txt", "hello")

    registration = registrar.register(source, "hello")

    assert registration.ok
    assert not source.exists()
    # Processed originals keep only their base name.
    assert (move_settings.get_ingress_move_dir() / "note.txt").read_text() == "hello"


def test_register_flattens_into_new_folder(
    settings: Settings,
    store: SQLiteDocumentStore,
    index: TantivyIndexAdapter,
    routes: DocumentRouteTable,
) -> None:
    flat = settings.model_copy(update={"ingress_preserve": False})
    registrar = DocumentRegistrar(settings=flat, store=store, index=index, routes=routes)
    source = _drop(flat, "a/b/report.txt", "numbers")

    registration = registrar.register(source, "numbers")

    assert registration.document is not None
    assert registration.storage_path == flat.get_new_document_dir() / "report.txt"
    assert registration.document.folder == "New"
    assert registration.storage_path.exists()


def test_reregistering_same_path_keeps_identity(
    settings: Settings, registrar: DocumentRegistrar, store: SQLiteDocumentStore
) -> None:
    first = registrar.register(_drop(settings, "note.txt", "v1"), "v1")
    second = registrar.register(_drop(settings, "note.txt", "v2"), "v2")

    assert first.document is not None and second.document is not None
    assert second.document.id == first.document.id
    assert store.count() == 1
    stored = store.get(first.document.id)
    assert stored is not None
    assert stored.full_text == "v2"


def test_duplicate_content_is_flagged_but_registered(
    settings: Settings, registrar: DocumentRegistrar, store: SQLiteDocumentStore
) -> None:
    first = registrar.register(_drop(settings, "a.txt", "same bytes"), "same bytes")
    second = registrar.register(_drop(settings, "b.txt", "same bytes"), "same bytes")

    assert first.document is not None
    assert second.duplicate_of == first.document.id
    assert store.count() == 2


def test_database_failure_raises_and_leaves_file(
    settings: Settings, index: TantivyIndexAdapter, routes: DocumentRouteTable
) -> None:
    class BrokenStore(SQLiteDocumentStore):
        def save(self, document):  # type: ignore[override]
            raise RuntimeError("disk full")

    broken = BrokenStore(":memory:")
    registrar = DocumentRegistrar(settings=settings, store=broken, index=index, routes=routes)
    source = _drop(settings, "note.txt", "hello")

    with pytest.raises(RegistrationError, match="disk full"):
        registrar.register(source, "hello")

    assert source.exists()
    assert len(routes) == 0
    assert not (settings.get_document_dir() / "note.txt").exists()


def test_storage_failure_keeps_original_and_reports(
    settings: Settings, registrar: DocumentRegistrar, store: SQLiteDocumentStore
) -> None:
    source = _drop(settings, "inbox/note.txt", "hello")
    # A plain file where the destination folder should be makes the copy fail.
    (settings.get_document_dir() / "inbox").write_text("squatter")

    registration = registrar.register(source, "hello")

    assert not registration.ok
    assert registration.errors[0].startswith("storage:")
    storage_stage = registration.stage("storage")
    cleanup_stage = registration.stage("ingress_cleanup")
    assert storage_stage is not None and storage_stage.status == "failed"
    assert cleanup_stage is not None and cleanup_stage.status == "skipped"
    assert source.exists()
    # The row exists; the reconciler repairs the drift later.
    assert store.count() == 1


def test_upload_origin_is_recorded(settings: Settings, registrar: DocumentRegistrar) -> None:
    registration = registrar.register(_drop(settings, "up.txt", "x"), "x", origin="upload")

    assert registration.origin == "upload"
    assert registration.ok
