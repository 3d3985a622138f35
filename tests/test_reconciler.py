"""Tests for the reconciler (clean)."""

from __future__ import annotations

from pathlib import Path

import pytest

from docvault.app.adapters import DocumentRouteTable, SQLiteDocumentStore, TantivyIndexAdapter
from docvault.app.ingestion import IngestionWalker
from docvault.app.reconciler import Reconciler
from docvault.app.registrar import DocumentRegistrar
from docvault.config import Settings
from docvault.ingest.extract import ExtractorChain


@pytest.fixture
def reconciler(
    settings: Settings,
    store: SQLiteDocumentStore,
    index: TantivyIndexAdapter,
    routes: DocumentRouteTable,
) -> Reconciler:
    return Reconciler(settings=settings, store=store, index=index, routes=routes)


@pytest.fixture
def walker(settings: Settings, registrar: DocumentRegistrar) -> IngestionWalker:
    return IngestionWalker(settings=settings, chain=ExtractorChain(), registrar=registrar)


def _ingest(settings: Settings, walker: IngestionWalker, name: str, text: str) -> None:
    path = settings.get_ingress_dir() / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    walker.run()


def test_clean_is_idempotent(
    settings: Settings, walker: IngestionWalker, reconciler: Reconciler
) -> None:
    _ingest(settings, walker, "kept.txt", "still here")
    (settings.get_document_dir() / "stray.pdf").write_bytes(b"%PDF-1.4")

    first = reconciler.clean()
    second = reconciler.clean()

    assert first.moved == 1
    assert second.deleted == 0
    assert second.moved == 0
    assert second.scanned == 1


def test_out_of_band_deletion_is_purged_with_index_entry(
    settings: Settings,
    walker: IngestionWalker,
    reconciler: Reconciler,
    store: SQLiteDocumentStore,
    index: TantivyIndexAdapter,
    routes: DocumentRouteTable,
) -> None:
    _ingest(settings, walker, "contract.txt", "lease agreement")
    (document,) = store.list_all()
    assert index.search("lease").total == 1
    Path(document.path).unlink()

    report = reconciler.clean()

    assert report.deleted == 1
    assert store.count() == 0
    assert index.search("lease").total == 0
    assert routes.resolve(document.url) is None


def test_orphan_round_trip_produces_one_document(
    settings: Settings,
    walker: IngestionWalker,
    reconciler: Reconciler,
    store: SQLiteDocumentStore,
) -> None:
    orphan = settings.get_document_dir() / "archive" / "letter.txt"
    orphan.parent.mkdir(parents=True)
    orphan.write_text("dear sir")

    report = reconciler.clean()

    assert report.moved == 1
    assert not orphan.exists()
    assert (settings.get_ingress_dir() / "archive" / "letter.txt").read_text() == "dear sir"

    walker.run()

    (document,) = store.list_all()
    assert document.name == "letter.txt"
    assert Path(document.path) == orphan
    assert orphan.exists()


def test_companions_travel_with_orphans(settings: Settings, reconciler: Reconciler) -> None:
    storage = settings.get_document_dir()
    (storage / "scan.png").write_bytes(b"png")
    (storage / "scan.png.yaml").write_text("tags: []")
    (storage / "scan.png.txt").write_text("ocr text")

    report = reconciler.clean()

    ingress = settings.get_ingress_dir()
    assert report.moved == 1
    assert sorted(path.name for path in ingress.iterdir()) == [
        "scan.png",
        "scan.png.txt",
        "scan.png.yaml",
    ]
    assert list(storage.iterdir()) == []


def test_known_documents_and_their_companions_stay(
    settings: Settings,
    walker: IngestionWalker,
    reconciler: Reconciler,
    store: SQLiteDocumentStore,
) -> None:
    _ingest(settings, walker, "kept.txt", "body")
    (document,) = store.list_all()
    Path(document.path + ".yaml").write_text("note: keep")

    report = reconciler.clean()

    assert report.moved == 0
    assert Path(document.path + ".yaml").exists()


def test_unprocessable_files_are_left_alone(settings: Settings, reconciler: Reconciler) -> None:
    unknown = settings.get_document_dir() / "thumbs.db"
    unknown.write_bytes(b"\x00")

    report = reconciler.clean()

    assert report.moved == 0
    assert unknown.exists()


def test_row_without_path_is_skipped(
    reconciler: Reconciler, store: SQLiteDocumentStore
) -> None:
    from docvault.app.ports import Document
    from docvault.utils.ulid import new_ulid

    store.save(
        Document(id=new_ulid(), name="ghost", path="", hash="0" * 64, document_type=".txt")
    )

    report = reconciler.clean()

    assert report.scanned == 1
    assert report.deleted == 0
    assert store.count() == 1
