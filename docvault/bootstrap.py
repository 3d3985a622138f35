"""Application bootstrap wiring ports, adapters, and services."""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

from docvault.app.adapters import (
    DocumentRouteTable,
    SQLiteDocumentStore,
    TantivyIndexAdapter,
    TesseractOCRAdapter,
    UnavailableOCRAdapter,
    convert_word_document,
)
from docvault.app.document_service import DocumentService
from docvault.app.ingestion import IngestionWalker
from docvault.app.ports import DocumentStorePort, OCRPort, SearchIndexPort
from docvault.app.reconciler import Reconciler
from docvault.app.registrar import DocumentRegistrar
from docvault.app.scheduler import IngestionScheduler, RunGuard
from docvault.config import Settings, get_settings
from docvault.ingest.extract import ExtractorChain

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ApplicationContainer:
    """Aggregates wired services and adapters for the CLI layer."""

    settings: Settings
    store: DocumentStorePort
    index: SearchIndexPort
    ocr: OCRPort | None
    routes: DocumentRouteTable
    chain: ExtractorChain
    registrar: DocumentRegistrar
    walker: IngestionWalker
    reconciler: Reconciler
    guard: RunGuard
    scheduler: IngestionScheduler
    service: DocumentService

    def close(self) -> None:
        """Stop background work and release the stores."""
        self.scheduler.stop()
        self.service.shutdown()
        self.index.close()
        self.store.close()


def bootstrap_application(settings: Settings | None = None) -> ApplicationContainer:
    """Instantiate adapters and services for CLI consumption."""

    active_settings = settings or get_settings()

    store = SQLiteDocumentStore(active_settings.get_database_path())
    index = TantivyIndexAdapter(active_settings.get_index_dir())
    routes = DocumentRouteTable()
    ocr = create_ocr_adapter(active_settings)

    chain = ExtractorChain(
        ocr=ocr,
        word_converter=convert_word_document,
        target_width=active_settings.ocr_target_width,
    )
    registrar = DocumentRegistrar(
        settings=active_settings, store=store, index=index, routes=routes
    )
    walker = IngestionWalker(settings=active_settings, chain=chain, registrar=registrar)
    reconciler = Reconciler(settings=active_settings, store=store, index=index, routes=routes)

    guard = RunGuard()
    scheduler = IngestionScheduler(walker, active_settings.ingress_interval, guard)
    service = DocumentService(
        settings=active_settings,
        store=store,
        index=index,
        routes=routes,
        walker=walker,
        reconciler=reconciler,
        guard=guard,
    )

    return ApplicationContainer(
        settings=active_settings,
        store=store,
        index=index,
        ocr=ocr,
        routes=routes,
        chain=chain,
        registrar=registrar,
        walker=walker,
        reconciler=reconciler,
        guard=guard,
        scheduler=scheduler,
        service=service,
    )


def resolve_tesseract(settings: Settings) -> Path | None:
    """Locate the configured tesseract executable, or None if OCR is disabled."""
    if settings.tesseract_path is None:
        return None

    candidate = settings.tesseract_path.expanduser()
    if candidate.is_file():
        return candidate

    # Bare command names are looked up on PATH
    found = shutil.which(str(candidate))
    return Path(found) if found else None


def create_ocr_adapter(settings: Settings) -> OCRPort | None:
    """Create the OCR adapter, or None when no tesseract path is configured.

    A configured executable that is missing or too old is logged and replaced
    by an adapter that fails every call, so OCR-dependent files stay in
    ingress instead of being registered without text.
    """
    if settings.tesseract_path is None:
        logger.info("No tesseract path configured, OCR disabled")
        return None

    executable = resolve_tesseract(settings)
    if executable is None:
        reason = f"tesseract not found at {settings.tesseract_path}"
        logger.error("OCR unavailable: %s", reason)
        return UnavailableOCRAdapter(reason)

    try:
        adapter = TesseractOCRAdapter(
            executable,
            lang=settings.ocr_language,
            timeout=settings.ocr_timeout_seconds,
        )
    except (RuntimeError, OSError) as exc:
        logger.error("OCR unavailable: %s", exc)
        return UnavailableOCRAdapter(str(exc))

    logger.info("OCR enabled using %s", executable)
    return adapter
