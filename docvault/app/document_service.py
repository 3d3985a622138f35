"""Service facade consumed by the route layer and the CLI."""

from __future__ import annotations

import logging
import math
import shutil
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path

from pydantic import BaseModel, Field

from docvault.app.ingestion import IngestionReport, IngestionWalker
from docvault.app.ports import (
    Document,
    DocumentStorePort,
    RoutePublisherPort,
    SearchIndexPort,
    document_url,
)
from docvault.app.reconciler import CleanReport, Reconciler
from docvault.app.registrar import Registration
from docvault.app.scheduler import RunGuard
from docvault.config import Settings
from docvault.errors import DocumentNotFoundError, JobBusyError
from docvault.index.search import extract_snippet
from docvault.ingest.discover import is_partial_upload, partial_upload_name
from docvault.utils.paths import validate_within_root

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20


class SearchResult(BaseModel):
    """A search hit hydrated from the document store."""

    document: Document
    score: float
    snippet: str = ""


class SearchResponse(BaseModel):
    total: int = Field(0, ge=0)
    documents: list[SearchResult] = Field(default_factory=list)


class DocumentPage(BaseModel):
    """One page of the newest-first document listing."""

    documents: list[Document] = Field(default_factory=list)
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    total_count: int = 0
    total_pages: int = 0
    has_next: bool = False
    has_previous: bool = False


class DocumentService:
    """Entry points for triggering jobs and managing stored documents.

    Background jobs run one at a time on a single worker thread and share the
    scheduler's run guard, so an ingestion and a clean never overlap.
    """

    def __init__(
        self,
        *,
        settings: Settings,
        store: DocumentStorePort,
        index: SearchIndexPort,
        routes: RoutePublisherPort,
        walker: IngestionWalker,
        reconciler: Reconciler,
        guard: RunGuard,
        logger: logging.Logger | None = None,
    ) -> None:
        self._settings = settings
        self._store = store
        self._index = index
        self._routes = routes
        self._walker = walker
        self._reconciler = reconciler
        self._guard = guard
        self._logger = logger or logging.getLogger(__name__)
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="docvault-job")

    # Jobs

    def trigger_ingestion(self) -> Future[IngestionReport | None]:
        """Start an ingestion run in the background and return immediately.

        The future resolves to the report, or None if another job was running.
        """
        self._logger.info("Manual ingestion requested")
        return self._executor.submit(self._guard.try_run, "ingestion", self._walker.run)

    def trigger_clean(self) -> Future[CleanReport | None]:
        """Start a clean in the background and return immediately."""
        self._logger.info("Clean requested")
        return self._executor.submit(self._guard.try_run, "clean", self._reconciler.clean)

    def run_ingestion(self) -> IngestionReport:
        """Run ingestion in the calling thread.

        Raises:
            JobBusyError: If another job holds the run guard
        """
        report = self._guard.try_run("ingestion", self._walker.run)
        if report is None:
            raise JobBusyError("Another ingestion or clean job is already running")
        return report

    def clean(self) -> CleanReport:
        """Run the reconciler in the calling thread.

        Raises:
            JobBusyError: If another job holds the run guard
        """
        report = self._guard.try_run("clean", self._reconciler.clean)
        if report is None:
            raise JobBusyError("Another ingestion or clean job is already running")
        return report

    def upload(self, filename: str, data: bytes, subdir: str = "") -> Registration | None:
        """Write an uploaded file into ingress and ingest it immediately.

        The bytes land under a partial name the walker ignores and are renamed
        into place while holding the run guard. If an ingestion or clean job
        already holds it, the file is left for the walker instead.

        Returns:
            The registration, or None if extraction failed or a job was
            running (the file then stays in ingress for the next run)

        Raises:
            ValueError: If the name or sub-directory escapes ingress
        """
        if (
            not filename
            or Path(filename).name != filename
            or filename in {".", ".."}
            or is_partial_upload(filename)
        ):
            raise ValueError(f"Invalid upload file name: {filename!r}")

        ingress_root = self._settings.get_ingress_dir()
        target_dir = validate_within_root(ingress_root / subdir, ingress_root)
        target = ingress_root / target_dir.relative_to(ingress_root.resolve()) / filename
        target.parent.mkdir(parents=True, exist_ok=True)
        partial = target.with_name(partial_upload_name(filename))
        try:
            partial.write_bytes(data)
        except OSError:
            partial.unlink(missing_ok=True)
            raise
        self._logger.info("Received upload %s (%d bytes)", target, len(data))

        with self._guard.hold("upload") as acquired:
            partial.replace(target)
            if not acquired:
                self._logger.info(
                    "%s in progress, leaving upload %s for the walker",
                    self._guard.current_job,
                    target,
                )
                return None
            return self._walker.ingest_file(target, origin="upload")

    # Documents

    def get_document(self, document_id: str) -> Document:
        """Raises DocumentNotFoundError if ``document_id`` is unknown."""
        document = self._store.get(document_id)
        if document is None:
            raise DocumentNotFoundError(f"Document not found: {document_id}")
        return document

    def delete_document(self, document_id: str) -> Document:
        """Delete the row, the stored file, the index entry and the route."""
        document = self.get_document(document_id)
        self._store.delete(document.id)

        try:
            Path(document.path).unlink(missing_ok=True)
        except OSError as exc:
            self._logger.error("Unable to delete file %s: %s", document.path, exc)

        try:
            self._index.delete_document(document.id)
        except Exception as exc:
            self._logger.error("Unable to remove %s from the search index: %s", document.id, exc)

        if document.url:
            self._routes.unpublish(document.url)
        self._logger.info("Deleted document %s (%s)", document.id, document.path)
        return document

    def delete_storage_path(self, relative_path: str) -> Path:
        """Delete a file or folder under document storage.

        Rows pointing into the removed tree are purged by the next clean.

        Raises:
            ValueError: If the path is the storage root or escapes it
            FileNotFoundError: If nothing exists at the path
        """
        root = self._settings.get_document_dir()
        target = validate_within_root(root / relative_path, root)
        if target == root.resolve():
            raise ValueError("Refusing to delete the document storage root")
        if not target.exists():
            raise FileNotFoundError(f"Not found in document storage: {relative_path}")

        if target.is_dir():
            shutil.rmtree(target)
        else:
            target.unlink()
        self._logger.info("Deleted %s from document storage", target)
        return target

    def move_documents(self, document_ids: list[str], folder: str) -> int:
        """Set the logical folder of each document.

        Raises:
            DocumentNotFoundError: If any id is unknown (nothing is updated)
        """
        for document_id in document_ids:
            self.get_document(document_id)

        updated = 0
        for document_id in document_ids:
            if self._store.update_field(document_id, "folder", folder):
                updated += 1
        self._logger.info("Moved %d document(s) to folder %r", updated, folder)
        return updated

    def create_folder(self, relative_path: str) -> Path:
        root = self._settings.get_document_dir()
        target = validate_within_root(root / relative_path, root)
        target.mkdir(parents=True, exist_ok=True)
        return target

    def folder_documents(self, folder: str) -> list[Document]:
        return self._store.list_folder(folder)

    def latest_documents(self, page: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> DocumentPage:
        """Newest documents first, paginated.

        Raises:
            ValueError: If ``page`` or ``page_size`` is less than 1
        """
        if page < 1 or page_size < 1:
            raise ValueError("page and page_size must be at least 1")

        total_count = self._store.count()
        total_pages = math.ceil(total_count / page_size)
        documents = self._store.list_newest(page_size, (page - 1) * page_size)
        return DocumentPage(
            documents=documents,
            page=page,
            page_size=page_size,
            total_count=total_count,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_previous=page > 1,
        )

    def search(self, term: str, *, limit: int = 20, offset: int = 0) -> SearchResponse:
        """Full-text search; whitespace in ``term`` makes it a phrase search.

        Raises:
            ValueError: If the term is empty or cannot be parsed
        """
        if not term or not term.strip():
            raise ValueError("Search term cannot be empty")

        page = self._index.search(term, limit=limit, offset=offset)
        results: list[SearchResult] = []
        for hit in page.hits:
            document = self._store.get(hit.id)
            if document is None:
                self._logger.warning("Search hit %s has no database row", hit.id)
                continue
            results.append(
                SearchResult(
                    document=document,
                    score=hit.score,
                    snippet=extract_snippet(document.full_text, term),
                )
            )
        return SearchResponse(total=page.total, documents=results)

    def publish_all_routes(self) -> int:
        """Publish the direct-fetch route of every stored document.

        Rows missing their URL (registration stopped after the database step)
        get it assigned here.
        """
        published = 0
        for document in self._store.list_all():
            url = document.url or document_url(document.id)
            self._routes.publish(url, Path(document.path))
            if not document.url:
                self._store.update_field(document.id, "url", url)
            published += 1
        self._logger.info("Published %d document route(s)", published)
        return published

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
