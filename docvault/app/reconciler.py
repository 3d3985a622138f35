"""Reconcile the database, search index and document storage."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel, Field

from docvault.app.ports import DocumentStorePort, RoutePublisherPort, SearchIndexPort
from docvault.config import Settings
from docvault.ingest.discover import is_processable, iter_files
from docvault.utils.paths import companion_paths, get_relative_path, is_companion_file, move_file

logger = logging.getLogger(__name__)


class CleanReport(BaseModel):
    """Counts from one reconciliation pass."""

    scanned: int = 0
    deleted: int = 0
    moved: int = 0
    errors: int = 0
    moved_paths: list[str] = Field(default_factory=list)


class Reconciler:
    """Converge the three stores after partial failures or out-of-band edits.

    Phase A drops rows (and their index entries) whose file is gone. Phase B
    sends storage files that no row knows about back to ingress, keeping their
    relative location, so the next ingestion run registers them.
    """

    def __init__(
        self,
        *,
        settings: Settings,
        store: DocumentStorePort,
        index: SearchIndexPort,
        routes: RoutePublisherPort | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._settings = settings
        self._store = store
        self._index = index
        self._routes = routes
        self._logger = logger or logging.getLogger(__name__)

    def clean(self) -> CleanReport:
        report = CleanReport()
        self._purge_missing(report)
        self._return_orphans(report)
        self._logger.info(
            "Clean finished: %d scanned, %d deleted, %d moved, %d errors",
            report.scanned,
            report.deleted,
            report.moved,
            report.errors,
        )
        return report

    def _purge_missing(self, report: CleanReport) -> None:
        for document in self._store.list_all():
            report.scanned += 1
            if not document.path:
                self._logger.warning("Document %s has no path, skipping", document.id)
                continue
            if Path(document.path).exists():
                continue

            self._logger.info("File for %s is gone, removing %s", document.id, document.path)
            try:
                removed = self._store.delete(document.id)
            except Exception as exc:
                self._logger.error("Unable to delete document %s: %s", document.id, exc)
                report.errors += 1
                continue
            if not removed:
                continue

            try:
                self._index.delete_document(document.id)
            except Exception as exc:
                self._logger.error(
                    "Unable to remove %s from the search index: %s", document.id, exc
                )
                report.errors += 1
            if self._routes is not None and document.url:
                self._routes.unpublish(document.url)
            report.deleted += 1

    def _return_orphans(self, report: CleanReport) -> None:
        storage_root = self._settings.get_document_dir()
        ingress_root = self._settings.get_ingress_dir()

        known: set[str] = set()
        for document in self._store.list_all():
            if not document.path:
                continue
            path = Path(document.path)
            known.add(str(path))
            known.update(str(companion) for companion in companion_paths(path))

        orphans = [
            path
            for path in iter_files(storage_root)
            if not path.is_relative_to(ingress_root) and self._is_orphan(path, known)
        ]

        for orphan in orphans:
            relative = get_relative_path(orphan, storage_root)
            target = ingress_root / relative
            try:
                move_file(orphan, target)
            except OSError as exc:
                self._logger.error("Unable to move orphan %s to ingress: %s", orphan, exc)
                report.errors += 1
                continue

            self._logger.info("Moved orphan %s back to ingress", relative)
            report.moved += 1
            report.moved_paths.append(str(target))

            for companion in companion_paths(orphan):
                if not companion.exists():
                    continue
                try:
                    move_file(companion, target.with_name(companion.name))
                except OSError as exc:
                    self._logger.error("Unable to move companion %s: %s", companion, exc)
                    report.errors += 1

    @staticmethod
    def _is_orphan(path: Path, known: set[str]) -> bool:
        if path.is_dir() or str(path) in known:
            return False
        if is_companion_file(path):
            return False
        return is_processable(path)
