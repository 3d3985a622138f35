"""Ingress walker: extract and register every dropped file."""

from __future__ import annotations

import logging
import stat
from pathlib import Path

from pydantic import BaseModel, Field

from docvault.app.registrar import DocumentRegistrar, Origin, Registration
from docvault.config import Settings
from docvault.errors import RegistrationError
from docvault.ingest.discover import delete_empty_dirs, iter_files
from docvault.ingest.extract import ExtractorChain

logger = logging.getLogger(__name__)


class IngestionReport(BaseModel):
    """Counts from one ingestion pass."""

    scanned: int = 0
    registered: int = 0
    skipped: int = 0
    failed: int = 0
    failed_paths: list[str] = Field(default_factory=list)
    document_ids: list[str] = Field(default_factory=list)
    removed_dirs: int = 0


class IngestionWalker:
    """Walk the ingress root and push each file through extraction and registration.

    Every file is processed inside its own error boundary and the pass as a
    whole inside another, so one bad file (or an unexpected bug) never stops
    the rest of the run or escapes to the scheduler thread. Files that fail
    extraction stay in ingress and are retried on the next pass.
    """

    def __init__(
        self,
        *,
        settings: Settings,
        chain: ExtractorChain,
        registrar: DocumentRegistrar,
        logger: logging.Logger | None = None,
    ) -> None:
        self._settings = settings
        self._chain = chain
        self._registrar = registrar
        self._logger = logger or logging.getLogger(__name__)

    def run(self) -> IngestionReport:
        report = IngestionReport()
        try:
            root = self._settings.get_ingress_dir()
            excluded = self._excluded_dir(root)
            self._logger.info("Starting ingestion of %s", root)

            for path in iter_files(root):
                if excluded is not None and path.is_relative_to(excluded):
                    continue
                self._process(path, "ingress", report)

            report.removed_dirs = delete_empty_dirs(root)
        except Exception:
            self._logger.exception("Ingestion run aborted")

        self._logger.info(
            "Ingestion finished: %d scanned, %d registered, %d skipped, %d failed",
            report.scanned,
            report.registered,
            report.skipped,
            report.failed,
        )
        return report

    def ingest_file(self, path: Path, origin: Origin = "upload") -> Registration | None:
        """Process one file immediately (uploads).

        Returns:
            The registration, or None if the file was skipped or failed
        """
        return self._process(path, origin, IngestionReport())

    def _excluded_dir(self, root: Path) -> Path | None:
        # Processed originals must not be picked up again when the
        # processed folder lives inside ingress.
        if self._settings.ingress_delete:
            return None
        move_dir = self._settings.get_ingress_move_dir()
        return move_dir if move_dir.is_relative_to(root) and move_dir != root else None

    def _process(self, path: Path, origin: Origin, report: IngestionReport) -> Registration | None:
        report.scanned += 1
        try:
            info = path.stat()
        except OSError as exc:
            self._logger.warning("Unable to stat %s, skipping: %s", path, exc)
            report.skipped += 1
            return None
        if stat.S_ISDIR(info.st_mode):
            report.skipped += 1
            return None

        try:
            outcome = self._chain.extract(path)
            if outcome.status == "unsupported":
                self._logger.warning("Skipping %s: %s", path, outcome.reason)
                report.skipped += 1
                return None
            if not outcome.ok:
                self._logger.error(
                    "Text extraction %s for %s (%s): %s",
                    outcome.status,
                    path,
                    outcome.policy,
                    outcome.reason,
                )
                self._mark_failed(report, path)
                return None

            registration = self._registrar.register(path, outcome.text, origin)
        except RegistrationError as exc:
            self._logger.error("%s", exc)
            self._mark_failed(report, path)
            return None
        except Exception:
            self._logger.exception("Unexpected error while ingesting %s", path)
            self._mark_failed(report, path)
            return None

        report.registered += 1
        if registration.document is not None:
            report.document_ids.append(registration.document.id)
        return registration

    @staticmethod
    def _mark_failed(report: IngestionReport, path: Path) -> None:
        report.failed += 1
        report.failed_paths.append(str(path))
