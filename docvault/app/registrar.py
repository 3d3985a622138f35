"""Document registration: database row, URL route, storage copy, ingress disposal."""

from __future__ import annotations

import logging
import shutil
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from docvault.app.ports import (
    Document,
    DocumentStorePort,
    RoutePublisherPort,
    SearchIndexPort,
    document_url,
)
from docvault.config import Settings
from docvault.errors import RegistrationError
from docvault.utils.hashing import compute_sha256_file
from docvault.utils.paths import get_relative_path, move_file
from docvault.utils.ulid import new_ulid

logger = logging.getLogger(__name__)

StageStatus = Literal["pending", "completed", "skipped", "failed"]
Origin = Literal["ingress", "upload"]


@dataclass(slots=True)
class RegistrationStage:
    """Status of one registration step."""

    name: str
    status: StageStatus = "pending"
    detail: str | None = None
    duration_seconds: float | None = None


class Registration(BaseModel):
    """Outcome of registering one file."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    source_path: Path
    storage_path: Path
    origin: Origin = "ingress"
    document: Document | None = None
    duplicate_of: str | None = None
    stages: list[RegistrationStage] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def stage(self, name: str) -> RegistrationStage | None:
        for stage in self.stages:
            if stage.name == name:
                return stage
        return None


class DocumentRegistrar:
    """Turn an extracted file into a Document.

    Registration happens in four ordered steps:

    1. ``database``: hash the file, save the row (without URL) and index its text.
       Failure raises :class:`RegistrationError`; nothing has moved yet.
    2. ``url``: publish ``/document/view/<id>`` and persist it on the row.
    3. ``storage``: copy the file into document storage.
    4. ``ingress_cleanup``: delete the original or move it to the processed folder.

    Steps 2-4 are best-effort. Their failures are logged and recorded on the
    returned :class:`Registration`; earlier steps are not rolled back and the
    reconciler repairs the drift later. Cleanup is skipped when the storage
    copy failed so the only copy of a file is never discarded.
    """

    def __init__(
        self,
        *,
        settings: Settings,
        store: DocumentStorePort,
        index: SearchIndexPort,
        routes: RoutePublisherPort,
        logger: logging.Logger | None = None,
    ) -> None:
        self._settings = settings
        self._store = store
        self._index = index
        self._routes = routes
        self._logger = logger or logging.getLogger(__name__)

    def storage_path_for(self, source_path: Path) -> Path:
        """Final storage location for a file dropped at ``source_path``."""
        if self._settings.ingress_preserve:
            relative = get_relative_path(source_path, self._settings.get_ingress_dir())
            return self._settings.get_document_dir() / relative
        return self._settings.get_new_document_dir() / source_path.name

    def folder_for(self, storage_path: Path) -> str:
        """Logical folder of a storage path (its parent, relative to storage)."""
        parent = get_relative_path(storage_path.parent, self._settings.get_document_dir())
        folder = parent.as_posix()
        return "" if folder == "." else folder

    def register(self, source_path: Path, text: str, origin: Origin = "ingress") -> Registration:
        """Register ``source_path`` with its extracted ``text``.

        Raises:
            RegistrationError: If the database row could not be created
        """
        source_path = source_path.absolute()
        storage_path = self.storage_path_for(source_path)
        registration = Registration(
            source_path=source_path, storage_path=storage_path, origin=origin
        )

        try:
            with self._stage(registration, "database"):
                document = self._save_document(registration, text)
        except Exception as exc:
            self._logger.error("Unable to register %s: %s", source_path, exc)
            raise RegistrationError(f"Unable to register {source_path}: {exc}") from exc

        registration.document = document

        try:
            with self._stage(registration, "url"):
                url = document_url(document.id)
                self._routes.publish(url, storage_path)
                if not self._store.update_field(document.id, "url", url):
                    raise RegistrationError(f"document {document.id} vanished before URL update")
                registration.document = document.model_copy(update={"url": url})
        except Exception as exc:
            self._record_failure(registration, "url", exc)

        stored = False
        try:
            with self._stage(registration, "storage") as stage:
                stored = self._copy_to_storage(source_path, storage_path, stage)
        except Exception as exc:
            self._record_failure(registration, "storage", exc)

        if stored:
            try:
                with self._stage(registration, "ingress_cleanup") as stage:
                    self._dispose_original(source_path, storage_path, stage)
            except Exception as exc:
                self._record_failure(registration, "ingress_cleanup", exc)
        else:
            storage_stage = registration.stage("storage")
            detail = (
                "storage copy failed; original kept in place"
                if storage_stage is not None and storage_stage.status == "failed"
                else "original is the stored file"
            )
            registration.stages.append(
                RegistrationStage(name="ingress_cleanup", status="skipped", detail=detail)
            )

        self._logger.info(
            "Registered %s as %s (%s)", source_path.name, document.id, storage_path
        )
        return registration

    @contextmanager
    def _stage(self, registration: Registration, name: str) -> Iterator[RegistrationStage]:
        stage = RegistrationStage(name=name)
        registration.stages.append(stage)
        start_time = time.monotonic()
        try:
            yield stage
        except Exception as exc:
            stage.status = "failed"
            stage.detail = str(exc)
            raise
        else:
            if stage.status == "pending":
                stage.status = "completed"
        finally:
            stage.duration_seconds = time.monotonic() - start_time

    def _record_failure(self, registration: Registration, step: str, exc: Exception) -> None:
        message = f"{step}: {exc}"
        registration.errors.append(message)
        self._logger.error(
            "Registration step %s failed for %s: %s", step, registration.source_path, exc
        )

    def _save_document(self, registration: Registration, text: str) -> Document:
        source_path = registration.source_path
        storage_path = registration.storage_path
        content_hash = compute_sha256_file(source_path)

        existing = self._store.get_by_path(str(storage_path))
        document_id = existing.id if existing is not None else new_ulid()

        duplicate = self._store.get_by_hash(content_hash)
        if duplicate is not None and duplicate.path != str(storage_path):
            self._logger.warning(
                "Duplicate content: %s matches existing document %s at %s",
                source_path.name,
                duplicate.id,
                duplicate.path,
            )
            registration.duplicate_of = duplicate.id

        document = Document(
            id=document_id,
            name=source_path.name,
            path=str(storage_path),
            folder=self.folder_for(storage_path),
            hash=content_hash,
            document_type=source_path.suffix.lower(),
            full_text=text,
            url="",
        )
        saved = self._store.save(document)
        self._index.add_document(saved.id, saved.name, text)
        return saved

    def _copy_to_storage(self, source_path: Path, storage_path: Path, stage: RegistrationStage) -> bool:
        if source_path.resolve() == storage_path.resolve():
            stage.status = "skipped"
            stage.detail = "file already in storage"
            return False
        storage_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source_path, storage_path)
        stage.detail = str(storage_path)
        return True

    def _dispose_original(
        self, source_path: Path, storage_path: Path, stage: RegistrationStage
    ) -> None:
        if self._settings.ingress_delete:
            source_path.unlink()
            stage.detail = "deleted"
            return

        target = self._settings.get_ingress_move_dir() / source_path.name
        move_file(source_path, target)
        stage.detail = f"moved to {target}"
