"""Document store port and the persisted document model."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from typing import Literal, Protocol

from pydantic import BaseModel, Field, field_validator

PatchableField = Literal["url", "folder"]


class Document(BaseModel):
    """A registered document."""

    id: str = Field(..., min_length=26, max_length=26, description="Time-sortable ULID")
    name: str = Field(..., description="Display name (file base name)")
    path: str = Field(..., description="Absolute storage path")
    ingress_time: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="Registration time (UTC)"
    )
    folder: str = Field("", description="Logical folder relative to document storage")
    hash: str = Field(..., description="SHA-256 of file content")
    document_type: str = Field(..., description="Lower-case extension including the dot")
    full_text: str = Field("", description="Extracted text")
    url: str = Field("", description="Direct-fetch URL, empty until published")

    @field_validator("path")
    def _validate_path(cls, value: str) -> str:
        if value and not Path(value).is_absolute():
            raise ValueError("Document.path must be an absolute path")
        return value


class DocumentStorePort(Protocol):
    """Port interface for persisted document metadata.

    Adapter: SQLite.

    Implementations must be safe for use from the ingestion worker thread and
    request handlers concurrently.
    """

    def save(self, document: Document) -> Document:
        """Insert ``document`` or update the row that already owns its path.

        Returns:
            The stored document (with the id of the existing row on update)
        """
        ...

    def get(self, document_id: str) -> Document | None:
        """Fetch by identifier."""
        ...

    def get_by_path(self, path: str) -> Document | None:
        """Fetch by absolute storage path."""
        ...

    def get_by_hash(self, content_hash: str) -> Document | None:
        """Fetch the oldest document carrying ``content_hash``."""
        ...

    def list_folder(self, folder: str) -> list[Document]:
        """List documents in a logical folder."""
        ...

    def list_newest(self, limit: int, offset: int = 0) -> list[Document]:
        """List documents newest first."""
        ...

    def list_all(self) -> list[Document]:
        """List every document."""
        ...

    def count(self) -> int:
        """Total number of documents."""
        ...

    def delete(self, document_id: str) -> bool:
        """Delete by identifier.

        Returns:
            True if a row was removed
        """
        ...

    def update_field(self, document_id: str, field: PatchableField, value: str) -> bool:
        """Patch a single field.

        Returns:
            True if a row was updated
        """
        ...

    def close(self) -> None:
        """Release the underlying connection."""
        ...
