"""Configuration management with Pydantic and XDG base directory support."""

import os
import sys
from pathlib import Path

from pydantic import Field, PrivateAttr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_xdg_data_home() -> Path:
    """Get XDG_DATA_HOME directory, defaulting to ~/.local/share."""
    xdg_data = os.getenv("XDG_DATA_HOME")
    if xdg_data:
        return Path(xdg_data)
    return Path.home() / ".local" / "share"


class Settings(BaseSettings):
    """docvault configuration settings.

    Precedence: CLI flag > environment variable > .env file > defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="DOCVAULT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Data directories
    data_dir: Path | None = Field(
        default=None,
        description="Override data directory for the database and search index "
        "(defaults to XDG_DATA_HOME/docvault)",
    )

    # Ingress handling
    ingress_path: Path = Field(
        default=Path("ingress"),
        description="Watched drop-off directory for new documents",
    )

    ingress_preserve: bool = Field(
        default=True,
        description="Mirror the ingress folder structure under document storage",
    )

    ingress_delete: bool = Field(
        default=True,
        description="Delete ingress originals once processed (otherwise move them)",
    )

    ingress_move_folder: Path = Field(
        default=Path("done"),
        description="Folder receiving processed ingress originals when not deleting",
    )

    ingress_interval: int = Field(
        default=10,
        ge=1,
        description="Minutes between scheduled ingestion runs",
    )

    # Document library
    document_path: Path = Field(
        default=Path("documents"),
        description="Permanent document storage root",
    )

    new_document_folder: str = Field(
        default="New",
        description="Folder (relative to document storage) for flattened intake",
    )

    # OCR
    tesseract_path: Path | None = Field(
        default=None,
        description="Path to the tesseract executable (unset disables OCR)",
    )

    ocr_language: str = Field(
        default="eng",
        description="Tesseract language code",
    )

    ocr_timeout_seconds: float = Field(
        default=120.0,
        gt=0,
        description="Timeout applied to every tesseract invocation (seconds)",
    )

    ocr_target_width: int = Field(
        default=1024,
        ge=64,
        description="Width in pixels of the composite image rendered from PDF pages",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (debug, info, warn, error)",
    )

    log_file: Path | None = Field(
        default=None,
        description="Write logs to this file instead of stderr",
    )

    _resolved_data_dir: Path | None = PrivateAttr(default=None)
    _data_dir_warning_emitted: bool = PrivateAttr(default=False)

    @field_validator("tesseract_path", mode="before")
    @classmethod
    def _blank_tesseract_is_disabled(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("new_document_folder")
    @classmethod
    def _relative_new_document_folder(cls, value: str) -> str:
        folder = Path(value)
        if folder.is_absolute() or ".." in folder.parts:
            raise ValueError("new_document_folder must be relative to document storage")
        return value

    def get_data_dir(self) -> Path:
        """Get the data directory, creating if necessary."""
        if self._resolved_data_dir is not None:
            return self._resolved_data_dir

        if self.data_dir:
            data_dir = self.data_dir
            data_dir.mkdir(parents=True, exist_ok=True)
            self._resolved_data_dir = data_dir
            return data_dir

        primary_dir = get_xdg_data_home() / "docvault"
        try:
            primary_dir.mkdir(parents=True, exist_ok=True)
            self._resolved_data_dir = primary_dir
            return primary_dir
        except PermissionError as exc:
            fallback = Path.cwd() / ".docvault-data"
            fallback.mkdir(parents=True, exist_ok=True)
            self._resolved_data_dir = fallback
            if not self._data_dir_warning_emitted:
                print(
                    f"Warning: cannot create data directory at {primary_dir} ({exc}). "
                    f"Using local '{fallback}' instead. Pass --data-dir to override.",
                    file=sys.stderr,
                )
                self._data_dir_warning_emitted = True
            return fallback

    def get_database_path(self) -> Path:
        """Get path to the SQLite document database."""
        return self.get_data_dir() / "docvault.db"

    def get_index_dir(self) -> Path:
        """Get path to search index directory."""
        index_dir = self.get_data_dir() / "index"
        index_dir.mkdir(parents=True, exist_ok=True)
        return index_dir

    def get_ingress_dir(self) -> Path:
        """Get the absolute ingress directory, creating if necessary."""
        return _absolute_dir(self.ingress_path)

    def get_document_dir(self) -> Path:
        """Get the absolute document storage root, creating if necessary."""
        return _absolute_dir(self.document_path)

    def get_new_document_dir(self) -> Path:
        """Get the folder receiving flattened intake."""
        return _absolute_dir(self.get_document_dir() / self.new_document_folder)

    def get_ingress_move_dir(self) -> Path:
        """Get the folder receiving processed ingress originals."""
        return _absolute_dir(self.ingress_move_folder)


def _absolute_dir(path: Path) -> Path:
    resolved = path.expanduser().absolute()
    resolved.mkdir(parents=True, exist_ok=True)
    return resolved


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Settings) -> None:
    """Set the global settings instance (useful for testing)."""
    global _settings
    _settings = settings
