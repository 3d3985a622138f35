"""Route publisher port: direct-fetch URLs for stored files."""

from pathlib import Path
from typing import Protocol

DOCUMENT_URL_PREFIX = "/document/view/"


def document_url(document_id: str) -> str:
    """Return the direct-fetch URL for a document id."""
    return f"{DOCUMENT_URL_PREFIX}{document_id}"


class RoutePublisherPort(Protocol):
    """Port interface for publishing file routes to the HTTP layer."""

    def publish(self, url: str, path: Path) -> None:
        """Serve ``path`` at ``url``."""
        ...

    def unpublish(self, url: str) -> None:
        """Stop serving ``url``."""
        ...

    def resolve(self, url: str) -> Path | None:
        """Return the file served at ``url``."""
        ...
