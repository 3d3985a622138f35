"""In-memory table of direct-fetch document routes."""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from docvault.app.ports.routes import RoutePublisherPort

logger = logging.getLogger(__name__)


class DocumentRouteTable(RoutePublisherPort):
    """Maps ``/document/view/<id>`` URLs to files for the HTTP layer to serve."""

    def __init__(self) -> None:
        self._routes: dict[str, Path] = {}
        self._lock = threading.Lock()

    def publish(self, url: str, path: Path) -> None:
        with self._lock:
            self._routes[url] = Path(path)
        logger.debug("Published %s -> %s", url, path)

    def unpublish(self, url: str) -> None:
        with self._lock:
            self._routes.pop(url, None)

    def resolve(self, url: str) -> Path | None:
        with self._lock:
            return self._routes.get(url)

    def __len__(self) -> int:
        with self._lock:
            return len(self._routes)
