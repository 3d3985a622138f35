"""Process-wide logging configuration for the CLI entry points."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def parse_level(name: str | None) -> int:
    """Map a level name to a logging level; unknown names mean WARNING."""
    if not name:
        return logging.WARNING
    return _LEVELS.get(name.strip().lower(), logging.WARNING)


def configure_logging(level: str | None = "info", log_file: Path | None = None) -> logging.Logger:
    """Install a single handler on the ``docvault`` logger.

    Calling this again replaces the previously installed handler, so the CLI
    callback can run once per invocation (and per test) without stacking handlers.
    """
    root = logging.getLogger("docvault")
    for existing in list(root.handlers):
        if getattr(existing, "_docvault_handler", False):
            root.removeHandler(existing)
            existing.close()

    handler: logging.Handler
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_file, encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._docvault_handler = True  # type: ignore[attr-defined]

    root.addHandler(handler)
    root.setLevel(parse_level(level))
    return root
