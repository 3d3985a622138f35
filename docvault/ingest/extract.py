"""Text extraction with ordered fallback policies per file family.

Each family (plain text, word processor, PDF, image) maps to a list of
policies. Policies return an :class:`ExtractionOutcome` instead of raising, so
the chain can fall through from a PDF's text layer to OCR of its rendered
pages without any exception plumbing.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

import fitz  # type: ignore[import]

from docvault.app.adapters.word_converter import WordConverter, convert_word_document
from docvault.app.ports.ocr import OCRPort
from docvault.errors import ExtractionError
from docvault.ingest.discover import PROCESSABLE_EXTENSIONS, classify_family
from docvault.ingest.raster import DEFAULT_TARGET_WIDTH, rasterize_pdf

logger = logging.getLogger(__name__)

OutcomeStatus = Literal["success", "empty", "failed", "unsupported"]

__all__ = [
    "ExtractionOutcome",
    "ExtractionPolicy",
    "ExtractorChain",
    "PROCESSABLE_EXTENSIONS",
]


@dataclass(frozen=True)
class ExtractionOutcome:
    """Result of one extraction policy (or of the whole chain)."""

    status: OutcomeStatus
    text: str = ""
    reason: str = ""
    policy: str = ""

    @classmethod
    def success(cls, text: str, policy: str) -> ExtractionOutcome:
        return cls(status="success", text=text, policy=policy)

    @classmethod
    def empty(cls, policy: str) -> ExtractionOutcome:
        return cls(status="empty", reason="no text extracted", policy=policy)

    @classmethod
    def failed(cls, reason: str, policy: str) -> ExtractionOutcome:
        return cls(status="failed", reason=reason, policy=policy)

    @classmethod
    def unsupported(cls, extension: str) -> ExtractionOutcome:
        label = extension or "<no extension>"
        return cls(status="unsupported", reason=f"unsupported file type {label}")

    @property
    def ok(self) -> bool:
        return self.status == "success"


ExtractionPolicy = Callable[[Path], ExtractionOutcome]


class ExtractorChain:
    """Dispatch a file to its family's policies and run them in order.

    A ``success`` stops the chain. ``empty`` and ``failed`` fall through; when
    every policy misses, the chain returns the last ``failed`` outcome if there
    was one, otherwise the last ``empty``.

    Args:
        ocr: OCR engine, or None when OCR is not configured. Without an engine
            image OCR yields empty text rather than an error.
        word_converter: Callable turning a word-processor file into text
        target_width: Width of the composite image rendered from PDF pages
        logger: Optional logger (defaults to the module logger)
    """

    def __init__(
        self,
        ocr: OCRPort | None = None,
        word_converter: WordConverter = convert_word_document,
        *,
        target_width: int = DEFAULT_TARGET_WIDTH,
        logger: logging.Logger | None = None,
    ) -> None:
        self.ocr = ocr
        self.word_converter = word_converter
        self.target_width = target_width
        self._logger = logger or logging.getLogger(__name__)
        self._families: dict[str, list[tuple[str, ExtractionPolicy]]] = {
            "text": [("text_passthrough", self.text_passthrough)],
            "word": [("word_converter", self.convert_word)],
            "pdf": [
                ("pdf_text_layer", self.pdf_text_layer),
                ("pdf_raster_ocr", self.pdf_raster_ocr),
            ],
            "image": [("image_ocr", self.image_ocr)],
        }

    @property
    def ocr_enabled(self) -> bool:
        return self.ocr is not None

    def policy_names(self, path: Path) -> list[str]:
        """Names of the policies that would be tried for ``path``, in order."""
        family = classify_family(path.suffix)
        if family is None:
            return []
        return [name for name, _ in self._families[family]]

    def extract(self, path: Path) -> ExtractionOutcome:
        """Run the policies for ``path``'s family until one succeeds."""
        family = classify_family(path.suffix)
        if family is None:
            return ExtractionOutcome.unsupported(path.suffix.lower())

        result: ExtractionOutcome | None = None
        for name, policy in self._families[family]:
            try:
                outcome = policy(path)
            except (ExtractionError, OSError) as exc:
                outcome = ExtractionOutcome.failed(str(exc), name)

            if outcome.ok:
                self._logger.debug("Extracted %d chars from %s via %s", len(outcome.text), path, name)
                return outcome

            self._logger.debug("Policy %s gave %s for %s: %s", name, outcome.status, path, outcome.reason)
            if result is None or outcome.status == "failed" or result.status != "failed":
                result = outcome

        assert result is not None
        return result

    # Policies

    def text_passthrough(self, path: Path) -> ExtractionOutcome:
        text = path.read_bytes().decode("utf-8", errors="replace")
        return ExtractionOutcome.success(text, "text_passthrough")

    def convert_word(self, path: Path) -> ExtractionOutcome:
        try:
            text = self.word_converter(path)
        except ExtractionError as exc:
            return ExtractionOutcome.failed(str(exc), "word_converter")
        return ExtractionOutcome.success(text, "word_converter")

    def pdf_text_layer(self, path: Path) -> ExtractionOutcome:
        try:
            doc = fitz.open(path)  # type: ignore[arg-type]
        except Exception as exc:
            return ExtractionOutcome.failed(f"could not decode {path.name}: {exc}", "pdf_text_layer")

        try:
            text_parts = [doc.load_page(index).get_text() for index in range(doc.page_count)]
        except Exception as exc:
            return ExtractionOutcome.failed(f"could not read text layer: {exc}", "pdf_text_layer")
        finally:
            doc.close()

        text = "\n\n".join(part for part in text_parts if part.strip())
        if not text.strip():
            return ExtractionOutcome.empty("pdf_text_layer")
        return ExtractionOutcome.success(text, "pdf_text_layer")

    def pdf_raster_ocr(self, path: Path) -> ExtractionOutcome:
        try:
            image = rasterize_pdf(path, target_width=self.target_width)
        except ExtractionError as exc:
            return ExtractionOutcome.failed(str(exc), "pdf_raster_ocr")

        if self.ocr is None:
            # Renderable but unreadable without OCR: register with empty text.
            image.close()
            return ExtractionOutcome.success("", "pdf_raster_ocr")

        try:
            text = self.ocr.image_to_text(image)
        except ExtractionError as exc:
            return ExtractionOutcome.failed(str(exc), "pdf_raster_ocr")
        finally:
            image.close()
        return ExtractionOutcome.success(text, "pdf_raster_ocr")

    def image_ocr(self, path: Path) -> ExtractionOutcome:
        if self.ocr is None:
            return ExtractionOutcome.success("", "image_ocr")

        try:
            text = self.ocr.process_image(path)
        except (ExtractionError, FileNotFoundError) as exc:
            return ExtractionOutcome.failed(str(exc), "image_ocr")
        return ExtractionOutcome.success(text, "image_ocr")
