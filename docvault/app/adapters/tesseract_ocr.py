"""Tesseract OCR adapter invoking a configured executable with a timeout."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

import pytesseract
from PIL import Image  # type: ignore[import]

from docvault.app.ports.ocr import OCRPort
from docvault.errors import ExtractionError

logger = logging.getLogger(__name__)


class TesseractOCRAdapter(OCRPort):
    """Tesseract-based OCR implementation.

    Every invocation is bounded by ``timeout`` seconds so a stuck tesseract
    process cannot block an ingestion run indefinitely.
    """

    def __init__(
        self,
        tesseract_cmd: Path | str,
        *,
        lang: str = "eng",
        timeout: float = 120.0,
    ) -> None:
        self.tesseract_cmd = str(tesseract_cmd)
        self.lang = lang
        self.timeout = timeout

        version = self.version()
        major = self._extract_major_version(version)
        if major is not None and major < 4:
            raise RuntimeError(
                f"Tesseract 4.0+ required (found {version}). "
                "Upgrade: apt-get install tesseract-ocr",
            )

    def image_to_text(self, image: Image.Image) -> str:
        pytesseract.pytesseract.tesseract_cmd = self.tesseract_cmd
        try:
            text = pytesseract.image_to_string(image, lang=self.lang, timeout=self.timeout)
        except pytesseract.TesseractError as exc:
            raise ExtractionError(
                f"OCR engine exited non-zero (status {exc.status}): {exc.message}"
            ) from exc
        except RuntimeError as exc:
            # pytesseract signals a killed-on-timeout process with RuntimeError
            raise ExtractionError(f"OCR engine timed out after {self.timeout}s") from exc

        if not text.strip():
            raise ExtractionError("OCR produced empty output")
        return text

    def process_image(self, path: Path) -> str:
        resolved = path.expanduser()
        if not resolved.exists():
            raise FileNotFoundError(f"OCR input not found: {resolved}")
        try:
            with Image.open(resolved) as opened:
                image = opened.copy()
        except OSError as exc:
            raise ExtractionError(f"could not decode image {resolved.name}: {exc}") from exc
        try:
            return self.image_to_text(image)
        finally:
            image.close()

    def version(self) -> str:
        try:
            result = subprocess.run(
                [self.tesseract_cmd, "--version"],
                capture_output=True,
                text=True,
                timeout=10,
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            raise RuntimeError(
                f"Tesseract not found at {self.tesseract_cmd}. Install with:\n"
                "  macOS: brew install tesseract\n"
                "  Ubuntu: apt-get install tesseract-ocr",
            ) from exc

        # Older releases print the banner on stderr
        output = result.stdout or result.stderr
        version_line = output.splitlines()[0] if output else ""
        return version_line.removeprefix("tesseract").strip().lstrip("v") or "unknown"

    @staticmethod
    def _extract_major_version(version: str) -> int | None:
        parts = str(version).split(".", 1)
        try:
            return int(parts[0])
        except (ValueError, TypeError):
            return None


class UnavailableOCRAdapter(OCRPort):
    """Stand-in for a configured OCR engine that could not be started.

    Every call raises, so images and scanned PDFs fail extraction and stay in
    ingress until the engine is fixed.
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason

    def image_to_text(self, image: Image.Image) -> str:
        raise ExtractionError(f"OCR engine unavailable: {self.reason}")

    def process_image(self, path: Path) -> str:
        raise ExtractionError(f"OCR engine unavailable: {self.reason}")

    def version(self) -> str:
        return "unavailable"
