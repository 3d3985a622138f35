"""Render PDF pages into a single OCR-ready image."""

from __future__ import annotations

import logging
from pathlib import Path

import fitz  # type: ignore[import]
from PIL import Image, ImageFilter  # type: ignore[import]

from docvault.errors import ExtractionError

logger = logging.getLogger(__name__)

RENDER_DPI = 150
DEFAULT_TARGET_WIDTH = 1024


def render_pdf_pages(pdf_path: Path, *, dpi: int = RENDER_DPI) -> list[Image.Image]:
    """Render every page of ``pdf_path`` to an RGB image.

    Pages that fail to render are logged and skipped.

    Raises:
        ExtractionError: If the PDF cannot be opened
    """
    try:
        doc = fitz.open(pdf_path)  # type: ignore[arg-type]
    except Exception as exc:
        raise ExtractionError(f"could not decode {pdf_path.name}: {exc}") from exc

    images: list[Image.Image] = []
    try:
        matrix = fitz.Matrix(dpi / 72, dpi / 72)
        for index in range(doc.page_count):
            try:
                pix = doc.load_page(index).get_pixmap(matrix=matrix)
            except Exception as exc:
                logger.error("Unable to render page %d of %s: %s", index, pdf_path, exc)
                continue
            mode = "RGBA" if pix.alpha else "RGB"
            image = Image.frombytes(mode, [pix.width, pix.height], pix.samples)
            if pix.alpha:
                image = image.convert("RGB")
            images.append(image)
    finally:
        doc.close()

    logger.debug("Rendered %d page(s) from %s", len(images), pdf_path)
    return images


def stack_vertically(images: list[Image.Image]) -> Image.Image:
    """Concatenate pages top to bottom on a white canvas as wide as the widest page."""
    if not images:
        raise ExtractionError("no pages renderable")
    if len(images) == 1:
        return images[0]

    width = max(image.width for image in images)
    height = sum(image.height for image in images)
    combined = Image.new("RGB", (width, height), color="white")
    offset = 0
    for image in images:
        combined.paste(image, (0, offset))
        offset += image.height
    return combined


def prepare_for_ocr(image: Image.Image, target_width: int = DEFAULT_TARGET_WIDTH) -> Image.Image:
    """Resize to ``target_width`` keeping aspect ratio, then sharpen lightly."""
    height = max(1, round(image.height * target_width / image.width))
    resized = image.resize((target_width, height), Image.Resampling.LANCZOS)
    return resized.filter(ImageFilter.UnsharpMask(radius=1, percent=100, threshold=0))


def rasterize_pdf(pdf_path: Path, *, target_width: int = DEFAULT_TARGET_WIDTH) -> Image.Image:
    """Render a PDF into one tall, downscaled, sharpened image.

    Raises:
        ExtractionError: If the PDF cannot be opened or no page renders
    """
    pages = render_pdf_pages(pdf_path)
    if not pages:
        raise ExtractionError("no pages renderable")
    return prepare_for_ocr(stack_vertically(pages), target_width)
