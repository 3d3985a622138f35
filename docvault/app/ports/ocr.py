"""OCR port interface for optical character recognition."""

from pathlib import Path
from typing import Protocol

from PIL import Image  # type: ignore[import]


class OCRPort(Protocol):
    """Port interface for OCR operations.

    Adapter: Tesseract (external executable, invoked with a timeout).
    """

    def image_to_text(self, image: Image.Image) -> str:
        """Recognise text in an in-memory image.

        Raises:
            ExtractionError: If the engine fails, times out, or returns nothing
        """
        ...

    def process_image(self, path: Path) -> str:
        """Recognise text in an image file."""
        ...

    def version(self) -> str:
        """Return the engine version string."""
        ...
