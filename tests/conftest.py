"""Pytest configuration and fixtures."""

import gc
import shutil
import tempfile
import threading
import time
from collections.abc import Generator
from pathlib import Path

import fitz  # type: ignore[import]
import pytest
from PIL import Image, ImageDraw  # type: ignore[import]

from docvault.app.adapters import DocumentRouteTable, SQLiteDocumentStore, TantivyIndexAdapter
from docvault.app.registrar import DocumentRegistrar
from docvault.config import Settings
from docvault.errors import ExtractionError
from docvault.ingest.extract import ExtractorChain


class FakeOCR:
    """OCR double returning a fixed string and recording its inputs."""

    def __init__(self, text: str = "HELLO", *, error: str | None = None) -> None:
        self.text = text
        self.error = error
        self.images: list[tuple[int, int]] = []
        self.paths: list[Path] = []

    def image_to_text(self, image: Image.Image) -> str:
        self.images.append(image.size)
        return self._result()

    def process_image(self, path: Path) -> str:
        if not path.exists():
            raise FileNotFoundError(f"OCR input not found: {path}")
        self.paths.append(path)
        return self._result()

    def version(self) -> str:
        return "5.0.0-fake"

    def _result(self) -> str:
        if self.error is not None:
            raise ExtractionError(self.error)
        if not self.text.strip():
            raise ExtractionError("OCR produced empty output")
        return self.text


class BlockingOCR(FakeOCR):
    """FakeOCR that parks each call until ``release`` is set."""

    def __init__(self, text: str = "HELLO") -> None:
        super().__init__(text)
        self.entered = threading.Event()
        self.release = threading.Event()

    def _result(self) -> str:
        self.entered.set()
        self.release.wait(timeout=10)
        return super()._result()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmpdir = tempfile.mkdtemp()
    try:
        yield Path(tmpdir)
    finally:
        # Force garbage collection to release any file handles
        gc.collect()
        # Small delay to allow OS to release file locks
        time.sleep(0.1)
        shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture
def settings(temp_dir: Path) -> Settings:
    """Settings with every directory inside ``temp_dir`` and OCR disabled."""
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        data_dir=temp_dir / "appdata",
        ingress_path=temp_dir / "ingress",
        document_path=temp_dir / "documents",
        ingress_move_folder=temp_dir / "done",
        tesseract_path=None,
    )


@pytest.fixture
def move_settings(settings: Settings) -> Settings:
    """Same layout, but processed originals are moved instead of deleted."""
    return settings.model_copy(update={"ingress_delete": False})


@pytest.fixture
def override_settings(settings: Settings) -> Generator[Settings, None, None]:
    """Install ``settings`` as the global settings instance for the test."""

    import docvault.config as config_module

    original_settings = getattr(config_module, "_settings", None)
    config_module._settings = settings

    try:
        yield settings
    finally:
        config_module._settings = original_settings


@pytest.fixture
def fake_ocr() -> FakeOCR:
    return FakeOCR()


@pytest.fixture
def store(settings: Settings) -> Generator[SQLiteDocumentStore, None, None]:
    sqlite_store = SQLiteDocumentStore(settings.get_database_path())
    try:
        yield sqlite_store
    finally:
        sqlite_store.close()


@pytest.fixture
def index() -> TantivyIndexAdapter:
    """In-memory search index."""
    return TantivyIndexAdapter(None)


@pytest.fixture
def routes() -> DocumentRouteTable:
    return DocumentRouteTable()


@pytest.fixture
def chain(fake_ocr: FakeOCR) -> ExtractorChain:
    return ExtractorChain(ocr=fake_ocr)


@pytest.fixture
def registrar(
    settings: Settings,
    store: SQLiteDocumentStore,
    index: TantivyIndexAdapter,
    routes: DocumentRouteTable,
) -> DocumentRegistrar:
    return DocumentRegistrar(settings=settings, store=store, index=index, routes=routes)


def make_text_pdf(path: Path, *pages: str) -> Path:
    """Write a PDF with one page per string, each carrying a text layer."""
    path.parent.mkdir(parents=True, exist_ok=True)
    document = fitz.open()
    for text in pages:
        page = document.new_page()
        page.insert_text((72, 72), text)
    document.save(path)
    document.close()
    return path


def make_blank_pdf(path: Path, page_count: int = 1) -> Path:
    """Write a PDF whose pages have no text layer (a scan without OCR)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    document = fitz.open()
    for _ in range(page_count):
        document.new_page(width=300, height=200)
    document.save(path)
    document.close()
    return path


def make_image(path: Path, text: str = "SCAN", size: tuple[int, int] = (400, 200)) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    image = Image.new("RGB", size, color="white")
    ImageDraw.Draw(image).text((25, 80), text, fill="black")
    image.save(path)
    return path
