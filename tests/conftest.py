"""Pytest configuration and fixtures for pdfsheet tests."""

import json
import struct
from typing import Callable, List, Union

import fitz  # PyMuPDF
import pytest

from pdfsheet.config import Config
from pdfsheet.extraction.tables import ExtractionResult


@pytest.fixture
def test_config():
    """Config with an API key and fast job settings."""
    return Config(
        vision_llm_url="http://localhost:8090/v1",
        vision_llm_model="test-vision",
        vision_llm_api_key="test-key",
        max_concurrent_jobs=2,
        sheet_title="Table",
        locale="en",
    )


# --- PDF fixtures ---


def build_pdf(pages: int) -> bytes:
    """Create an in-memory PDF with one line of text per page."""
    doc = fitz.open()
    for i in range(pages):
        page = doc.new_page(width=595, height=842)
        page.insert_text((72, 72), f"Page {i + 1}")
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def make_pdf():
    """Factory fixture: make_pdf(n) returns PDF bytes with n pages."""
    return build_pdf


@pytest.fixture
def two_page_pdf():
    return build_pdf(2)


# --- Extraction fixtures ---


class FakeExtractor:
    """Stands in for TableExtractor, returning canned results per page.

    Each entry is an ExtractionResult, a table (list of rows) or None for
    "no table". Calls are recorded as (page_num, is_first_page) and the
    rendered page sizes as (width, height).
    """

    def __init__(self, pages: List[Union[ExtractionResult, list, None]]):
        self.pages = pages
        self.calls = []
        self.image_sizes = []

    async def extract(self, image_png: bytes, page_num: int, is_first_page: bool):
        self.calls.append((page_num, is_first_page))
        assert image_png.startswith(b"\x89PNG")
        self.image_sizes.append(struct.unpack(">II", image_png[16:24]))
        entry = self.pages[page_num - 1] if page_num <= len(self.pages) else None
        if isinstance(entry, ExtractionResult):
            return entry
        if entry:
            return ExtractionResult(status="table", table=entry)
        return ExtractionResult.no_table("fake")


@pytest.fixture
def fake_extractor_factory() -> Callable[[list], FakeExtractor]:
    """Factory fixture: fake_extractor_factory([table_page1, table_page2, ...])."""
    return FakeExtractor


@pytest.fixture
def name_amount_pages():
    """Two pages of a table whose header repeats on page 2."""
    return [
        [["Name", "Amount"], ["A", "10"]],
        [["Name", "Amount"], ["B", "20"]],
    ]


def parse_sse(body: str) -> List[dict]:
    """Split an SSE body into [{"event": ..., "data": ...}] frames."""
    frames = []
    for block in body.strip().split("\n\n"):
        if not block.strip():
            continue
        frame: dict = {}
        for line in block.splitlines():
            key, _, value = line.partition(": ")
            frame[key] = json.loads(value) if key == "data" else value
        frames.append(frame)
    return frames


@pytest.fixture
def sse_frames():
    """Parser for SSE response bodies."""
    return parse_sse


# --- Integration test markers ---


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests requiring external services (vision llm)"
    )
    config.addinivalue_line("markers", "slow: marks tests as slow running")


# --- Skip integration tests by default ---


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --run-integration is passed."""
    if config.getoption("--run-integration", default=False):
        return

    skip_integration = pytest.mark.skip(reason="Need --run-integration option to run")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration tests (requires a reachable vision llm)",
    )
