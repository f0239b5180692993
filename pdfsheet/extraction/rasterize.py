"""Render PDF pages to PNG images for the vision model."""

from typing import Iterator, Tuple

import fitz  # PyMuPDF

# Default zoom applied to the 72 DPI page geometry
DEFAULT_SCALE = 2.0

# Maximum dimension for any side of rendered page (prevents huge posters/high-DPI issues)
MAX_PAGE_DIMENSION = 2048


class InvalidPdfError(ValueError):
    """Raised when uploaded bytes cannot be opened as a PDF."""


def open_pdf(data: bytes) -> "fitz.Document":
    """Open a PDF held in memory.

    Raises:
        InvalidPdfError: If the data is empty or not a readable PDF
    """
    if not data:
        raise InvalidPdfError("Empty PDF data")
    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except (RuntimeError, ValueError) as e:
        raise InvalidPdfError(f"Cannot open PDF: {e}") from e
    if doc.needs_pass:
        doc.close()
        raise InvalidPdfError("PDF is password protected")
    if doc.page_count == 0:
        doc.close()
        raise InvalidPdfError("PDF has no pages")
    return doc


def page_count(doc: "fitz.Document") -> int:
    """Total number of pages in an open document."""
    return len(doc)


def render_page(
    page: "fitz.Page",
    scale: float = DEFAULT_SCALE,
    max_dimension: int = MAX_PAGE_DIMENSION,
) -> bytes:
    """Render a single page to PNG bytes.

    Args:
        page: PyMuPDF page
        scale: Zoom factor relative to 72 DPI
        max_dimension: Maximum pixels for longest side (rescales if exceeded)

    Returns:
        PNG-encoded image
    """
    pix = page.get_pixmap(matrix=fitz.Matrix(scale, scale))

    # Re-render at reduced scale for large posters
    width, height = pix.width, pix.height
    if max(width, height) > max_dimension:
        adjusted = scale * max_dimension / max(width, height)
        pix = page.get_pixmap(matrix=fitz.Matrix(adjusted, adjusted))

    return pix.tobytes("png")


def iter_page_images(
    doc: "fitz.Document",
    scale: float = DEFAULT_SCALE,
    max_dimension: int = MAX_PAGE_DIMENSION,
) -> Iterator[Tuple[int, bytes]]:
    """Yield (page_number, png_bytes) for every page, 1-indexed."""
    for index in range(len(doc)):
        yield index + 1, render_page(doc[index], scale, max_dimension)
