#!/usr/bin/env python3
"""
PDF to spreadsheet conversion pipeline.

Rasterizes each page, asks the vision LLM for the page's table, merges the
fragments and builds the workbook. Pages are processed strictly in order so
header deduplication against the first accumulated row is well defined.

Usage:
    from pdfsheet.extraction import convert_pdf

    result = await convert_pdf(pdf_bytes, extractor, on_progress=print)
    Path("out.xlsx").write_bytes(result.workbook)
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from pdfsheet.config import config
from pdfsheet.core.constants import (
    PROGRESS_PAGES_BASE,
    PROGRESS_PAGES_SPAN,
    PROGRESS_START,
    PROGRESS_UNKNOWN_PAGE_STEP,
    PROGRESS_WORKBOOK,
)
from pdfsheet.core.text import get_message

from .merge import RowMerger
from .rasterize import iter_page_images, open_pdf, page_count
from .tables import TableExtractor
from .workbook import build_workbook

logger = logging.getLogger("pdfsheet.pipeline")

ProgressCallback = Callable[[int, str], None]


class NoTableFoundError(RuntimeError):
    """Raised when no page of the document produced table rows."""


@dataclass
class ConversionResult:
    """Finished conversion."""

    workbook: bytes
    row_count: int
    page_count: Optional[int]


def page_progress(page_num: int, total_pages: Optional[int]) -> float:
    """Progress percentage after starting page_num.

    With a known page count the pages share PROGRESS_PAGES_SPAN evenly;
    otherwise each page advances a fixed step until the span is used up.
    """
    if total_pages:
        share = page_num / total_pages * PROGRESS_PAGES_SPAN
    else:
        share = min(page_num * PROGRESS_UNKNOWN_PAGE_STEP, PROGRESS_PAGES_SPAN)
    return PROGRESS_PAGES_BASE + share


async def convert_pdf(
    data: bytes,
    extractor: TableExtractor,
    on_progress: Optional[ProgressCallback] = None,
    locale: Optional[str] = None,
    sheet_title: Optional[str] = None,
    scale: Optional[float] = None,
    max_dimension: Optional[int] = None,
) -> ConversionResult:
    """Convert a PDF to an .xlsx workbook.

    Args:
        data: PDF file content
        extractor: Table extractor used for every page
        on_progress: Called with (percent, message) as work advances
        locale: Message language (defaults to config.locale)
        sheet_title: Worksheet name (defaults to config.sheet_title)
        scale: Rasterization zoom (defaults to config.render_scale)
        max_dimension: Longest page side in pixels (defaults to config.max_page_dimension)

    Returns:
        ConversionResult with workbook bytes and counts

    Raises:
        InvalidPdfError: If the data is not a readable PDF
        NoTableFoundError: If no page yielded table rows
    """
    locale = locale or config.locale
    sheet_title = sheet_title or config.sheet_title
    scale = scale or config.render_scale
    max_dimension = max_dimension or config.max_page_dimension

    def report(progress: float, message: str) -> None:
        if on_progress is not None:
            on_progress(max(0, min(100, round(progress))), message)

    report(PROGRESS_START, get_message("rasterizing", locale))

    doc = open_pdf(data)
    try:
        total_pages = page_count(doc) or None
        merger = RowMerger()
        pages_seen = 0

        for page_num, image_png in iter_page_images(doc, scale, max_dimension):
            pages_seen = page_num
            if total_pages:
                message = get_message("page_of", locale, page=page_num, total=total_pages)
            else:
                message = get_message("page", locale, page=page_num)
            report(page_progress(page_num, total_pages), message)

            result = await extractor.extract(image_png, page_num, is_first_page=merger.is_empty)

            if result.found:
                added = merger.add_page(result.table)
                logger.info(
                    f"Page {page_num}: {len(result.table)} rows extracted, "
                    f"{added} kept (total: {len(merger.rows)})"
                )
            else:
                logger.info(f"Page {page_num}: no table found ({result.status})")
    finally:
        doc.close()

    if not merger.found_table or merger.is_empty:
        report(100, get_message("no_table", locale))
        raise NoTableFoundError(get_message("no_table_error", locale))

    report(PROGRESS_WORKBOOK, get_message("workbook", locale))
    workbook = await asyncio.to_thread(build_workbook, merger.rows, sheet_title)

    report(100, get_message("done", locale))
    return ConversionResult(
        workbook=workbook,
        row_count=len(merger.rows),
        page_count=total_pages or pages_seen or None,
    )
