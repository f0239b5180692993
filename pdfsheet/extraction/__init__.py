"""PDF table extraction pipeline for pdfsheet."""

from .merge import RowMerger
from .pipeline import ConversionResult, NoTableFoundError, convert_pdf, page_progress
from .rasterize import InvalidPdfError, iter_page_images, open_pdf
from .tables import ExtractionResult, TableExtractor, create_extractor, parse_table_response
from .workbook import build_workbook

__all__ = [
    # Pipeline
    "convert_pdf",
    "page_progress",
    "ConversionResult",
    "NoTableFoundError",
    # Rasterization
    "open_pdf",
    "iter_page_images",
    "InvalidPdfError",
    # Table recognition
    "TableExtractor",
    "ExtractionResult",
    "create_extractor",
    "parse_table_response",
    # Merge and output
    "RowMerger",
    "build_workbook",
]
