"""
pdfsheet - Extract tables from PDF documents into Excel spreadsheets.

This library provides tools to:
- Rasterize PDF pages and recognize tables on them with a vision model
- Merge table fragments from consecutive pages into one table
- Write the result as a formatted .xlsx workbook
- Run conversions as background jobs with streamed progress

Usage:
    from pdfsheet.config import config
    from pdfsheet.extraction import convert_pdf, create_extractor

CLI:
    pdfsheet convert statement.pdf -o statement.xlsx
    pdfsheet serve
    pdfsheet config
"""

__version__ = "1.0.0"
