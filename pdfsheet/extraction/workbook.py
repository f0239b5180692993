"""Lay out merged rows as a formatted single-sheet workbook."""

from datetime import datetime
from io import BytesIO
from typing import List, Optional, Sequence

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from pdfsheet.core.constants import (
    BORDER_COLOR,
    HEADER_FILL_COLOR,
    HEADER_FONT_COLOR,
    MAX_COLUMN_WIDTH,
    MIN_COLUMN_WIDTH,
    WORKBOOK_CREATOR,
)

_THIN = Side(style="thin", color=BORDER_COLOR)
CELL_BORDER = Border(top=_THIN, left=_THIN, bottom=_THIN, right=_THIN)

HEADER_FONT = Font(bold=True, color=HEADER_FONT_COLOR)
HEADER_FILL = PatternFill(fill_type="solid", fgColor=HEADER_FILL_COLOR)
HEADER_ALIGNMENT = Alignment(horizontal="center", vertical="center", wrap_text=True)
BODY_ALIGNMENT = Alignment(horizontal="left", vertical="top", wrap_text=True)

# Excel rejects these characters in sheet titles
_INVALID_TITLE_CHARS = set('[]:*?/\\')


def sanitize_sheet_title(title: str) -> str:
    """Strip characters Excel does not allow and cap at 31 characters."""
    cleaned = "".join(ch for ch in title if ch not in _INVALID_TITLE_CHARS).strip()
    return (cleaned or "Table")[:31]


def column_widths(rows: Sequence[Sequence[str]]) -> List[int]:
    """Width per column: longest value + 2, at least MIN_COLUMN_WIDTH, at most MAX_COLUMN_WIDTH."""
    n_cols = max((len(row) for row in rows), default=0)
    widths = [MIN_COLUMN_WIDTH] * n_cols
    for row in rows:
        for i, value in enumerate(row):
            widths[i] = max(widths[i], len(str(value)) + 2)
    return [min(w, MAX_COLUMN_WIDTH) for w in widths]


def clean_cell_value(value: Optional[str]) -> Optional[str]:
    """Drop control characters the xlsx format cannot store."""
    if value is None:
        return None
    return ILLEGAL_CHARACTERS_RE.sub("", str(value))


def format_worksheet(ws: Worksheet, rows: Sequence[Sequence[str]]) -> None:
    """Write rows and apply header styling, alignment, borders, widths and frozen header."""
    for row_idx, row in enumerate(rows, start=1):
        for col_idx, value in enumerate(row, start=1):
            cell = ws.cell(row=row_idx, column=col_idx, value=clean_cell_value(value))
            # Extracted text is data; never let "=..." become a live formula
            if cell.data_type == "f":
                cell.data_type = "s"

    for row_idx, ws_row in enumerate(ws.iter_rows(min_row=1, max_row=ws.max_row), start=1):
        for cell in ws_row:
            if row_idx == 1:
                cell.font = HEADER_FONT
                cell.fill = HEADER_FILL
                cell.alignment = HEADER_ALIGNMENT
            else:
                cell.alignment = BODY_ALIGNMENT
            if cell.value not in (None, ""):
                cell.border = CELL_BORDER

    for i, width in enumerate(column_widths(rows), start=1):
        ws.column_dimensions[get_column_letter(i)].width = width

    ws.freeze_panes = "A2"


def build_workbook(
    rows: Sequence[Sequence[str]],
    sheet_title: str = "Table",
    creator: str = WORKBOOK_CREATOR,
) -> bytes:
    """Serialize rows to .xlsx bytes.

    Args:
        rows: Merged rows, first row is the header
        sheet_title: Worksheet name
        creator: Workbook author metadata

    Returns:
        Workbook file content

    Raises:
        ValueError: If rows is empty
    """
    if not rows:
        raise ValueError("Cannot build a workbook without rows")

    wb = Workbook()
    wb.properties.creator = creator
    wb.properties.created = datetime.now()

    ws = wb.active
    ws.title = sanitize_sheet_title(sheet_title)
    format_worksheet(ws, rows)

    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()
