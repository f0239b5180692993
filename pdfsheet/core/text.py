"""Text processing utilities for pdfsheet."""

import re
from typing import Any, Optional, Sequence

from .constants import DEFAULT_LOCALE, MESSAGES

_WHITESPACE_RE = re.compile(r"\s+")


def cell_text(cell: Any) -> str:
    """Convert a raw cell value from the model into a string.

    None becomes an empty string; numbers and booleans are stringified.
    """
    if cell is None:
        return ""
    return cell if isinstance(cell, str) else str(cell)


def normalize_cell(cell: Any) -> str:
    """Collapse newlines and runs of whitespace into single spaces and trim.

    Idempotent: normalizing an already normalized value returns it unchanged.

    Args:
        cell: Raw cell value (string, number or None)

    Returns:
        Normalized cell text
    """
    return _WHITESPACE_RE.sub(" ", cell_text(cell)).strip()


def is_blank_row(row: Sequence[Any]) -> bool:
    """True when every cell is empty or whitespace-only (an empty row is blank)."""
    return all(not cell_text(cell).strip() for cell in row)


def row_key(row: Sequence[Any]) -> str:
    """Case-insensitive, pipe-joined representation used to spot repeated headers."""
    return "|".join(normalize_cell(cell) for cell in row).lower()


def output_filename(filename: Optional[str]) -> str:
    """Derive the workbook filename from the uploaded file name.

    "report.PDF" -> "report.xlsx", "scan" -> "scan.xlsx".
    """
    name = filename or "file.pdf"
    if name.lower().endswith(".pdf"):
        return name[:-4] + ".xlsx"
    return f"{name}.xlsx"


def get_message(key: str, locale: str = DEFAULT_LOCALE, **kwargs: Any) -> str:
    """Look up a user-facing message, falling back to English.

    Args:
        key: Message key from MESSAGES
        locale: Locale code like "en" or "pt"
        **kwargs: Values for placeholders in the message

    Returns:
        Formatted message
    """
    catalog = MESSAGES.get(locale, MESSAGES[DEFAULT_LOCALE])
    template = catalog.get(key, MESSAGES[DEFAULT_LOCALE][key])
    return template.format(**kwargs) if kwargs else template
