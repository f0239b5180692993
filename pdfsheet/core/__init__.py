"""Core utilities shared across pdfsheet modules."""

from .constants import (
    JOB_STATUSES,
    MESSAGES,
    TERMINAL_STATUSES,
    XLSX_MEDIA_TYPE,
)
from .llm import check_llm_health, get_vision_client, strip_think_tags
from .text import (
    cell_text,
    get_message,
    is_blank_row,
    normalize_cell,
    output_filename,
    row_key,
)

__all__ = [
    # Constants
    "JOB_STATUSES",
    "MESSAGES",
    "TERMINAL_STATUSES",
    "XLSX_MEDIA_TYPE",
    # LLM
    "check_llm_health",
    "get_vision_client",
    "strip_think_tags",
    # Text
    "cell_text",
    "get_message",
    "is_blank_row",
    "normalize_cell",
    "output_filename",
    "row_key",
]
