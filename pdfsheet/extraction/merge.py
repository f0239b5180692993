"""Merge per-page table fragments into one table."""

from typing import Any, List, Optional, Sequence

from pdfsheet.core.text import is_blank_row, normalize_cell, row_key


class RowMerger:
    """Accumulates page matrices into one ordered list of rows.

    Multi-page tables usually repeat their header on every page. A row whose
    case-insensitive text equals the first accumulated row is treated as such
    a repeat and dropped; no other duplicate detection is done.
    """

    def __init__(self):
        self.rows: List[List[str]] = []
        self.found_table = False
        self._header_key: Optional[str] = None

    @property
    def header(self) -> Optional[List[str]]:
        return self.rows[0] if self.rows else None

    @property
    def is_empty(self) -> bool:
        return not self.rows

    def add_row(self, row: Any) -> bool:
        """Fold one candidate row in. Returns True if it was appended."""
        if not isinstance(row, (list, tuple)):
            return False

        if is_blank_row(row):
            return False

        # Both sides are normalized, so "Name " repeats a "Name" header
        if self._header_key is not None and row_key(row) == self._header_key:
            return False

        normalized = [normalize_cell(cell) for cell in row]
        if self._header_key is None:
            self._header_key = row_key(normalized)
        self.rows.append(normalized)
        return True

    def add_page(self, table: Optional[Sequence[Any]]) -> int:
        """Fold a page's matrix in.

        Args:
            table: Rows extracted from one page (None or empty for no table)

        Returns:
            Number of rows appended
        """
        if not table:
            return 0

        self.found_table = True
        return sum(1 for row in table if self.add_row(row))
