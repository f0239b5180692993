"""Unit tests for pdfsheet.extraction.merge module."""

import pytest

from pdfsheet.extraction.merge import RowMerger


class TestRowMerger:
    """Tests for RowMerger."""

    def test_two_page_header_dedup(self, name_amount_pages):
        """Header repeated on page 2 should be dropped."""
        merger = RowMerger()
        for page in name_amount_pages:
            merger.add_page(page)

        assert merger.rows == [["Name", "Amount"], ["A", "10"], ["B", "20"]]
        assert merger.found_table

    def test_header_match_is_case_insensitive(self):
        merger = RowMerger()
        merger.add_page([["Name", "Amount"], ["A", "10"]])
        merger.add_page([["NAME", "amount"], ["B", "20"]])

        assert merger.rows == [["Name", "Amount"], ["A", "10"], ["B", "20"]]

    def test_partial_overlap_is_kept(self):
        """Rows only partly matching the header are data, not headers."""
        merger = RowMerger()
        merger.add_page([["Name", "Amount"], ["A", "10"]])
        merger.add_page([["Name", "Total"], ["Name", "Amount", "Extra"]])

        assert ["Name", "Total"] in merger.rows
        assert ["Name", "Amount", "Extra"] in merger.rows
        assert len(merger.rows) == 4

    def test_header_repeat_within_first_page(self):
        merger = RowMerger()
        merger.add_page([["Name", "Amount"], ["A", "10"], ["Name", "Amount"], ["B", "20"]])

        assert merger.rows == [["Name", "Amount"], ["A", "10"], ["B", "20"]]

    def test_only_first_row_is_used_for_dedup(self):
        """Duplicate data rows are not detected, only header repeats."""
        merger = RowMerger()
        merger.add_page([["Name", "Amount"], ["A", "10"], ["A", "10"]])

        assert merger.rows.count(["A", "10"]) == 2

    def test_blank_rows_skipped(self):
        merger = RowMerger()
        merger.add_page([["", "  "], ["Name", "Amount"], [None, "\n"], ["A", "10"], []])

        assert merger.rows == [["Name", "Amount"], ["A", "10"]]

    @pytest.mark.parametrize(
        "pages",
        [
            [[["", ""], ["x", ""]], [[" ", "\t"]]],
            [[["a"], ["  "], ["b"]], [["\n"], ["c", None]]],
            [[[None], ["", "y"]]],
        ],
    )
    def test_no_blank_rows_in_output(self, pages):
        merger = RowMerger()
        for page in pages:
            merger.add_page(page)

        for row in merger.rows:
            assert any(cell.strip() for cell in row)

    def test_invalid_rows_skipped(self):
        merger = RowMerger()
        added = merger.add_page(["not a row", {"a": 1}, None, 42, ["Name"], ("tuple", "row")])

        assert added == 2
        assert merger.rows == [["Name"], ["tuple", "row"]]

    def test_cells_are_normalized(self):
        merger = RowMerger()
        merger.add_page([["Long\nheader", "  Amount "], ["A  b", 10]])

        assert merger.rows == [["Long header", "Amount"], ["A b", "10"]]

    def test_header_key_uses_normalized_header(self):
        """A repeat whose whitespace differs from the stored header is still a repeat."""
        merger = RowMerger()
        merger.add_page([["Long\nheader", "Amount"], ["A", "1"]])
        merger.add_page([["long  header", "AMOUNT"], ["B", "2"]])

        assert merger.rows == [["Long header", "Amount"], ["A", "1"], ["B", "2"]]

    def test_uneven_rows_allowed(self):
        merger = RowMerger()
        merger.add_page([["a", "b", "c"], ["d"], ["e", "f"]])

        assert [len(r) for r in merger.rows] == [3, 1, 2]

    def test_empty_page_does_not_mark_found(self):
        merger = RowMerger()

        assert merger.add_page([]) == 0
        assert merger.add_page(None) == 0
        assert not merger.found_table
        assert merger.is_empty

    def test_found_table_even_if_all_rows_blank(self):
        """A non-empty matrix marks found_table even when nothing survives."""
        merger = RowMerger()
        merger.add_page([["", ""]])

        assert merger.found_table
        assert merger.is_empty

    def test_header_property(self):
        merger = RowMerger()
        assert merger.header is None

        merger.add_page([["Name", "Amount"], ["A", "10"]])
        assert merger.header == ["Name", "Amount"]

    def test_add_page_returns_appended_count(self, name_amount_pages):
        merger = RowMerger()

        assert merger.add_page(name_amount_pages[0]) == 2
        assert merger.add_page(name_amount_pages[1]) == 1

    def test_trailing_space_header_is_a_repeat(self):
        merger = RowMerger()
        merger.add_page([["Name", "Amount"], ["A", "10"]])
        merger.add_page([["Name ", " Amount"], ["B", "20"]])

        assert merger.rows == [["Name", "Amount"], ["A", "10"], ["B", "20"]]
