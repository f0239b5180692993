"""Unit tests for pdfsheet.core.text module."""

import pytest

from pdfsheet.core.text import (
    cell_text,
    get_message,
    is_blank_row,
    normalize_cell,
    output_filename,
    row_key,
)


class TestNormalizeCell:
    """Tests for normalize_cell function."""

    def test_collapses_newlines(self):
        assert normalize_cell("Total\ndue") == "Total due"
        assert normalize_cell("Total\r\n\r\ndue") == "Total due"

    def test_collapses_whitespace_runs(self):
        assert normalize_cell("  R$   1.234,56\t ") == "R$ 1.234,56"

    @pytest.mark.parametrize(
        "value",
        ["plain", "  padded  ", "multi\nline\ncell", "tabs\tand  spaces", "", "   "],
    )
    def test_idempotent(self, value):
        """Normalizing a normalized value should not change it."""
        once = normalize_cell(value)
        assert normalize_cell(once) == once

    def test_none_becomes_empty(self):
        assert normalize_cell(None) == ""

    def test_numbers_are_stringified(self):
        assert normalize_cell(10) == "10"
        assert normalize_cell(0) == "0"
        assert normalize_cell(2.5) == "2.5"


class TestCellText:
    def test_keeps_strings(self):
        assert cell_text(" a ") == " a "

    def test_none(self):
        assert cell_text(None) == ""


class TestIsBlankRow:
    """Tests for is_blank_row function."""

    def test_blank_cells(self):
        assert is_blank_row(["", "  ", "\n"])
        assert is_blank_row([None, ""])

    def test_empty_row_is_blank(self):
        assert is_blank_row([])

    def test_one_value_is_not_blank(self):
        assert not is_blank_row(["", "x", ""])
        assert not is_blank_row([None, 0])


class TestRowKey:
    """Tests for row_key function."""

    def test_case_insensitive(self):
        assert row_key(["Name", "Amount"]) == row_key(["NAME", "amount"])

    def test_pipe_joined(self):
        assert row_key(["a", "b", "c"]) == "a|b|c"

    def test_column_boundaries_matter(self):
        assert row_key(["ab", "c"]) != row_key(["a", "bc"])


class TestOutputFilename:
    """Tests for output_filename function."""

    def test_replaces_pdf_suffix(self):
        assert output_filename("statement.pdf") == "statement.xlsx"

    def test_suffix_case_insensitive(self):
        assert output_filename("SCAN.PDF") == "SCAN.xlsx"

    def test_appends_when_not_pdf(self):
        assert output_filename("upload") == "upload.xlsx"
        assert output_filename("notes.txt") == "notes.txt.xlsx"

    def test_missing_name(self):
        assert output_filename(None) == "file.xlsx"
        assert output_filename("") == "file.xlsx"


class TestGetMessage:
    """Tests for get_message function."""

    def test_english_default(self):
        assert get_message("done") == "Done"

    def test_portuguese(self):
        assert get_message("done", "pt") == "Concluído"

    def test_placeholders(self):
        assert get_message("page_of", "en", page=2, total=5) == "Processing page 2 of 5..."

    def test_unknown_locale_falls_back(self):
        assert get_message("done", "xx") == "Done"
