"""Unit tests for pdfsheet.cli module."""

from io import BytesIO

from openpyxl import load_workbook

from pdfsheet import cli


class TestMain:
    def test_no_command_prints_help(self, capsys):
        assert cli.main([]) == 0
        assert "convert" in capsys.readouterr().out

    def test_config_masks_key(self, capsys, monkeypatch):
        from pdfsheet.config import config

        monkeypatch.setattr(config, "vision_llm_api_key", "secret-value")

        assert cli.main(["config"]) == 0
        assert "secret-value" not in capsys.readouterr().out


class TestConvert:
    """Tests for the convert subcommand."""

    def test_missing_file(self, tmp_path, capsys):
        assert cli.main(["convert", str(tmp_path / "missing.pdf")]) == 1
        assert "File not found" in capsys.readouterr().err

    def test_writes_workbook_next_to_pdf(
        self, tmp_path, monkeypatch, two_page_pdf, fake_extractor_factory, name_amount_pages
    ):
        pdf_path = tmp_path / "statement.pdf"
        pdf_path.write_bytes(two_page_pdf)
        extractor = fake_extractor_factory(name_amount_pages)
        monkeypatch.setattr("pdfsheet.extraction.create_extractor", lambda cfg=None: extractor)

        assert cli.main(["convert", str(pdf_path)]) == 0

        ws = load_workbook(BytesIO((tmp_path / "statement.xlsx").read_bytes())).active
        assert ws.max_row == 3

    def test_no_table_exit_code(self, tmp_path, monkeypatch, two_page_pdf, fake_extractor_factory):
        pdf_path = tmp_path / "scan.pdf"
        pdf_path.write_bytes(two_page_pdf)
        extractor = fake_extractor_factory([None, None])
        monkeypatch.setattr("pdfsheet.extraction.create_extractor", lambda cfg=None: extractor)

        assert cli.main(["convert", str(pdf_path), "-o", str(tmp_path / "out.xlsx")]) == 2
        assert not (tmp_path / "out.xlsx").exists()
