from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pandas as pd
import pytest

from roster_import.parsing.reader import (
    TEMPLATE_FILENAME,
    Candidate,
    FileReadError,
    NoEmailsFoundError,
    UnsupportedFileTypeError,
    generate_template_csv,
    parse_candidates,
    parse_file_text,
    read_source_file,
)


def test_header_line_is_skipped_and_line_numbers_count_it():
    result = parse_candidates("Email\na@b.com\nc@d.com")
    assert result == [Candidate("a@b.com", 2), Candidate("c@d.com", 3)]


def test_first_line_without_header_is_data():
    result = parse_candidates("a@b.com\nc@d.com")
    assert [c.email for c in result] == ["a@b.com", "c@d.com"]
    assert result[0].line_number == 1


def test_crlf_line_endings():
    result = parse_candidates("email\r\nA@B.com\r\nc@d.com\r\n")
    assert [c.email for c in result] == ["a@b.com", "c@d.com"]


def test_first_column_only_quotes_removed_and_lowercased():
    text = 'email,name,phone\n"  Jane@Spa.COM ",Jane,555\n'
    assert parse_candidates(text) == [Candidate("jane@spa.com", 2)]


def test_blank_lines_dropped_but_line_numbers_kept():
    result = parse_candidates("email\n\n   \na@b.com\n")
    assert result == [Candidate("a@b.com", 4)]


def test_empty_first_field_is_dropped():
    assert parse_candidates("email\n,Jane\n\"\",x\n") == []


def test_header_only_file_raises_no_emails_found():
    with pytest.raises(NoEmailsFoundError):
        parse_file_text("email\n")


def test_empty_text_raises_no_emails_found():
    with pytest.raises(NoEmailsFoundError):
        parse_file_text("")


def test_malformed_values_are_kept_for_validation():
    # parser does not judge format; the validator does
    assert [c.email for c in parse_candidates("not-an-email")] == ["not-an-email"]


class TestReadSourceFile:

    def test_reads_csv_with_bom(self, tmp_path: Path):
        f = tmp_path / "clients.csv"
        f.write_bytes("\ufeffemail\na@b.com\n".encode("utf-8"))
        text = read_source_file(f)
        assert parse_candidates(text) == [Candidate("a@b.com", 2)]

    def test_txt_is_accepted(self, tmp_path: Path):
        f = tmp_path / "clients.TXT"
        f.write_text("a@b.com\n", encoding="utf-8")
        assert read_source_file(f) == "a@b.com\n"

    def test_unsupported_suffix(self, tmp_path: Path):
        f = tmp_path / "clients.pdf"
        f.write_bytes(b"%PDF")
        with pytest.raises(UnsupportedFileTypeError):
            read_source_file(f)

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileReadError):
            read_source_file(tmp_path / "nope.csv")

    def test_undecodable_file(self, tmp_path: Path):
        f = tmp_path / "clients.csv"
        f.write_bytes(b"\xff\xfe\xfa\x00bad")
        with pytest.raises(FileReadError):
            read_source_file(f)

    def test_xlsx_first_column_of_first_sheet(self, tmp_path: Path):
        f = tmp_path / "clients.xlsx"
        df = pd.DataFrame([["email", "name"], ["A@B.com", "A"], [None, "blank"], ["c@d.com", "C"]])
        with pd.ExcelWriter(f, engine="openpyxl") as writer:
            df.to_excel(writer, sheet_name="Clients", header=False, index=False)

        candidates = parse_file_text(read_source_file(f))

        assert candidates == [Candidate("a@b.com", 2), Candidate("c@d.com", 4)]

    def test_xlsx_workbook_is_closed_after_read(self, tmp_path: Path):
        f = tmp_path / "clients.xlsx"
        pd.DataFrame([["a@b.com"]]).to_excel(f, header=False, index=False, engine="openpyxl")
        real_excel_file = pd.ExcelFile
        opened: list[pd.ExcelFile] = []

        def tracking_excel_file(*args, **kwargs):
            xls = real_excel_file(*args, **kwargs)
            opened.append(xls)
            return xls

        with patch("roster_import.parsing.reader.pd.ExcelFile", side_effect=tracking_excel_file), \
             patch.object(real_excel_file, "close", autospec=True) as close:
            assert read_source_file(f) == "a@b.com"

        (xls,) = opened
        close.assert_called_once_with(xls)


def test_template_content_and_filename():
    template = generate_template_csv()
    assert template == "email\nclient1@example.com\nclient2@example.com\nclient3@example.com"
    assert TEMPLATE_FILENAME == "client_import_template.csv"
    # template parses as a normal upload
    assert len(parse_file_text(template)) == 3
