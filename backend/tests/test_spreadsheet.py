"""Spreadsheet parsing and writing."""
import io
from datetime import date

import pytest
from openpyxl import load_workbook

from kol360.exceptions import BadRequestError
from kol360.services.spreadsheet import Sheet, cell, read_rows
from tests.factories import xlsx_bytes, xlsx_rows


class TestReadRows:
    def test_csv_with_bom_and_extra_cells(self):
        content = "\ufeffNPI,Name\n1234567890,Jane,extra\n,\n".encode("utf-8")

        assert read_rows(content, "hcps.csv") == [{"NPI": "1234567890", "Name": "Jane"}, {"NPI": "", "Name": ""}]

    def test_workbook_cells_become_text(self):
        content = xlsx_bytes([
            ["NPI", "Years", "Active", "Since", None],
            [1234567890, 12.0, True, date(2020, 5, 1), "ignored"],
            [None, None, None, None, None],
        ])

        assert read_rows(content, "hcps.xlsx") == [
            {"NPI": "1234567890", "Years": "12", "Active": "true", "Since": "2020-05-01"},
        ]

    def test_workbook_detected_without_extension(self):
        content = xlsx_bytes([["NPI"], ["1234567890"]])

        assert read_rows(content, "") == [{"NPI": "1234567890"}]

    def test_corrupt_workbook(self):
        with pytest.raises(BadRequestError, match="Could not read Excel file"):
            read_rows(b"PK\x03\x04not really a zip", "hcps.xlsx")

    def test_non_utf8_csv(self):
        with pytest.raises(BadRequestError, match="UTF-8"):
            read_rows("NPI\nJos\xe9\n".encode("latin-1"), "hcps.csv")

    def test_header_only_workbook_has_no_rows(self):
        assert read_rows(xlsx_bytes([["NPI", "Status"]]), "status.xlsx") == []


def test_cell_is_case_insensitive():
    row = {"npi": "1234567890", "Payment ID": ""}

    assert cell(row, "NPI") == "1234567890"
    assert cell(row, "Payment ID", "npi") == "1234567890"
    assert cell(row, "Status") == ""


class TestSheet:
    def test_xlsx_keeps_types_and_header(self):
        sheet = Sheet("Scores", ["NPI", "Score", "Note"], [["1234567890", 87.5, None]])

        assert xlsx_rows(sheet.to_xlsx()) == [["NPI", "Score", "Note"], ["1234567890", 87.5, None]]

    def test_formula_like_text_is_not_a_formula(self):
        sheet = Sheet("Responses", ["Answer"], [["=HYPERLINK(\"http://evil\")"]])

        assert xlsx_rows(sheet.to_xlsx())[1] == ["=HYPERLINK(\"http://evil\")"]

    def test_long_title_is_truncated(self):
        content = Sheet("A" * 40, ["x"]).to_xlsx()

        assert load_workbook(io.BytesIO(content)).active.title == "A" * 31

    def test_csv(self):
        sheet = Sheet("Payments", ["ID", "Amount"], [["p1", 150.0], ["p2", None]])

        assert sheet.to_csv() == b"ID,Amount\r\np1,150.0\r\np2,\r\n"
