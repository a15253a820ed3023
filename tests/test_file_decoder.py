"""Tests for decoding statement bytes into rows and lines."""

import json
from datetime import datetime

import pytest

from parsers import StatementDecodeError, UnsupportedFormatError, decode
from parsers.file_decoder import decode_csv, decode_excel, decode_json, normalize_extension


class TestDecodeDispatch:
    """Extension handling and admission checks."""

    @pytest.mark.parametrize("extension,expected", [("csv", "csv"), (".CSV", "csv"), (" .Xlsx", "xlsx"),
                                                    (None, "")])
    def test_normalize_extension(self, extension, expected):
        assert normalize_extension(extension) == expected

    def test_unknown_extension(self):
        with pytest.raises(UnsupportedFormatError, match="txt"):
            decode(b"hello", "txt")

    def test_empty_buffer(self):
        with pytest.raises(StatementDecodeError):
            decode(b"", "csv")

    def test_extension_with_dot_and_case(self, generic_csv):
        assert len(decode(generic_csv, ".CSV")) == 3

    def test_pdf_becomes_lines(self):
        class StubPdfParser:
            def extract_text(self, buffer):
                return "  HEADER  \n\n01/04/2024 ATM 100.00\n   \n"

        lines = decode(b"%PDF-1.4", "pdf", pdf_parser=StubPdfParser())
        assert lines == ["HEADER", "01/04/2024 ATM 100.00"]


class TestDecodeCsv:
    """CSV with header row and type inference."""

    def test_rows_keyed_by_header(self, generic_csv):
        records = decode_csv(generic_csv)

        assert records[0] == {
            "Date": "05/03/2024",
            "Description": "ELECTRICITY BILL MARCH",
            "Debit": 1500,
            "Credit": 0,
            "Balance": 48500,
        }
        assert isinstance(records[0]["Debit"], int)

    def test_missing_cells_are_empty_strings(self, hdfc_csv):
        records = decode_csv(hdfc_csv)

        assert records[0]["Withdrawal Amt."] == ""
        assert records[1]["Withdrawal Amt."] == "2,000.00"
        assert records[1]["Deposit Amt."] == ""

    def test_blank_lines_skipped(self):
        records = decode_csv(b"Date,Debit\n\n01/04/2024,10\n\n")
        assert records == [{"Date": "01/04/2024", "Debit": 10}]

    def test_latin1_fallback(self):
        buffer = "Date,Description,Debit\n05/03/2024,Caf\xe9 Coffee,100\n".encode("latin-1")
        records = decode_csv(buffer)
        assert records[0]["Description"] == "Caf\xe9 Coffee"

    def test_malformed_rows_rejected(self):
        with pytest.raises(StatementDecodeError, match="CSV parsing error"):
            decode_csv(b"a,b\n1,2\n3,4,5,6\n")

    def test_short_row_rejected(self):
        with pytest.raises(StatementDecodeError, match="too few fields on line 2"):
            decode_csv(b"Date,Description,Debit,Credit\n05/03/2024,Rent,100\n")

    def test_extra_field_on_first_row_rejected(self):
        """A surplus field must not turn the date column into the index."""
        with pytest.raises(StatementDecodeError, match="too many fields on line 2"):
            decode_csv(b"Date,Description,Debit,Credit\n05/03/2024,Rent,100,0,extra\n")

    def test_trailing_comma_on_every_line(self):
        records = decode_csv(b"Date,Description,Debit,\n05/03/2024,Rent,100,\n")
        assert records[0]["Date"] == "05/03/2024"
        assert records[0]["Debit"] == 100

    def test_no_header(self):
        with pytest.raises(StatementDecodeError):
            decode_csv(b"\n\n")


class TestDecodeExcel:
    """First worksheet of a workbook."""

    def test_xlsx(self, generic_xlsx):
        records = decode_excel(generic_xlsx, "xlsx")

        assert len(records) == 2
        assert records[0]["Date"] == datetime(2024, 3, 5)
        assert records[0]["Description"] == "OFFICE RENT MARCH"
        assert records[0]["Debit"] == 25000
        assert records[0]["Credit"] == ""
        assert records[1]["Credit"] == 12000.5

    def test_not_a_workbook(self):
        with pytest.raises(StatementDecodeError, match="Excel parsing error"):
            decode(b"definitely not a zip file", "xlsx")


class TestDecodeJson:
    """JSON arrays of objects."""

    def test_array_of_objects(self, generic_json):
        records = decode_json(generic_json)
        assert records[0]["Remarks"] == "MOBILE RECHARGE JIO"

    def test_object_rejected(self):
        with pytest.raises(StatementDecodeError, match="array"):
            decode_json(json.dumps({"transactions": []}).encode())

    def test_non_object_items_rejected(self):
        with pytest.raises(StatementDecodeError, match="item 1"):
            decode_json(json.dumps([{"a": 1}, 2]).encode())

    def test_invalid_json(self):
        with pytest.raises(StatementDecodeError):
            decode_json(b"[{")
