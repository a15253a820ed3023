"""Tests for the parse_file pipeline."""

import pytest

from parsers import NoTransactionsFoundError, PDFParser, UniversalParser, UnsupportedFormatError, parse_file


class TestTabular:
    """CSV, Excel and JSON through the bank normalizers."""

    def test_generic_csv(self, generic_csv):
        transactions = parse_file(generic_csv, "csv")

        assert len(transactions) == 3
        first = transactions[0]
        assert first["date"] == "20240305"
        assert first["description"] == "ELECTRICITY BILL MARCH"
        assert first["debit"] == 1500.0
        assert first["transaction_type"] == "Payment"
        assert first["source"] == "tabular"
        assert first["confidence"] == "high"

    def test_bank_layout(self, hdfc_csv):
        salary, atm = parse_file(hdfc_csv, ".csv", "HDFC")

        assert salary["credit"] == 50000.0
        assert atm["debit"] == 2000.0
        assert atm["date"] == "20240403"

    def test_json(self, generic_json):
        recharge, interest = parse_file(generic_json, "json")

        assert recharge["date"] == "20240305"
        assert recharge["debit"] == 299.0
        assert interest["credit"] == 1250.75

    def test_xlsx(self, generic_xlsx):
        rent, payment = parse_file(generic_xlsx, "xlsx")

        assert rent["date"] == "20240305"
        assert rent["debit"] == 25000.0
        assert payment["date"] == "20240307"
        assert payment["credit"] == 12000.5

    def test_one_side_per_transaction(self, generic_csv, hdfc_csv):
        for txn in parse_file(generic_csv, "csv") + parse_file(hdfc_csv, "csv", "hdfc"):
            assert (txn["debit"] > 0) != (txn["credit"] > 0)
            assert txn["amount"] == max(txn["debit"], txn["credit"])

    def test_zero_rows_raise(self, zero_rows_csv):
        with pytest.raises(NoTransactionsFoundError, match="No transactions found"):
            parse_file(zero_rows_csv, "csv")

    def test_unsupported(self):
        with pytest.raises(UnsupportedFormatError):
            parse_file(b"data", "docx")

    def test_summary(self, generic_csv):
        parser = UniversalParser()
        parser.parse(generic_csv, "csv")

        summary = parser.get_summary()
        assert summary["count"] == 3
        assert summary["total_debit"] == 1750.0
        assert summary["total_credit"] == 25000.0
        assert summary["date_range"] == {"from": "20240305", "to": "20240309"}

    def test_empty_summary(self):
        assert UniversalParser().get_summary()["count"] == 0


class TestPdf:
    """PDF text through the line parser."""

    def test_pdf_transactions(self, monkeypatch, sample_pdf_text):
        monkeypatch.setattr(PDFParser, "extract_text", lambda self, buffer: sample_pdf_text)

        transactions = parse_file(b"%PDF-1.4", "pdf")

        assert [t["date"] for t in transactions] == ["20240402", "20240405", "20240412", "20240415"]
        assert all(t["source"] == "pdf" and t["confidence"] == "low" for t in transactions)
        assert all(t["cheque_no"] == "" for t in transactions)

    def test_pdf_summary_includes_ocr_flag(self, monkeypatch, sample_pdf_text):
        monkeypatch.setattr(PDFParser, "extract_text", lambda self, buffer: sample_pdf_text)

        parser = UniversalParser()
        parser.parse(b"%PDF-1.4", "pdf")

        assert parser.get_summary()["ocr_used"] is False

    def test_pdf_without_transactions(self, monkeypatch):
        monkeypatch.setattr(PDFParser, "extract_text", lambda self, buffer: "STATEMENT\nNothing here")

        with pytest.raises(NoTransactionsFoundError):
            parse_file(b"%PDF-1.4", "pdf")
