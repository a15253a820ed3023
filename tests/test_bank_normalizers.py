"""Tests for bank layouts, generic column discovery and amount parsing."""

import pytest

from parsers.bank_normalizers import (BANK_NORMALIZERS, detect_columns, get_bank_normalizer,
                                      get_supported_banks, normalize_generic, normalize_records,
                                      parse_amount)


class TestParseAmount:
    """Amount cells in their many spellings."""

    @pytest.mark.parametrize("value,expected", [
        (1500, 1500.0),
        (-45.5, 45.5),
        ("1,234.50", 1234.5),
        ("₹1,00,000.00", 100000.0),
        ("(500.00)", 500.0),
        ("1,000.00 Cr", 1000.0),
        ("250.00Dr", 250.0),
        ("Rs. 250", 250.0),
        ("INR 99", 99.0),
    ])
    def test_parses(self, value, expected):
        assert parse_amount(value) == expected

    @pytest.mark.parametrize("value", [None, "", "abc", "-", float("nan"), True])
    def test_unparseable_is_zero(self, value):
        assert parse_amount(value) == 0.0


class TestBankLayouts:
    """Fixed column layouts per bank."""

    def test_hdfc_columns(self):
        records = [
            {"Date": "01/04/2024", "Narration": "SALARY APRIL 2024", "Chq./Ref.No.": "",
             "Withdrawal Amt.": "", "Deposit Amt.": 50000.0, "Closing Balance": 150000.0},
            {"Date": "03/04/2024", "Narration": "", "Chq./Ref.No.": "000123",
             "Withdrawal Amt.": "2,000.00", "Deposit Amt.": "", "Closing Balance": 148000.0},
        ]

        salary, atm = normalize_records(records, "hdfc")

        assert salary["date"] == "20240401"
        assert salary["credit"] == 50000.0
        assert salary["amount"] == 50000.0
        assert salary["transaction_type"] == "Receipt"
        assert salary["balance"] == 150000.0
        assert salary["raw_data"] is records[0]

        assert atm["description"] == "HDFC Transaction"
        assert atm["debit"] == 2000.0
        assert atm["transaction_type"] == "Payment"
        assert atm["cheque_no"] == "000123"

    def test_icici_fallback_columns(self):
        """Second candidate column is used when the first is absent."""
        record = {"Value Date": "2024-04-02", "Description": "UPI PAYMENT", "Debit": 120, "Credit": ""}

        (txn,) = normalize_records([record], "icici")

        assert txn["date"] == "20240402"
        assert txn["description"] == "UPI PAYMENT"
        assert txn["debit"] == 120.0

    def test_sbi_and_axis(self):
        sbi = {"Txn Date": "10 Apr 2024", "Description": "BY TRANSFER", "Debit": "", "Credit": "5,000.00",
               "Balance": "55,000.00", "Ref No./Cheque No.": "TRF123"}
        axis = {"Tran Date": "11-04-2024", "Particulars": "POS PURCHASE", "Dr Amount": "899.00",
                "Cr Amount": "", "Balance": "54,101.00", "Chq No": ""}

        (sbi_txn,) = normalize_records([sbi], "sbi")
        (axis_txn,) = normalize_records([axis], "axis")

        assert (sbi_txn["date"], sbi_txn["credit"], sbi_txn["cheque_no"]) == ("20240410", 5000.0, "TRF123")
        assert (axis_txn["date"], axis_txn["debit"], axis_txn["balance"]) == ("20240411", 899.0, 54101.0)

    def test_zero_rows_dropped(self):
        records = [{"Date": "01/04/2024", "Narration": "NOTHING", "Withdrawal Amt.": 0, "Deposit Amt.": ""}]
        assert normalize_records(records, "hdfc") == []

    def test_unreadable_date_dropped(self):
        records = [{"Date": "not-a-date", "Narration": "X", "Withdrawal Amt.": 10, "Deposit Amt.": ""}]
        assert normalize_records(records, "hdfc") == []

    def test_amount_is_larger_side(self):
        record = {"Date": "01/04/2024", "Description": "ODD ROW", "Debit": 10, "Credit": 30}
        (txn,) = normalize_records([record])
        assert txn["amount"] == 30.0
        assert txn["transaction_type"] == "Payment"


class TestGenericDiscovery:
    """Column discovery from header names."""

    def test_standard_headers(self):
        mapping = detect_columns(("Txn Date", "Description", "Withdrawal", "Deposit", "Balance"))
        assert mapping == {
            "date": "Txn Date",
            "balance": "Balance",
            "description": "Description",
            "debit": "Withdrawal",
            "credit": "Deposit",
        }

    def test_description_not_taken_as_credit(self):
        """'cr' inside 'Description' must not resolve the credit column."""
        mapping = detect_columns(("Date", "Description", "Debit"))
        assert "credit" not in mapping
        assert mapping["description"] == "Description"

    def test_short_hints_start_a_word(self):
        mapping = detect_columns(("Date", "Address", "Narration", "Dr", "Cr"))
        assert mapping["debit"] == "Dr"
        assert mapping["credit"] == "Cr"
        assert "Address" not in mapping.values()

    def test_compact_headers(self):
        mapping = detect_columns(("TxnDt", "Particulars", "DrAmount", "CrAmount"))
        assert mapping == {
            "date": "TxnDt",
            "description": "Particulars",
            "debit": "DrAmount",
            "credit": "CrAmount",
        }

    def test_compact_headers_normalize(self):
        record = {"TxnDt": "05/03/2024", "Particulars": "RENT", "DrAmount": "1,000.00", "CrAmount": ""}
        txn = normalize_generic(record)
        assert txn["date"] == "20240305"
        assert txn["debit"] == 1000.0

    def test_no_date_column_drops_row(self):
        assert normalize_generic({"Description": "X", "Debit": 100}) is None

    def test_zero_row(self):
        """Date,Description,Debit,Credit / 20240101,Rent,0,0 yields nothing."""
        records = [{"Date": 20240101, "Description": "Rent", "Debit": 0, "Credit": 0}]
        assert normalize_records(records, "generic") == []

    def test_default_description(self):
        (txn,) = normalize_records([{"Date": "05/03/2024", "Debit": 10}])
        assert txn["description"] == "Bank Transaction"
        assert txn["date"] == "20240305"


class TestRegistry:
    """Read-only normalizer registry."""

    def test_all_supported_banks_registered(self):
        codes = {bank["code"] for bank in get_supported_banks()}
        assert codes == {"hdfc", "icici", "sbi", "axis", "generic"}
        assert codes <= set(BANK_NORMALIZERS)
        assert all(callable(fn) for fn in BANK_NORMALIZERS.values())

    def test_registry_is_read_only(self):
        with pytest.raises(TypeError):
            BANK_NORMALIZERS["other"] = normalize_generic

    def test_lookup_is_case_insensitive(self):
        assert get_bank_normalizer("HDFC") is BANK_NORMALIZERS["hdfc"]

    @pytest.mark.parametrize("code", [None, "", "unknown-bank"])
    def test_unknown_falls_back_to_generic(self, code):
        assert get_bank_normalizer(code) is normalize_generic

    def test_supported_banks_are_copies(self):
        banks = get_supported_banks()
        banks[0]["code"] = "changed"
        assert get_supported_banks()[0]["code"] == "hdfc"
