"""Test fixtures and sample statements."""

import io
import json
from datetime import datetime

import pytest
from openpyxl import Workbook

GENERIC_CSV = (
    "Date,Description,Debit,Credit,Balance\n"
    "05/03/2024,ELECTRICITY BILL MARCH,1500,0,48500\n"
    "07/03/2024,NEFT TRANSFER FROM ACME LTD,0,25000,73500\n"
    "09/03/2024,OFFICE SNACKS,250,0,73250\n"
)

ZERO_ROWS_CSV = "Date,Description,Debit,Credit\n20240101,Rent,0,0\n"

HDFC_CSV = (
    "Date,Narration,Value Dt,Withdrawal Amt.,Deposit Amt.,Closing Balance\n"
    "01/04/2024,SALARY APRIL 2024,01/04/24,,50000.00,150000.00\n"
    '03/04/2024,ATM WDL MG ROAD,03/04/24,"2,000.00",,148000.00\n'
)

SAMPLE_PDF_TEXT = """
ACME BANK LTD - ACCOUNT STATEMENT
Account Number: 001234567890
Date Particulars Withdrawal Deposit Balance
01/04/2024 Opening Balance
02/04/2024 ATM WITHDRAWAL MG ROAD 2,000.00 48,000.00
05/04/2024 NEFT FROM ACME LTD 10,000.00 58,000.00
12/04/2024 CHEQUE 500.00 100.00 57,500.00
15 Apr 2024 INTEREST CREDIT 125.50 57,625.50
Closing balance as on 30/04/2024
"""


@pytest.fixture
def generic_csv() -> bytes:
    """Generic statement with three rows."""
    return GENERIC_CSV.encode("utf-8")


@pytest.fixture
def zero_rows_csv() -> bytes:
    """Statement whose only row has no amount."""
    return ZERO_ROWS_CSV.encode("utf-8")


@pytest.fixture
def hdfc_csv() -> bytes:
    """HDFC net-banking export."""
    return HDFC_CSV.encode("utf-8")


@pytest.fixture
def generic_json() -> bytes:
    """Statement exported as a JSON array."""
    rows = [
        {"Txn Date": "2024-03-05", "Remarks": "MOBILE RECHARGE JIO", "Withdrawal": "299.00", "Deposit": ""},
        {"Txn Date": "2024-03-06", "Remarks": "INTEREST PAID", "Withdrawal": "", "Deposit": "1,250.75"},
    ]
    return json.dumps(rows).encode("utf-8")


@pytest.fixture
def generic_xlsx() -> bytes:
    """Statement workbook with real date cells."""
    wb = Workbook()
    ws = wb.active
    ws.append(["Date", "Description", "Debit", "Credit"])
    ws.append([datetime(2024, 3, 5), "OFFICE RENT MARCH", 25000, None])
    ws.append([None, None, None, None])
    ws.append([datetime(2024, 3, 7), "CUSTOMER PAYMENT", None, 12000.5])

    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def sample_pdf_text() -> str:
    """Text layer of a small statement PDF."""
    return SAMPLE_PDF_TEXT


@pytest.fixture
def debit_transaction() -> dict:
    """Canonical money-out transaction."""
    return {
        "date": "20240305",
        "description": "ELECTRICITY BILL MARCH",
        "debit": 1500.0,
        "credit": 0.0,
        "amount": 1500.0,
        "balance": 48500.0,
        "transaction_type": "Payment",
        "cheque_no": "",
        "raw_data": {},
        "source": "tabular",
        "confidence": "high",
    }


@pytest.fixture
def credit_transaction() -> dict:
    """Canonical money-in transaction."""
    return {
        "date": "20240307",
        "description": "NEFT TRANSFER FROM ACME LTD",
        "debit": 0.0,
        "credit": 25000.0,
        "amount": 25000.0,
        "balance": 73500.0,
        "transaction_type": "Receipt",
        "cheque_no": "",
        "raw_data": {},
        "source": "tabular",
        "confidence": "high",
    }


class FakeConnector:
    """Records vouchers; fails those whose narration contains 'FAIL'."""

    url = "http://tally.test:9000/"

    def __init__(self):
        self.vouchers = []
        self.altered = []
        self.entries = []
        self.last_entries_query = None

    def create_voucher(self, voucher):
        from connectors import TallyError

        if "FAIL" in (voucher.get("narration") or ""):
            raise TallyError("Tally rejected the import: Ledger 'Missing' does not exist!")
        self.vouchers.append(voucher)
        return {"created": 1, "altered": 0, "errors": 0, "line_errors": []}

    def alter_voucher(self, voucher):
        from connectors import TallyError

        if "FAIL" in (voucher.get("narration") or ""):
            raise TallyError("Tally rejected the import: Voucher not found")
        self.altered.append(voucher)
        return {"created": 0, "altered": 1, "errors": 0, "line_errors": []}

    def get_ledger_entries(self, company_name, ledger_name, from_date, to_date):
        self.last_entries_query = (company_name, ledger_name, from_date, to_date)
        return self.entries


@pytest.fixture
def fake_connector() -> FakeConnector:
    """In-memory stand-in for a Tally instance."""
    return FakeConnector()
