"""
Bank Normalizers - Map raw statement rows to canonical transactions

Each supported bank has a column layout: candidate column names for every
field, first non-empty one wins. Unknown banks go through the generic
normalizer, which discovers the columns from their names.

To add a bank:
1. Add its layout to BANK_LAYOUTS
2. Add it to SUPPORTED_BANKS in config.py
"""

import numbers
import re
from functools import lru_cache
from types import MappingProxyType
from typing import Callable, Dict, List, Optional, Tuple

from config import DEBUG, SUPPORTED_BANKS
from .date_normalizer import normalize_date

GENERIC_BANK_CODE = 'generic'
DEFAULT_DESCRIPTION = 'Bank Transaction'

BANK_LAYOUTS = {
    'hdfc': {
        'date': ('Date', 'Transaction Date'),
        'description': ('Narration', 'Description'),
        'debit': ('Withdrawal Amt.', 'Debit'),
        'credit': ('Deposit Amt.', 'Credit'),
        'balance': ('Closing Balance', 'Balance'),
        'cheque_no': ('Chq./Ref.No.',),
        'default_description': 'HDFC Transaction'
    },
    'icici': {
        'date': ('Transaction Date', 'Value Date'),
        'description': ('Transaction Remarks', 'Description'),
        'debit': ('Withdrawal Amount (INR )', 'Debit'),
        'credit': ('Deposit Amount (INR )', 'Credit'),
        'balance': ('Balance (INR )', 'Balance'),
        'cheque_no': ('Cheque Number',),
        'default_description': 'ICICI Transaction'
    },
    'sbi': {
        'date': ('Txn Date', 'Transaction Date'),
        'description': ('Description', 'Narration'),
        'debit': ('Debit',),
        'credit': ('Credit',),
        'balance': ('Balance',),
        'cheque_no': ('Ref No./Cheque No.',),
        'default_description': 'SBI Transaction'
    },
    'axis': {
        'date': ('Tran Date', 'Transaction Date'),
        'description': ('Particulars', 'Description'),
        'debit': ('Dr Amount', 'Debit'),
        'credit': ('Cr Amount', 'Credit'),
        'balance': ('Balance',),
        'cheque_no': ('Chq No',),
        'default_description': 'Axis Transaction'
    }
}

# Generic column discovery: field -> name fragments, in priority order.
# Fields are claimed in this order and a column is never claimed twice,
# so "Description" is taken before the credit hint "cr" can match it.
COLUMN_HINTS = (
    ('date', ('date', 'txn', 'transaction')),
    ('balance', ('balance',)),
    ('description', ('desc', 'narration', 'particulars', 'remarks', 'details')),
    ('debit', ('debit', 'withdrawal', 'dr')),
    ('credit', ('credit', 'deposit', 'cr')),
)

# Hints this short must start a word ("DrAmount", "Dr Amount", not "Address")
SHORT_HINT_LENGTH = 3


# =========================================================================
# VALUE HELPERS
# =========================================================================

def parse_amount(value) -> float:
    """
    Parse an amount cell to a non-negative float

    Numbers pass through; strings lose currency symbols, thousands
    separators and Cr/Dr suffixes. Anything unparseable is 0.
    """
    if value is None or isinstance(value, bool):
        return 0.0

    if isinstance(value, numbers.Number):
        amount = float(value)
        if amount != amount:
            return 0.0
        return round(abs(amount), 2)

    amount_str = str(value).strip()
    if not amount_str:
        return 0.0

    amount_str = re.sub(r'[$€£₹,\s]', '', amount_str)
    amount_str = re.sub(r'^(INR|Rs\.?)', '', amount_str, flags=re.IGNORECASE)

    if amount_str.startswith('(') and amount_str.endswith(')'):
        amount_str = amount_str[1:-1]

    if amount_str.upper().endswith(('CR', 'DR')):
        amount_str = amount_str[:-2]

    try:
        amount = float(amount_str)
    except ValueError:
        return 0.0

    if amount != amount or amount in (float('inf'), float('-inf')):
        return 0.0
    return round(abs(amount), 2)


def _is_blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and value != value:
        return True
    return isinstance(value, str) and not value.strip()


def _first_present(record: Dict, columns: Tuple[str, ...]):
    """Value of the first listed column that is present and non-empty"""
    for column in columns:
        value = record.get(column)
        if not _is_blank(value):
            return value
    return None


def _text(value) -> str:
    if _is_blank(value):
        return ''
    return str(value).strip()


def build_transaction(date_value, description, debit, credit, balance,
                      raw_data: Dict, cheque_no: str = '') -> Optional[Dict]:
    """
    Build a canonical transaction from resolved values

    Returns None when there is no amount on either side or the date
    cannot be normalized.
    """
    debit = parse_amount(debit)
    credit = parse_amount(credit)

    if debit == 0 and credit == 0:
        return None

    date = normalize_date(date_value)
    if date is None:
        if DEBUG:
            print(f"[DEBUG] Dropping row with unreadable date: {date_value!r}", flush=True)
        return None

    return {
        'date': date,
        'description': description,
        'debit': debit,
        'credit': credit,
        'amount': max(debit, credit),
        'balance': parse_amount(balance),
        'transaction_type': 'Payment' if debit > 0 else 'Receipt',
        'cheque_no': cheque_no,
        'raw_data': raw_data
    }


# =========================================================================
# BANK LAYOUT NORMALIZERS
# =========================================================================

def make_layout_normalizer(layout: Dict) -> Callable[[Dict], Optional[Dict]]:
    """Create a row normalizer for a fixed bank column layout"""

    def normalize(record: Dict) -> Optional[Dict]:
        description = _text(_first_present(record, layout['description']))
        return build_transaction(
            date_value=_first_present(record, layout['date']),
            description=description or layout['default_description'],
            debit=_first_present(record, layout['debit']),
            credit=_first_present(record, layout['credit']),
            balance=_first_present(record, layout['balance']),
            raw_data=record,
            cheque_no=_text(_first_present(record, layout.get('cheque_no', ())))
        )

    return normalize


# =========================================================================
# GENERIC NORMALIZER
# =========================================================================

def _hint_matches(field_name: str, hint: str) -> bool:
    field_lower = field_name.lower()
    if len(hint) <= SHORT_HINT_LENGTH:
        return re.search(rf'(?<![a-z]){re.escape(hint)}', field_lower) is not None
    return hint in field_lower


@lru_cache(maxsize=256)
def detect_columns(field_names: Tuple[str, ...]) -> Dict[str, str]:
    """
    Discover which field holds the date, description, debit, credit and balance

    Args:
        field_names: Record keys, in column order

    Returns:
        Mapping of semantic field -> column name (missing fields are absent)
    """
    mapping = {}
    claimed = set()

    for semantic, hints in COLUMN_HINTS:
        for hint in hints:
            column = next(
                (name for name in field_names
                 if name not in claimed and _hint_matches(name, hint)),
                None
            )
            if column is not None:
                mapping[semantic] = column
                claimed.add(column)
                break

    return mapping


def normalize_generic(record: Dict) -> Optional[Dict]:
    """Normalize a row from an unknown layout by discovering its columns"""
    field_names = tuple(str(key) for key in record.keys())
    mapping = detect_columns(field_names)

    if 'date' not in mapping:
        return None

    def value_of(semantic):
        column = mapping.get(semantic)
        return record.get(column) if column is not None else None

    return build_transaction(
        date_value=value_of('date'),
        description=_text(value_of('description')) or DEFAULT_DESCRIPTION,
        debit=value_of('debit'),
        credit=value_of('credit'),
        balance=value_of('balance'),
        raw_data=record
    )


# =========================================================================
# REGISTRY
# =========================================================================

REQUIRED_LAYOUT_KEYS = ('date', 'description', 'debit', 'credit', 'balance', 'default_description')


def _build_registry() -> MappingProxyType:
    for code, layout in BANK_LAYOUTS.items():
        missing = [key for key in REQUIRED_LAYOUT_KEYS if key not in layout]
        if missing:
            raise RuntimeError(f"Bank layout '{code}' is missing {', '.join(missing)}")

    registry = {code: make_layout_normalizer(layout) for code, layout in BANK_LAYOUTS.items()}
    registry[GENERIC_BANK_CODE] = normalize_generic

    for code, normalizer in registry.items():
        if not callable(normalizer):
            raise RuntimeError(f"Bank normalizer for '{code}' is not callable")
    for bank in SUPPORTED_BANKS:
        if bank['code'] not in registry:
            raise RuntimeError(f"Supported bank '{bank['code']}' has no normalizer")

    return MappingProxyType(registry)


BANK_NORMALIZERS = _build_registry()


def get_bank_normalizer(bank_code: Optional[str]) -> Callable[[Dict], Optional[Dict]]:
    """Normalizer for a bank code; unknown codes get the generic normalizer"""
    code = (bank_code or GENERIC_BANK_CODE).strip().lower()
    return BANK_NORMALIZERS.get(code, BANK_NORMALIZERS[GENERIC_BANK_CODE])


def normalize_records(records: List[Dict], bank_code: Optional[str] = GENERIC_BANK_CODE) -> List[Dict]:
    """
    Normalize decoded rows for a bank

    Args:
        records: Rows from the file decoder
        bank_code: 'hdfc', 'icici', 'sbi', 'axis' or 'generic'

    Returns:
        Canonical transactions; rows without a date or amount are dropped
    """
    normalizer = get_bank_normalizer(bank_code)
    transactions = []

    for record in records:
        transaction = normalizer(record)
        if transaction is not None:
            transactions.append(transaction)

    dropped = len(records) - len(transactions)
    if dropped and DEBUG:
        print(f"[DEBUG] Dropped {dropped} of {len(records)} rows without a date or amount", flush=True)

    return transactions


def get_supported_banks() -> List[Dict]:
    """Supported bank layouts for display"""
    return [dict(bank) for bank in SUPPORTED_BANKS]
