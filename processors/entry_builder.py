"""
Entry Builder - Turn canonical transactions into two-leg ledger vouchers

Leg convention of the ledger system: is_deemed_positive 'No' is the debit
leg, 'Yes' is the credit leg. Both legs always carry the same amount.

  Payment (money out): Dr expense/category ledger, Cr bank ledger
  Receipt (money in):  Dr bank ledger,             Cr income/category ledger
  Journal (transfer):  Dr to-ledger,               Cr from-ledger

Existing vouchers can also be copied with one ledger swapped for another.
"""

from typing import Dict, List, Optional

from classifiers import MISCELLANEOUS, categorize
from config import (DEFAULT_BANK_LEDGER, DEFAULT_EXPENSE_LEDGER, DEFAULT_INCOME_LEDGER,
                    DEFAULT_SUSPENSE_LEDGER)

DEBIT_LEG = 'No'
CREDIT_LEG = 'Yes'

SOURCE_CATEGORIZED = 'bank_statement'
SOURCE_SUSPENSE = 'bank_statement_suspense'


def _leg(ledger_name: str, amount: float, is_deemed_positive: str) -> Dict:
    return {
        'ledger_name': ledger_name,
        'amount': amount,
        'is_deemed_positive': is_deemed_positive
    }


class EntryBuilder:
    """
    Build vouchers for one company and bank ledger

    Categorized mode posts the other leg to the detected category (or the
    default expense/income ledger); suspense mode posts it to a single
    holding ledger for later review.
    """

    def __init__(self, company_name: str, bank_ledger_name: str = DEFAULT_BANK_LEDGER,
                 default_expense_ledger: str = DEFAULT_EXPENSE_LEDGER,
                 default_income_ledger: str = DEFAULT_INCOME_LEDGER,
                 auto_categorize: bool = True,
                 suspense_ledger: str = DEFAULT_SUSPENSE_LEDGER):
        if not company_name:
            raise ValueError("Company name is required")

        self.company_name = company_name
        self.bank_ledger_name = bank_ledger_name or DEFAULT_BANK_LEDGER
        self.default_expense_ledger = default_expense_ledger or DEFAULT_EXPENSE_LEDGER
        self.default_income_ledger = default_income_ledger or DEFAULT_INCOME_LEDGER
        self.auto_categorize = auto_categorize
        self.suspense_ledger = suspense_ledger or DEFAULT_SUSPENSE_LEDGER

    def build_voucher(self, txn: Dict) -> Dict:
        """Build a categorized Payment/Receipt voucher"""
        is_debit = txn.get('debit', 0) > 0

        category = categorize(txn.get('description')) if self.auto_categorize else None
        if category and category != MISCELLANEOUS:
            ledger_name = category
        else:
            ledger_name = self.default_expense_ledger if is_debit else self.default_income_ledger

        return self._build(txn, ledger_name, SOURCE_CATEGORIZED, category)

    def build_suspense_voucher(self, txn: Dict) -> Dict:
        """Build a Payment/Receipt voucher against the suspense ledger"""
        return self._build(txn, self.suspense_ledger, SOURCE_SUSPENSE, None)

    def _build(self, txn: Dict, ledger_name: str, source: str, category: Optional[str]) -> Dict:
        amount = txn.get('amount', 0)
        if not amount or amount <= 0:
            raise ValueError(f"Transaction has no amount: {txn.get('description')!r} on {txn.get('date')}")

        is_debit = txn.get('debit', 0) > 0
        if is_debit:
            legs = [_leg(ledger_name, amount, DEBIT_LEG), _leg(self.bank_ledger_name, amount, CREDIT_LEG)]
        else:
            legs = [_leg(self.bank_ledger_name, amount, DEBIT_LEG), _leg(ledger_name, amount, CREDIT_LEG)]

        return {
            'voucher_type': 'Payment' if is_debit else 'Receipt',
            'date': txn.get('date'),
            'narration': txn.get('description', ''),
            'company_name': self.company_name,
            'ledger_entries': legs,
            'metadata': {
                'source': source,
                'category': category,
                'original_balance': txn.get('balance'),
                'transaction_source': txn.get('source'),
                'confidence': txn.get('confidence')
            }
        }

    def build_batch(self, transactions: List[Dict], suspense: bool = False) -> List[Dict]:
        """Build one voucher per transaction"""
        build = self.build_suspense_voucher if suspense else self.build_voucher
        return [build(txn) for txn in transactions]


def convert_to_vouchers(transactions: List[Dict], company_name: str,
                        bank_ledger_name: str = DEFAULT_BANK_LEDGER,
                        default_expense_ledger: str = DEFAULT_EXPENSE_LEDGER,
                        default_income_ledger: str = DEFAULT_INCOME_LEDGER,
                        auto_categorize: bool = True) -> List[Dict]:
    """Categorized vouchers: category or default ledger against the bank ledger"""
    builder = EntryBuilder(
        company_name,
        bank_ledger_name=bank_ledger_name,
        default_expense_ledger=default_expense_ledger,
        default_income_ledger=default_income_ledger,
        auto_categorize=auto_categorize
    )
    return builder.build_batch(transactions)


def convert_to_suspense_vouchers(transactions: List[Dict], company_name: str,
                                 bank_ledger_name: str = DEFAULT_BANK_LEDGER,
                                 suspense_ledger: str = DEFAULT_SUSPENSE_LEDGER) -> List[Dict]:
    """Suspense vouchers for low-confidence (PDF) transactions"""
    builder = EntryBuilder(company_name, bank_ledger_name=bank_ledger_name, suspense_ledger=suspense_ledger)
    return builder.build_batch(transactions, suspense=True)


def build_transfer_voucher(company_name: str, from_ledger: str, to_ledger: str,
                           amount, date: str, narration: Optional[str] = None) -> Dict:
    """
    Journal voucher moving an amount from one ledger to another

    Args:
        company_name: Target company
        from_ledger: Ledger credited
        to_ledger: Ledger debited
        amount: Positive amount (numbers or numeric strings)
        date: YYYYMMDD
        narration: Defaults to 'Transfer from X to Y'
    """
    if not company_name or not from_ledger or not to_ledger:
        raise ValueError("Company name, from ledger, and to ledger are required")
    if from_ledger == to_ledger:
        raise ValueError("From ledger and to ledger cannot be the same")

    try:
        amount = round(float(amount), 2)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid transfer amount: {amount!r}") from None
    if amount <= 0:
        raise ValueError("Transfer amount must be greater than zero")
    if not date:
        raise ValueError("Transfer date is required")

    return {
        'voucher_type': 'Journal',
        'date': date,
        'narration': narration or f"Transfer from {from_ledger} to {to_ledger}",
        'company_name': company_name,
        'ledger_entries': [
            _leg(to_ledger, amount, DEBIT_LEG),
            _leg(from_ledger, amount, CREDIT_LEG)
        ],
        'metadata': {'source': 'ledger_transfer'}
    }


def build_reassigned_voucher(company_name: str, entry: Dict, from_ledger: str, to_ledger: str) -> Dict:
    """
    Copy of an existing voucher with every from_ledger line moved to to_ledger

    Used to reclassify vouchers parked in the suspense ledger. Ledger names
    are compared case-insensitively; amounts and leg sides are kept as
    exported.

    Args:
        company_name: Target company
        entry: Exported voucher (master_id, guid, voucher_type, date,
            voucher_number, narration, ledger_entries)
        from_ledger: Ledger being replaced
        to_ledger: Replacement ledger

    Raises:
        ValueError: Missing identity, same ledgers, or from_ledger not on the voucher
    """
    if not company_name or not from_ledger or not to_ledger:
        raise ValueError("Company name, from ledger, and to ledger are required")
    if from_ledger.strip().lower() == to_ledger.strip().lower():
        raise ValueError("From ledger and to ledger cannot be the same")
    if not entry.get('master_id') and not entry.get('guid'):
        raise ValueError("Voucher master ID or GUID is required")

    wanted = from_ledger.strip().lower()
    lines = entry.get('ledger_entries') or []
    if not any((line.get('ledger_name') or '').strip().lower() == wanted for line in lines):
        raise ValueError(f"Voucher does not post to ledger '{from_ledger}'")

    ledger_entries = []
    for line in lines:
        name = line['ledger_name']
        ledger_entries.append(_leg(
            to_ledger if name.strip().lower() == wanted else name,
            line['amount'],
            line.get('is_deemed_positive') or DEBIT_LEG
        ))

    return {
        'voucher_type': entry['voucher_type'],
        'date': entry.get('date') or '',
        'narration': entry.get('narration') or '',
        'voucher_number': entry.get('voucher_number') or '',
        'company_name': company_name,
        'master_id': entry.get('master_id') or '',
        'guid': entry.get('guid') or '',
        'ledger_entries': ledger_entries,
        'metadata': {'source': 'ledger_reassignment'}
    }


def validate_voucher_balance(voucher: Dict) -> Dict:
    """
    Check that debit legs equal credit legs

    Returns:
        Dict with 'is_balanced', 'total_debits', 'total_credits', 'variance'
    """
    entries = voucher.get('ledger_entries', [])
    total_debits = sum(e['amount'] for e in entries if e['is_deemed_positive'] == DEBIT_LEG)
    total_credits = sum(e['amount'] for e in entries if e['is_deemed_positive'] == CREDIT_LEG)
    variance = abs(total_debits - total_credits)

    return {
        # Allow 1 paisa rounding difference
        'is_balanced': variance < 0.01,
        'total_debits': round(total_debits, 2),
        'total_credits': round(total_credits, 2),
        'variance': round(variance, 2)
    }


def summarize_vouchers(vouchers: List[Dict]) -> Dict:
    """Counts by voucher type and the total posted amount"""
    return {
        'payments': sum(1 for v in vouchers if v['voucher_type'] == 'Payment'),
        'receipts': sum(1 for v in vouchers if v['voucher_type'] == 'Receipt'),
        'journals': sum(1 for v in vouchers if v['voucher_type'] == 'Journal'),
        'total_amount': round(sum(v['ledger_entries'][0]['amount'] for v in vouchers), 2)
    }
