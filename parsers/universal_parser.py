"""
Universal Parser Module - Decode any supported statement and normalize it

bytes -> rows/lines -> canonical transactions. Tabular files go through the
bank normalizer registry; PDF text goes through the heuristic line parser.
"""

from typing import Callable, Dict, List, Optional

from .bank_normalizers import GENERIC_BANK_CODE, normalize_records
from .date_normalizer import normalize_date
from .exceptions import NoTransactionsFoundError
from .file_decoder import decode, normalize_extension
from .pdf_parser import PDFParser


class UniversalParser:
    """Parse a statement upload of any supported format"""

    def __init__(self, progress_callback: Optional[Callable[[int, int], None]] = None):
        """
        Initialize parser

        Args:
            progress_callback: Receives (page_number, total_pages) while OCR runs
        """
        self.pdf_parser = PDFParser(progress_callback=progress_callback)
        self.transactions = []
        self.file_type = None
        self.bank_code = None

    def parse(self, buffer: bytes, file_extension: str, bank_code: str = GENERIC_BANK_CODE) -> List[Dict]:
        """
        Parse statement bytes into canonical transactions

        Args:
            buffer: Raw uploaded file
            file_extension: 'csv', 'xlsx', 'xls', 'json' or 'pdf'
            bank_code: Bank layout for tabular files ('generic' if unknown)

        Returns:
            List of transaction dictionaries

        Raises:
            StatementError subclasses; NoTransactionsFoundError if nothing usable was found
        """
        self.file_type = normalize_extension(file_extension)
        self.bank_code = (bank_code or GENERIC_BANK_CODE).lower()

        print(f"[INFO] Parsing {self.file_type.upper()} statement ({len(buffer or b'')} bytes, "
              f"bank: {self.bank_code})", flush=True)

        decoded = decode(buffer, self.file_type, pdf_parser=self.pdf_parser)

        if self.file_type == 'pdf':
            transactions = self._normalize_pdf_lines(decoded)
        else:
            transactions = normalize_records(decoded, self.bank_code)
            for txn in transactions:
                txn['source'] = 'tabular'
                txn['confidence'] = 'high'

        if not transactions:
            raise NoTransactionsFoundError()

        self.transactions = transactions
        print(f"[INFO] Total valid transactions: {len(transactions)}", flush=True)
        return transactions

    def _normalize_pdf_lines(self, lines: List[str]) -> List[Dict]:
        """Run the line parser and normalize the matched dates"""
        transactions = []
        for txn in self.pdf_parser.extract_transactions('\n'.join(lines)):
            date = normalize_date(txn['date'])
            if date is None:
                continue
            txn['date'] = date
            txn['cheque_no'] = ''
            txn['source'] = 'pdf'
            txn['confidence'] = 'low'
            transactions.append(txn)
        return transactions

    def get_summary(self) -> Dict:
        """Get parsing summary"""
        if not self.transactions:
            return {'count': 0, 'total_debit': 0, 'total_credit': 0, 'date_range': {'from': None, 'to': None}}

        summary = {
            'count': len(self.transactions),
            'file_type': self.file_type,
            'bank_code': self.bank_code,
            'total_debit': round(sum(t['debit'] for t in self.transactions), 2),
            'total_credit': round(sum(t['credit'] for t in self.transactions), 2),
            'date_range': {
                'from': self.transactions[0]['date'],
                'to': self.transactions[-1]['date']
            }
        }
        if self.file_type == 'pdf':
            summary.update(self.pdf_parser.get_summary())
        return summary


def parse_file(buffer: bytes, file_extension: str, bank_code: str = GENERIC_BANK_CODE) -> List[Dict]:
    """
    Convenience function to parse a bank statement

    Args:
        buffer: Raw uploaded file
        file_extension: File extension of the upload
        bank_code: Bank layout code

    Returns:
        List of canonical transactions
    """
    return UniversalParser().parse(buffer, file_extension, bank_code)
