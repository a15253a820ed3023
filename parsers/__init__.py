"""
Parsers Package - Bank statement decoding and normalization

Architecture:
1. file_decoder.py - bytes -> rows (CSV, Excel, JSON) or text lines (PDF)
2. pdf_parser.py - pdfplumber text layer, OCR fallback, heuristic line parser
3. bank_normalizers.py - per-bank column layouts + generic column discovery
4. date_normalizer.py - any statement date -> YYYYMMDD
5. universal_parser.py - the pipeline: parse_file(buffer, extension, bank_code)

To add a new bank:
1. Add its column layout to BANK_LAYOUTS in bank_normalizers.py
2. Add it to SUPPORTED_BANKS in config.py
"""

from .bank_normalizers import (BANK_NORMALIZERS, get_bank_normalizer, get_supported_banks,
                               normalize_generic, normalize_records)
from .date_normalizer import normalize_date
from .exceptions import (NoTransactionsFoundError, OcrFailedError, OcrInsufficientTextError,
                         StatementDecodeError, StatementError, UnsupportedFormatError)
from .file_decoder import decode
from .pdf_parser import PDFParser
from .universal_parser import UniversalParser, parse_file

__all__ = ['UniversalParser', 'parse_file', 'PDFParser', 'decode', 'normalize_date',
           'normalize_records', 'normalize_generic', 'get_bank_normalizer', 'get_supported_banks',
           'BANK_NORMALIZERS', 'StatementError', 'UnsupportedFormatError', 'StatementDecodeError',
           'OcrInsufficientTextError', 'OcrFailedError', 'NoTransactionsFoundError']
