"""
Bank Statement Voucher Tool - Configuration

Every value can be overridden through an environment variable of the same name.
"""

import os

# Base paths
BASE_DIR = os.path.dirname(os.path.abspath(__file__))
DATA_DIR = os.environ.get('DATA_DIR', os.path.join(BASE_DIR, 'data'))
OUTPUT_DIR = os.environ.get('OUTPUT_DIR', os.path.join(BASE_DIR, 'output'))

# Verbose [DEBUG] console output
DEBUG = os.environ.get('DEBUG', 'False').lower() == 'true'

# Canonical date format handed to the ledger system
CANONICAL_DATE_FORMAT = "%Y%m%d"

# Tried in order once the numeric day-month-year / year-month-day forms fail
DATE_FORMATS_TO_TRY = [
    "%d %b %Y", "%d %B %Y", "%d-%b-%Y", "%d-%b-%y",
    "%b %d, %Y", "%B %d, %Y", "%d.%m.%Y", "%d/%m/%y", "%d-%m-%y"
]

# Supported file extensions
SUPPORTED_BANK_EXTENSIONS = ['.csv', '.xlsx', '.xls', '.json', '.pdf']
MAX_UPLOAD_SIZE = int(os.environ.get('MAX_UPLOAD_SIZE', 20 * 1024 * 1024))  # 20MB

# Supported bank layouts
SUPPORTED_BANKS = [
    {'code': 'hdfc', 'name': 'HDFC Bank', 'formats': ['CSV', 'Excel', 'JSON']},
    {'code': 'icici', 'name': 'ICICI Bank', 'formats': ['CSV', 'Excel', 'JSON']},
    {'code': 'sbi', 'name': 'State Bank of India', 'formats': ['CSV', 'Excel', 'JSON']},
    {'code': 'axis', 'name': 'Axis Bank', 'formats': ['CSV', 'Excel', 'JSON']},
    {'code': 'generic', 'name': 'Generic Format', 'formats': ['CSV', 'Excel', 'JSON', 'PDF']}
]

# PDF text extraction
MIN_PDF_TEXT_LENGTH = int(os.environ.get('MIN_PDF_TEXT_LENGTH', 100))  # below this, the PDF is treated as scanned
MIN_OCR_TEXT_LENGTH = int(os.environ.get('MIN_OCR_TEXT_LENGTH', 50))

# PDF line heuristics: a line is a debit if it contains one of these words,
# or if it carries exactly PDF_DEBIT_TOKEN_COUNT numbers (0 disables the count rule)
PDF_DEBIT_KEYWORDS = ('dr', 'debit', 'withdrawal')
PDF_DEBIT_TOKEN_COUNT = int(os.environ.get('PDF_DEBIT_TOKEN_COUNT', 3))

# OCR settings
TESSERACT_CMD = os.environ.get('TESSERACT_CMD')
POPPLER_PATH = os.environ.get('POPPLER_PATH')
OCR_DPI = int(os.environ.get('OCR_DPI', 300))
OCR_CONFIG = r'--oem 3 --psm 6'
OCR_TIMEOUT = int(os.environ.get('OCR_TIMEOUT', 0))  # seconds per page, 0 = no limit

# Optional JSON file replacing the built-in category keyword table
CATEGORY_RULES_FILE = os.environ.get('CATEGORY_RULES_FILE', os.path.join(DATA_DIR, 'category_rules.json'))

# Default ledgers
DEFAULT_BANK_LEDGER = 'Bank Account'
DEFAULT_EXPENSE_LEDGER = 'Miscellaneous Expenses'
DEFAULT_INCOME_LEDGER = 'Miscellaneous Income'
DEFAULT_SUSPENSE_LEDGER = 'Suspense A/c'

# Tally settings
TALLY_HOST = os.environ.get('TALLY_HOST', 'localhost')
TALLY_PORT = int(os.environ.get('TALLY_PORT', 9000))
TALLY_TIMEOUT = int(os.environ.get('TALLY_TIMEOUT', 30))

# Flask settings
FLASK_HOST = os.environ.get('FLASK_HOST', '0.0.0.0')
FLASK_PORT = int(os.environ.get('PORT', 3000))
FLASK_DEBUG = os.environ.get('FLASK_DEBUG', 'False').lower() == 'true'
