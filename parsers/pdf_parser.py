"""
PDF Parser Module - Extract transactions from bank statement PDFs

1. Read the text layer with pdfplumber
2. If it is too sparse, the PDF is a scan: OCR it with pdf2image + Tesseract
3. Parse the recovered text line by line (date match + amount tokens)

The line parser is a best-effort heuristic. PDF transactions are marked
low confidence so they can be posted to a suspense ledger for review.
"""

import io
import re
from typing import Callable, Dict, List, Optional, Sequence

import pdfplumber
import pytesseract
from pdf2image import convert_from_bytes
from pdf2image.exceptions import PDFInfoNotInstalledError, PDFPageCountError, PDFSyntaxError

from config import (DEBUG, MIN_OCR_TEXT_LENGTH, MIN_PDF_TEXT_LENGTH, OCR_CONFIG, OCR_DPI,
                    OCR_TIMEOUT, PDF_DEBIT_KEYWORDS, PDF_DEBIT_TOKEN_COUNT, POPPLER_PATH,
                    TESSERACT_CMD)
from .exceptions import OcrFailedError, OcrInsufficientTextError, StatementDecodeError

# DD/MM/YYYY or DD-MM-YYYY
NUMERIC_DATE_PATTERN = re.compile(r'\b\d{1,2}[/-]\d{1,2}[/-]\d{4}\b')
# DD Mon YYYY
TEXT_DATE_PATTERN = re.compile(
    r'\b\d{1,2}\s+(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\.?\s+\d{4}\b',
    re.IGNORECASE
)
# 1,234.56 / 1,00,000.00 / 250 - separators are dropped before conversion
AMOUNT_TOKEN_PATTERN = re.compile(r'\d+(?:,\d+)*(?:\.\d+)?')

DEFAULT_DESCRIPTION = 'Bank Transaction'


class PDFParser:
    """Parse bank statement PDFs with OCR fallback for scanned documents"""

    def __init__(self, debit_keywords: Sequence[str] = PDF_DEBIT_KEYWORDS,
                 debit_token_count: int = PDF_DEBIT_TOKEN_COUNT,
                 progress_callback: Optional[Callable[[int, int], None]] = None):
        """
        Initialize parser

        Args:
            debit_keywords: Words that mark a line as money out
            debit_token_count: A line with exactly this many numbers is a debit (0 disables)
            progress_callback: Called with (page_number, total_pages) during OCR
        """
        self.debit_keywords = tuple(kw.lower() for kw in debit_keywords)
        self.debit_token_count = debit_token_count
        self.progress_callback = progress_callback
        self.ocr_used = False
        self.text_length = 0

    # =========================================================================
    # TEXT EXTRACTION
    # =========================================================================

    def extract_text(self, buffer: bytes) -> str:
        """
        Get the text of a PDF, falling back to OCR for scanned files

        Raises:
            StatementDecodeError: The bytes are not a readable PDF
            OcrInsufficientTextError: OCR produced too little text
            OcrFailedError: OCR could not run
        """
        text = self.extract_text_layer(buffer)

        if len(text.strip()) < MIN_PDF_TEXT_LENGTH:
            print(f"[INFO] PDF text layer has {len(text.strip())} characters, "
                  f"treating it as a scan and using OCR...", flush=True)
            text = self.recognize_text(buffer)
            self.ocr_used = True

        self.text_length = len(text)
        if DEBUG:
            print(f"[DEBUG] Extracted {len(text)} characters. First 500: {text[:500]}", flush=True)
        return text

    def extract_text_layer(self, buffer: bytes) -> str:
        """Extract the embedded text with pdfplumber"""
        try:
            pages = []
            with pdfplumber.open(io.BytesIO(buffer)) as pdf:
                for page in pdf.pages:
                    page_text = page.extract_text()
                    if page_text:
                        pages.append(page_text)
            return "\n".join(pages)
        except Exception as e:
            raise StatementDecodeError(f"Could not read PDF: {e}") from e

    def recognize_text(self, buffer: bytes) -> str:
        """
        OCR every page of a scanned PDF in one pass

        Raises:
            OcrInsufficientTextError: Recognized text is shorter than MIN_OCR_TEXT_LENGTH
            OcrFailedError: Poppler/Tesseract missing, or a page timed out
        """
        if TESSERACT_CMD:
            pytesseract.pytesseract.tesseract_cmd = TESSERACT_CMD

        try:
            print("[INFO] Converting PDF to images...", flush=True)
            if POPPLER_PATH:
                images = convert_from_bytes(buffer, dpi=OCR_DPI, poppler_path=POPPLER_PATH)
            else:
                images = convert_from_bytes(buffer, dpi=OCR_DPI)
        except PDFInfoNotInstalledError as e:
            raise OcrFailedError("Poppler is not installed; set POPPLER_PATH or add it to PATH") from e
        except (PDFPageCountError, PDFSyntaxError) as e:
            raise StatementDecodeError(f"Could not render PDF pages: {e}") from e

        total = len(images)
        print(f"[INFO] Converted {total} pages, running OCR...", flush=True)

        pages = []
        for i, image in enumerate(images, start=1):
            print(f"[INFO] OCR processing page {i}/{total}...", flush=True)
            try:
                page_text = pytesseract.image_to_string(image, config=OCR_CONFIG, timeout=OCR_TIMEOUT)
            except pytesseract.TesseractNotFoundError as e:
                raise OcrFailedError("Tesseract is not installed; set TESSERACT_CMD or add it to PATH") from e
            except RuntimeError as e:
                # pytesseract signals a timeout with a bare RuntimeError
                raise OcrFailedError(f"OCR failed on page {i}/{total}: {e}") from e
            if page_text:
                pages.append(page_text)
            if self.progress_callback:
                self.progress_callback(i, total)

        text = "\n".join(pages)
        if len(text.strip()) < MIN_OCR_TEXT_LENGTH:
            raise OcrInsufficientTextError(len(text.strip()), MIN_OCR_TEXT_LENGTH)

        return text

    # =========================================================================
    # TRANSACTION EXTRACTION
    # =========================================================================

    def extract_transactions(self, text: str) -> List[Dict]:
        """
        Parse statement text into transactions

        Every line with a date and at least one positive number becomes a
        transaction. The date is returned as matched; callers normalize it.
        """
        transactions = []

        for line in text.split('\n'):
            line = line.strip()
            if not line:
                continue

            transaction = self._parse_line(line)
            if transaction is not None:
                transactions.append(transaction)

        print(f"[INFO] Found {len(transactions)} transaction lines in PDF text", flush=True)
        return transactions

    def _parse_line(self, line: str) -> Optional[Dict]:
        date_match = self._find_date(line)
        if date_match is None:
            return None

        tokens = []
        for match in AMOUNT_TOKEN_PATTERN.finditer(line, date_match.end()):
            value = float(match.group(0).replace(',', ''))
            if value > 0:
                tokens.append((match, value))

        if not tokens:
            return None

        first_match = tokens[0][0]
        description = line[date_match.end():first_match.start()].strip(' \t-|:')
        amounts = [value for _, value in tokens]

        is_debit = self._is_debit(line, len(amounts))
        amount = round(amounts[0], 2)
        balance = round(amounts[-1], 2) if len(amounts) > 1 else 0.0

        return {
            'date': date_match.group(0),
            'description': description or DEFAULT_DESCRIPTION,
            'debit': amount if is_debit else 0.0,
            'credit': 0.0 if is_debit else amount,
            'amount': amount,
            'transaction_type': 'Payment' if is_debit else 'Receipt',
            'balance': balance,
            'raw_data': {'line': line}
        }

    def _find_date(self, line: str) -> Optional[re.Match]:
        """First date on the line; numeric dates take precedence"""
        return NUMERIC_DATE_PATTERN.search(line) or TEXT_DATE_PATTERN.search(line)

    def _is_debit(self, line: str, token_count: int) -> bool:
        line_lower = line.lower()
        if any(kw in line_lower for kw in self.debit_keywords):
            return True
        return bool(self.debit_token_count) and token_count == self.debit_token_count

    def get_summary(self) -> Dict:
        """Get extraction summary"""
        return {
            'ocr_used': self.ocr_used,
            'text_length': self.text_length
        }
