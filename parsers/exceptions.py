"""
Parser Exceptions - Failures that abort a whole statement upload
"""


class StatementError(ValueError):
    """Base class for statement parsing failures"""


class UnsupportedFormatError(StatementError):
    """File extension is not one of the supported statement formats"""

    def __init__(self, extension: str):
        self.extension = extension
        super().__init__(f"Unsupported file format: {extension or '(none)'}")


class StatementDecodeError(StatementError):
    """Malformed CSV, Excel, JSON or PDF content"""


class OcrInsufficientTextError(StatementError):
    """A scanned PDF did not yield enough text even after OCR"""

    def __init__(self, length: int, minimum: int):
        self.length = length
        self.minimum = minimum
        super().__init__(
            f"Could not read enough text from the PDF ({length} characters after OCR, "
            f"need at least {minimum}). Please upload a higher quality scan or a "
            f"text-based PDF, CSV or Excel export."
        )


class OcrFailedError(StatementError):
    """OCR engine missing, misconfigured or timed out"""


class NoTransactionsFoundError(StatementError):
    """Nothing survived normalization"""

    def __init__(self, message: str = 'No transactions found in file'):
        super().__init__(message)
