"""
File Decoder Module - Turn uploaded statement bytes into rows or text lines

CSV, Excel and JSON become a list of row dicts keyed by the header names.
PDF becomes a list of non-empty text lines (OCR is used for scanned files).
"""

import csv
import io
import json
from typing import Dict, List, Optional, Union

import numpy as np
import pandas as pd

from config import SUPPORTED_BANK_EXTENSIONS
from .exceptions import StatementDecodeError, UnsupportedFormatError
from .pdf_parser import PDFParser

CSV_ENCODINGS = ['utf-8-sig', 'latin-1']
SUPPORTED_EXTENSIONS = tuple(ext.lstrip('.') for ext in SUPPORTED_BANK_EXTENSIONS)


def normalize_extension(extension: Optional[str]) -> str:
    """'.CSV' -> 'csv'"""
    return (extension or '').strip().lstrip('.').lower()


def decode(buffer: bytes, extension: str,
           pdf_parser: Optional[PDFParser] = None) -> Union[List[Dict], List[str]]:
    """
    Decode a statement file

    Args:
        buffer: Raw file bytes
        extension: 'csv', 'xlsx', 'xls', 'json' or 'pdf'
        pdf_parser: Parser used for PDF text extraction (a new one if None)

    Returns:
        List of row dicts, or list of text lines for PDF

    Raises:
        UnsupportedFormatError: Unknown extension
        StatementDecodeError: Empty or malformed file
    """
    ext = normalize_extension(extension)
    if ext not in SUPPORTED_EXTENSIONS:
        raise UnsupportedFormatError(ext)

    if not buffer:
        raise StatementDecodeError("Uploaded file is empty")

    if ext == 'csv':
        return decode_csv(buffer)
    elif ext in ('xlsx', 'xls'):
        return decode_excel(buffer, ext)
    elif ext == 'json':
        return decode_json(buffer)
    else:
        parser = pdf_parser or PDFParser()
        text = parser.extract_text(buffer)
        return [line.strip() for line in text.split('\n') if line.strip()]


def decode_csv(buffer: bytes) -> List[Dict]:
    """Parse CSV with a header row; numeric cells become numbers"""
    for encoding in CSV_ENCODINGS:
        try:
            text = buffer.decode(encoding)
            break
        except UnicodeDecodeError:
            continue
    else:
        raise StatementDecodeError("Could not decode CSV file")

    _check_field_counts(text)

    try:
        df = pd.read_csv(io.StringIO(text), index_col=False, skip_blank_lines=True)
    except pd.errors.EmptyDataError as e:
        raise StatementDecodeError("CSV file has no header row") from e
    except pd.errors.ParserError as e:
        raise StatementDecodeError(f"CSV parsing error: {e}") from e

    return _dataframe_to_records(df)


def _check_field_counts(text: str):
    """Every data row must have exactly as many fields as the header"""
    reader = csv.reader(io.StringIO(text))
    header = next((row for row in reader if row), None)
    if header is None:
        return

    for row in reader:
        if not row or (len(row) == 1 and not row[0].strip()):
            continue
        if len(row) != len(header):
            kind = 'few' if len(row) < len(header) else 'many'
            raise StatementDecodeError(
                f"CSV parsing error: too {kind} fields on line {reader.line_num} "
                f"(expected {len(header)}, saw {len(row)})"
            )


def decode_excel(buffer: bytes, ext: str = 'xlsx') -> List[Dict]:
    """Read the first worksheet; the first row is the header"""
    engine = 'xlrd' if ext == 'xls' else 'openpyxl'
    try:
        df = pd.read_excel(io.BytesIO(buffer), sheet_name=0, engine=engine)
    except Exception as e:
        raise StatementDecodeError(f"Excel parsing error: {e}") from e

    return _dataframe_to_records(df)


def decode_json(buffer: bytes) -> List[Dict]:
    """The file must hold a JSON array of objects"""
    try:
        data = json.loads(buffer.decode('utf-8-sig'))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise StatementDecodeError(f"JSON parsing error: {e}") from e

    if not isinstance(data, list):
        raise StatementDecodeError("JSON statement must be an array of transaction objects")

    for i, row in enumerate(data):
        if not isinstance(row, dict):
            raise StatementDecodeError(f"JSON statement item {i} is not an object")

    return data


def _dataframe_to_records(df: pd.DataFrame) -> List[Dict]:
    """Rows as dicts of native Python values, missing cells as ''"""
    df = df.dropna(how='all')
    columns = [str(col) for col in df.columns]

    records = []
    for row in df.itertuples(index=False, name=None):
        records.append({col: _to_native(value) for col, value in zip(columns, row)})
    return records


def _to_native(value):
    if value is None or value is pd.NaT:
        return ''
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and value != value:
        return ''
    return value
