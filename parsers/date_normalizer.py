"""
Date Normalizer - Convert bank statement dates to YYYYMMDD

Numeric dates are read day-month-year (Indian statement convention),
never month-day-year.
"""

import re
from datetime import date, datetime
from typing import Optional

from config import CANONICAL_DATE_FORMAT, DATE_FORMATS_TO_TRY

EIGHT_DIGITS = re.compile(r'^\d{8}$')
DAY_MONTH_YEAR = re.compile(r'^(\d{1,2})[/-](\d{1,2})[/-](\d{4})$')
YEAR_MONTH_DAY = re.compile(r'^(\d{4})[/-](\d{1,2})[/-](\d{1,2})$')


def normalize_date(value) -> Optional[str]:
    """
    Normalize a date value to 'YYYYMMDD'

    Args:
        value: String, int, float, date or datetime as read from a statement

    Returns:
        8-digit date string, or None if the value is not a valid date
    """
    if value is None or isinstance(value, bool):
        return None

    # Excel cells and pandas timestamps
    if isinstance(value, (datetime, date)):
        try:
            return value.strftime(CANONICAL_DATE_FORMAT)
        except ValueError:
            # NaT and out-of-range timestamps
            return None

    # Type-inferred CSV cells: 20240305 or 20240305.0
    if isinstance(value, float):
        if value != value or not value.is_integer():
            return None
        value = int(value)

    date_str = str(value).strip()
    if not date_str:
        return None

    if EIGHT_DIGITS.match(date_str):
        return date_str

    match = DAY_MONTH_YEAR.match(date_str)
    if match:
        day, month, year = match.groups()
        return _build_date(int(year), int(month), int(day))

    match = YEAR_MONTH_DAY.match(date_str)
    if match:
        year, month, day = match.groups()
        return _build_date(int(year), int(month), int(day))

    return _parse_generic(date_str)


def _build_date(year: int, month: int, day: int) -> Optional[str]:
    """Build YYYYMMDD from parts, None for impossible dates like 31/02"""
    try:
        return date(year, month, day).strftime(CANONICAL_DATE_FORMAT)
    except ValueError:
        return None


def _parse_generic(date_str: str) -> Optional[str]:
    """Fallback for textual and timestamp dates"""
    try:
        return datetime.fromisoformat(date_str).strftime(CANONICAL_DATE_FORMAT)
    except ValueError:
        pass

    for fmt in DATE_FORMATS_TO_TRY:
        try:
            dt = datetime.strptime(date_str, fmt)
        except ValueError:
            continue
        return dt.strftime(CANONICAL_DATE_FORMAT)

    return None
