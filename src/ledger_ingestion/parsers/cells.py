"""
Coercion of raw spreadsheet cells into strings, amounts and calendar dates.

Workbooks are opened with `data_only=True`, so formula cells already hold their
cached result; what remains to unwrap here are rich-text runs and the various
textual encodings people (and upstream tools) use for money and dates.
"""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Callable
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any

from dateutil import parser as dateutil_parser
from openpyxl.cell.rich_text import CellRichText, TextBlock

ZERO = Decimal("0")

EXCEL_EPOCH = date(1899, 12, 30)
# Serial 25569 is 1970-01-01; anything at or below it is read as a plain number.
SERIAL_DATE_THRESHOLD = 25569

_CURRENCY_SYMBOLS = re.compile(r"R\$|US\$|[$€£]")
_DAY_FIRST_PATTERN = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_ISO_PREFIX_PATTERN = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})")
_VERBOSE_PATTERN = re.compile(r"^\w{3}\s+(\w{3})\s+(\d{1,2})\s+(\d{4})", re.IGNORECASE)
_NUMERIC_PATTERN = re.compile(r"^[\d\s.,+-]+$")

_ENGLISH_MONTH_ABBREVIATIONS = {
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "may": 5,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}


def cell_text(value: Any) -> str:
    """Render a raw cell as a trimmed display string; empty cells become ''."""

    if value is None:
        return ""
    if isinstance(value, CellRichText):
        return "".join(block.text if isinstance(block, TextBlock) else str(block) for block in value).strip()
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value).strip()


def cell_date_value(value: Any) -> date | str | None:
    """
    Like `cell_text`, but hand back date cells as dates instead of stringifying them.
    """

    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = cell_text(value)
    return text or None


def fold_text(value: Any) -> str:
    """Lower-case, trim and strip diacritics so 'Descrição' matches 'descricao'."""

    text = value if isinstance(value, str) else cell_text(value)
    decomposed = unicodedata.normalize("NFD", text.strip().lower())
    return "".join(char for char in decomposed if not unicodedata.combining(char))


def parse_currency(value: Any) -> Decimal:
    """
    Coerce a monetary cell using the source locale convention ("R$ 1.234,56").

    Periods are thousands separators and the comma is the decimal mark. Anything
    unparseable yields zero; a single malformed cell must never abort an import.
    """

    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, (int, float, Decimal)):
        amount = Decimal(str(value))
        return amount if amount.is_finite() else ZERO

    cleaned = _CURRENCY_SYMBOLS.sub("", cell_text(value))
    cleaned = re.sub(r"\s", "", cleaned).replace(".", "").replace(",", ".", 1)
    if not cleaned:
        return ZERO
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return ZERO
    return amount if amount.is_finite() else ZERO


def parse_count(value: Any) -> int:
    amount = parse_currency(value)
    return int(amount) if amount > 0 else 0


def parse_date(value: Any) -> date | None:
    """
    Coerce a cell into a calendar date, trying each supported encoding in order.

    Returns None when no encoding applies; callers treat that as a missing date.
    """

    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = cell_text(value)
    if not text:
        return None
    for attempt in _TEXT_DATE_PARSERS:
        parsed = attempt(text)
        if parsed is not None:
            return parsed
    return None


def _parse_day_first(text: str) -> date | None:
    match = _DAY_FIRST_PATTERN.match(text)
    if not match:
        return None
    day, month, year = (int(part) for part in match.groups())
    return _safe_date(year, month, day)


def _parse_iso_prefix(text: str) -> date | None:
    match = _ISO_PREFIX_PATTERN.match(text)
    if not match:
        return None
    year, month, day = (int(part) for part in match.groups())
    return _safe_date(year, month, day)


def _parse_verbose(text: str) -> date | None:
    # e.g. "Tue Jan 20 2026 21:00:00 GMT-0300", left behind by an upstream stringify.
    match = _VERBOSE_PATTERN.match(text)
    if not match:
        return None
    month_name, day, year = match.groups()
    month = _ENGLISH_MONTH_ABBREVIATIONS.get(month_name.lower())
    if month is None:
        return None
    return _safe_date(int(year), month, int(day))


def _parse_serial(text: str) -> date | None:
    try:
        serial = float(text)
    except ValueError:
        return None
    if serial <= SERIAL_DATE_THRESHOLD:
        return None
    try:
        return EXCEL_EPOCH + timedelta(days=int(serial))
    except OverflowError:
        return None


def _parse_free_form(text: str) -> date | None:
    # Bare numbers were already handled by the serial rule, and text without any
    # digit ("March", "Total") would otherwise be completed with today's date.
    if _NUMERIC_PATTERN.match(text) or not any(char.isdigit() for char in text):
        return None
    try:
        return dateutil_parser.parse(text, dayfirst=True).date()
    except (ValueError, OverflowError):
        return None


def _safe_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


_TEXT_DATE_PARSERS: tuple[Callable[[str], date | None], ...] = (
    _parse_day_first,
    _parse_iso_prefix,
    _parse_verbose,
    _parse_serial,
    _parse_free_form,
)
