"""
app/validators/value_coercers.py

Lenient type coercion for raw sales cell values.

Every coercer resolves to a documented default instead of raising; bad
cells never reject a row.
"""

from __future__ import annotations

import logging
import math
import re
from datetime import date, datetime, timedelta
from typing import Any, Callable

logger = logging.getLogger(__name__)

SPREADSHEET_EPOCH = datetime(1899, 12, 30)
MIN_YEAR_EXCLUSIVE = 1900
MAX_YEAR_EXCLUSIVE = 2100

_NON_NUMERIC_CHARS = re.compile(r"[^\d.,\-]")
_LEADING_FLOAT = re.compile(r"^-?(?:\d+(?:\.\d*)?|\.\d+)")

DateParts = tuple[int, int, int]


def _day_first(a: str, b: str, year: str) -> DateParts:
    return int(year), int(b), int(a)


def _month_first(a: str, b: str, year: str) -> DateParts:
    # A leading part above 12 can only be the day.
    if int(a) > 12:
        return int(year), int(b), int(a)
    return int(year), int(a), int(b)


def _year_first(year: str, month: str, day: str) -> DateParts:
    return int(year), int(month), int(day)


DATE_PATTERNS: tuple[tuple[str, re.Pattern[str], Callable[[str, str, str], DateParts]], ...] = (
    ("DD.MM.YYYY", re.compile(r"^(\d{1,2})\.(\d{1,2})\.(\d{4})$"), _day_first),
    ("DD/MM/YYYY", re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$"), _day_first),
    ("MM.DD.YYYY", re.compile(r"^(\d{1,2})\.(\d{1,2})\.(\d{4})$"), _month_first),
    ("MM/DD/YYYY", re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$"), _month_first),
    ("YYYY-MM-DD", re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$"), _year_first),
    ("DD-MM-YYYY", re.compile(r"^(\d{1,2})-(\d{1,2})-(\d{4})$"), _day_first),
)

TEXTUAL_DATE_FORMATS: tuple[str, ...] = (
    "%Y/%m/%d",
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d %H:%M",
    "%Y.%m.%d",
    "%d %B %Y",
    "%d %b %Y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%B %d %Y",
    "%b %d %Y",
    "%d-%b-%Y",
    "%a, %d %b %Y %H:%M:%S",
    "%a %b %d %Y",
)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_number(value: Any, default: float = 0.0) -> float:
    """
    Parse a loosely formatted number such as ``"1 200,50 руб."``.

    Everything except digits, ``.``, ``,`` and ``-`` is dropped, commas
    become decimal points and the longest numeric prefix is used.
    """

    if value is None or isinstance(value, bool):
        return default
    if _is_number(value):
        number = float(value)
        return default if math.isnan(number) or math.isinf(number) else number

    cleaned = _NON_NUMERIC_CHARS.sub("", str(value)).replace(",", ".")
    match = _LEADING_FLOAT.match(cleaned)
    if match is None:
        return default
    return float(match.group(0))


def parse_integer(value: Any, default: int = 1) -> int:
    """
    Floor of :func:`parse_number`; non-positive results fall back to *default*.
    """

    parsed = math.floor(parse_number(value, default))
    return parsed if parsed > 0 else default


def parse_discount(value: Any) -> float:
    """
    Return a discount fraction in [0, 1]; values above 1 are percentages.
    """

    number = parse_number(value, 0.0)
    if number > 1:
        number = number / 100
    return max(0.0, min(1.0, number))


def _within_bounds(candidate: date) -> bool:
    return MIN_YEAR_EXCLUSIVE < candidate.year < MAX_YEAR_EXCLUSIVE


def _from_serial(serial: float) -> date | None:
    try:
        candidate = (SPREADSHEET_EPOCH + timedelta(days=serial)).date()
    except OverflowError:
        return None
    return candidate if _within_bounds(candidate) else None


def _from_iso(text: str) -> date | None:
    try:
        candidate = date.fromisoformat(text)
    except ValueError:
        normalized = text[:-1] + "+00:00" if text.endswith("Z") else text
        try:
            candidate = datetime.fromisoformat(normalized).date()
        except ValueError:
            return None
    return candidate if _within_bounds(candidate) else None


def _from_textual(text: str) -> date | None:
    for fmt in TEXTUAL_DATE_FORMATS:
        try:
            candidate = datetime.strptime(text, fmt).date()
        except ValueError:
            continue
        if _within_bounds(candidate):
            return candidate
    return None


def _from_patterns(text: str) -> date | None:
    for _, pattern, to_parts in DATE_PATTERNS:
        match = pattern.match(text)
        if match is None:
            continue
        year, month, day = to_parts(*match.groups())
        try:
            candidate = date(year, month, day)
        except ValueError:
            continue
        if _within_bounds(candidate):
            return candidate
    return None


def parse_date(value: Any, *, today: date | None = None) -> date:
    """
    Coerce a raw cell into a calendar date.

    Accepted inputs, in order:

    * ``datetime`` / ``date`` objects (decoded spreadsheet date cells);
    * spreadsheet serial numbers counted from 1899-12-30;
    * ISO strings, then year-first slashed and English month-name forms
      (``2024/03/15``, ``15 March 2024``, ``Mar 15, 2024``), then
      ``DD.MM.YYYY``, ``DD/MM/YYYY``, ``MM.DD.YYYY``,
      ``MM/DD/YYYY``, ``YYYY-MM-DD`` and ``DD-MM-YYYY``.

    Only years strictly between 1900 and 2100 are accepted. Anything
    else resolves to *today* (the processing date).
    """

    fallback = today or date.today()

    if isinstance(value, datetime):
        parsed: date | None = value.date()
    elif isinstance(value, date):
        parsed = value
    elif _is_number(value):
        parsed = _from_serial(float(value)) if value > 1 else None
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        parsed = _from_iso(text) or _from_textual(text) or _from_patterns(text)
    else:
        parsed = None

    if parsed is None:
        if value is not None and str(value).strip():
            logger.debug("Unparseable date value=%r; using processing date %s", value, fallback)
        return fallback
    return parsed
