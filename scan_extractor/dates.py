"""
Calendar helpers shared by the MRZ decoder and the birth-date cascade.

All functions are pure: "today" is always passed in, never read from the
clock, so results are reproducible.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator
from datetime import date

from dateutil import parser as date_parser

# ─── OCR Digit Repair ────────────────────────────────────────────────
# Letters OCR commonly returns in place of digits inside numeric fields.

_DIGIT_CONFUSIONS = str.maketrans({
    "g": "9",
    "q": "9",
    "B": "8",
    "G": "6",
    "S": "5",
    "l": "1",
    "I": "1",
    "O": "0",
})

# A run of characters that could be digits once repaired
DIGITISH_CHARS = "0-9gqBGSlIO"

_CJK_DATE_RE = re.compile(r"[年月日]")
_NON_DATE_CHARS_RE = re.compile(r"[^\d/.\-]")
_SEPARATORS_RE = re.compile(r"[/.\-]+")

# Something shaped like a date inside a label value
DATE_TOKEN_RE = re.compile(
    r"\d{4}\s*年\s*\d{1,2}\s*月\s*\d{1,2}\s*日?"
    r"|\d{1,4}[\s./\-]+\d{1,2}[\s./\-]+\d{1,4}"
    r"|\d{1,2}[\s./\-]*[A-Za-z]{3,9}\.?[\s./\-,]*\d{2,4}"
    r"|[A-Za-z]{3,9}\.?\s+\d{1,2},?\s+\d{4}",
)


def repair_digits(text: str) -> str:
    """Map common OCR letter-for-digit confusions back to digits.

    Example:
        "9OO5l4" → "900514"
    """
    return text.translate(_DIGIT_CONFUSIONS)


# ─── Age & Century ───────────────────────────────────────────────────


def calculate_age(born: date, today: date) -> int:
    """Whole years between ``born`` and ``today``.

    One year less when today's month/day precedes the birthday.
    """
    age = today.year - born.year
    if (today.month, today.day) < (born.month, born.day):
        age -= 1
    return age


def resolve_century(two_digit_year: int, today: date, pivot_offset: int = 20) -> int:
    """Expand a two-digit MRZ year to four digits.

    Years above ``today.year % 100 + pivot_offset`` are taken to be in the
    1900s; everything else is in the 2000s.
    """
    if not 0 <= two_digit_year <= 99:
        raise ValueError(f"Not a two-digit year: {two_digit_year!r}")
    if two_digit_year > today.year % 100 + pivot_offset:
        return 1900 + two_digit_year
    return 2000 + two_digit_year


# ─── Free-Text Date Parsing ──────────────────────────────────────────


def normalize_date_text(text: str) -> str:
    """Collapse CJK glyphs, stray characters and mixed separators to '/'.

    Example:
        "1990年5月14日" → "1990/5/14"
        "14.05-1990"    → "14/05/1990"
    """
    text = _CJK_DATE_RE.sub("/", text.strip())
    text = _NON_DATE_CHARS_RE.sub("/", text)
    return _SEPARATORS_RE.sub("/", text).strip("/")


def _year_month_day(parts: list[str]) -> date | None:
    if len(parts) == 3 and len(parts[0]) == 4:
        return date(int(parts[0]), int(parts[1]), int(parts[2]))
    return None


def _day_month_year(parts: list[str]) -> date | None:
    if len(parts) == 3 and len(parts[2]) == 4:
        return date(int(parts[2]), int(parts[1]), int(parts[0]))
    return None


def _month_day_year(parts: list[str]) -> date | None:
    if len(parts) == 3 and len(parts[2]) == 4:
        return date(int(parts[2]), int(parts[0]), int(parts[1]))
    return None


_NUMERIC_LAYOUTS = (_year_month_day, _day_month_year, _month_day_year)


def date_candidates(text: str) -> Iterator[date]:
    """Yield every calendar date ``text`` can be read as, most likely first.

    Order: YYYY/MM/DD, DD/MM/YYYY, MM/DD/YYYY, then dateutil's generic
    parser on the original text (handles month names and two-digit years).
    Layouts that produce an impossible date are skipped.
    """
    parts = normalize_date_text(text).split("/")
    for layout in _NUMERIC_LAYOUTS:
        try:
            parsed = layout(parts)
        except ValueError:
            continue
        if parsed is not None:
            yield parsed

    try:
        yield date_parser.parse(text, dayfirst=True, fuzzy=True).date()
    except (ValueError, OverflowError):
        return


def first_date_in(text: str, accept: Callable[[date], bool] | None = None) -> date | None:
    """Find the first date-shaped token in ``text`` and parse it.

    Args:
        text: Free text, e.g. a label value like "12/03/2031 Sex: M".
        accept: Optional predicate over candidate dates.
    """
    for token in DATE_TOKEN_RE.finditer(text):
        for candidate in date_candidates(token.group(0)):
            if accept is None or accept(candidate):
                return candidate
    return None
