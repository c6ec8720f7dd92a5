"""
Date-of-birth and age resolution.

A fixed, ordered cascade of named strategies. Each strategy proposes at most
one birth date; the proposal must pass the plausibility gate in
validators.check_birth_date or the cascade moves on. The first accepted
proposal wins and age is always recomputed from it.

  1. mrz                 date decoded from the MRZ (supplied by the caller)
  2. labeled-date        "Date of Birth: 14/05/1990", "1990年5月14日", ...
  3. birth-year-mention  "born in 1990" → 1990-01-01
  4. year-heuristic      most recent 19xx/20[0-2]x year implying an adult
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import date

from .config import ExtractionSettings
from .dates import calculate_age, date_candidates
from .models import Strategy, ValidationFinding
from .normalize import ScanText
from .validators import check_birth_date

logger = logging.getLogger(__name__)


# ─── Patterns ────────────────────────────────────────────────────────

_DOB_LABEL = (
    r"(?<![A-Za-z])(?:date\s+of\s+birth|birth\s*date|d\.o\.b\.?|dob"
    r"|born(?:\s+on)?|birth|生年月日|出生日期|出生)"
)
_MONTH = r"(?:jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)[a-z]*\.?"
_NUMERIC_DATE = r"\d{1,4}[\s./\-]+\d{1,2}[\s./\-]+\d{1,4}"
_SEP = r"[\s:.,\-]+"

LABELED_DATE_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(src, re.IGNORECASE)
    for src in (
        # 生年月日: 1990年5月14日
        _DOB_LABEL + r"[\s:.,\-]*(\d{4}\s*年\s*\d{1,2}\s*月\s*\d{1,2}\s*日?)",
        # Date of Birth: 14/05/1990, DOB 1990-05-14
        _DOB_LABEL + _SEP + rf"({_NUMERIC_DATE})",
        # Born 14 May 1990
        _DOB_LABEL + _SEP + rf"(\d{{1,2}}[\s./\-]*{_MONTH}[\s./\-,]*\d{{2,4}})",
        # Date of birth: May 14, 1990
        _DOB_LABEL + _SEP + rf"({_MONTH}\s*\d{{1,2}},?\s+\d{{4}})",
        # 14.05.1990 (date of birth)
        rf"({_NUMERIC_DATE})[\s:.,\-]*\(?\s*" + _DOB_LABEL,
    )
)

BIRTH_YEAR_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(
        r"(?<![A-Za-z])(?:year\s+of\s+birth|birth\s+year|born|birth)"
        r"[\s:.,\-]+(?:in\s+)?(\d{4})\b",
        re.IGNORECASE,
    ),
    re.compile(
        r"\b(19\d{2}|20[0-2]\d)\b[\s:.,\-]+(?:[A-Za-z]+\s+){0,3}?(?:born|birth)",
        re.IGNORECASE,
    ),
)

_YEAR_RE = re.compile(r"\b(19\d{2}|20[0-2]\d)\b")


# ─── Data Structures ────────────────────────────────────────────────


@dataclass(frozen=True)
class BirthCandidate:
    """A birth date one strategy proposes, not yet validated."""

    date_of_birth: date
    strategy: Strategy


@dataclass(frozen=True)
class BirthResolution:
    """An accepted birth date with everything derived from it."""

    date_of_birth: date
    birth_year: int
    age: int
    strategy: Strategy


BirthStrategy = Callable[[ScanText, date, ExtractionSettings], BirthCandidate | None]


def _year_in_range(year: int, today: date, settings: ExtractionSettings) -> bool:
    return settings.min_birth_year < year <= today.year


# ─── Strategies ──────────────────────────────────────────────────────


def labeled_date(scan: ScanText, today: date, settings: ExtractionSettings) -> BirthCandidate | None:
    """First date next to a birth label whose year is in range."""
    for pattern in LABELED_DATE_PATTERNS:
        for match in pattern.finditer(scan.raw):
            for candidate in date_candidates(match.group(1)):
                if _year_in_range(candidate.year, today, settings):
                    logger.debug("Labeled DOB %r → %s", match.group(0), candidate)
                    return BirthCandidate(candidate, Strategy.LABELED_DATE)
    return None


def birth_year_mention(scan: ScanText, today: date, settings: ExtractionSettings) -> BirthCandidate | None:
    """An explicit birth year ("born in 1985"), approximated to January 1st."""
    for pattern in BIRTH_YEAR_PATTERNS:
        for match in pattern.finditer(scan.raw):
            year = int(match.group(1))
            if _year_in_range(year, today, settings):
                logger.debug("Birth year mention %r", match.group(0))
                return BirthCandidate(date(year, 1, 1), Strategy.BIRTH_YEAR_MENTION)
    return None


def year_heuristic(scan: ScanText, today: date, settings: ExtractionSettings) -> BirthCandidate | None:
    """The most recent year in the text that would make the holder an adult."""
    adult_years = [
        year
        for year in (int(y) for y in _YEAR_RE.findall(scan.raw))
        if calculate_age(date(year, 1, 1), today) >= settings.min_adult_age
    ]
    if not adult_years:
        return None
    return BirthCandidate(date(max(adult_years), 1, 1), Strategy.YEAR_HEURISTIC)


TEXT_STRATEGIES: tuple[BirthStrategy, ...] = (
    labeled_date,
    birth_year_mention,
    year_heuristic,
)


# ─── Resolver ────────────────────────────────────────────────────────


def resolve_birth(
    scan: ScanText,
    today: date,
    settings: ExtractionSettings,
    mrz_candidate: BirthCandidate | None = None,
    strategies: Sequence[BirthStrategy] = TEXT_STRATEGIES,
) -> tuple[BirthResolution | None, list[ValidationFinding]]:
    """Run the birth-date cascade.

    Args:
        scan: Normalized OCR text.
        today: The date ages are computed against.
        settings: Thresholds for the plausibility gate.
        mrz_candidate: Birth date decoded from the MRZ, tried first.
        strategies: Text strategies tried after the MRZ, in order.

    Returns:
        (accepted resolution or None, findings for discarded candidates)
    """
    findings: list[ValidationFinding] = []

    def from_mrz(*_: object) -> BirthCandidate | None:
        return mrz_candidate

    for strategy in (from_mrz, *strategies):
        candidate = strategy(scan, today, settings)
        if candidate is None:
            continue

        rejected = check_birth_date(candidate.date_of_birth, today, settings, candidate.strategy)
        if rejected:
            findings.extend(rejected)
            continue

        age = calculate_age(candidate.date_of_birth, today)
        logger.info("Birth date %s accepted from %s", candidate.date_of_birth, candidate.strategy.value)
        return (
            BirthResolution(
                date_of_birth=candidate.date_of_birth,
                birth_year=candidate.date_of_birth.year,
                age=age,
                strategy=candidate.strategy,
            ),
            findings,
        )

    return None, findings
