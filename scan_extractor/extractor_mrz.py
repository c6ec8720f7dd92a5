"""
Machine-Readable Zone (MRZ) location and decoding.

The passport name line has the shape

    P<CCCSURNAME<<GIVEN<NAMES<<<<<<<<<<<<<<<<<<<<

where CCC is the issuing country code and '<' is filler. OCR routinely reads
'<' as K, L or C, and digits as look-alike letters, so both the locator and
the decoder work on repaired text. Check digits are not verified.

Locator strategy (first line that decodes wins):
  1. Lines longer than 20 chars containing P< (or its misreads PK/PL/PC),
     or written entirely in upper case — longest first.
  2. Lines where a known country code follows P</PK/PL/PC.
  3. Any P[<KLC]CCC... run after rewriting PK/PL/PC to P< — longest first.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date

from .config import ExtractionSettings
from .dates import DIGITISH_CHARS, repair_digits, resolve_century
from .enrichment import LOCATOR_COUNTRY_CODES, nationality_for_code
from .exceptions import MRZDecodeError
from .normalize import ScanText
from .validators import is_plausible_expiry_date

logger = logging.getLogger(__name__)

# ─── Patterns ────────────────────────────────────────────────────────

_PREFIXES = ("P<", "PK", "PL", "PC")
_MIN_LINE_LENGTH = 20

_PREFIX_MISREAD_RE = re.compile(r"P[KLC](?=[A-Z]{3})")
_ANY_PREFIX_MISREAD_RE = re.compile(r"P[KLC]")
_NAME_LINE_RE = re.compile(r"P[<KLC]([A-Z]{3})([A-Z<\s]+)")
_AGGRESSIVE_RE = re.compile(r"P[<KLC][A-Z]{3}[A-Z0-9<KLC]+")
_DATA_LINE_RE = re.compile(r"[A-Z0-9<]{30,46}")
_FILLER_SIGNAL_RE = re.compile(r"<|[KLC]{2,}")
_DOB_RUN_RE = re.compile(rf"(?=([{DIGITISH_CHARS}]{{6}}))")
_DIGITISH_RUN_RE = re.compile(rf"[{DIGITISH_CHARS}]{{6}}")
_TRAILING_FILLER_RE = re.compile(r"<{2,}[<KLC]*$")
_WHITESPACE_RE = re.compile(r"\s+")

# A six-character run must hold this many real digits to count as a date
_MIN_TRUE_DIGITS = 4

# Trailing filler misread as letters; names may genuinely end in two of them
# ("JACK", "BILL"), never in three
_MISREAD_TAIL_RE = re.compile(r"(?:[KLC]<*){3,}$")

# Malaysian patronymic connectors and their OCR-abbreviated forms
_MALAY_CONNECTORS = {"BIN": "BIN", "BINTI": "BINTI", "B": "BIN", "BT": "BINTI"}
_CONNECTOR_MISREAD_RE = re.compile(r"(?<=[A-Z])[KLC](BINTI|BIN|BT|B)[KLC](?=[A-Z])")


# ─── Data Structures ────────────────────────────────────────────────


@dataclass(frozen=True)
class MRZCandidate:
    """The pieces of a located name line, before interpretation."""

    line: str
    country_code: str
    name_portion: str
    dob_digits: str | None


@dataclass(frozen=True)
class MRZBirth:
    date_of_birth: date
    approximate: bool  # True when only the year could be read


@dataclass(frozen=True)
class MRZDecoding:
    """Everything the decoder could read from the MRZ."""

    line: str
    country_code: str
    nationality: str
    full_name: str | None
    birth: MRZBirth | None
    document_number: str | None = None
    expiry_date: date | None = None


# ─── Locator ─────────────────────────────────────────────────────────


def iter_mrz_lines(scan: ScanText) -> Iterator[tuple[int, str]]:
    """Yield ``(line index, candidate text)`` in locator priority order."""
    lines = scan.lines

    # ── Step 1: long lines that look like MRZ ───────────────────────
    shaped = [
        (i, line)
        for i, line in enumerate(lines)
        if len(line) > _MIN_LINE_LENGTH
        and (any(p in line for p in _PREFIXES) or line.upper() == line)
    ]
    for i, line in sorted(shaped, key=lambda item: len(item[1]), reverse=True):
        yield i, line

    # ── Step 2: known country code right after the prefix ───────────
    for code in LOCATOR_COUNTRY_CODES:
        for i, line in enumerate(lines):
            if any(f"{p}{code}" in line for p in _PREFIXES):
                yield i, line
                break

    # ── Step 3: aggressive regex over prefix-repaired text ──────────
    matches = []
    for i, line in enumerate(lines):
        repaired = _ANY_PREFIX_MISREAD_RE.sub("P<", line)
        matches.extend((i, m.group(0)) for m in _AGGRESSIVE_RE.finditer(repaired))
    for i, text in sorted(matches, key=lambda item: len(item[1]), reverse=True):
        yield i, text


# ─── Candidate Parsing ──────────────────────────────────────────────


def _repair_prefix(line: str) -> str:
    if "P<" in line:
        return line
    return _PREFIX_MISREAD_RE.sub("P<", line, count=1)


def _find_dob_digits(text: str) -> str | None:
    for match in _DOB_RUN_RE.finditer(text):
        run = match.group(1)
        if sum(ch.isdigit() for ch in run) >= _MIN_TRUE_DIGITS:
            return run
    return None


def parse_candidate(line: str) -> MRZCandidate:
    """Split a candidate line into country code, name portion and DOB digits.

    Raises:
        MRZDecodeError: If the line has no ``P<CCC`` name-line shape followed
            by filler.
    """
    fixed = _repair_prefix(line)
    match = _NAME_LINE_RE.search(fixed)
    if not match:
        raise MRZDecodeError(
            "Line does not have the P<CCC name-line shape",
            details={"line": line},
        )

    name_portion = match.group(2)
    if not _FILLER_SIGNAL_RE.search(name_portion):
        raise MRZDecodeError(
            "Candidate name line carries no '<' filler",
            details={"line": line},
        )

    return MRZCandidate(
        line=fixed,
        country_code=match.group(1),
        name_portion=name_portion,
        dob_digits=_find_dob_digits(fixed),
    )


# ─── Name Decoding ──────────────────────────────────────────────────


def repair_separators(portion: str) -> str:
    """Turn K/L/C misreads of '<' back into filler.

    Example:
        "SMITHKKJOHNKKKKKK" → "SMITH<<JOHN<<"
    """
    # Trailing run must be replaced before internal runs
    portion = re.sub(r"[KLC]{2,}$", "<<", portion)
    portion = re.sub(r"(?<=[A-Z0-9])[KLC]{2,}(?=[A-Z0-9])", "<<", portion)
    portion = re.sub(r"(?<=[A-Z0-9])[KLC](?=[A-Z0-9])", "<", portion)
    portion = re.sub(r"^[KLC](?=[A-Z0-9])", "<", portion)
    portion = re.sub(r"(?<=[A-Z0-9])[KLC]$", "<", portion)
    return portion


def _format_malaysian(name: str) -> str:
    parts = name.split(" ")
    for idx, part in enumerate(parts):
        if part in _MALAY_CONNECTORS:
            given = " ".join(parts[:idx])
            family = " ".join(parts[idx + 1:])
            return " ".join(p for p in (given, _MALAY_CONNECTORS[part], family) if p)
    return name


def decode_name(name_portion: str, country_code: str) -> str | None:
    """Decode the name portion of an MRZ name line into a readable name.

    An intact portion (one that still has its '<<' surname/given separator)
    only loses its trailing filler, including a misread run of three or more
    K/L/C, and on Malaysian passports the misread filler around a BIN/BINTI
    connector. Full K/L/C repair is reserved for portions whose separators
    were misread, since it also eats genuine K, L and C.

    Example:
        "DOE<<JOHNKBINKABDULLAH<<<<", "MYS" → "DOE JOHN BIN ABDULLAH"
    """
    portion = _WHITESPACE_RE.sub("", name_portion)
    if "<<" in portion:
        portion = _MISREAD_TAIL_RE.sub("", portion)
        portion = _TRAILING_FILLER_RE.sub("", portion)
        if country_code == "MYS":
            portion = _CONNECTOR_MISREAD_RE.sub(r"<\1<", portion)
    else:
        portion = repair_separators(portion)

    name = _WHITESPACE_RE.sub(" ", portion.replace("<", " ")).strip()
    if not name:
        return None
    if country_code == "MYS":
        name = _format_malaysian(name)
    return name


# ─── Date Decoding ──────────────────────────────────────────────────


def decode_birth(dob_digits: str, today: date, pivot_offset: int = 20) -> MRZBirth:
    """Read a YYMMDD birth date, repairing OCR digit confusions.

    Falls back to January 1st of the resolved year when month/day do not
    form a real date.

    Raises:
        MRZDecodeError: If even the two year digits are unreadable.
    """
    digits = repair_digits(dob_digits)
    try:
        year = resolve_century(int(digits[:2]), today, pivot_offset)
    except ValueError as e:
        raise MRZDecodeError(
            f"Unreadable MRZ birth year in {dob_digits!r}",
            details={"dob_digits": dob_digits},
        ) from e

    try:
        return MRZBirth(date(year, int(digits[2:4]), int(digits[4:6])), approximate=False)
    except ValueError:
        logger.debug("MRZ DOB %r is not a calendar date, keeping year %d", dob_digits, year)
        return MRZBirth(date(year, 1, 1), approximate=True)


def _decode_expiry(field: str) -> date | None:
    if not _DIGITISH_RUN_RE.fullmatch(field):
        return None
    digits = repair_digits(field)
    try:
        return date(2000 + int(digits[:2]), int(digits[2:4]), int(digits[4:6]))
    except ValueError:
        return None


def _data_line(scan: ScanText, index: int) -> str | None:
    """Return the TD3 second MRZ line following the name line, if present."""
    if index + 1 >= len(scan.lines):
        return None
    compact = _WHITESPACE_RE.sub("", scan.lines[index + 1]).upper()
    if compact.startswith("P<") or not _DATA_LINE_RE.fullmatch(compact):
        return None
    return compact


# ─── Public API ──────────────────────────────────────────────────────


def decode_mrz(
    scan: ScanText,
    today: date,
    settings: ExtractionSettings | None = None,
) -> MRZDecoding | None:
    """Locate and decode the MRZ in an OCR result.

    The expiry date read from the data line passes the same plausibility
    gate as a printed expiry date.

    Returns:
        MRZDecoding, or None when nothing in the text looks like an MRZ.

    Raises:
        MRZDecodeError: When lines carrying MRZ filler were found but none
            of them could be decoded.
    """
    settings = settings or ExtractionSettings()
    pivot_offset = settings.century_pivot_offset
    first_error: MRZDecodeError | None = None

    for index, line in iter_mrz_lines(scan):
        try:
            candidate = parse_candidate(line)
        except MRZDecodeError as e:
            if first_error is None and "<" in line:
                first_error = e
            continue

        logger.debug("MRZ name line: %s", candidate.line)
        data_line = _data_line(scan, index)

        birth = None
        document_number = None
        expiry_date = None
        if data_line is not None:
            logger.debug("MRZ data line: %s", data_line)
            number = data_line[0:9].replace("<", "")
            if number.isalnum() and any(ch.isdigit() for ch in number):
                document_number = number
            if _DIGITISH_RUN_RE.fullmatch(data_line[13:19]):
                birth = decode_birth(data_line[13:19], today, pivot_offset)
            expiry_date = _decode_expiry(data_line[21:27])
            if expiry_date is not None and not is_plausible_expiry_date(
                expiry_date, today, settings
            ):
                logger.debug("Discarding implausible MRZ expiry %s", expiry_date)
                expiry_date = None

        if birth is None and candidate.dob_digits:
            birth = decode_birth(candidate.dob_digits, today, pivot_offset)

        return MRZDecoding(
            line=candidate.line,
            country_code=candidate.country_code,
            nationality=nationality_for_code(candidate.country_code),
            full_name=decode_name(candidate.name_portion, candidate.country_code),
            birth=birth,
            document_number=document_number,
            expiry_date=expiry_date,
        )

    if first_error is not None:
        raise first_error
    return None
