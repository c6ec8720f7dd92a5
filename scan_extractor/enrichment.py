"""
Nationality resolution and citizenship classification.

Nationality is never guessed. It either comes from the closed country table
below (keyed by ICAO three-letter code, country name or demonym) or is
passed through verbatim from explicit document text.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

# ─── Country Table ───────────────────────────────────────────────────
# ICAO 9303 code → (canonical country name, demonyms)

_COUNTRIES: dict[str, tuple[str, tuple[str, ...]]] = {
    "USA": ("United States", ("american", "united states of america", "us citizen")),
    "MYS": ("Malaysia", ("malaysian",)),
    "GBR": ("United Kingdom", ("british", "british citizen", "great britain")),
    "CAN": ("Canada", ("canadian",)),
    "AUS": ("Australia", ("australian",)),
    "NZL": ("New Zealand", ("new zealander", "new zealand citizen")),
    "DEU": ("Germany", ("german", "deutsch")),
    "FRA": ("France", ("french", "francaise")),
    "SGP": ("Singapore", ("singaporean", "singapore citizen")),
    "IDN": ("Indonesia", ("indonesian",)),
    "THA": ("Thailand", ("thai",)),
    "PHL": ("Philippines", ("filipino", "philippine")),
    "IND": ("India", ("indian",)),
    "CHN": ("China", ("chinese",)),
    "JPN": ("Japan", ("japanese",)),
    "KOR": ("South Korea", ("korean", "republic of korea")),
    "IRL": ("Ireland", ("irish",)),
    "NLD": ("Netherlands", ("dutch", "nederlandse")),
    "ESP": ("Spain", ("spanish", "espanola")),
    "ITA": ("Italy", ("italian", "italiana")),
    "MEX": ("Mexico", ("mexican", "mexicana")),
    "BRA": ("Brazil", ("brazilian", "brasileira")),
}

# Codes whose MRZ lines the locator searches for when no line looks like MRZ
LOCATOR_COUNTRY_CODES: tuple[str, ...] = (
    "USA", "MYS", "GBR", "CAN", "AUS", "NZL", "DEU", "FRA",
)

_LOOKUP: dict[str, str] = {}
for _code, (_name, _demonyms) in _COUNTRIES.items():
    _LOOKUP[_code.lower()] = _name
    _LOOKUP[_name.lower()] = _name
    for _demonym in _demonyms:
        _LOOKUP[_demonym] = _name

# Leading run of letters/spaces in a label value ("MALAYSIAN Sex: M" → "MALAYSIAN")
_LEADING_WORDS_RE = re.compile(r"[A-Za-z][A-Za-z .'\-]*")
_WHITESPACE_RE = re.compile(r"\s+")


# ─── Data Structures ────────────────────────────────────────────────


@dataclass
class NationalityMatch:
    """Result of a nationality resolution attempt."""

    original: str  # What the OCR said
    resolved: str  # Canonical name, or the original text when unmapped
    from_table: bool  # True when the closed table recognized it


# ─── Public API ──────────────────────────────────────────────────────


def nationality_for_code(country_code: str) -> str:
    """Map an MRZ country code to a country name.

    Unmapped codes pass through verbatim.
    """
    return _COUNTRIES.get(country_code.upper(), (country_code, ()))[0]


def resolve_nationality(raw: str) -> NationalityMatch | None:
    """Resolve explicit nationality text from a document label.

    Tries the whole leading word run against the table first, then each
    prefix of it ("MALAYSIAN CITIZEN" → "malaysian"). Text the table does not
    know is kept as written.

    Returns:
        NationalityMatch, or None if the value holds no letters at all.
    """
    match = _LEADING_WORDS_RE.search(raw)
    if not match:
        return None

    text = _WHITESPACE_RE.sub(" ", match.group(0)).strip(" .'-")
    if len(text) < 2:
        return None

    words = text.lower().split()
    for end in range(len(words), 0, -1):
        key = " ".join(words[:end])
        if key in _LOOKUP:
            return NationalityMatch(original=raw, resolved=_LOOKUP[key], from_table=True)

    return NationalityMatch(original=raw, resolved=text, from_table=False)


def classify_citizenship(nationality: str | None, citizen_countries: Iterable[str]) -> bool | None:
    """Decide citizenship from a resolved nationality.

    Returns:
        True/False when a nationality is known, None when it is absent.
    """
    if not nationality:
        return None
    wanted = {c.strip().lower() for c in citizen_countries}
    return nationality.strip().lower() in wanted
