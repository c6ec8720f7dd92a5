"""
Label-based extraction of identity document fields.

Used for whatever the MRZ did not provide: printed names, nationality,
document numbers and issue/expiry dates. Every field has an ordered list of
label synonyms; the document type only decides which synonyms are tried
first. Values are cut out of the original-case lines, then cleaned and
checked before they are accepted.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Generic, TypeVar

from .config import ExtractionSettings
from .dates import first_date_in
from .enrichment import resolve_nationality
from .extractor_label import match_label
from .models import DocumentType, Strategy
from .normalize import ScanText, normalize_label
from .validators import is_plausible_expiry_date, is_plausible_issuance_date

T = TypeVar("T")

_NAME_RE = re.compile(r"[A-Za-z][A-Za-z .'\-]*")
_DOCUMENT_NUMBER_RE = re.compile(r"\b([A-Za-z0-9][A-Za-z0-9\-]{4,19})\b")

# Words that are labels, not names
_NAME_STOPWORDS = frozenset({
    "name", "names", "full name", "surname", "given name", "given names",
    "sex", "nationality", "date of birth",
})
_MAX_NAME_WORDS = 6


# ─── Label Tables ────────────────────────────────────────────────────


@dataclass(frozen=True)
class LabelTable:
    """Label synonyms for one field, grouped by the document type that
    prints them."""

    common: tuple[str, ...]
    by_type: dict[DocumentType, tuple[str, ...]] = field(default_factory=dict)

    def labels_for(self, document_type: DocumentType) -> list[str]:
        """Labels in trial order: this document type's, common, then the rest."""
        ordered = [*self.by_type.get(document_type, ()), *self.common]
        for other_type, labels in self.by_type.items():
            if other_type != document_type:
                ordered.extend(labels)
        return list(dict.fromkeys(ordered))


FULL_NAME_LABELS = LabelTable(common=("full name", "name of holder", "holder name"))
FALLBACK_NAME_LABELS = LabelTable(common=("name",))
SURNAME_LABELS = LabelTable(common=("surname", "last name", "family name"))
GIVEN_NAME_LABELS = LabelTable(common=("given names", "given name", "first name"))

NATIONALITY_LABELS = LabelTable(
    common=("nationality", "citizenship", "country of citizenship"),
)

DOCUMENT_NUMBER_LABELS = LabelTable(
    common=("document no", "document number", "doc no"),
    by_type={
        DocumentType.PASSPORT: ("passport no", "passport number", "passport #"),
        DocumentType.DRIVER_LICENSE: (
            "license no", "licence no", "license number", "licence number", "dl no",
        ),
        DocumentType.ID_CARD: (
            "identity card no", "id card no", "id no", "id number", "card no", "nric",
        ),
    },
)

ISSUANCE_DATE_LABELS = LabelTable(
    common=("date of issue", "issue date", "date issued", "issued on", "issued"),
)

EXPIRY_DATE_LABELS = LabelTable(
    common=(
        "date of expiry", "expiry date", "expiration date", "date of expiration",
        "expires on", "expires", "valid until", "exp",
    ),
)


@dataclass(frozen=True)
class LabeledValue(Generic[T]):
    value: T
    strategy: Strategy


# ─── Value Cleaners ─────────────────────────────────────────────────
# Each returns the cleaned value, or None to reject the candidate.


def clean_name(raw: str) -> str | None:
    """Keep the leading run of name characters; reject label words and noise."""
    match = _NAME_RE.search(raw)
    if not match:
        return None
    words = match.group(0).split()
    # "JANE DOE  Sex: F": a word directly followed by ':' is the next label
    if raw[match.end():match.end() + 1] == ":":
        words = words[:-1]
    name = " ".join(words).strip(" .'-")
    if sum(ch.isalpha() for ch in name) < 2:
        return None
    if normalize_label(name) in _NAME_STOPWORDS:
        return None
    if len(name.split()) > _MAX_NAME_WORDS:
        return None
    return name


def clean_document_number(raw: str) -> str | None:
    """First token of 5–20 alphanumerics/dashes that contains a digit."""
    for match in _DOCUMENT_NUMBER_RE.finditer(raw):
        token = match.group(1)
        if any(ch.isdigit() for ch in token):
            return token.upper()
    return None


def clean_nationality(raw: str) -> str | None:
    match = resolve_nationality(raw)
    return match.resolved if match else None


# ─── Lookup ─────────────────────────────────────────────────────────


def _lookup(
    labels: Sequence[str],
    scan: ScanText,
    clean: Callable[[str], T | None],
) -> LabeledValue[T] | None:
    for label in labels:
        match = match_label(
            label, scan.lines, scan.text, accept=lambda v: clean(v) is not None
        )
        if match is not None:
            value = clean(match.value)
            if value is not None:
                return LabeledValue(value, match.strategy)
    return None


# ─── Field Extractors ───────────────────────────────────────────────


def extract_full_name(scan: ScanText, document_type: DocumentType) -> LabeledValue[str] | None:
    """Printed holder name.

    Order: an explicit full-name label, then surname + given names printed
    separately, then a bare "name" label.
    """
    found = _lookup(FULL_NAME_LABELS.labels_for(document_type), scan, clean_name)
    if found is not None:
        return found

    surname = _lookup(SURNAME_LABELS.labels_for(document_type), scan, clean_name)
    given = _lookup(GIVEN_NAME_LABELS.labels_for(document_type), scan, clean_name)
    if surname is not None and given is not None:
        return LabeledValue(f"{given.value} {surname.value}", surname.strategy)

    return _lookup(FALLBACK_NAME_LABELS.labels_for(document_type), scan, clean_name)


def extract_nationality(scan: ScanText, document_type: DocumentType) -> LabeledValue[str] | None:
    return _lookup(NATIONALITY_LABELS.labels_for(document_type), scan, clean_nationality)


def extract_document_number(scan: ScanText, document_type: DocumentType) -> LabeledValue[str] | None:
    return _lookup(DOCUMENT_NUMBER_LABELS.labels_for(document_type), scan, clean_document_number)


def extract_issuance_date(
    scan: ScanText,
    document_type: DocumentType,
    today: date,
    settings: ExtractionSettings,
) -> LabeledValue[date] | None:
    def clean(raw: str) -> date | None:
        return first_date_in(raw, lambda d: is_plausible_issuance_date(d, today, settings))

    return _lookup(ISSUANCE_DATE_LABELS.labels_for(document_type), scan, clean)


def extract_expiry_date(
    scan: ScanText,
    document_type: DocumentType,
    today: date,
    settings: ExtractionSettings,
) -> LabeledValue[date] | None:
    def clean(raw: str) -> date | None:
        return first_date_in(raw, lambda d: is_plausible_expiry_date(d, today, settings))

    return _lookup(EXPIRY_DATE_LABELS.labels_for(document_type), scan, clean)
