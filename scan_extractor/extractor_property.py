"""
Deterministic pattern-based extraction of property deed fields.

Four independent pattern sets, one per field. Each is a prioritized list of
synonym regexes run through the shared PatternSet engine: whole text first,
then line by line.

Philosophy: It's better to extract nothing than to extract wrong data.
            Identifiers must contain a digit, or we keep looking.
"""

from __future__ import annotations

from .models import FieldProvenance, PropertyFields
from .normalize import ScanText
from .patterns import PatternSet, has_digit

# Identifier capture: starts alphanumeric, may contain dashes
_ID = r"([a-z0-9][a-z0-9\-]*)"
_ID_SEP = r"[:.# \t]*"
_SP = r"[ \t]*"
# Free-text capture that stops at a comma or line end, with optional
# comma-separated continuations for addresses. A value may sit on the next
# line, but never one that is itself "Some Label:".
_NOT_LABEL = r"(?![ \t]*[a-z][a-z \t]{0,39}:)"
_ADDRESS = rf"[:\s]*{_NOT_LABEL}([^,\n]{{5,}}(?:,[^,\n]+)*)"
_NAME = rf"[:\s]*{_NOT_LABEL}([^,\n]{{2,}})"


DEED_NUMBER_PATTERNS = PatternSet.compile(
    "deed_number",
    (
        rf"\bdeed{_SP}(?:number|no|#)?{_ID_SEP}{_ID}",
        rf"\btitle{_SP}(?:number|no|#)?{_ID_SEP}{_ID}",
        rf"\bproperty{_SP}id{_ID_SEP}{_ID}",
        rf"\breference{_SP}(?:number|no|#)?{_ID_SEP}{_ID}",
        rf"\brecording{_SP}(?:number|no|#)?{_ID_SEP}{_ID}",
        r"\b(d[0-9]{5,7})\b",
    ),
    accept=has_digit,
)

ADDRESS_PATTERNS = PatternSet.compile(
    "address",
    (
        rf"\bproperty{_SP}address{_ADDRESS}",
        rf"\baddress{_ADDRESS}",
        rf"\bproperty{_SP}location{_ADDRESS}",
        rf"\blocation{_ADDRESS}",
    ),
)

OWNER_NAME_PATTERNS = PatternSet.compile(
    "owner_name",
    (
        rf"\bowner{_SP}name{_NAME}",
        rf"\bowner{_SP}of{_SP}record{_NAME}",
        rf"\blegal{_SP}owner{_NAME}",
        rf"\bowner(?:\(s\))?{_NAME}",
        rf"\bgrantee(?:\(s\))?{_NAME}",
    ),
)

TAX_ID_PATTERNS = PatternSet.compile(
    "tax_id",
    (
        rf"\btax{_SP}(?:identification|id)(?:{_SP}(?:number|no|#))?{_ID_SEP}{_ID}",
        rf"\btax{_SP}(?:parcel|reference)(?:{_SP}(?:number|no|#))?{_ID_SEP}{_ID}",
        rf"\bparcel{_SP}(?:id|number|no){_ID_SEP}{_ID}",
        rf"\btax{_SP}number{_ID_SEP}{_ID}",
        rf"\bassessor'?s?{_SP}parcel{_SP}(?:number|no){_ID_SEP}{_ID}",
        rf"\bapn{_ID_SEP}{_ID}",
        r"\b(tx[\s:\-]*[0-9]{3,5})\b",
    ),
    accept=has_digit,
)

PROPERTY_PATTERN_SETS: tuple[PatternSet, ...] = (
    DEED_NUMBER_PATTERNS,
    ADDRESS_PATTERNS,
    OWNER_NAME_PATTERNS,
    TAX_ID_PATTERNS,
)


def extract_property_fields(scan: ScanText) -> tuple[PropertyFields, FieldProvenance]:
    """Extract deed fields from normalized OCR text.

    Returns:
        PropertyFields with every field that could be matched, and the
        provenance of each.
    """
    values: dict[str, str] = {}
    provenance: FieldProvenance = {}

    for pattern_set in PROPERTY_PATTERN_SETS:
        match = pattern_set.search(scan)
        if match is not None:
            values[pattern_set.name] = match.value
            provenance[pattern_set.name] = match.strategy

    return PropertyFields(**values), provenance
