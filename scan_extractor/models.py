"""
Pydantic models for extracted document data.

Every field of an extracted record is Optional: absence means "no strategy
could derive a plausible value", never an error. The provenance mapping
records which strategy produced each present field.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


# ─── Enumerations ───────────────────────────────────────────────────


class DocumentType(str, Enum):
    """Kind of identity document the OCR text came from.

    Only changes which label synonyms are tried first.
    """

    PASSPORT = "passport"
    DRIVER_LICENSE = "driver_license"
    ID_CARD = "id_card"


class Strategy(str, Enum):
    """Identifier of the extraction strategy that produced a field."""

    MRZ = "mrz"
    MRZ_YEAR_ONLY = "mrz-year-only"
    EXPLICIT_LABEL = "explicit-label"
    BOUNDED_REGEX = "bounded-regex"
    LINE_START_LABEL = "line-start-label"
    FUZZY_LABEL = "fuzzy-label"
    LABELED_DATE = "labeled-date"
    BIRTH_YEAR_MENTION = "birth-year-mention"
    YEAR_HEURISTIC = "year-heuristic"
    PATTERN_TEXT = "pattern-text"
    PATTERN_LINE = "pattern-line"
    CITIZENSHIP_TABLE = "citizenship-table"


class Severity(str, Enum):
    """Severity of an extraction finding."""

    WARNING = "WARNING"  # A candidate was found but discarded
    INFO = "INFO"  # Informational observation


# Field name → strategy that produced it
FieldProvenance = dict[str, Strategy]


# ─── Finding ────────────────────────────────────────────────────────


class ValidationFinding(BaseModel):
    """A diagnostic note with severity, machine-readable code, and details."""

    severity: Severity
    code: str  # Machine-readable, e.g. "IMPLAUSIBLE_BIRTH_DATE"
    field: str  # Which record field this relates to
    message: str  # Human-readable explanation
    details: dict = Field(default_factory=dict)


# ─── Extracted Records ──────────────────────────────────────────────


class IdentityFields(BaseModel):
    """Fields pulled from a passport, driver license or ID card."""

    full_name: Optional[str] = None
    age: Optional[int] = None
    date_of_birth: Optional[date] = None
    birth_year: Optional[int] = None
    nationality: Optional[str] = None
    is_citizen: Optional[bool] = None
    document_number: Optional[str] = None
    issuance_date: Optional[date] = None
    expiry_date: Optional[date] = None


class PropertyFields(BaseModel):
    """Fields pulled from a property deed."""

    deed_number: Optional[str] = None
    address: Optional[str] = None
    owner_name: Optional[str] = None
    tax_id: Optional[str] = None


# ─── Reports ────────────────────────────────────────────────────────


class IdentityReport(BaseModel):
    """The full output of an identity extraction."""

    document_type: DocumentType
    fields: IdentityFields = Field(default_factory=IdentityFields)
    provenance: FieldProvenance = Field(default_factory=dict)
    findings: list[ValidationFinding] = Field(default_factory=list)
    mrz_line: Optional[str] = None  # The line the MRZ decoder worked on


class PropertyReport(BaseModel):
    """The full output of a property deed extraction."""

    fields: PropertyFields = Field(default_factory=PropertyFields)
    provenance: FieldProvenance = Field(default_factory=dict)
    findings: list[ValidationFinding] = Field(default_factory=list)
