"""
Extraction pipeline: orchestrates the full workflow.

Flow:
  ┌─────────┐
  │ Raw OCR │
  └────┬────┘
       │
  ┌────▼──────┐
  │ Normalize │   ← lines + lower-cased copy
  └────┬──────┘
       │
  ┌────▼────┐
  │   MRZ   │   ← name, nationality, DOB (identity only)
  └────┬────┘
       │
  ┌────▼─────────┐
  │ Label fill-in│   ← only fields the MRZ left empty
  └────┬─────────┘
       │
  ┌────▼──────────┐
  │ DOB cascade   │   ← MRZ → labeled date → year mention → heuristic
  └────┬──────────┘
       │
  ┌────▼────────┐
  │ Citizenship │   ← closed country table
  └────┬────────┘
       │
  ┌────▼────┐
  │ Report  │   ← fields + provenance + findings
  └─────────┘

Design principles:
  - Extraction never fails: every miss is an absent field, every rejected
    candidate is a finding.
  - The first strategy to produce a plausible value owns the field.
  - Pure functions of (text, document type, today, settings). No I/O.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from pydantic import BaseModel

from .config import ExtractionSettings
from .enrichment import classify_citizenship
from .exceptions import ExtractionError
from .extractor_birth import BirthCandidate, resolve_birth
from .extractor_identity import (
    extract_document_number,
    extract_expiry_date,
    extract_full_name,
    extract_issuance_date,
    extract_nationality,
)
from .extractor_mrz import MRZDecoding, decode_mrz
from .extractor_property import extract_property_fields
from .models import (
    DocumentType,
    FieldProvenance,
    IdentityFields,
    IdentityReport,
    PropertyFields,
    PropertyReport,
    Severity,
    Strategy,
    ValidationFinding,
)
from .normalize import ScanText, normalize

logger = logging.getLogger(__name__)


# ─── Field Ledger ───────────────────────────────────────────────────


class _FieldLedger:
    """Accumulates field values; the first value recorded for a field wins."""

    def __init__(self) -> None:
        self.values: dict[str, Any] = {}
        self.provenance: FieldProvenance = {}

    def has(self, name: str) -> bool:
        return name in self.values

    def record(self, name: str, value: Any, strategy: Strategy) -> None:
        if value is None or name in self.values:
            return
        self.values[name] = value
        self.provenance[name] = strategy
        logger.debug("%s = %r (%s)", name, value, strategy.value)


def _missing_field_findings(model: type[BaseModel], present: dict[str, Any]) -> list[ValidationFinding]:
    return [
        ValidationFinding(
            severity=Severity.INFO,
            code="FIELD_NOT_FOUND",
            field=name,
            message=f"No strategy produced a plausible value for '{name}'.",
        )
        for name in model.model_fields
        if name not in present
    ]


def coerce_document_type(document_type: DocumentType | str | None) -> DocumentType:
    """Accept the enum or its string value; anything unknown means passport."""
    if isinstance(document_type, DocumentType):
        return document_type
    try:
        return DocumentType(str(document_type).strip().lower())
    except ValueError:
        logger.warning("Unknown document type %r, treating it as a passport", document_type)
        return DocumentType.PASSPORT


class ExtractionPipeline:
    """Orchestrates identity and property extraction.

    Usage:
        pipeline = ExtractionPipeline()
        report = pipeline.extract_identity(raw_ocr_text, DocumentType.PASSPORT)
        print(report.fields.full_name, report.provenance["full_name"])
    """

    def __init__(self, settings: ExtractionSettings | None = None):
        self.settings = settings or ExtractionSettings()

    # ─── Identity ───────────────────────────────────────────────────

    def extract_identity(
        self,
        raw_text: str | None,
        document_type: DocumentType | str = DocumentType.PASSPORT,
        today: date | None = None,
    ) -> IdentityReport:
        """Extract identity fields from the OCR text of an ID document.

        Args:
            raw_text: The raw OCR text. Empty or None yields an empty record.
            document_type: Which document the text came from.
            today: The date ages are computed against. Defaults to today.

        Returns:
            IdentityReport with fields, provenance and findings.
        """
        document_type = coerce_document_type(document_type)
        today = today or date.today()
        scan = normalize(raw_text)
        ledger = _FieldLedger()
        findings: list[ValidationFinding] = []
        mrz_line = None

        if scan.is_empty:
            logger.warning("Empty OCR text, nothing to extract")
        else:
            # ── Step 1: MRZ ─────────────────────────────────────────
            logger.info("Decoding MRZ (%d lines)...", len(scan.lines))
            mrz = self._decode_mrz(scan, today, findings)
            mrz_candidate = None
            if mrz is not None:
                mrz_line = mrz.line
                mrz_candidate = self._record_mrz(mrz, ledger)

            # ── Step 2: Label fill-in ───────────────────────────────
            logger.info("Filling remaining fields from labels...")
            self._fill_from_labels(scan, document_type, today, ledger)

            # ── Step 3: Date of birth / age ─────────────────────────
            logger.info("Resolving date of birth...")
            resolution, birth_findings = resolve_birth(
                scan, today, self.settings, mrz_candidate=mrz_candidate
            )
            findings.extend(birth_findings)
            if resolution is not None:
                ledger.record("date_of_birth", resolution.date_of_birth, resolution.strategy)
                ledger.record("birth_year", resolution.birth_year, resolution.strategy)
                ledger.record("age", resolution.age, resolution.strategy)

            # ── Step 4: Citizenship ─────────────────────────────────
            is_citizen = classify_citizenship(
                ledger.values.get("nationality"), self.settings.citizen_countries
            )
            ledger.record("is_citizen", is_citizen, Strategy.CITIZENSHIP_TABLE)

        findings.extend(_missing_field_findings(IdentityFields, ledger.values))
        logger.info(
            "Identity extraction done: %d/%d fields",
            len(ledger.values),
            len(IdentityFields.model_fields),
        )

        return IdentityReport(
            document_type=document_type,
            fields=IdentityFields(**ledger.values),
            provenance=ledger.provenance,
            findings=findings,
            mrz_line=mrz_line,
        )

    def _decode_mrz(
        self, scan: ScanText, today: date, findings: list[ValidationFinding]
    ) -> MRZDecoding | None:
        try:
            mrz = decode_mrz(scan, today, self.settings)
        except ExtractionError as e:
            logger.warning("MRZ decoding failed: %s", e)
            findings.append(
                ValidationFinding(
                    severity=Severity.WARNING,
                    code=e.code,
                    field="mrz",
                    message=str(e),
                    details=e.details,
                )
            )
            return None

        if mrz is None:
            findings.append(
                ValidationFinding(
                    severity=Severity.INFO,
                    code="MRZ_NOT_FOUND",
                    field="mrz",
                    message="No machine-readable zone found; using printed labels only.",
                )
            )
        return mrz

    def _record_mrz(self, mrz: MRZDecoding, ledger: _FieldLedger) -> BirthCandidate | None:
        """Record MRZ fields and return its birth date as a cascade candidate."""
        ledger.record("full_name", mrz.full_name, Strategy.MRZ)
        ledger.record("nationality", mrz.nationality, Strategy.MRZ)
        ledger.record("document_number", mrz.document_number, Strategy.MRZ)
        ledger.record("expiry_date", mrz.expiry_date, Strategy.MRZ)

        if mrz.birth is None:
            return None
        strategy = Strategy.MRZ_YEAR_ONLY if mrz.birth.approximate else Strategy.MRZ
        return BirthCandidate(mrz.birth.date_of_birth, strategy)

    def _fill_from_labels(
        self,
        scan: ScanText,
        document_type: DocumentType,
        today: date,
        ledger: _FieldLedger,
    ) -> None:
        lookups = {
            "full_name": lambda: extract_full_name(scan, document_type),
            "nationality": lambda: extract_nationality(scan, document_type),
            "document_number": lambda: extract_document_number(scan, document_type),
            "issuance_date": lambda: extract_issuance_date(
                scan, document_type, today, self.settings
            ),
            "expiry_date": lambda: extract_expiry_date(
                scan, document_type, today, self.settings
            ),
        }
        for name, lookup in lookups.items():
            if ledger.has(name):
                continue
            found = lookup()
            if found is not None:
                ledger.record(name, found.value, found.strategy)

    # ─── Property ───────────────────────────────────────────────────

    def extract_property(self, raw_text: str | None) -> PropertyReport:
        """Extract deed number, address, owner and tax ID from deed OCR text."""
        scan = normalize(raw_text)
        if scan.is_empty:
            logger.warning("Empty OCR text, nothing to extract")
            fields, provenance = PropertyFields(), {}
        else:
            logger.info("Running property pattern sets (%d lines)...", len(scan.lines))
            fields, provenance = extract_property_fields(scan)

        present = fields.model_dump(exclude_none=True)
        logger.info(
            "Property extraction done: %d/%d fields",
            len(present),
            len(PropertyFields.model_fields),
        )
        return PropertyReport(
            fields=fields,
            provenance=provenance,
            findings=_missing_field_findings(PropertyFields, present),
        )


# ─── Functional API ─────────────────────────────────────────────────

_default_pipeline = ExtractionPipeline()


def extract_identity(
    raw_text: str | None,
    document_type: DocumentType | str = DocumentType.PASSPORT,
    today: date | None = None,
) -> tuple[IdentityFields, FieldProvenance]:
    """Extract identity fields with default settings.

    Returns:
        (fields, provenance)
    """
    report = _default_pipeline.extract_identity(raw_text, document_type, today)
    return report.fields, report.provenance


def extract_property(raw_text: str | None) -> tuple[PropertyFields, FieldProvenance]:
    """Extract property deed fields with default settings.

    Returns:
        (fields, provenance)
    """
    report = _default_pipeline.extract_property(raw_text)
    return report.fields, report.provenance
