"""
Scan Extractor: deterministic field extraction from OCR-scanned documents.

Architecture: Normalize → MRZ → Label fill-in → DOB cascade → Citizenship
Philosophy:  Extract nothing rather than extract something wrong.
"""

from .config import ExtractionSettings
from .models import (
    DocumentType,
    FieldProvenance,
    IdentityFields,
    IdentityReport,
    PropertyFields,
    PropertyReport,
    Strategy,
)
from .pipeline import ExtractionPipeline, extract_identity, extract_property

__version__ = "1.0.0"

__all__ = [
    "DocumentType",
    "ExtractionPipeline",
    "ExtractionSettings",
    "FieldProvenance",
    "IdentityFields",
    "IdentityReport",
    "PropertyFields",
    "PropertyReport",
    "Strategy",
    "extract_identity",
    "extract_property",
]
