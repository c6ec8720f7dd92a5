"""
Scan Extractor — FastAPI Server
================================

RESTful API for extracting structured fields from OCR-scanned documents.

Endpoints:
    POST /extract/identity          Extract identity fields from raw OCR text
    POST /extract/identity/file     Upload a text file of identity OCR output
    POST /extract/property          Extract deed fields from raw OCR text
    POST /extract/property/file     Upload a text file of deed OCR output
    GET  /health                    Health check / readiness probe

Run:
    uvicorn api:app --reload              # Dev (http://localhost:8000)
    uvicorn api:app --host 0.0.0.0        # Production

Docs:
    http://localhost:8000/docs             # Swagger UI (auto-generated)
    http://localhost:8000/redoc            # ReDoc (alternative)
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, UploadFile
from pydantic import BaseModel, Field

from scan_extractor import __version__
from scan_extractor.config import ExtractionSettings
from scan_extractor.models import (
    DocumentType,
    IdentityReport,
    PropertyReport,
    Severity,
)
from scan_extractor.pipeline import ExtractionPipeline

load_dotenv()

logger = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = 1_048_576


# ─── Application Lifespan (pre-warm pipeline) ───────────────────────

_pipeline: ExtractionPipeline | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the pipeline from SCAN_EXTRACTOR_* settings on startup."""
    global _pipeline  # noqa: PLW0603
    settings = ExtractionSettings.from_env()
    logger.info("Starting extraction pipeline with %s", settings)
    _pipeline = ExtractionPipeline(settings)
    yield
    _pipeline = None


# ─── FastAPI App ─────────────────────────────────────────────────────

app = FastAPI(
    title="Scan Extractor API",
    description=(
        "Deterministic field extraction from OCR-scanned passports, driver "
        "licenses, ID cards and property deeds. MRZ decoding, label-based "
        "fallbacks and a date-of-birth cascade with per-field provenance."
    ),
    version=__version__,
    lifespan=lifespan,
)


# ─── Request / Response Schemas ─────────────────────────────────────


class IdentityRequest(BaseModel):
    """Request body for the /extract/identity endpoint."""

    raw_ocr_text: str = Field(
        ...,
        description="The raw OCR text of an identity document.",
        json_schema_extra={
            "example": (
                "PASSPORT  MALAYSIA\n"
                "Passport No. A12345678\n"
                "Date of Birth: 14 MAY 1990\n"
                "P<MYSDOE<<JOHN<BIN<ABDULLAH<<<<<<<<<<<<<<<<<"
            )
        },
    )
    document_type: DocumentType = Field(
        DocumentType.PASSPORT,
        description="Which kind of document the text came from.",
    )


class PropertyRequest(BaseModel):
    """Request body for the /extract/property endpoint."""

    raw_ocr_text: str = Field(
        ...,
        description="The raw OCR text of a property deed.",
        json_schema_extra={
            "example": (
                "GRANT DEED\n"
                "Deed Number: D123456\n"
                "Property Address: 12 Oak Street, Springfield\n"
                "Owner Name: Jane Doe\n"
                "Tax ID: TX-4821"
            )
        },
    )


class IdentityResponse(IdentityReport):
    """Identity report plus summary counts."""

    fields_found: int
    warning_count: int


class PropertyResponse(PropertyReport):
    """Property report plus summary counts."""

    fields_found: int
    warning_count: int


class HealthResponse(BaseModel):
    status: str
    version: str
    document_types: list[DocumentType]


# ─── Helpers ─────────────────────────────────────────────────────────


def _get_pipeline() -> ExtractionPipeline:
    if _pipeline is None:
        raise HTTPException(status_code=503, detail="Pipeline not initialised")
    return _pipeline


def _summary(report: IdentityReport | PropertyReport) -> dict:
    return {
        "fields_found": len(report.fields.model_dump(exclude_none=True)),
        "warning_count": sum(1 for f in report.findings if f.severity == Severity.WARNING),
    }


def _build_identity_response(report: IdentityReport) -> IdentityResponse:
    return IdentityResponse(**report.model_dump(), **_summary(report))


def _build_property_response(report: PropertyReport) -> PropertyResponse:
    return PropertyResponse(**report.model_dump(), **_summary(report))


async def _read_upload(file: UploadFile) -> str:
    """Read an uploaded file as UTF-8 text, enforcing the size limit."""
    if file.size and file.size > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="File too large (max 1 MB)")

    content = await file.read()
    if len(content) > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="File too large (max 1 MB)")
    try:
        raw_text = content.decode("utf-8")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="File must be UTF-8 encoded text")

    if not raw_text.strip():
        raise HTTPException(status_code=422, detail="File is empty")
    return raw_text


_UPLOAD_RESPONSES = {
    413: {"description": "File too large (max 1 MB)"},
    400: {"description": "File is not valid UTF-8 text"},
    422: {"description": "File is empty"},
    503: {"description": "Pipeline not yet initialised"},
}


# ─── Endpoints ───────────────────────────────────────────────────────


@app.post(
    "/extract/identity",
    summary="Extract identity fields from raw OCR text",
    tags=["Identity"],
    responses={503: {"description": "Pipeline not yet initialised"}},
)
def extract_identity(request: IdentityRequest) -> IdentityResponse:
    """Run the identity pipeline on raw OCR text of a passport, driver
    license or ID card.

    Returns:
    - **fields**: every field a strategy could extract (absent fields are null)
    - **provenance**: which strategy produced each field
    - **findings**: rejected candidates and fields that were not found
    - **mrz_line**: the MRZ name line that was decoded, if any
    """
    pipeline = _get_pipeline()
    report = pipeline.extract_identity(request.raw_ocr_text, request.document_type)
    return _build_identity_response(report)


@app.post(
    "/extract/identity/file",
    summary="Extract identity fields from an uploaded text file",
    tags=["Identity"],
    responses=_UPLOAD_RESPONSES,
)
async def extract_identity_file(
    file: UploadFile,
    document_type: DocumentType = DocumentType.PASSPORT,
) -> IdentityResponse:
    """Upload a `.txt` file containing raw OCR output of an identity document.

    Accepts any UTF-8 text file up to 1 MB.
    """
    raw_text = await _read_upload(file)
    pipeline = _get_pipeline()
    report = await asyncio.to_thread(pipeline.extract_identity, raw_text, document_type)
    return _build_identity_response(report)


@app.post(
    "/extract/property",
    summary="Extract deed fields from raw OCR text",
    tags=["Property"],
    responses={503: {"description": "Pipeline not yet initialised"}},
)
def extract_property(request: PropertyRequest) -> PropertyResponse:
    """Run the property pattern sets on raw OCR text of a deed."""
    pipeline = _get_pipeline()
    report = pipeline.extract_property(request.raw_ocr_text)
    return _build_property_response(report)


@app.post(
    "/extract/property/file",
    summary="Extract deed fields from an uploaded text file",
    tags=["Property"],
    responses=_UPLOAD_RESPONSES,
)
async def extract_property_file(file: UploadFile) -> PropertyResponse:
    """Upload a `.txt` file containing raw OCR output of a deed.

    Accepts any UTF-8 text file up to 1 MB.
    """
    raw_text = await _read_upload(file)
    pipeline = _get_pipeline()
    report = await asyncio.to_thread(pipeline.extract_property, raw_text)
    return _build_property_response(report)


@app.get(
    "/health",
    summary="Health check",
    tags=["System"],
    responses={503: {"description": "Pipeline not yet initialised"}},
)
def health_check() -> HealthResponse:
    """Returns service status and supported document types."""
    _get_pipeline()
    return HealthResponse(
        status="healthy",
        version=__version__,
        document_types=list(DocumentType),
    )
