"""
FastAPI endpoint tests for the Scan Extractor API.

Uses httpx + FastAPI TestClient — no real server needed.
"""

from __future__ import annotations

import api
import pytest
from api import app
from fastapi.testclient import TestClient

from scan_extractor.pipeline import ExtractionPipeline

client = TestClient(app)


@pytest.fixture(scope="module", autouse=True)
def _warm_pipeline() -> None:
    """Initialise the pipeline once for all API tests (bypasses lifespan)."""
    api._pipeline = ExtractionPipeline()
    yield  # type: ignore[misc]
    api._pipeline = None


# ─── Sample OCR text ────────────────────────────────────────────────

PASSPORT_OCR = (
    "PASSPORT\n"
    "Passport No. A12345678\n"
    "Nationality: MALAYSIAN\n"
    "P<MYSDOE<<JOHN<BIN<ABDULLAH<<<<<<<<<<<<<<<<<<<<<<<"
)

DEED_OCR = (
    "GRANT DEED\n"
    "Deed Number: D123456\n"
    "Property Address: 12 Oak Street, Springfield\n"
    "Owner Name: Jane Doe\n"
    "Tax ID: TX-4821"
)


class TestHealthEndpoint:
    def test_health_returns_200(self) -> None:
        resp = client.get("/health")
        assert resp.status_code == 200

    def test_health_response_shape(self) -> None:
        data = client.get("/health").json()
        assert data["status"] == "healthy"
        assert data["version"] == "1.0.0"
        assert data["document_types"] == ["passport", "driver_license", "id_card"]


class TestIdentityEndpoint:
    def test_extracts_mrz_fields(self) -> None:
        resp = client.post("/extract/identity", json={"raw_ocr_text": PASSPORT_OCR})
        assert resp.status_code == 200
        data = resp.json()
        assert data["document_type"] == "passport"
        assert data["fields"]["full_name"] == "DOE JOHN BIN ABDULLAH"
        assert data["fields"]["nationality"] == "Malaysia"
        assert data["fields"]["document_number"] == "A12345678"
        assert data["fields"]["is_citizen"] is False
        assert data["provenance"]["full_name"] == "mrz"
        assert data["provenance"]["document_number"] == "explicit-label"
        assert data["mrz_line"].startswith("P<MYS")

    def test_summary_counts(self) -> None:
        data = client.post("/extract/identity", json={"raw_ocr_text": PASSPORT_OCR}).json()
        assert data["fields_found"] == len(data["provenance"])
        assert data["warning_count"] == 0

    def test_missing_fields_listed(self) -> None:
        data = client.post("/extract/identity", json={"raw_ocr_text": PASSPORT_OCR}).json()
        missing = {f["field"] for f in data["findings"] if f["code"] == "FIELD_NOT_FOUND"}
        assert "date_of_birth" in missing
        assert "full_name" not in missing

    def test_document_type_accepted(self) -> None:
        resp = client.post(
            "/extract/identity",
            json={"raw_ocr_text": "DL No: D1234567", "document_type": "driver_license"},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["document_type"] == "driver_license"
        assert data["fields"]["document_number"] == "D1234567"

    def test_empty_text_returns_empty_record(self) -> None:
        resp = client.post("/extract/identity", json={"raw_ocr_text": ""})
        assert resp.status_code == 200
        assert resp.json()["fields_found"] == 0


class TestPropertyEndpoint:
    def test_extracts_deed_fields(self) -> None:
        resp = client.post("/extract/property", json={"raw_ocr_text": DEED_OCR})
        assert resp.status_code == 200
        data = resp.json()
        assert data["fields"] == {
            "deed_number": "D123456",
            "address": "12 Oak Street, Springfield",
            "owner_name": "Jane Doe",
            "tax_id": "TX-4821",
        }
        assert data["provenance"]["tax_id"] == "pattern-text"
        assert data["fields_found"] == 4
        assert data["findings"] == []


class TestRequestValidation:
    def test_empty_body_returns_422(self) -> None:
        resp = client.post("/extract/identity", json={})
        assert resp.status_code == 422

    def test_unknown_document_type_returns_422(self) -> None:
        resp = client.post(
            "/extract/identity",
            json={"raw_ocr_text": PASSPORT_OCR, "document_type": "boarding_pass"},
        )
        assert resp.status_code == 422

    def test_missing_content_type_returns_422(self) -> None:
        resp = client.post("/extract/property")
        assert resp.status_code == 422


class TestFileUploadEndpoints:
    def test_upload_identity_file(self) -> None:
        resp = client.post(
            "/extract/identity/file",
            files={"file": ("scan.txt", PASSPORT_OCR.encode("utf-8"), "text/plain")},
        )
        assert resp.status_code == 200
        assert resp.json()["fields"]["nationality"] == "Malaysia"

    def test_upload_identity_file_with_document_type(self) -> None:
        resp = client.post(
            "/extract/identity/file?document_type=id_card",
            files={"file": ("scan.txt", b"NRIC: S1234567D", "text/plain")},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["document_type"] == "id_card"
        assert data["fields"]["document_number"] == "S1234567D"

    def test_upload_property_file(self) -> None:
        resp = client.post(
            "/extract/property/file",
            files={"file": ("deed.txt", DEED_OCR.encode("utf-8"), "text/plain")},
        )
        assert resp.status_code == 200
        assert resp.json()["fields"]["deed_number"] == "D123456"

    def test_non_utf8_file_returns_400(self) -> None:
        resp = client.post(
            "/extract/property/file",
            files={"file": ("deed.txt", b"\xff\xfe\x00bad", "text/plain")},
        )
        assert resp.status_code == 400

    def test_empty_file_returns_422(self) -> None:
        resp = client.post(
            "/extract/property/file",
            files={"file": ("deed.txt", b"   \n", "text/plain")},
        )
        assert resp.status_code == 422

    def test_oversized_file_returns_413(self) -> None:
        resp = client.post(
            "/extract/identity/file",
            files={"file": ("scan.txt", b"a" * (api.MAX_UPLOAD_BYTES + 1), "text/plain")},
        )
        assert resp.status_code == 413


class TestPipelineNotReady:
    def test_returns_503_before_startup(self, monkeypatch) -> None:
        monkeypatch.setattr(api, "_pipeline", None)
        resp = client.get("/health")
        assert resp.status_code == 503
