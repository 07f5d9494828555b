"""Integration tests for the FastAPI application."""

from datetime import datetime
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from contract_analysis.api.app import MAX_UPLOAD_BYTES, create_app
from contract_analysis.exceptions import PersistenceError, ValidationError
from contract_analysis.models import Analysis, HistoryEntry, ProcessingResult, RiskLevel


def make_result(document_id=42):
    return ProcessingResult(
        success=True,
        document_id=document_id,
        analysis=Analysis(risk_level=RiskLevel.LOW, summary="Standard terms."),
        report="No material risks.",
        similar_clauses=2,
        workflow={"step1": "Document ingested and indexed"},
        processing_time=1.23456,
        stage_timings={"ingest": 0.5},
    )


@pytest.fixture
def pipeline():
    pipeline = Mock()
    pipeline.process_document.return_value = make_result()
    return pipeline


@pytest.fixture
def client(pipeline):
    return TestClient(create_app(pipeline=pipeline))


class TestIndexAndHealth:
    """Tests for informational endpoints."""

    def test_index_lists_endpoints(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert "POST /analyze" in response.json()["endpoints"]

    def test_health(self, client, pipeline):
        pipeline.health_check.return_value = {"database": True, "ollama": True}

        response = client.get("/health")

        body = response.json()
        assert response.status_code == 200
        assert body["status"] == "healthy"
        assert body["checks"] == {"database": True, "ollama": True}
        assert body["uptime"] >= 0

    def test_health_reports_unreachable_database(self, client, pipeline):
        pipeline.health_check.return_value = {"database": False, "ollama": True}

        response = client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "degraded"
        assert response.json()["checks"]["database"] is False


class TestAnalyze:
    """Tests for POST /analyze."""

    def test_success(self, client, pipeline):
        response = client.post(
            "/analyze", json={"title": "NDA", "content": "Terms.", "metadata": {"source": "web"}}
        )

        body = response.json()
        assert response.status_code == 200
        assert body["success"] is True
        assert body["documentId"] == 42
        assert body["analysis"]["riskLevel"] == "Low"
        assert body["similarClauses"] == 2
        assert body["processingTime"] == 1.235
        pipeline.process_document.assert_called_once_with("NDA", "Terms.", {"source": "web"})

    def test_validation_error_is_400(self, client, pipeline):
        pipeline.process_document.side_effect = ValidationError(
            "Title and content are required", field_name="content"
        )

        response = client.post("/analyze", json={"title": "NDA"})

        assert response.status_code == 400
        assert response.json()["error"] == "Title and content are required"

    def test_persistence_error_is_500(self, client, pipeline):
        pipeline.process_document.side_effect = PersistenceError(
            "Database operation 'create_document' failed", operation="create_document"
        )

        response = client.post("/analyze", json={"title": "NDA", "content": "Terms."})

        assert response.status_code == 500
        assert response.json()["error"] == "Failed to process contract"


class TestUpload:
    """Tests for POST /upload."""

    def test_text_upload(self, client, pipeline):
        response = client.post(
            "/upload",
            files={"contract": ("lease.txt", b"LEASE AGREEMENT\nRent is due monthly.", "text/plain")},
        )

        assert response.status_code == 200
        title, content, metadata = pipeline.process_document.call_args[0]
        assert title == "lease.txt"
        assert content == "LEASE AGREEMENT\nRent is due monthly."
        assert metadata["originalFilename"] == "lease.txt"
        assert metadata["mimeType"] == "text/plain"
        assert metadata["fileSize"] == len(b"LEASE AGREEMENT\nRent is due monthly.")

    def test_unsupported_format_is_400(self, client, pipeline):
        response = client.post(
            "/upload", files={"contract": ("contract.rtf", b"{\\rtf1}", "text/rtf")}
        )

        assert response.status_code == 400
        pipeline.process_document.assert_not_called()

    def test_empty_file_is_400(self, client, pipeline):
        response = client.post("/upload", files={"contract": ("empty.txt", b"   ", "text/plain")})

        assert response.status_code == 400
        pipeline.process_document.assert_not_called()

    def test_oversized_file_is_413(self, client, pipeline):
        data = b"a" * (MAX_UPLOAD_BYTES + 1)

        response = client.post("/upload", files={"contract": ("big.txt", data, "text/plain")})

        assert response.status_code == 413
        pipeline.process_document.assert_not_called()

    def test_missing_file_is_rejected(self, client):
        assert client.post("/upload").status_code == 422


class TestHistory:
    """Tests for GET /history."""

    def test_lists_entries(self, client, pipeline):
        pipeline.list_history.return_value = [
            HistoryEntry(
                id=1,
                title="NDA",
                created_at=datetime(2024, 5, 1, 12, 0),
                status="completed",
                analysis={"riskLevel": "Low"},
                report="Fine.",
            )
        ]

        body = client.get("/history?limit=abc").json()

        assert body["success"] is True
        assert body["count"] == 1
        assert body["data"][0]["created_at"] == "2024-05-01T12:00:00"
        pipeline.list_history.assert_called_once_with("abc")

    def test_default_limit(self, client, pipeline):
        pipeline.list_history.return_value = []
        client.get("/history")
        pipeline.list_history.assert_called_once_with(None)

    def test_store_failure_is_500(self, client, pipeline):
        pipeline.list_history.side_effect = PersistenceError("down", operation="list_recent")

        response = client.get("/history")

        assert response.status_code == 500
        assert response.json()["error"] == "Failed to fetch analysis history"
