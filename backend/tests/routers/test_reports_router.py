"""
Tests for backend/strata_reports/routers/reports_router.py

Covers synchronous rendering, background generation with status polling,
PDF download headers, and AppError translation into JSON responses.
"""

import pytest
from starlette.testclient import TestClient

from strata_reports.main import app
from strata_reports.services.report_task_service import report_store
from tests.helpers import make_document


@pytest.fixture(autouse=True)
def clear_store():
    report_store.clear()
    yield
    report_store.clear()


@pytest.fixture
def client():
    return TestClient(app, raise_server_exceptions=False)


FINANCIAL_PAYLOAD = {
    "title": "Financial Report Q1",
    "reportType": "financial",
    "generatedAt": "2024-03-15T12:00:00Z",
    "content": {
        "monthlyIncome": 5000,
        "totalExpenses": 3200,
        "funds": [{"name": "Reserve", "type": "reserve", "balance": "125000.00"}],
        "expenses": [],
    },
}


class TestRenderEndpoint:
    """POST /api/reports/render"""

    def test_returns_pdf(self, client):
        response = client.post("/api/reports/render", json=FINANCIAL_PAYLOAD)
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.headers["content-disposition"] == (
            'attachment; filename="Financial_Report_Q1.pdf"'
        )
        assert int(response.headers["content-length"]) == len(response.content)
        assert response.content.startswith(b"%PDF-")

    def test_missing_report_type_is_422(self, client):
        response = client.post("/api/reports/render", json={"title": "x", "content": {}})
        assert response.status_code == 422

    def test_snake_case_keys_accepted(self, client):
        payload = {"title": "Log", "report_type": "maintenance", "content": {}}
        response = client.post("/api/reports/render", json=payload)
        assert response.status_code == 200


class TestBackgroundGeneration:
    """POST /api/reports, then poll and download."""

    def test_create_poll_download(self, client):
        response = client.post("/api/reports", json=FINANCIAL_PAYLOAD)
        assert response.status_code == 202
        created = response.json()
        assert created["status"] == "pending"

        # TestClient runs background tasks before returning
        status = client.get(f"/api/reports/{created['id']}").json()
        assert status["status"] == "completed"
        assert status["has_pdf"] is True

        download = client.get(f"/api/reports/{created['id']}/download")
        assert download.status_code == 200
        assert download.content.startswith(b"%PDF-")
        assert 'filename="Financial_Report_Q1.pdf"' in download.headers["content-disposition"]

    def test_unknown_report_is_404(self, client):
        response = client.get("/api/reports/does-not-exist")
        assert response.status_code == 404
        assert response.json() == {"detail": "Report not found"}

    def test_download_before_completion_is_404(self, client):
        record = report_store.create(make_document("maintenance", {}))
        response = client.get(f"/api/reports/{record.id}/download")
        assert response.status_code == 404
        assert response.json() == {"detail": "PDF not available for this report"}


class TestHealth:
    def test_health(self, client):
        assert client.get("/api/health").json() == {"status": "ok"}
