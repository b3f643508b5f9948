"""Tests for the FastAPI application."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from tfscore import __version__
from tfscore.app import create_app
from tfscore.models.inputs import AssessmentRequest, ComponentSections
from tfscore.models.project import ProjectRecord
from tfscore.scoring.engine import AssessmentEngine, AssessmentError


@pytest.fixture
def client() -> TestClient:
    return TestClient(create_app(engine=AssessmentEngine(reference_year=2024)))


@pytest.fixture
def request_body(
    solar_project: ProjectRecord, solar_sections: ComponentSections
) -> dict[str, object]:
    return AssessmentRequest(project=solar_project, sections=solar_sections).model_dump(
        mode="json"
    )


class TestHealth:
    def test_health(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["version"] == __version__


class TestAssessmentsEndpoint:
    """POST /v1/assessments."""

    def test_valid_request_returns_report(
        self, client: TestClient, request_body: dict[str, object]
    ) -> None:
        response = client.post("/v1/assessments", json=request_body)

        assert response.status_code == 200
        report = response.json()
        assert report["project_name"] == "Helios Solar"
        assert len(report["components"]) == 5
        assert all(c["ai_evaluated"] is False for c in report["components"])

    def test_invalid_request_uses_error_envelope(self, client: TestClient) -> None:
        response = client.post("/v1/assessments", json={}, headers={"X-Request-Id": "req-1"})

        assert response.status_code == 422
        body = response.json()
        assert body["code"] == "REQUEST_VALIDATION_FAILED"
        assert body["request_id"] == "req-1"
        assert response.headers["X-Request-Id"] == "req-1"
        assert any(e["field"] == "project" for e in body["details"]["errors"])

    def test_assessment_failure_maps_to_500(self, request_body: dict[str, object]) -> None:
        engine = MagicMock(spec=AssessmentEngine)
        engine.assess.side_effect = AssessmentError("boom")
        client = TestClient(create_app(engine=engine))

        response = client.post("/v1/assessments", json=request_body)

        assert response.status_code == 500
        body = response.json()
        assert body["code"] == "ASSESSMENT_FAILED"
        assert "boom" not in body["message"]
