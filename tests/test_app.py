# tests/test_app.py
import pytest
from fastapi.testclient import TestClient

import app as api
from config import Settings
from errors import ErrorKind
from schemas import AnalysisOutcome, AnalysisResult
from tests.conftest import JOB, RESUME, VALID_RESULT


class StubClient:
    def __init__(self, outcome):
        self.outcome = outcome
        self.calls = 0

    def submit(self, request):
        self.calls += 1
        return self.outcome


@pytest.fixture
def stub():
    return StubClient(AnalysisOutcome.success(AnalysisResult.model_validate(VALID_RESULT)))


@pytest.fixture
def client(stub):
    api.app.dependency_overrides[api.get_settings] = lambda: Settings(api_key="k", model="gemini-test")
    api.app.dependency_overrides[api.get_client] = lambda: stub
    yield TestClient(api.app)
    api.app.dependency_overrides.clear()


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "model": "gemini-test", "configured": True}


def test_analyze_returns_camel_case_result(client, stub):
    r = client.post("/analyze", json={"resume_text": RESUME, "job_description_text": JOB})
    assert r.status_code == 200
    assert r.json() == VALID_RESULT
    assert stub.calls == 1


def test_short_resume_is_422_without_calling_model(client, stub):
    r = client.post("/analyze", json={"resume_text": "hi", "job_description_text": JOB})
    assert r.status_code == 422
    assert r.json()["detail"]["error"] == ErrorKind.VALIDATION_INPUT_TOO_SHORT.value
    assert stub.calls == 0


def test_blank_job_description_is_422(client, stub):
    r = client.post("/analyze", json={"resume_text": RESUME, "job_description_text": "  "})
    assert r.status_code == 422
    assert stub.calls == 0


def test_missing_body_field_is_rejected(client):
    r = client.post("/analyze", json={"resume_text": RESUME})
    assert r.status_code == 422


@pytest.mark.parametrize("kind,status", [
    (ErrorKind.CONFIGURATION_ERROR, 503),
    (ErrorKind.SERVICE_UNAVAILABLE, 503),
    (ErrorKind.MALFORMED_RESPONSE, 502),
    (ErrorKind.SCHEMA_VIOLATION, 502),
])
def test_outcome_errors_map_to_status(client, stub, kind, status):
    stub.outcome = AnalysisOutcome.failure(kind, "detail text")
    r = client.post("/analyze", json={"resume_text": RESUME, "job_description_text": JOB})
    assert r.status_code == status
    body = r.json()["detail"]
    assert body["error"] == kind.value
    assert "detail text" in body["message"]
