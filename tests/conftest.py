# tests/conftest.py
import json
import pytest
import requests

from config import RetryPolicy
from matching.llm_gemini import AnalysisClient

RESUME = (
    "Jane Doe - Data Engineer. 6 years building ETL pipelines in Python and SQL, "
    "Airflow orchestration, AWS (S3, Redshift), Docker and CI/CD."
)
JOB = "Senior Data Engineer. Requirements: Python, SQL, Spark, Airflow, Kubernetes."

VALID_RESULT = {
    "matchScore": 78,
    "executiveSummary": "Strong pipeline background; missing Spark and Kubernetes.",
    "strengths": ["Python", "Airflow"],
    "gaps": ["No Spark experience"],
    "keywordsFound": ["Python", "SQL", "Airflow"],
    "keywordsMissing": ["Spark", "Kubernetes"],
    "suggestions": ["Mention any distributed processing work"],
    "interviewPrep": ["Describe a pipeline you scaled"],
}


def gemini_body(text):
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}


class FakeResponse:
    def __init__(self, status_code=200, body=None):
        self.status_code = status_code
        self._body = body

    def json(self):
        if isinstance(self._body, Exception):
            raise self._body
        return self._body

    @property
    def text(self):
        if isinstance(self._body, Exception):
            return "<html>oops</html>"
        return json.dumps(self._body)


class FakeSession:
    """Stands in for requests.Session; replies are consumed in order."""

    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = []

    def post(self, url, headers=None, json=None, timeout=None):
        self.calls.append({"url": url, "headers": headers, "json": json, "timeout": timeout})
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return reply

    def close(self):
        pass


def ok_reply(payload=None):
    return FakeResponse(200, gemini_body(json.dumps(payload if payload is not None else VALID_RESULT)))


def transport_error():
    return requests.exceptions.ConnectionError("connection refused")


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def make_client(sleeps):
    def _make(replies, api_key="test-key", max_attempts=3):
        session = FakeSession(replies)
        client = AnalysisClient(
            api_key=api_key,
            model="gemini-test",
            base_url="https://example.test/v1beta",
            timeout=5,
            retry=RetryPolicy(max_attempts=max_attempts, base_delay=1.0, factor=2.0, max_delay=8.0),
            session=session,
            sleep=sleeps.append,
        )
        return client, session

    return _make
