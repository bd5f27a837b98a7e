import time
import logging
import requests
from typing import Callable, Optional

from config import RetryPolicy, Settings
from errors import ErrorKind
from schemas import AnalysisOutcome, AnalysisRequest, AttemptOutcome
from .prompts import build_payload
from .validator import validate

logger = logging.getLogger(__name__)

# The credential is rejected; sending it again will not help.
CREDENTIAL_STATUS = {401, 403}
INVALID_KEY_REASON = "API_KEY_INVALID"


class AnalysisClient:
    """Calls Gemini generateContent with bounded retries and validates the answer."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gemini-2.5-flash",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float = 60.0,
        retry: Optional[RetryPolicy] = None,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retry = retry or RetryPolicy()
        self.session = session or requests.Session()
        self.sleep = sleep

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "AnalysisClient":
        return cls(
            api_key=settings.api_key,
            model=settings.model,
            base_url=settings.base_url,
            timeout=settings.timeout,
            retry=settings.retry,
            **kwargs,
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def submit(self, request: AnalysisRequest) -> AnalysisOutcome:
        if not self.configured:
            return AnalysisOutcome.failure(ErrorKind.CONFIGURATION_ERROR, "missing API key")

        payload = build_payload(request)
        last: Optional[AttemptOutcome] = None
        for attempt in range(1, self.retry.max_attempts + 1):
            delay = self.retry.delay_before(attempt)
            if delay > 0:
                logger.info("Retrying analysis in %.1fs (attempt %d/%d)", delay, attempt, self.retry.max_attempts)
                self.sleep(delay)

            last = self._attempt(payload)
            if last.success:
                if attempt > 1:
                    logger.info("Analysis call succeeded on attempt %d", attempt)
                return validate(last.raw_text)
            if not last.retryable:
                return AnalysisOutcome.failure(last.error_kind, last.message)
            logger.warning("Analysis attempt %d/%d failed: %s", attempt, self.retry.max_attempts, last.message)

        return AnalysisOutcome.failure(ErrorKind.SERVICE_UNAVAILABLE, last.message)

    def _attempt(self, payload: dict) -> AttemptOutcome:
        headers = {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json",
        }
        try:
            response = self.session.post(self.endpoint, headers=headers, json=payload, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            return AttemptOutcome(success=False, error_kind=ErrorKind.TRANSPORT_FAILURE, message=str(e))

        status = response.status_code
        if status in CREDENTIAL_STATUS or (status == 400 and INVALID_KEY_REASON in response.text):
            return AttemptOutcome(
                success=False,
                retryable=False,
                error_kind=ErrorKind.CONFIGURATION_ERROR,
                message=f"API key rejected with HTTP {status}",
            )
        if status == 400:
            return AttemptOutcome(
                success=False,
                retryable=False,
                error_kind=ErrorKind.SERVICE_UNAVAILABLE,
                message=f"request rejected with HTTP 400: {_error_message(response)}",
            )
        if not 200 <= status < 300:
            return AttemptOutcome(
                success=False,
                error_kind=ErrorKind.TRANSPORT_FAILURE,
                message=f"API call failed with HTTP {status}",
            )

        try:
            data = response.json()
        except ValueError:
            return AttemptOutcome(success=False, error_kind=ErrorKind.MALFORMED_RESPONSE, message="response body is not JSON")

        text = extract_text(data)
        if not text or not text.strip():
            return AttemptOutcome(success=False, error_kind=ErrorKind.MALFORMED_RESPONSE, message="response has no candidate text")
        return AttemptOutcome(success=True, raw_text=text)


def extract_text(data) -> Optional[str]:
    """candidates[0].content.parts[*].text joined, or None when absent."""
    try:
        parts = data["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError):
        return None
    if not isinstance(parts, list):
        return None
    texts = [p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str)]
    return "".join(texts) if texts else None


def _error_message(response) -> str:
    try:
        return response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return "bad request"
