from __future__ import annotations
import logging
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from config import Settings, load_settings, setup_logging
from errors import ErrorKind, user_message
from schemas import AnalyzeIn, ErrorOut, SubmissionDraft
from matching.prompts import build_request
from matching.llm_gemini import AnalysisClient

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    ErrorKind.VALIDATION_INPUT_TOO_SHORT: 422,
    ErrorKind.CONFIGURATION_ERROR: 503,
    ErrorKind.SERVICE_UNAVAILABLE: 503,
    ErrorKind.TRANSPORT_FAILURE: 503,
    ErrorKind.MALFORMED_RESPONSE: 502,
    ErrorKind.SCHEMA_VIOLATION: 502,
}

_settings: Optional[Settings] = None
_client: Optional[AnalysisClient] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def get_client(settings: Settings = Depends(get_settings)) -> AnalysisClient:
    global _client
    if _client is None:
        _client = AnalysisClient.from_settings(settings)
    return _client


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    settings = get_settings()
    logger.info("Using model %s at %s", settings.model, settings.base_url)
    if not settings.api_key:
        logger.warning("GEMINI_API_KEY is not set; /analyze will return configuration_error")
    yield
    if _client is not None:
        _client.session.close()
    logger.info("Application shutting down.")


app = FastAPI(title="TalentLens Resume Analyzer (Gemini)", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # OK for demo; restrict for prod
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _fail(kind: ErrorKind, detail: str = "") -> HTTPException:
    body = ErrorOut(error=kind, message=user_message(kind, detail))
    return HTTPException(status_code=STATUS_BY_KIND[kind], detail=body.model_dump(mode="json"))


# -------------------------------------------------------------------
# Routes
# -------------------------------------------------------------------
@app.get("/health")
def health(settings: Settings = Depends(get_settings)):
    return {"status": "ok", "model": settings.model, "configured": bool(settings.api_key)}


@app.post("/analyze")
def analyze(
    body: AnalyzeIn,
    settings: Settings = Depends(get_settings),
    client: AnalysisClient = Depends(get_client),
):
    """One-shot analysis: validate both texts, call the model, return the result."""
    if len(body.resume_text.strip()) < settings.min_resume_length:
        raise _fail(ErrorKind.VALIDATION_INPUT_TOO_SHORT)
    if not body.job_description_text.strip():
        raise _fail(ErrorKind.VALIDATION_INPUT_TOO_SHORT, "The job description is empty.")

    draft = SubmissionDraft(resume_text=body.resume_text, job_description_text=body.job_description_text)
    outcome = client.submit(build_request(draft))
    if not outcome.ok:
        raise _fail(outcome.error_kind, outcome.message)
    return outcome.result.to_payload()
