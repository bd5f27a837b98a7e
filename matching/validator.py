import re
import json
import logging
from pydantic import ValidationError

from errors import AnalysisError, MalformedResponse, SchemaViolation
from schemas import AnalysisOutcome, AnalysisResult

logger = logging.getLogger(__name__)

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\s*```$")


def _strip_fence(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        text = _FENCE_CLOSE.sub("", _FENCE_OPEN.sub("", text))
    return text


def _field_name(loc) -> str:
    # loc is ("matchScore",) or ("strengths", 2); a bare model error has an empty loc
    if not loc:
        return "root"
    return ".".join(str(part) for part in loc)


def parse_analysis(raw_text: str) -> AnalysisResult:
    """
    Turn raw model text into an AnalysisResult.

    Raises:
        MalformedResponse: the text is not a single JSON document.
        SchemaViolation: the document parses but a field is missing, mistyped,
            or out of range. Names the first offending field.
    """
    if raw_text is None or not raw_text.strip():
        raise MalformedResponse("empty response")

    try:
        data = json.loads(_strip_fence(raw_text))
    except json.JSONDecodeError as e:
        raise MalformedResponse(f"response is not valid JSON ({e.msg} at line {e.lineno})")
    except (RecursionError, ValueError) as e:
        raise MalformedResponse(f"response is not valid JSON ({type(e).__name__})")

    if not isinstance(data, dict):
        raise SchemaViolation("root", f"expected a JSON object, got {type(data).__name__}")

    try:
        return AnalysisResult.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        field = _field_name(first.get("loc"))
        raise SchemaViolation(field, f"invalid field '{field}': {first.get('msg')}")


def validate(raw_text: str) -> AnalysisOutcome:
    try:
        result = parse_analysis(raw_text)
    except AnalysisError as e:
        logger.warning("Analysis response rejected (%s): %s", e.kind.value, e.message)
        return AnalysisOutcome.failure(e.kind, e.message)
    return AnalysisOutcome.success(result)
