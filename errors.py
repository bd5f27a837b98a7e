from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION_INPUT_TOO_SHORT = "validation_input_too_short"
    CONFIGURATION_ERROR = "configuration_error"
    TRANSPORT_FAILURE = "transport_failure"
    SERVICE_UNAVAILABLE = "service_unavailable"
    MALFORMED_RESPONSE = "malformed_response"
    SCHEMA_VIOLATION = "schema_violation"


# Shown to the user, followed by the detail message when there is one.
USER_MESSAGES = {
    ErrorKind.VALIDATION_INPUT_TOO_SHORT: "Please paste a bit more of your resume first!",
    ErrorKind.CONFIGURATION_ERROR: "The analysis service is not configured. Set GEMINI_API_KEY and try again.",
    ErrorKind.TRANSPORT_FAILURE: "Could not reach the analysis service.",
    ErrorKind.SERVICE_UNAVAILABLE: "Could not finish analysis.",
    ErrorKind.MALFORMED_RESPONSE: "The analysis came back in an unreadable format. Please retry.",
    ErrorKind.SCHEMA_VIOLATION: "The analysis came back incomplete. Please retry.",
}


def user_message(kind: ErrorKind, detail: str = "") -> str:
    base = USER_MESSAGES[kind]
    return f"{base} {detail}".strip() if detail else base


class AnalysisError(Exception):
    """Base for failures that map onto an ErrorKind."""

    kind = ErrorKind.SERVICE_UNAVAILABLE

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class MalformedResponse(AnalysisError):
    kind = ErrorKind.MALFORMED_RESPONSE


class SchemaViolation(AnalysisError):
    kind = ErrorKind.SCHEMA_VIOLATION

    def __init__(self, field: str, message: str = ""):
        super().__init__(message or f"invalid field '{field}'")
        self.field = field
