"""Error taxonomy for the analysis pipeline.

Internal stages (provider client, sanitizer, normalizers) hand these back
inside ``Err`` values; the dispatcher raises them at its public boundary with
the originating result type attached.
"""

from __future__ import annotations

from enum import Enum


class AnalysisError(Exception):
    """Base class for every pipeline failure."""

    code = "ANALYSIS_ERROR"

    def __init__(self, message: str, result_type: str = ""):
        super().__init__(message)
        self.message = message
        self.result_type = result_type

    def with_result_type(self, result_type: str) -> AnalysisError:
        """Attach the originating result type (kept if already set)."""
        if not self.result_type:
            self.result_type = result_type
        return self

    def __str__(self) -> str:
        if self.result_type:
            return f"[{self.result_type}] {self.message}"
        return self.message


class RateLimited(AnalysisError):
    """Caller exceeded its admission window. Never retried."""

    code = "RATE_LIMITED"

    def __init__(self, caller_key: str, result_type: str = ""):
        super().__init__(f"Rate limit exceeded for caller {caller_key!r}", result_type)
        self.caller_key = caller_key


class ProviderErrorKind(str, Enum):
    """Classification of a failed provider call."""

    TIMEOUT = "timeout"
    HTTP_STATUS = "http_status"
    NETWORK_ERROR = "network_error"
    MALFORMED_RESPONSE = "malformed_response"  # 2xx without usable content
    NOT_CONFIGURED = "not_configured"  # no API key


class ProviderError(AnalysisError):
    """The LLM provider call failed (after retries where applicable)."""

    code = "PROVIDER_ERROR"

    def __init__(
        self,
        kind: ProviderErrorKind,
        message: str = "",
        status_code: int = 0,
        result_type: str = "",
    ):
        super().__init__(message or kind.value, result_type)
        self.kind = kind
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        """Timeouts, 5xx and connection failures are transient; 4xx never are."""
        if self.kind in (ProviderErrorKind.TIMEOUT, ProviderErrorKind.NETWORK_ERROR):
            return True
        if self.kind == ProviderErrorKind.HTTP_STATUS:
            return self.status_code >= 500
        return False


class UnparsableJSON(AnalysisError):
    """Every JSON recovery strategy failed. Not retried."""

    code = "UNPARSABLE_JSON"

    def __init__(self, result_type: str = "", detail: str = ""):
        message = f"Failed to parse {result_type or 'AI'} JSON response after all attempts"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message, result_type)
        self.detail = detail


class SchemaViolation(AnalysisError):
    """A normalizer could not produce a complete canonical record."""

    code = "SCHEMA_VIOLATION"

    def __init__(self, missing_fields: list[str], result_type: str = ""):
        super().__init__(f"Missing required fields: {', '.join(missing_fields)}", result_type)
        self.missing_fields = list(missing_fields)


class InvalidAnswers(AnalysisError):
    """The raw answers do not match the result type's expected format."""

    code = "VALIDATION_ERROR"


class UnsupportedResultType(AnalysisError):
    """No processor is registered for the requested result type."""

    code = "UNSUPPORTED_RESULT_TYPE"

    def __init__(self, result_type: str):
        super().__init__(f"Unsupported result type: {result_type!r}", result_type)


# Status codes the (external) HTTP layer uses for each error class
_PUBLIC_STATUS: dict[type[AnalysisError], int] = {
    RateLimited: 429,
    InvalidAnswers: 400,
    UnsupportedResultType: 404,
}


def to_public_error(error: Exception) -> tuple[int, dict]:
    """Map any pipeline error to a generic (status, payload) pair.

    Repair-attempt details and provider messages are never included.
    """
    if isinstance(error, RateLimited):
        return 429, {"success": False, "error": error.code, "message": "Rate limit exceeded. Please try again later."}
    if isinstance(error, AnalysisError):
        status = _PUBLIC_STATUS.get(type(error), 500)
        message = "Invalid request" if status in (400, 404) else "AI analysis failed"
        return status, {"success": False, "error": error.code, "message": message}
    return 500, {"success": False, "error": "INTERNAL_ERROR", "message": "AI analysis failed"}
