"""
Shared error handling for the SyncFit access gate.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel
from opentelemetry import trace


class ErrorResponse(BaseModel):
    """Standard error response format."""

    trace_id: Optional[str] = None
    code: str
    error: str
    message: Optional[str] = None
    details: Optional[Dict[str, Any]] = None


def current_trace_id() -> Optional[str]:
    """Return the active trace id as hex, if a span is recording."""
    current_span = trace.get_current_span()
    if current_span and current_span.is_recording():
        span_context = current_span.get_span_context()
        if span_context.trace_id != 0:
            return f"{span_context.trace_id:032x}"
    return None


class AccessLayerException(Exception):
    """Base exception for access gate services."""

    status_code: int = 400

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None,
                 hint: Optional[str] = None, status_code: Optional[int] = None):
        self.code = code
        self.message = message
        self.hint = hint
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            trace_id=current_trace_id(),
            code=self.code,
            error=self.message,
            message=self.hint,
            details=self.details or None
        )


class ValidationError(AccessLayerException):
    """Validation-related errors."""

    status_code = 400

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALID_INPUT", message, details)


class GateRejectedError(AccessLayerException):
    """Raised at the HTTP boundary when an admission stage rejects a request.

    The failure object carries the status code, stable code and messages, so
    a single exception handler can render every gate rejection.
    """

    def __init__(self, failure: Any, hint: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.failure = failure
        super().__init__(
            failure.code,
            failure.message,
            details,
            hint=hint,
            status_code=failure.status_code,
        )


class ExternalServiceError(AccessLayerException):
    """External service errors."""

    status_code = 500

    def __init__(self, service: str, message: str = "External service error", details: Optional[Dict[str, Any]] = None):
        self.service = service
        super().__init__("EXTERNAL_SERVICE_ERROR", f"{service}: {message}", details)
