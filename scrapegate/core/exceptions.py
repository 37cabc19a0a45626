"""Gateway error taxonomy.

Every error raised by a service or job client derives from ``GatewayError``
and carries the HTTP status and envelope ``error.type`` it should surface
as. The error handling middleware turns these into the standard error
envelope; nothing here knows about FastAPI.
"""

from typing import Any

from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_502_BAD_GATEWAY,
    HTTP_504_GATEWAY_TIMEOUT,
)


class GatewayError(Exception):
    """Base class for errors that map onto an error envelope."""

    status_code: int = HTTP_500_INTERNAL_SERVER_ERROR
    error_type: str = "Internal Server Error"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details: dict[str, Any] = details or {}


class ValidationError(GatewayError):
    """Raised when caller input is rejected before any remote call."""

    status_code = HTTP_400_BAD_REQUEST
    error_type = "Validation Error"


class UpstreamError(GatewayError):
    """Raised when a wrapped external call fails.

    The upstream HTTP status and message, when known, are kept in
    ``details`` so callers see the structured cause.
    """

    status_code = HTTP_502_BAD_GATEWAY
    error_type = "Bad Gateway"

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        upstream_status: int | None = None,
        upstream_message: str | None = None,
    ) -> None:
        details = dict(details or {})
        if upstream_status is not None:
            details["upstreamStatus"] = upstream_status
        if upstream_message:
            details["upstreamMessage"] = upstream_message
        super().__init__(message, details)
        self.upstream_status = upstream_status
        self.upstream_message = upstream_message


class SubmissionError(UpstreamError):
    """Raised when a remote job could not be created."""


class ResultParseError(UpstreamError):
    """Raised when a completed job payload cannot be decoded."""


class PollTimeoutError(GatewayError):
    """Raised when polling exhausts its attempt budget."""

    status_code = HTTP_504_GATEWAY_TIMEOUT
    error_type = "Gateway Timeout"

    def __init__(self, message: str, handle: str, attempts: int) -> None:
        super().__init__(message, {"handle": handle, "attempts": attempts})
        self.handle = handle
        self.attempts = attempts


ERROR_TYPES: dict[int, str] = {
    400: "Validation Error",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    409: "Conflict",
    422: "Unprocessable Entity",
    429: "Too Many Requests",
    500: "Internal Server Error",
    502: "Bad Gateway",
    503: "Service Unavailable",
    504: "Gateway Timeout",
}


def error_type_for(status_code: int) -> str:
    """Get the envelope error type for a status code."""
    return ERROR_TYPES.get(status_code, "Unknown Error")
