"""Uniform response envelope helpers."""

from datetime import datetime, timezone
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.status import HTTP_200_OK

from scrapegate.core.exceptions import error_type_for


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


def get_request_id(request: Request | None) -> str | None:
    """Get the request ID assigned by the correlation middleware.

    Args:
        request: The incoming request, if any

    Returns:
        The request ID or None when no middleware assigned one
    """
    if request is None:
        return None
    request_id = getattr(request.state, "correlation_id", None)
    if request_id is None:
        request_id = request.headers.get("X-Request-ID")
    return str(request_id) if request_id else None


def success_response(
    data: Any,
    message: str = "Success",
    status_code: int = HTTP_200_OK,
    meta: dict[str, Any] | None = None,
    request: Request | None = None,
) -> dict[str, Any]:
    """Build a success envelope.

    Args:
        data: Payload returned to the caller
        message: Human readable message
        status_code: HTTP status code mirrored into the body
        meta: Additional metadata such as pagination or cache hits
        request: Request used to resolve the request ID

    Returns:
        Envelope dictionary
    """
    return {
        "success": True,
        "statusCode": status_code,
        "message": message,
        "data": data,
        "meta": meta or {},
        "requestId": get_request_id(request),
        "timestamp": _timestamp(),
    }


def error_response(
    message: str,
    status_code: int,
    details: dict[str, Any] | None = None,
    request: Request | None = None,
    error_type: str | None = None,
) -> dict[str, Any]:
    """Build an error envelope.

    Args:
        message: Human readable error message
        status_code: HTTP status code mirrored into the body
        details: Structured error details, omitted when empty
        request: Request used to resolve the request ID
        error_type: Override for the ``error.type`` field

    Returns:
        Envelope dictionary
    """
    error: dict[str, Any] = {"type": error_type or error_type_for(status_code)}
    if details:
        error["details"] = details
    return {
        "success": False,
        "statusCode": status_code,
        "message": message,
        "error": error,
        "requestId": get_request_id(request),
        "timestamp": _timestamp(),
    }


def envelope(
    data: Any,
    message: str = "Success",
    status_code: int = HTTP_200_OK,
    meta: dict[str, Any] | None = None,
    request: Request | None = None,
) -> JSONResponse:
    """Wrap data in a success envelope JSON response."""
    return JSONResponse(
        status_code=status_code,
        content=success_response(data, message, status_code, meta, request),
    )


def pagination_meta(page: int, limit: int, total: int) -> dict[str, Any]:
    """Build pagination metadata for list responses."""
    total_pages = max(1, -(-total // limit)) if limit > 0 else 1
    return {
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": total_pages,
            "hasNextPage": page < total_pages,
            "hasPrevPage": page > 1,
        }
    }
