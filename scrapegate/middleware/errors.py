"""Error handling middleware."""

import traceback
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_404_NOT_FOUND,
    HTTP_500_INTERNAL_SERVER_ERROR,
)
from starlette.types import ASGIApp

from scrapegate.core.config import settings
from scrapegate.core.exceptions import GatewayError, error_type_for
from scrapegate.core.logging import get_logger
from scrapegate.core.response import error_response, get_request_id

logger = get_logger()


def _validation_details(exc: RequestValidationError) -> dict[str, list[dict[str, Any]]]:
    """Group FastAPI validation errors by field name."""
    details: dict[str, list[dict[str, Any]]] = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("query", "body")]
        field = ".".join(loc) or "request"
        details.setdefault(field, []).append(
            {"message": error.get("msg", ""), "type": error.get("type", "")}
        )
    return details


def describe_exception(exc: Exception, request: Request) -> tuple[int, str, str, dict[str, Any]]:
    """Map an exception onto envelope fields.

    Args:
    ----
        exc: The exception to describe
        request: The request being handled

    Returns:
    -------
        Tuple of (status code, error type, message, details)
    """
    if isinstance(exc, GatewayError):
        return exc.status_code, exc.error_type, exc.message, dict(exc.details)
    if isinstance(exc, RequestValidationError):
        return (
            HTTP_400_BAD_REQUEST,
            error_type_for(HTTP_400_BAD_REQUEST),
            "Validation failed",
            _validation_details(exc),
        )
    if isinstance(exc, StarletteHTTPException):
        if exc.status_code == HTTP_404_NOT_FOUND and exc.detail == "Not Found":
            message = f"Route {request.url.path} not found"
        else:
            message = str(exc.detail)
        return exc.status_code, error_type_for(exc.status_code), message, {}
    return (
        HTTP_500_INTERNAL_SERVER_ERROR,
        error_type_for(HTTP_500_INTERNAL_SERVER_ERROR),
        "Internal Server Error",
        {},
    )


async def handle_exception(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle any exception and return an error envelope.

    Args:
    ----
        request: The request that caused the exception
        exc: The exception to handle

    Returns:
    -------
        A JSON response with error details
    """
    status_code, error_type, message, details = describe_exception(exc, request)
    request_id = get_request_id(request)

    log_fields = {
        "error_type": exc.__class__.__name__,
        "error_message": str(exc),
        "status_code": status_code,
        "path": request.url.path,
        "method": request.method,
        "request_id": request_id,
    }
    if status_code >= HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("request_error", exc_info=exc, **log_fields)
    else:
        logger.warning("request_rejected", **log_fields)

    if settings.DEBUG and status_code >= HTTP_500_INTERNAL_SERVER_ERROR:
        details["stack"] = "".join(
            traceback.format_exception(type(exc), exc, exc.__traceback__)
        )

    response = JSONResponse(
        status_code=status_code,
        content=error_response(
            message, status_code, details, request, error_type=error_type
        ),
    )
    if request_id:
        response.headers["X-Request-ID"] = request_id
    headers = getattr(exc, "headers", None)
    if headers:
        response.headers.update(headers)
    return response


def register_exception_handlers(app: FastAPI) -> None:
    """Route known exception types through the error envelope."""
    app.add_exception_handler(GatewayError, handle_exception)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, handle_exception)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, handle_exception)  # type: ignore[arg-type]


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Middleware turning unhandled exceptions into error envelopes."""

    def __init__(self, app: ASGIApp) -> None:
        """
        Initialize middleware.

        Args:
        ----
            app: The ASGI application
        """
        super().__init__(app)

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """
        Process the request/response cycle and handle errors.

        Args:
        ----
            request: The incoming request
            call_next: The next handler in the middleware chain

        Returns:
        -------
            The response from downstream handlers or error response
        """
        try:
            return await call_next(request)
        except Exception as exc:
            return await handle_exception(request, exc)
