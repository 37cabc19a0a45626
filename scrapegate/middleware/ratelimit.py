"""Shared slowapi rate limiter.

The limiter lives in its own module so route modules can import it for
``@limiter.exempt`` without importing ``scrapegate.main``. ``create_app``
attaches it to ``app.state`` and registers ``SlowAPIMiddleware``, which
applies one configured window per client across every route that is not
exempt.

The limit is read from settings on every check, so changing
``settings.RATE_LIMIT`` takes effect without rebuilding the limiter.
"""

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.status import HTTP_429_TOO_MANY_REQUESTS

from scrapegate.core.config import settings
from scrapegate.core.events import RATE_LIMITED_TOTAL
from scrapegate.core.logging import get_logger
from scrapegate.core.response import error_response, get_request_id

logger = get_logger()


def current_limit() -> str:
    """Return the configured fixed-window limit, e.g. ``100/15minutes``."""
    return settings.RATE_LIMIT


limiter: Limiter = Limiter(
    key_func=get_remote_address,
    application_limits=[current_limit],
    headers_enabled=True,
    strategy="fixed-window",
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    enabled=settings.RATE_LIMIT_ENABLED,
)


def rate_limit_exceeded_handler(request: Request, exc: Exception) -> Response:
    """Reject a request that exceeded its window with a 429 envelope.

    Args:
        request: The rejected request
        exc: The ``RateLimitExceeded`` raised by slowapi

    Returns:
        429 response carrying ``Retry-After`` and ``X-RateLimit-*`` headers
    """
    detail = str(exc.detail) if isinstance(exc, RateLimitExceeded) else str(exc)
    RATE_LIMITED_TOTAL.labels(path=request.url.path).inc()
    logger.warning(
        "rate_limit_exceeded",
        client=get_remote_address(request),
        path=request.url.path,
        method=request.method,
        limit=detail,
    )

    response = JSONResponse(
        status_code=HTTP_429_TOO_MANY_REQUESTS,
        content=error_response(
            "Too many requests, please try again later",
            HTTP_429_TOO_MANY_REQUESTS,
            {"limit": detail},
            request,
        ),
    )
    request_id = get_request_id(request)
    if request_id:
        response.headers["X-Request-ID"] = request_id

    view_rate_limit = getattr(request.state, "view_rate_limit", None)
    if view_rate_limit is not None:
        response = request.app.state.limiter._inject_headers(response, view_rate_limit)
    return response
