"""Request ID middleware for request tracking."""

import re
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp
from structlog.contextvars import bind_contextvars, clear_contextvars

from scrapegate.core.logging import get_logger

logger = get_logger()

# IDs forwarded by proxies and load balancers are echoed back into headers
# and logs, so only short header-safe tokens are accepted.
_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")

REQUEST_ID_HEADERS = ("X-Request-ID", "X-Correlation-ID")


class CorrelationMiddleware(BaseHTTPMiddleware):
    """
    Middleware to handle request IDs.

    Assigns a request ID to each request and adds it to:
    - Request state
    - Response headers
    - Structured logging context
    """

    def __init__(self, app: ASGIApp) -> None:
        """
        Initialize middleware.

        Args:
        ----
            app: The ASGI application
        """
        super().__init__(app)

    def _validate_request_id(self, value: str | None) -> bool:
        """
        Validate a caller supplied request ID.

        Args:
        ----
            value: The string to validate

        Returns:
        -------
            True if the value can be reused, False otherwise
        """
        if not value:
            return False
        return bool(_REQUEST_ID_PATTERN.match(value))

    def _get_request_id(self, request: Request) -> str:
        """
        Get or generate a request ID.

        Args:
        ----
            request: The incoming request

        Returns:
        -------
            str: The forwarded ID when valid, otherwise a new UUID
        """
        for header in REQUEST_ID_HEADERS:
            header_value = request.headers.get(header, "")
            if self._validate_request_id(header_value):
                return str(header_value)

        return str(uuid.uuid4())

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """
        Process the request/response cycle.

        Args:
        ----
            request: The incoming request
            call_next: The next handler in the middleware chain

        Returns:
        -------
            The response from downstream handlers
        """
        # Clear any existing context
        clear_contextvars()

        request_id = self._get_request_id(request)

        bind_contextvars(request_id=request_id)
        request.state.correlation_id = request_id

        response = await call_next(request)

        response.headers["X-Request-ID"] = request_id

        return response
