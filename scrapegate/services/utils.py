"""Shared helpers for wrapped upstream services."""

from typing import Any
from urllib.parse import urlparse

import httpx

from scrapegate.core.config import settings
from scrapegate.core.events import UPSTREAM_CALLS
from scrapegate.core.exceptions import UpstreamError, ValidationError
from scrapegate.core.logging import get_logger

logger = get_logger("scrapegate.services")


def get_scraper_headers(**extra: str) -> dict[str, str]:
    """Get standard headers for upstream requests.

    Args:
        **extra: Additional headers, underscores are turned into dashes

    Returns:
        Dict with headers including a browser-like User-Agent
    """
    headers = {
        "User-Agent": settings.UPSTREAM_USER_AGENT,
        "Accept": "application/json, text/plain, */*",
    }
    headers.update({key.replace("_", "-"): value for key, value in extra.items()})
    return headers


def upstream_message(response: httpx.Response) -> str | None:
    """Pull a human readable error message out of an upstream response."""
    try:
        body = response.json()
    except ValueError:
        text = response.text.strip()
        return text[:200] or None
    if isinstance(body, dict):
        for key in ("message", "error", "detail", "msg"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
            if isinstance(value, dict) and isinstance(value.get("message"), str):
                return str(value["message"])
    return None


def to_upstream_error(
    exc: httpx.HTTPError, service: str, error_cls: type[UpstreamError] = UpstreamError
) -> UpstreamError:
    """Convert an httpx error into a gateway error keeping the upstream cause.

    Args:
        exc: The transport or status error
        service: Name of the wrapped service
        error_cls: UpstreamError subclass to build

    Returns:
        Error instance ready to be raised
    """
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return error_cls(
            f"{service} responded with HTTP {status}",
            {"service": service},
            upstream_status=status,
            upstream_message=upstream_message(exc.response),
        )
    if isinstance(exc, httpx.TimeoutException):
        return error_cls(f"{service} timed out", {"service": service})
    return error_cls(f"{service} request failed: {exc}", {"service": service})


async def fetch(
    method: str,
    url: str,
    *,
    service: str,
    headers: dict[str, str] | None = None,
    timeout: float | None = None,
    **kwargs: Any,
) -> httpx.Response:
    """Perform one outbound request.

    Args:
        method: HTTP method
        url: Absolute URL
        service: Name of the wrapped service, used in errors and metrics
        headers: Request headers, defaults to scraper headers
        timeout: Timeout in seconds, defaults to ``HTTP_TIMEOUT_SECONDS``
        **kwargs: Passed to ``httpx.AsyncClient.request``

    Returns:
        The successful response

    Raises:
        UpstreamError: If the request fails or returns a non-2xx status
    """
    async with httpx.AsyncClient(
        headers=headers if headers is not None else get_scraper_headers(),
        timeout=timeout or settings.HTTP_TIMEOUT_SECONDS,
        follow_redirects=True,
    ) as client:
        try:
            response = await client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPError as e:
            UPSTREAM_CALLS.labels(service=service, outcome="error").inc()
            logger.warning("upstream_call_failed", service=service, url=url, error=str(e))
            raise to_upstream_error(e, service) from e

    UPSTREAM_CALLS.labels(service=service, outcome="ok").inc()
    return response


async def fetch_json(method: str, url: str, *, service: str, **kwargs: Any) -> Any:
    """Perform one outbound request and decode its JSON body.

    Raises:
        UpstreamError: If the request fails or the body is not JSON
    """
    response = await fetch(method, url, service=service, **kwargs)
    try:
        return response.json()
    except ValueError as e:
        raise UpstreamError(
            f"{service} returned a non-JSON response", {"service": service}
        ) from e


def require_text(
    value: str | None, field: str, min_length: int = 1, max_length: int | None = None
) -> str:
    """Validate a required text parameter and return it stripped."""
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"Parameter {field} is required", {"field": field})
    if len(text) < min_length:
        raise ValidationError(
            f"Parameter {field} must be at least {min_length} characters",
            {"field": field, "minLength": min_length},
        )
    if max_length is not None and len(text) > max_length:
        raise ValidationError(
            f"Parameter {field} must be at most {max_length} characters",
            {"field": field, "maxLength": max_length},
        )
    return text


def require_choice(value: str, field: str, choices: list[str] | tuple[str, ...]) -> str:
    """Validate that a parameter is one of the allowed values."""
    if value not in choices:
        raise ValidationError(
            f"Invalid {field}. Available: {', '.join(choices)}",
            {"field": field, "allowed": list(choices)},
        )
    return value


def require_http_url(
    value: str | None, field: str = "url", domains: tuple[str, ...] = ()
) -> str:
    """Validate an absolute http(s) URL, optionally restricted to domains.

    Args:
        value: Candidate URL
        field: Parameter name used in errors
        domains: Accepted host suffixes, empty to accept any host

    Returns:
        The stripped URL
    """
    url = require_text(value, field)
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError(
            f"Parameter {field} must start with http:// or https://", {"field": field}
        )
    if domains:
        host = (parsed.hostname or "").lower()
        if not any(host == d or host.endswith("." + d) for d in domains):
            raise ValidationError(
                f"URL must come from {' or '.join(domains)}",
                {"field": field, "allowedDomains": list(domains)},
            )
    return url
