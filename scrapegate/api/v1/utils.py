"""Shared dependencies for API v1 routes."""

from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

from scrapegate.core.cache import ResponseCache, fingerprint
from scrapegate.core.logging import get_logger
from scrapegate.core.response import envelope

logger = get_logger("scrapegate.api")

CACHE_HIT_MESSAGE = "Response from cache"


def get_cache(request: Request) -> ResponseCache:
    """Return the response cache attached to the application."""
    return request.app.state.cache


async def cached_envelope(
    request: Request,
    cache: ResponseCache,
    namespace: str,
    key_parts: tuple[Any, ...],
    produce: Callable[[], Awaitable[Any]],
    message: str,
    ttl: int | None = None,
) -> JSONResponse:
    """Serve a result from the cache or produce and store it.

    Args:
        request: Current request
        cache: Response cache
        namespace: Cache key namespace, usually the service name
        key_parts: Request parameters identifying the result
        produce: Coroutine factory computing a fresh result
        message: Envelope message for fresh results
        ttl: Optional TTL override in seconds

    Returns:
        Success envelope, with ``meta.cached`` set on a hit
    """
    key = fingerprint(namespace, *key_parts)
    cached = await cache.get(key)
    if cached is not None:
        logger.debug("cache_hit", namespace=namespace)
        return envelope(
            cached, CACHE_HIT_MESSAGE, meta={"cached": True}, request=request
        )

    result = await produce()
    await cache.set(key, result, ttl)
    return envelope(result, message, meta={"cached": False}, request=request)
