"""Application startup and shutdown events."""

import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any

from prometheus_client import Counter, Gauge

from scrapegate.core.cache import ResponseCache
from scrapegate.core.config import settings
from scrapegate.core.logging import configure_logging, get_logger

logger = get_logger("scrapegate.core.events")

# Prometheus metrics
REQUESTS_TOTAL = Counter(
    "app_http_requests_total",
    "Total number of HTTP requests",
    labelnames=["method", "path"],
)

RESPONSES_TOTAL = Counter(
    "app_http_responses_total",
    "Total number of HTTP responses",
    labelnames=["status_code"],
)

UPSTREAM_CALLS = Counter(
    "scrapegate_upstream_calls_total",
    "Outbound calls to wrapped services",
    labelnames=["service", "outcome"],
)

POLL_ATTEMPTS = Counter(
    "scrapegate_job_poll_attempts_total",
    "Status checks issued while polling remote jobs",
    labelnames=["client", "outcome"],
)

RATE_LIMITED_TOTAL = Counter(
    "scrapegate_rate_limited_total",
    "Requests rejected by the rate limiter",
    labelnames=["path"],
)

STARTED_AT = Gauge(
    "scrapegate_started_at_seconds",
    "Unix time the application finished starting",
)


def create_start_app_handler(app: Any) -> Callable[[], Awaitable[None]]:
    """Create startup event handler.

    Args:
        app: FastAPI application instance

    Returns:
        Startup handler function
    """

    async def start_app() -> None:
        configure_logging(level=settings.LOG_LEVEL, json_logs=settings.JSON_LOGS)

        if getattr(app.state, "cache", None) is None:
            app.state.cache = ResponseCache.from_settings(settings)

        app.state.started_at = time.time()
        STARTED_AT.set(app.state.started_at)

        logger.info(
            "application_started",
            app_name=settings.app_name,
            version=settings.version,
            cache_backend=settings.CACHE_BACKEND,
            rate_limit=settings.RATE_LIMIT if settings.RATE_LIMIT_ENABLED else None,
        )

    return start_app


def create_stop_app_handler(app: Any) -> Callable[[], Awaitable[None]]:
    """Create shutdown event handler.

    Args:
        app: FastAPI application instance

    Returns:
        Shutdown handler function
    """

    async def stop_app() -> None:
        cache: ResponseCache | None = getattr(app.state, "cache", None)
        if cache is not None:
            await cache.close()
        logger.info("application_stopped")

    return stop_app


@asynccontextmanager
async def lifespan(app: Any) -> AsyncIterator[None]:
    """Run the startup and shutdown handlers around the app's lifetime."""
    await create_start_app_handler(app)()
    try:
        yield
    finally:
        await create_stop_app_handler(app)()
