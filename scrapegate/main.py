"""Main FastAPI application module."""

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from scrapegate.api.v1.router import router as v1_router
from scrapegate.core.cache import ResponseCache
from scrapegate.core.config import Settings, settings
from scrapegate.core.events import lifespan
from scrapegate.core.response import envelope
from scrapegate.middleware.correlation import CorrelationMiddleware
from scrapegate.middleware.errors import ErrorHandlingMiddleware, register_exception_handlers
from scrapegate.middleware.metrics import MetricsMiddleware
from scrapegate.middleware.ratelimit import limiter, rate_limit_exceeded_handler
from scrapegate.middleware.security import SecurityHeadersMiddleware


def create_app(app_settings: Settings = settings) -> FastAPI:
    """Build the gateway application.

    The cache is attached eagerly so the app also works under transports
    that do not run the lifespan.
    """
    app = FastAPI(
        title=app_settings.app_name,
        description="REST gateway for AI generation, media downloaders and scraping tools",
        version=app_settings.version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        default_response_class=JSONResponse,
        lifespan=lifespan,
    )
    app.state.limiter = limiter
    app.state.cache = ResponseCache.from_settings(app_settings)

    register_exception_handlers(app)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    # Add middleware in order (inside -> out):
    # 1. CORS (outermost)
    # 2. Security headers
    # 3. Correlation (adds request ID)
    # 4. Metrics (tracks all requests)
    # 5. Error handling
    # 6. Rate limiting (innermost)
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(CorrelationMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=app_settings.cors_allow_credentials,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*", "Content-Type", "X-Request-ID"],
        expose_headers=[
            "X-Request-ID",
            "Retry-After",
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
            "X-RateLimit-Reset",
        ],
        max_age=600,
    )

    @app.get("/metrics", include_in_schema=False)
    @limiter.exempt
    async def prometheus_metrics() -> Response:
        """Expose Prometheus metrics."""
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.get("/", include_in_schema=False)
    async def root(request: Request) -> JSONResponse:
        return envelope(
            {
                "name": app_settings.app_name,
                "version": app_settings.version,
                "docs": "/docs",
                "info": f"{app_settings.api_prefix}/info",
            },
            f"Welcome to {app_settings.app_name}",
            request=request,
        )

    # Mount v1 routes under prefix
    app.include_router(v1_router, prefix=app_settings.api_prefix)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "scrapegate.main:app",
        host="0.0.0.0",
        port=8000,
        log_level=settings.LOG_LEVEL.lower(),
    )
