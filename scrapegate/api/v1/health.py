"""Health, readiness, metrics and info endpoints."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.status import HTTP_200_OK, HTTP_503_SERVICE_UNAVAILABLE

from scrapegate.api.v1.utils import get_cache
from scrapegate.core.cache import ResponseCache
from scrapegate.core.config import settings
from scrapegate.core.health import check_liveness, check_readiness, get_system_metrics
from scrapegate.core.response import envelope, error_response
from scrapegate.middleware.ratelimit import limiter

router = APIRouter(tags=["health"])

ENDPOINTS = {
    "health": {
        "/health": "Basic health check",
        "/ready": "Readiness probe",
        "/metrics": "System metrics",
    },
    "ai": {
        "/ai/gemini": "Chat with Gemini AI",
        "/ai/gemini-with-system": "Gemini with system instruction",
        "/ai/waifu2x": "Image upscaling (POST)",
        "/ai/wainsfw": "Image generation (POST)",
        "/ai/sora2": "Video generation (POST)",
        "/ai/sora2/status": "Sora2 task status",
    },
    "downloader": {
        "/downloader/videy": "Videy direct file URL",
        "/downloader/threads": "Threads media download",
        "/downloader/aio": "Multi-platform downloader",
    },
    "tools": {
        "/tools/ssweb": "Website screenshot",
        "/tools/ssweb-pc": "Screenshot (PC)",
        "/tools/ssweb-hp": "Screenshot (Mobile)",
        "/tools/soundgasm/home": "SoundGASM home",
        "/tools/soundgasm/search": "Search SoundGASM",
        "/tools/soundgasm/audio": "Get audio details",
    },
}

FEATURES = [
    "Rate Limiting",
    "Input Validation",
    "Structured Logging",
    "Request ID Tracking",
    "Caching",
    "Security Headers",
    "Standardized API Responses",
    "Health Checks",
]


@router.get("/health")
@limiter.exempt
async def health(request: Request) -> JSONResponse:
    """Liveness probe."""
    return envelope(check_liveness(), "Service is healthy", request=request)


@router.get("/ready")
@limiter.exempt
async def ready(
    request: Request, cache: ResponseCache = Depends(get_cache)
) -> JSONResponse:
    """Readiness probe, 503 while any check fails."""
    readiness = await check_readiness(cache)
    if readiness["status"] == "ready":
        return envelope(readiness, "Service is ready", request=request)
    return JSONResponse(
        status_code=HTTP_503_SERVICE_UNAVAILABLE,
        content=error_response(
            "Service is not ready",
            HTTP_503_SERVICE_UNAVAILABLE,
            readiness,
            request,
        ),
    )


@router.get("/metrics")
async def metrics(request: Request) -> JSONResponse:
    return envelope(get_system_metrics(), "System metrics", request=request)


@router.get("/info")
async def info(request: Request) -> JSONResponse:
    data = {
        "name": settings.app_name,
        "version": settings.version,
        "description": "REST gateway for AI generation, downloaders and scraping tools",
        "endpoints": {
            group: {f"{settings.api_prefix}{path}": text for path, text in routes.items()}
            for group, routes in ENDPOINTS.items()
        },
        "features": FEATURES,
        "documentation": "/docs",
    }
    return envelope(data, "API Information", HTTP_200_OK, request=request)
