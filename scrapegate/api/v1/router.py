"""API v1 router module."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from scrapegate.api.v1.ai import router as ai_router
from scrapegate.api.v1.downloader import router as downloader_router
from scrapegate.api.v1.health import router as health_router
from scrapegate.api.v1.tools import router as tools_router

router = APIRouter(default_response_class=JSONResponse)

router.include_router(health_router)
router.include_router(ai_router)
router.include_router(downloader_router)
router.include_router(tools_router)
