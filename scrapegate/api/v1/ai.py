"""AI generation endpoints."""

from typing import Literal

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from scrapegate.api.v1.utils import cached_envelope, get_cache
from scrapegate.core.cache import ResponseCache
from scrapegate.core.response import envelope
from scrapegate.services import gemini, sora2, waifu2x, wainsfw

router = APIRouter(prefix="/ai", tags=["ai"])


class Sora2Request(BaseModel):
    prompt: str = Field(..., description="Video description, at least 10 characters")
    ratio: Literal["portrait", "landscape"] = "portrait"


class WainRequest(BaseModel):
    prompt: str = Field(..., description="Image description, at least 5 characters")
    model: Literal["v140", "v130", "v120"] = "v140"
    width: int = Field(1024, ge=wainsfw.MIN_SIZE, le=wainsfw.MAX_SIZE)
    height: int = Field(1024, ge=wainsfw.MIN_SIZE, le=wainsfw.MAX_SIZE)
    guidanceScale: float = Field(6, gt=0, le=30)
    inferenceSteps: int = Field(30, ge=1, le=100)


class Waifu2xRequest(BaseModel):
    image: str = Field(..., description="Image URL or base64 data")
    style: Literal["artwork", "scans", "photo"] = "artwork"
    noice: Literal["none", "low", "medium", "high", "highest"] = "medium"
    upscaling: Literal["none", "1.6x", "2x"] = "2x"


@router.get("/gemini")
async def gemini_chat(
    request: Request,
    text: str = Query(..., min_length=1, max_length=gemini.MAX_TEXT_LENGTH),
    apikey: str = Query(..., min_length=gemini.MIN_APIKEY_LENGTH),
    cache: ResponseCache = Depends(get_cache),
) -> JSONResponse:
    """Chat with Gemini; identical prompts under one key are cached."""
    return await cached_envelope(
        request,
        cache,
        "gemini",
        (text, apikey),
        lambda: gemini.chat(text, apikey),
        "Gemini AI response",
    )


@router.get("/gemini-with-system")
async def gemini_with_system(
    request: Request,
    text: str = Query(..., min_length=1, max_length=gemini.MAX_TEXT_LENGTH),
    system: str = Query(..., min_length=1, max_length=gemini.MAX_SYSTEM_LENGTH),
    apikey: str = Query(..., min_length=gemini.MIN_APIKEY_LENGTH),
) -> JSONResponse:
    result = await gemini.chat(text, apikey, system=system)
    return envelope(
        result, "Gemini AI with system instruction response", request=request
    )


@router.post("/sora2")
async def sora2_generate(request: Request, body: Sora2Request) -> JSONResponse:
    """Generate a video and wait until it is ready."""
    result = await sora2.generate_video(body.prompt, body.ratio)
    return envelope(result, "Sora2 video generation completed", request=request)


@router.get("/sora2/status")
async def sora2_status(
    request: Request, taskId: str = Query(..., min_length=1)
) -> JSONResponse:
    result = await sora2.Sora2Client().check_status(taskId)
    return envelope(result, "Sora2 task status", request=request)


@router.post("/wainsfw")
async def wainsfw_generate(request: Request, body: WainRequest) -> JSONResponse:
    result = await wainsfw.generate_image(
        body.prompt,
        model=body.model,
        width=body.width,
        height=body.height,
        guidance_scale=body.guidanceScale,
        inference_steps=body.inferenceSteps,
    )
    return envelope(result, "Wain SFW image generation completed", request=request)


@router.post("/waifu2x")
async def waifu2x_upscale(request: Request, body: Waifu2xRequest) -> JSONResponse:
    result = await waifu2x.upscale(
        body.image, style=body.style, noice=body.noice, upscaling=body.upscaling
    )
    return envelope(result, "Waifu2x upscaling completed", request=request)
