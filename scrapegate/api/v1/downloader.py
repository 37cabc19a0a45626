"""Media downloader endpoints."""

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from scrapegate.api.v1.utils import cached_envelope, get_cache
from scrapegate.core.cache import ResponseCache
from scrapegate.core.response import envelope
from scrapegate.services import aio, threads, videy

router = APIRouter(prefix="/downloader", tags=["downloader"])


@router.get("/videy")
async def videy_download(request: Request, url: str = Query(...)) -> JSONResponse:
    return envelope(videy.resolve(url), "Videy video URL generated", request=request)


@router.get("/threads")
async def threads_download(
    request: Request,
    url: str = Query(...),
    cache: ResponseCache = Depends(get_cache),
) -> JSONResponse:
    """Resolve a Threads post; results are cached for the default TTL."""
    return await cached_envelope(
        request,
        cache,
        "threads",
        (url,),
        lambda: threads.download(url),
        "Threads media downloaded",
    )


@router.get("/aio")
async def aio_download(
    request: Request,
    url: str = Query(...),
    platform: str = Query("auto"),
) -> JSONResponse:
    result = await aio.download(url, platform)
    return envelope(result, "AIO download completed", request=request)
