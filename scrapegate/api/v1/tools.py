"""Screenshot and scraping tool endpoints."""

from fastapi import APIRouter, Query, Request, Response
from fastapi.responses import JSONResponse

from scrapegate.core.response import envelope
from scrapegate.services import ssweb
from scrapegate.services.soundgasm import SoundGasmScraper

router = APIRouter(prefix="/tools", tags=["tools"])

soundgasm = SoundGasmScraper()


def _png(content: bytes) -> Response:
    return Response(
        content=content,
        media_type="image/png",
        headers={"Cache-Control": "public, max-age=3600"},
    )


@router.get("/ssweb")
async def screenshot(
    request: Request,
    url: str = Query(...),
    width: int = Query(1280),
    height: int = Query(720),
    fullPage: bool = Query(False),
) -> JSONResponse:
    result = await ssweb.screenshot(url, width=width, height=height, full_page=fullPage)
    return envelope(result, "Screenshot generated", request=request)


@router.get("/ssweb-pc", response_class=Response)
async def screenshot_pc(url: str = Query(...)) -> Response:
    """Desktop screenshot returned as PNG."""
    return _png(await ssweb.screenshot_png(url, "pc"))


@router.get("/ssweb-hp", response_class=Response)
async def screenshot_hp(url: str = Query(...)) -> Response:
    """Mobile screenshot returned as PNG."""
    return _png(await ssweb.screenshot_png(url, "hp"))


@router.get("/soundgasm/home")
async def soundgasm_home(request: Request) -> JSONResponse:
    result = await soundgasm.get_home()
    return envelope(result, "SoundGASM home page retrieved", request=request)


@router.get("/soundgasm/search")
async def soundgasm_search(request: Request, q: str = Query(..., min_length=1)) -> JSONResponse:
    result = await soundgasm.search(q)
    return envelope(result, "SoundGASM search completed", request=request)


@router.get("/soundgasm/audio")
async def soundgasm_audio(request: Request, url: str = Query(...)) -> JSONResponse:
    result = await soundgasm.get_audio(url)
    return envelope(result, "SoundGASM audio details retrieved", request=request)
