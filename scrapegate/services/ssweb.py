"""Website screenshots through imagy.app."""

from typing import Any

from scrapegate.core.exceptions import UpstreamError, ValidationError
from scrapegate.services.utils import (
    fetch,
    fetch_json,
    get_scraper_headers,
    require_http_url,
)

API_URL = "https://gcp.imagy.app/screenshot/createscreenshot"
MIN_SIZE = 100
MAX_SIZE = 4096

PRESETS = {
    "pc": (1280, 720),
    "hp": (720, 1280),
    "tablet": (1024, 768),
}


async def screenshot(
    url: str,
    width: int = 1280,
    height: int = 720,
    full_page: bool = False,
    device_scale: int = 1,
) -> dict[str, Any]:
    """Render a page and return the hosted screenshot URL.

    Raises:
        ValidationError: If the URL or the dimensions are invalid
        UpstreamError: If no file URL comes back
    """
    url = require_http_url(url)
    for field, value in (("width", width), ("height", height)):
        if not MIN_SIZE <= value <= MAX_SIZE:
            raise ValidationError(
                f"{field.capitalize()} must be between {MIN_SIZE} and {MAX_SIZE} pixels",
                {"field": field, "value": value},
            )

    data = await fetch_json(
        "POST",
        API_URL,
        service="ssweb",
        headers=get_scraper_headers(
            content_type="application/json",
            referer="https://imagy.app/full-page-screenshot-taker/",
        ),
        json={
            "url": url,
            "browserWidth": width,
            "browserHeight": height,
            "fullPage": full_page,
            "deviceScaleFactor": device_scale,
            "format": "png",
        },
    )
    file_url = data.get("fileUrl") if isinstance(data, dict) else None
    if not file_url:
        raise UpstreamError(
            "ssweb did not return a screenshot URL", {"service": "ssweb"}
        )

    return {
        "url": file_url,
        "metadata": {
            "originalUrl": url,
            "dimensions": {"width": width, "height": height},
            "fullPage": full_page,
            "format": "png",
        },
    }


async def screenshot_png(url: str, preset: str) -> bytes:
    """Take a screenshot with a named preset and download the PNG."""
    width, height = PRESETS[preset]
    result = await screenshot(url, width=width, height=height)
    response = await fetch("GET", result["url"], service="ssweb")
    return response.content
