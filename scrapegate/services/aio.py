"""Multi-platform media downloader with platform auto-detection."""

import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from scrapegate.core.exceptions import UpstreamError, ValidationError
from scrapegate.services import threads
from scrapegate.services.utils import fetch_json, get_scraper_headers, require_http_url

INSTAGRAM_POST = re.compile(
    r"(?:https?://)?(?:www\.)?instagram\.com/(?:p|reel|tv|stories)/[\w\-]+/?"
)

# Checked in order, first match wins
PLATFORM_HINTS = (
    ("instagram", ("instagram.com",)),
    ("tiktok", ("tiktok.com",)),
    ("twitter", ("twitter.com", "x.com")),
    ("youtube", ("youtube.com", "youtu.be")),
    ("facebook", ("facebook.com", "fb.gg")),
    ("threads", ("threads.net",)),
)
PLATFORMS = tuple(name for name, _ in PLATFORM_HINTS)


@dataclass(frozen=True)
class Resolver:
    """Third-party API resolving one platform's media links."""

    api_url: str
    link_field: str
    default_type: str
    extra_fields: tuple[tuple[str, str], ...] = ()
    type_field: str | None = None

    async def __call__(self, platform: str, url: str) -> dict[str, Any]:
        data = await fetch_json(
            "GET",
            self.api_url,
            service=f"aio-{platform}",
            params={"url": url},
            headers=get_scraper_headers(),
        )
        link = data.get(self.link_field) if isinstance(data, dict) else None
        if not link:
            raise UpstreamError(
                f"Could not download from {platform}", {"service": f"aio-{platform}"}
            )
        result = {
            "downloadUrl": link,
            "type": (data.get(self.type_field) if self.type_field else None)
            or self.default_type,
        }
        for source, target in self.extra_fields:
            result[target] = data.get(source)
        return result


RESOLVERS: dict[str, Resolver] = {
    "instagram": Resolver(
        "https://api.downr.ccinstagram.com/api",
        "url",
        "post",
        (("thumbnail", "thumbnail"),),
        type_field="type",
    ),
    "tiktok": Resolver(
        "https://api.tikmate.app/api/quote",
        "videoUrl",
        "video",
        (("thumbnail", "thumbnail"), ("music", "music")),
    ),
    "twitter": Resolver(
        "https://api.xvideotools.com/twitter/download",
        "url",
        "image",
        (("thumbnail", "thumbnail"),),
        type_field="type",
    ),
    "youtube": Resolver(
        "https://api.youtubemultidownloader.com/download",
        "url",
        "video",
        (("thumb", "thumbnail"), ("title", "title"), ("duration", "duration")),
    ),
    "facebook": Resolver(
        "https://api.fbdownloader.me/api",
        "videoUrl",
        "video",
        (("thumbnail", "thumbnail"), ("title", "title")),
    ),
}


def detect_platform(url: str) -> str:
    """Guess the platform from the URL host."""
    lowered = url.lower()
    for platform, hints in PLATFORM_HINTS:
        if any(hint in lowered for hint in hints):
            return platform
    raise ValidationError(
        f"Unrecognized platform. Supported: {', '.join(PLATFORMS)}",
        {"field": "url", "allowed": list(PLATFORMS)},
    )


async def _download_threads(platform: str, url: str) -> dict[str, Any]:
    return await threads.download(url)


Downloader = Callable[[str, str], Awaitable[dict[str, Any]]]


def downloader_for(platform: str) -> Downloader:
    if platform == "threads":
        return _download_threads
    return RESOLVERS[platform]


async def download(url: str, platform: str = "auto") -> dict[str, Any]:
    """Download media from any supported platform.

    Args:
        url: Post URL
        platform: Platform name or ``auto``; unknown names fall back to
            auto-detection

    Returns:
        Dict with the resolved platform and download link
    """
    url = require_http_url(url)
    target = platform if platform in PLATFORMS else detect_platform(url)
    if target == "instagram" and not INSTAGRAM_POST.search(url):
        raise ValidationError("Invalid Instagram URL", {"field": "url"})

    result = await downloader_for(target)(target, url)
    return {"platform": target, **result}
