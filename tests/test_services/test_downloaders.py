"""Tests for the videy, threads and multi-platform downloaders."""

import httpx
import pytest
import respx

from scrapegate.core.exceptions import UpstreamError, ValidationError
from scrapegate.services import aio, threads, videy

THREADS_API = "https://snapthreads.net/api/download"
POST_URL = "https://www.threads.net/@someone/post/C1a2b3"


def test_videy_resolves_cdn_link() -> None:
    result = videy.resolve("https://videy.co/v?id=AbC123")
    assert result == {
        "fileUrl": "https://cdn.videy.co/AbC123.mp4",
        "videoId": "AbC123",
        "downloadUrl": "https://cdn.videy.co/AbC123.mp4",
    }


@pytest.mark.parametrize(
    "url", ["https://videy.co/v", "https://example.com/video", "ftp://videy.co/v?id=1"]
)
def test_videy_rejects_bad_urls(url: str) -> None:
    with pytest.raises(ValidationError):
        videy.resolve(url)


@pytest.mark.asyncio
@respx.mock
async def test_threads_download() -> None:
    route = respx.get(THREADS_API).mock(
        return_value=httpx.Response(
            200,
            json={
                "directLink": "https://cdn.threads/v.mp4",
                "type": "video",
                "username": "someone",
            },
        )
    )

    result = await threads.download(POST_URL)

    assert result["downloadUrl"] == "https://cdn.threads/v.mp4"
    assert result["type"] == "video"
    assert result["metadata"]["username"] == "someone"
    assert route.calls[0].request.url.params["url"] == POST_URL


@pytest.mark.asyncio
@respx.mock
async def test_threads_adds_missing_scheme() -> None:
    respx.get(THREADS_API).mock(
        return_value=httpx.Response(200, json={"url": "https://cdn.threads/i.jpg"})
    )
    result = await threads.download("threads.net/@someone/post/C1")
    assert result["originalUrl"] == "https://threads.net/@someone/post/C1"
    assert result["type"] == "unknown"


@pytest.mark.asyncio
@respx.mock
async def test_threads_failure_message_is_kept() -> None:
    respx.get(THREADS_API).mock(
        return_value=httpx.Response(200, json={"success": False, "message": "Private post"})
    )
    with pytest.raises(UpstreamError) as exc_info:
        await threads.download(POST_URL)
    assert exc_info.value.message == "Private post"
    assert exc_info.value.details["upstreamMessage"] == "Private post"


@pytest.mark.asyncio
async def test_threads_rejects_other_domains() -> None:
    with pytest.raises(ValidationError):
        await threads.download("https://www.instagram.com/p/abc/")


@pytest.mark.parametrize(
    "url,platform",
    [
        ("https://www.instagram.com/reel/abc/", "instagram"),
        ("https://vm.tiktok.com/ZM123/", "tiktok"),
        ("https://x.com/user/status/1", "twitter"),
        ("https://youtu.be/dQw4w9WgXcQ", "youtube"),
        ("https://fb.gg/v/123", "facebook"),
        ("https://www.threads.net/@a/post/b", "threads"),
    ],
)
def test_detect_platform(url: str, platform: str) -> None:
    assert aio.detect_platform(url) == platform


def test_detect_platform_unknown() -> None:
    with pytest.raises(ValidationError):
        aio.detect_platform("https://example.com/video")


@pytest.mark.asyncio
@respx.mock
async def test_aio_tiktok() -> None:
    respx.get("https://api.tikmate.app/api/quote").mock(
        return_value=httpx.Response(
            200,
            json={"videoUrl": "https://cdn/t.mp4", "thumbnail": "https://cdn/t.jpg", "music": "m"},
        )
    )

    result = await aio.download("https://www.tiktok.com/@u/video/1")

    assert result == {
        "platform": "tiktok",
        "downloadUrl": "https://cdn/t.mp4",
        "type": "video",
        "thumbnail": "https://cdn/t.jpg",
        "music": "m",
    }


@pytest.mark.asyncio
@respx.mock
async def test_aio_youtube_maps_fields() -> None:
    respx.get("https://api.youtubemultidownloader.com/download").mock(
        return_value=httpx.Response(
            200,
            json={"url": "https://cdn/y.mp4", "thumb": "https://cdn/y.jpg", "title": "T", "duration": 61},
        )
    )
    result = await aio.download("https://www.youtube.com/watch?v=1", platform="youtube")
    assert result["thumbnail"] == "https://cdn/y.jpg"
    assert result["title"] == "T"
    assert result["duration"] == 61


@pytest.mark.asyncio
@respx.mock
async def test_aio_missing_link_is_upstream_error() -> None:
    respx.get("https://api.fbdownloader.me/api").mock(
        return_value=httpx.Response(200, json={"error": "not found"})
    )
    with pytest.raises(UpstreamError):
        await aio.download("https://www.facebook.com/watch/?v=1")


@pytest.mark.asyncio
async def test_aio_rejects_non_post_instagram_urls() -> None:
    with pytest.raises(ValidationError):
        await aio.download("https://www.instagram.com/someone/")


@pytest.mark.asyncio
@respx.mock
async def test_aio_threads_uses_threads_downloader() -> None:
    respx.get(THREADS_API).mock(
        return_value=httpx.Response(200, json={"downloadUrl": "https://cdn.threads/x.mp4"})
    )
    result = await aio.download(POST_URL, platform="unknown-name")
    assert result["platform"] == "threads"
    assert result["downloadUrl"] == "https://cdn.threads/x.mp4"
