"""Tests for the AI, downloader and tool endpoints."""

import base64

import httpx
import respx
from httpx import AsyncClient
from pytest import mark

from scrapegate.core.config import settings
from scrapegate.core.exceptions import PollTimeoutError
from scrapegate.jobs import PollOptions
from scrapegate.services import sora2, ssweb, wainsfw

GEMINI_URL = f"{settings.GEMINI_BASE_URL}chat/completions"
API_KEY = "AIza-test-key-123"


def _completion(content: str) -> dict:
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "created": 1700000000,
        "model": settings.GEMINI_MODEL,
        "choices": [
            {"index": 0, "message": {"role": "assistant", "content": content}, "finish_reason": "stop"}
        ],
    }


@mark.asyncio
@respx.mock
async def test_gemini_second_call_is_cached(test_app_async_client: AsyncClient) -> None:
    route = respx.post(GEMINI_URL).mock(
        return_value=httpx.Response(200, json=_completion("Hi!"))
    )
    params = {"text": "hello", "apikey": API_KEY}

    first = await test_app_async_client.get("/api/v1/ai/gemini", params=params)
    second = await test_app_async_client.get("/api/v1/ai/gemini", params=params)

    assert first.json()["data"]["text"] == "Hi!"
    assert first.json()["meta"] == {"cached": False}
    assert second.json()["message"] == "Response from cache"
    assert second.json()["meta"] == {"cached": True}
    assert second.json()["data"] == first.json()["data"]
    assert route.call_count == 1


@mark.asyncio
async def test_gemini_rejects_short_key(test_app_async_client: AsyncClient) -> None:
    response = await test_app_async_client.get(
        "/api/v1/ai/gemini", params={"text": "hello", "apikey": "short"}
    )
    assert response.status_code == 400
    assert "apikey" in response.json()["error"]["details"]


@mark.asyncio
@respx.mock
async def test_gemini_upstream_failure_is_502(test_app_async_client: AsyncClient) -> None:
    respx.post(GEMINI_URL).mock(
        return_value=httpx.Response(403, json={"error": {"message": "Permission denied"}})
    )
    response = await test_app_async_client.get(
        "/api/v1/ai/gemini-with-system",
        params={"text": "hello", "system": "be brief", "apikey": API_KEY},
    )
    assert response.status_code == 502
    assert response.json()["error"]["details"]["upstreamStatus"] == 403


@mark.asyncio
@respx.mock
async def test_sora2_route_polls_until_done(
    test_app_async_client: AsyncClient, mocker  # type: ignore[no-untyped-def]
) -> None:
    mocker.patch.object(
        sora2.Sora2Client,
        "default_options",
        PollOptions(interval=0, max_attempts=3, per_poll_timeout=1.0),
    )
    respx.post(f"{sora2.BASE_URL}/video/create").mock(
        return_value=httpx.Response(200, json={"data": "task_123"})
    )
    respx.get(f"{sora2.BASE_URL}/task_123").mock(
        side_effect=[
            httpx.Response(200, json={"data": {"state": 0}}),
            httpx.Response(
                200, json={"data": {"state": 1, "completeData": '{"videoUrl":"https://x/a.mp4"}'}}
            ),
        ]
    )

    response = await test_app_async_client.post(
        "/api/v1/ai/sora2", json={"prompt": "a cat surfing a wave", "ratio": "landscape"}
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["taskId"] == "task_123"
    assert data["video"]["url"] == "https://x/a.mp4"
    assert data["aspectRatio"] == "landscape"


@mark.asyncio
async def test_sora2_rejects_short_prompt(test_app_async_client: AsyncClient) -> None:
    response = await test_app_async_client.post("/api/v1/ai/sora2", json={"prompt": "cat"})
    assert response.status_code == 400
    assert response.json()["error"]["details"]["field"] == "prompt"


@mark.asyncio
async def test_sora2_rejects_unknown_ratio(test_app_async_client: AsyncClient) -> None:
    response = await test_app_async_client.post(
        "/api/v1/ai/sora2", json={"prompt": "a cat surfing a wave", "ratio": "square"}
    )
    assert response.status_code == 400
    assert "ratio" in response.json()["error"]["details"]


@mark.asyncio
async def test_sora2_timeout_is_504(
    test_app_async_client: AsyncClient, mocker  # type: ignore[no-untyped-def]
) -> None:
    mocker.patch.object(
        sora2,
        "generate_video",
        side_effect=PollTimeoutError("sora2 generation timed out, please try again", "t1", 120),
    )
    response = await test_app_async_client.post(
        "/api/v1/ai/sora2", json={"prompt": "a cat surfing a wave"}
    )
    assert response.status_code == 504
    assert response.json()["error"]["details"] == {"handle": "t1", "attempts": 120}


@mark.asyncio
async def test_sora2_status(test_app_async_client: AsyncClient) -> None:
    with respx.mock:
        respx.get(f"{sora2.BASE_URL}/t9").mock(
            return_value=httpx.Response(200, json={"data": {"state": 1}})
        )
        response = await test_app_async_client.get(
            "/api/v1/ai/sora2/status", params={"taskId": "t9"}
        )
    assert response.json()["data"]["status"] == "completed"


@mark.asyncio
async def test_wainsfw_route_passes_options(
    test_app_async_client: AsyncClient, mocker  # type: ignore[no-untyped-def]
) -> None:
    generate = mocker.patch.object(
        wainsfw, "generate_image", return_value={"imageUrl": "https://x/a.png"}
    )
    response = await test_app_async_client.post(
        "/api/v1/ai/wainsfw",
        json={"prompt": "a fox in snow", "model": "v130", "width": 768, "guidanceScale": 7},
    )
    assert response.status_code == 200
    assert response.json()["data"]["imageUrl"] == "https://x/a.png"
    generate.assert_awaited_once_with(
        "a fox in snow",
        model="v130",
        width=768,
        height=1024,
        guidance_scale=7,
        inference_steps=30,
    )


@mark.asyncio
@respx.mock
async def test_waifu2x_route(test_app_async_client: AsyncClient) -> None:
    respx.post("https://api.nekolabs.web.id/tools/bypass/cf-turnstile").mock(
        return_value=httpx.Response(500)
    )
    respx.post("https://www.waifu2x.net/api").mock(
        return_value=httpx.Response(200, content=b"upscaled")
    )
    response = await test_app_async_client.post(
        "/api/v1/ai/waifu2x",
        json={"image": base64.b64encode(b"source").decode(), "upscaling": "1.6x"},
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert base64.b64decode(data["image"]) == b"upscaled"
    assert data["metadata"]["scale"] == "1.6x"


@mark.asyncio
async def test_videy_route(test_app_async_client: AsyncClient) -> None:
    response = await test_app_async_client.get(
        "/api/v1/downloader/videy", params={"url": "https://videy.co/v?id=xyz"}
    )
    assert response.json()["data"]["fileUrl"] == "https://cdn.videy.co/xyz.mp4"


@mark.asyncio
@respx.mock
async def test_threads_route_caches(test_app_async_client: AsyncClient) -> None:
    route = respx.get("https://snapthreads.net/api/download").mock(
        return_value=httpx.Response(200, json={"directLink": "https://cdn/x.mp4"})
    )
    params = {"url": "https://www.threads.net/@a/post/b"}

    await test_app_async_client.get("/api/v1/downloader/threads", params=params)
    second = await test_app_async_client.get("/api/v1/downloader/threads", params=params)

    assert second.json()["meta"]["cached"] is True
    assert route.call_count == 1


@mark.asyncio
async def test_threads_route_rejects_other_domains(test_app_async_client: AsyncClient) -> None:
    response = await test_app_async_client.get(
        "/api/v1/downloader/threads", params={"url": "https://example.com/post"}
    )
    assert response.status_code == 400


@mark.asyncio
@respx.mock
async def test_aio_route(test_app_async_client: AsyncClient) -> None:
    respx.get("https://api.xvideotools.com/twitter/download").mock(
        return_value=httpx.Response(200, json={"url": "https://cdn/t.jpg"})
    )
    response = await test_app_async_client.get(
        "/api/v1/downloader/aio", params={"url": "https://twitter.com/u/status/1"}
    )
    data = response.json()["data"]
    assert data["platform"] == "twitter"
    assert data["type"] == "image"


@mark.asyncio
@respx.mock
async def test_ssweb_pc_returns_png(test_app_async_client: AsyncClient) -> None:
    respx.post(ssweb.API_URL).mock(
        return_value=httpx.Response(200, json={"fileUrl": "https://files/s.png"})
    )
    respx.get("https://files/s.png").mock(return_value=httpx.Response(200, content=b"\x89PNG"))

    response = await test_app_async_client.get(
        "/api/v1/tools/ssweb-pc", params={"url": "https://example.com"}
    )

    assert response.status_code == 200
    assert response.headers["content-type"] == "image/png"
    assert response.headers["cache-control"] == "public, max-age=3600"
    assert response.content == b"\x89PNG"


@mark.asyncio
async def test_ssweb_rejects_bad_url(test_app_async_client: AsyncClient) -> None:
    response = await test_app_async_client.get(
        "/api/v1/tools/ssweb", params={"url": "example.com"}
    )
    assert response.status_code == 400
    assert response.json()["error"]["type"] == "Validation Error"


@mark.asyncio
@respx.mock
async def test_soundgasm_search_route(test_app_async_client: AsyncClient) -> None:
    respx.get("https://soundgasm.net/search").mock(
        return_value=httpx.Response(
            200, text='<div class="audio-item"><h3>Rain</h3><a href="/u/a/rain">x</a></div>'
        )
    )
    response = await test_app_async_client.get(
        "/api/v1/tools/soundgasm/search", params={"q": "rain"}
    )
    data = response.json()["data"]
    assert data["totalResults"] == 1
    assert data["results"][0]["url"] == "https://soundgasm.net/u/a/rain"


@mark.asyncio
async def test_soundgasm_search_requires_query(test_app_async_client: AsyncClient) -> None:
    response = await test_app_async_client.get("/api/v1/tools/soundgasm/search")
    assert response.status_code == 400


@mark.asyncio
@respx.mock
async def test_sora2_bad_completion_metadata_is_502(
    test_app_async_client: AsyncClient, mocker  # type: ignore[no-untyped-def]
) -> None:
    mocker.patch.object(
        sora2.Sora2Client,
        "default_options",
        PollOptions(interval=0, max_attempts=2, per_poll_timeout=1.0),
    )
    respx.post(f"{sora2.BASE_URL}/video/create").mock(
        return_value=httpx.Response(200, json={"data": "task_9"})
    )
    respx.get(f"{sora2.BASE_URL}/task_9").mock(
        return_value=httpx.Response(
            200,
            json={
                "data": {
                    "state": 1,
                    "completeData": '{"videoUrl":"https://x/a.mp4","duration":"8 seconds"}',
                }
            },
        )
    )

    response = await test_app_async_client.post(
        "/api/v1/ai/sora2", json={"prompt": "a cat surfing a wave"}
    )

    assert response.status_code == 502
    body = response.json()
    assert body["error"]["type"] == "Bad Gateway"
    assert body["error"]["details"]["handle"] == "task_9"


@mark.asyncio
async def test_wainsfw_rejects_out_of_range_size(
    test_app_async_client: AsyncClient, mocker  # type: ignore[no-untyped-def]
) -> None:
    generate = mocker.patch.object(wainsfw, "generate_image")
    response = await test_app_async_client.post(
        "/api/v1/ai/wainsfw", json={"prompt": "a fox in snow", "width": 4096}
    )
    assert response.status_code == 400
    assert "width" in response.json()["error"]["details"]
    generate.assert_not_called()


@mark.asyncio
async def test_wainsfw_size_range_in_openapi(test_app_async_client: AsyncClient) -> None:
    schema = (await test_app_async_client.get("/openapi.json")).json()
    width = schema["components"]["schemas"]["WainRequest"]["properties"]["width"]
    assert width["minimum"] == 256
    assert width["maximum"] == 2048
