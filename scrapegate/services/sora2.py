"""Sora2 text-to-video generation through bylo.ai."""

import json
from datetime import datetime, timezone
from typing import Any

import httpx

from scrapegate.core.exceptions import ResultParseError, UpstreamError
from scrapegate.jobs.models import JobResult, JobStatus, PollOptions, VideoArtifact
from scrapegate.jobs.poller import AsyncJobPoller
from scrapegate.services.utils import (
    get_scraper_headers,
    require_choice,
    require_text,
    to_upstream_error,
)

BASE_URL = "https://api.bylo.ai/aimodels/api/v1/ai"
CHANNEL = "SORA2"
MODEL = "sora_video2"
RATIOS = ("portrait", "landscape")
MIN_PROMPT_LENGTH = 10


class Sora2Client(AsyncJobPoller):
    """Job client for the bylo.ai Sora2 video channel."""

    name = "sora2"
    default_options = PollOptions(interval=1.0, max_attempts=120)

    def __init__(self, base_url: str = BASE_URL, **kwargs: Any) -> None:
        kwargs.setdefault(
            "headers",
            get_scraper_headers(
                content_type="application/json; charset=UTF-8",
                origin="https://bylo.ai",
                referer="https://bylo.ai/features/sora-2",
                x_requested_with="XMLHttpRequest",
            ),
        )
        super().__init__(**kwargs)
        self.base_url = base_url.rstrip("/")

    @staticmethod
    def build_request(prompt: str, ratio: str = "portrait") -> dict[str, Any]:
        """Validate caller input and build the job creation payload."""
        prompt = require_text(prompt, "prompt", min_length=MIN_PROMPT_LENGTH)
        ratio = require_choice(ratio or "portrait", "ratio", RATIOS)
        return {
            "prompt": prompt,
            "channel": CHANNEL,
            "pageId": 536,
            "source": "bylo.ai",
            "watermarkFlag": True,
            "privateFlag": True,
            "isTemp": True,
            "vipFlag": True,
            "model": MODEL,
            "videoType": "text-to-video",
            "aspectRatio": ratio,
        }

    async def _create(self, client: httpx.AsyncClient, request: dict[str, Any]) -> Any:
        response = await client.post(f"{self.base_url}/video/create", json=request)
        response.raise_for_status()
        return response.json()

    def _extract_handle(self, payload: Any, request: dict[str, Any]) -> str | None:
        if not isinstance(payload, dict):
            return None
        handle = payload.get("data")
        if isinstance(handle, (str, int)) and not isinstance(handle, bool):
            return str(handle)
        return None

    async def _check(self, client: httpx.AsyncClient, handle: str) -> Any:
        response = await client.get(
            f"{self.base_url}/{handle}", params={"channel": CHANNEL}
        )
        response.raise_for_status()
        return response.json()

    def _status(self, payload: Any) -> JobStatus:
        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict):
            return JobStatus.UNKNOWN
        state = data.get("state")
        if isinstance(state, (int, float)) and state > 0:
            return JobStatus.COMPLETE
        return JobStatus.PENDING

    def _parse_result(self, handle: str, payload: Any) -> JobResult:
        raw = payload["data"].get("completeData")
        try:
            complete = json.loads(raw) if isinstance(raw, str) else raw
        except ValueError as e:
            raise ResultParseError(
                "sora2 returned malformed completion data", {"handle": handle}
            ) from e
        if not isinstance(complete, dict):
            raise ResultParseError(
                "sora2 completion data is not an object", {"handle": handle}
            )

        url = complete.get("videoUrl") or complete.get("url")
        if not url:
            raise ResultParseError(
                "sora2 completion data has no video URL", {"handle": handle}
            )

        return JobResult(
            handle=handle,
            video=VideoArtifact(
                url=url,
                thumbnail=complete.get("thumbnail") or complete.get("cover"),
                duration=complete.get("duration") or None,
            ),
            metadata={
                "model": MODEL,
                "createdAt": datetime.now(timezone.utc).isoformat(),
                "status": "completed",
            },
        )

    async def check_status(self, handle: str) -> dict[str, Any]:
        """Query a task once without waiting for it."""
        handle = require_text(handle, "taskId")
        async with self._client(self.options.per_poll_timeout) as client:
            try:
                payload = await self._check(client, handle)
            except httpx.HTTPError as e:
                raise to_upstream_error(e, self.name) from e
            except ValueError as e:
                raise UpstreamError(
                    "sora2 returned a non-JSON status response", {"service": self.name}
                ) from e
        status = self._status(payload)
        state = payload["data"].get("state") if status is not JobStatus.UNKNOWN else None
        return {
            "taskId": handle,
            "status": "completed" if status is JobStatus.COMPLETE else "processing",
            "state": state,
        }


async def generate_video(
    prompt: str, ratio: str = "portrait", client: Sora2Client | None = None
) -> dict[str, Any]:
    """Generate a video and wait for it.

    Args:
        prompt: Video description, at least 10 characters
        ratio: ``portrait`` or ``landscape``
        client: Optional preconfigured client

    Returns:
        Dict with task id, prompt, ratio, video and metadata
    """
    request = Sora2Client.build_request(prompt, ratio)
    client = client or Sora2Client()
    result = await client.run(request)
    return {
        "taskId": result.handle,
        "prompt": request["prompt"],
        "aspectRatio": request["aspectRatio"],
        **result.model_dump(exclude={"handle"}),
    }
