"""WAI-Illustrious (SFW) image generation through a Gradio queue."""

import json
import secrets
from datetime import datetime, timezone
from typing import Any

import httpx

from scrapegate.core.exceptions import ResultParseError, ValidationError
from scrapegate.jobs.models import ImageArtifact, JobResult, JobStatus, PollOptions
from scrapegate.jobs.poller import AsyncJobPoller
from scrapegate.services.utils import get_scraper_headers, require_choice, require_text

BASE_URL = "https://nech-c-wainsfwillustrious-v140.hf.space"
MODELS = ("v140", "v130", "v120")
MIN_PROMPT_LENGTH = 5
MIN_SIZE = 256
MAX_SIZE = 2048

DEFAULT_QUALITY_PROMPT = "masterpiece, best quality, fine details, high quality"
DEFAULT_NEGATIVE_PROMPT = (
    "lowres, bad anatomy, bad hands, text, error, missing finger, extra digits, "
    "fewer digits, cropped, worst quality, low quality, low score, bad score, "
    "average score, signature, watermark, username, blurry"
)

# Gradio endpoint of the generate button
FN_INDEX = 9
TRIGGER_ID = 18


def parse_sse_events(body: str) -> list[dict[str, Any]]:
    """Decode the JSON ``data:`` events of a server-sent-event body.

    Events that are not valid JSON are skipped.
    """
    events = []
    for block in body.split("\n\n"):
        for line in block.splitlines():
            if not line.startswith("data:"):
                continue
            try:
                event = json.loads(line[len("data:"):].strip())
            except ValueError:
                continue
            if isinstance(event, dict):
                events.append(event)
    return events


class WainClient(AsyncJobPoller):
    """Job client for the Gradio queue of the WAI-Illustrious space.

    The Gradio queue is addressed by session hash: joining the queue
    returns an ``event_id`` but results are read back from the session's
    event stream, so the session hash is the job handle.
    """

    name = "wainsfw"
    default_options = PollOptions(interval=1.0, max_attempts=60)

    def __init__(self, base_url: str = BASE_URL, **kwargs: Any) -> None:
        kwargs.setdefault("headers", get_scraper_headers(content_type="application/json"))
        kwargs.setdefault("timeout", 60.0)
        super().__init__(**kwargs)
        self.base_url = base_url.rstrip("/")

    @staticmethod
    def build_request(
        prompt: str,
        model: str = "v140",
        width: int = 1024,
        height: int = 1024,
        guidance_scale: float = 6,
        inference_steps: int = 30,
        quality_prompt: str = DEFAULT_QUALITY_PROMPT,
        negative_prompt: str = DEFAULT_NEGATIVE_PROMPT,
        generations: int = 1,
    ) -> dict[str, Any]:
        """Validate caller input and build the queue join payload."""
        prompt = require_text(prompt, "prompt", min_length=MIN_PROMPT_LENGTH)
        require_choice(model, "model", MODELS)
        for field, value in (("width", width), ("height", height)):
            if not MIN_SIZE <= value <= MAX_SIZE:
                raise ValidationError(
                    f"Width and height must be between {MIN_SIZE} and {MAX_SIZE} pixels",
                    {"field": field, "value": value},
                )

        return {
            "data": [
                model,
                prompt,
                quality_prompt,
                negative_prompt,
                0,
                True,
                width,
                height,
                guidance_scale,
                inference_steps,
                generations,
                None,
                True,
            ],
            "event_data": None,
            "fn_index": FN_INDEX,
            "trigger_id": TRIGGER_ID,
            "session_hash": secrets.token_hex(6),
        }

    async def _create(self, client: httpx.AsyncClient, request: dict[str, Any]) -> Any:
        response = await client.post(
            f"{self.base_url}/gradio_api/queue/join", json=request
        )
        response.raise_for_status()
        return response.json()

    def _extract_handle(self, payload: Any, request: dict[str, Any]) -> str | None:
        if not isinstance(payload, dict) or not payload.get("event_id"):
            return None
        return str(request["session_hash"])

    async def _check(self, client: httpx.AsyncClient, handle: str) -> Any:
        response = await client.get(
            f"{self.base_url}/gradio_api/queue/data",
            params={"session_hash": handle},
        )
        response.raise_for_status()
        return parse_sse_events(response.text)

    @staticmethod
    def _completed_event(events: list[dict[str, Any]]) -> dict[str, Any] | None:
        for event in events:
            if event.get("msg") == "process_completed":
                return event
        return None

    def _status(self, payload: Any) -> JobStatus:
        event = self._completed_event(payload)
        if event is None:
            return JobStatus.PENDING
        output = event.get("output") or {}
        data = output.get("data") if isinstance(output, dict) else None
        first = data[0] if isinstance(data, list) and data else None
        # A completion without an image (e.g. a failed run) keeps polling
        if isinstance(first, dict) and first.get("url"):
            return JobStatus.COMPLETE
        return JobStatus.PENDING

    def _parse_result(self, handle: str, payload: Any) -> JobResult:
        event = self._completed_event(payload)
        try:
            url = event["output"]["data"][0]["url"]  # type: ignore[index]
        except (KeyError, IndexError, TypeError) as e:
            raise ResultParseError(
                "wainsfw completion event has no image", {"handle": handle}
            ) from e
        return JobResult(handle=handle, images=[ImageArtifact(url=url)])


async def generate_image(
    prompt: str,
    model: str = "v140",
    width: int = 1024,
    height: int = 1024,
    guidance_scale: float = 6,
    inference_steps: int = 30,
    client: WainClient | None = None,
) -> dict[str, Any]:
    """Generate one image and wait for it.

    Returns:
        Dict with prompt, image URL and generation metadata
    """
    request = WainClient.build_request(
        prompt,
        model=model,
        width=width,
        height=height,
        guidance_scale=guidance_scale,
        inference_steps=inference_steps,
    )
    client = client or WainClient()
    result = await client.run(request)
    return {
        "prompt": request["data"][1],
        "imageUrl": result.images[0].url,
        "metadata": {
            "model": model,
            "width": width,
            "height": height,
            "guidanceScale": guidance_scale,
            "inferenceSteps": inference_steps,
            "qualityPrompt": request["data"][2],
            "negativePrompt": request["data"][3],
            "generatedAt": datetime.now(timezone.utc).isoformat(),
            "attempts": result.attempts,
        },
    }
