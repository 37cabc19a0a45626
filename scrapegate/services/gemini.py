"""Gemini chat through the OpenAI-compatible endpoint."""

from typing import Any

import openai
from openai import AsyncOpenAI

from scrapegate.core.config import settings
from scrapegate.core.events import UPSTREAM_CALLS
from scrapegate.core.exceptions import UpstreamError
from scrapegate.core.logging import get_logger
from scrapegate.services.utils import require_text

logger = get_logger("scrapegate.services.gemini")

MAX_TEXT_LENGTH = 5000
MAX_SYSTEM_LENGTH = 2000
MIN_APIKEY_LENGTH = 10


def _error_message(exc: openai.APIStatusError) -> str:
    body = exc.body
    if isinstance(body, list) and body:
        body = body[0].get("error", body[0]) if isinstance(body[0], dict) else None
    if isinstance(body, dict) and isinstance(body.get("message"), str):
        return body["message"]
    return exc.message


def _client(apikey: str) -> AsyncOpenAI:
    return AsyncOpenAI(
        api_key=apikey,
        base_url=settings.GEMINI_BASE_URL,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
        max_retries=0,
    )


async def chat(text: str, apikey: str, system: str | None = None) -> dict[str, Any]:
    """Send one prompt to Gemini, optionally with a system instruction.

    Args:
        text: User prompt
        apikey: Caller supplied Gemini API key
        system: Optional system instruction

    Returns:
        Dict with the reply text and model name

    Raises:
        ValidationError: If a parameter is missing or out of bounds
        UpstreamError: If the Gemini call fails
    """
    text = require_text(text, "text", max_length=MAX_TEXT_LENGTH)
    apikey = require_text(apikey, "apikey", min_length=MIN_APIKEY_LENGTH)
    messages = []
    if system is not None:
        system = require_text(system, "system", max_length=MAX_SYSTEM_LENGTH)
        messages.append({"role": "system", "content": system})
    messages.append({"role": "user", "content": text})

    client = _client(apikey)
    try:
        completion = await client.chat.completions.create(
            model=settings.GEMINI_MODEL, messages=messages
        )
    except openai.APIStatusError as e:
        UPSTREAM_CALLS.labels(service="gemini", outcome="error").inc()
        message = _error_message(e)
        logger.warning("gemini_call_failed", status=e.status_code, error=message)
        raise UpstreamError(
            f"gemini responded with HTTP {e.status_code}",
            {"service": "gemini"},
            upstream_status=e.status_code,
            upstream_message=message,
        ) from e
    except openai.OpenAIError as e:
        UPSTREAM_CALLS.labels(service="gemini", outcome="error").inc()
        logger.warning("gemini_call_failed", error=str(e))
        raise UpstreamError(f"gemini request failed: {e}", {"service": "gemini"}) from e
    finally:
        await client.close()

    UPSTREAM_CALLS.labels(service="gemini", outcome="ok").inc()
    reply = completion.choices[0].message.content if completion.choices else None
    return {"text": reply or "", "model": settings.GEMINI_MODEL}
