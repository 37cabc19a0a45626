"""Threads media downloads through snapthreads.net."""

from typing import Any

from scrapegate.core.exceptions import UpstreamError
from scrapegate.services.utils import fetch_json, get_scraper_headers, require_http_url

API_URL = "https://snapthreads.net/api/download"
DOMAINS = ("threads.net", "threads.com")


async def download(url: str) -> dict[str, Any]:
    """Resolve the direct media link of a Threads post.

    Raises:
        ValidationError: If the URL is not a Threads URL
        UpstreamError: If the resolver fails or answers in an unknown format
    """
    if url and not url.strip().startswith(("http://", "https://")):
        url = "https://" + url.strip()
    url = require_http_url(url, domains=DOMAINS)

    data = await fetch_json(
        "GET",
        API_URL,
        service="threads",
        params={"url": url},
        headers=get_scraper_headers(
            accept="*/*",
            referer="https://snapthreads.net/id",
            x_requested_with="XMLHttpRequest",
        ),
    )
    if not isinstance(data, dict) or not data:
        raise UpstreamError("threads returned an empty response", {"service": "threads"})

    download_url = data.get("directLink") or data.get("url") or data.get("downloadUrl")
    if download_url:
        return {
            "downloadUrl": download_url,
            "originalUrl": url,
            "type": data.get("type") or "unknown",
            "metadata": {
                "caption": data.get("caption"),
                "username": data.get("username"),
                "likeCount": data.get("likeCount"),
                "replyCount": data.get("replyCount"),
            },
        }
    if data.get("success") is False:
        message = data.get("message") or "threads could not resolve a download link"
        raise UpstreamError(
            message, {"service": "threads"}, upstream_message=data.get("message")
        )
    raise UpstreamError(
        "threads returned an unrecognized response", {"service": "threads"}
    )
