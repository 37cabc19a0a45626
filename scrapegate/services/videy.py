"""Videy direct file links."""

from scrapegate.core.exceptions import ValidationError
from scrapegate.services.utils import require_http_url

CDN_URL = "https://cdn.videy.co/{video_id}.mp4"


def resolve(url: str) -> dict[str, str]:
    """Build the CDN link for a ``videy.co/v?id=...`` page URL."""
    url = require_http_url(url)
    if "videy.co" not in url and "=" not in url:
        raise ValidationError("URL must come from videy.co", {"field": "url"})

    video_id = url.split("=")[1].split("&")[0] if "=" in url else ""
    if not video_id:
        raise ValidationError("Invalid URL parameter", {"field": "url"})

    file_url = CDN_URL.format(video_id=video_id)
    return {"fileUrl": file_url, "videoId": video_id, "downloadUrl": file_url}
