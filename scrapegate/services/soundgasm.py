"""SoundGasm page scraping."""

from typing import Any

from scrapegate.core.exceptions import UpstreamError
from scrapegate.services.extraction import (
    FieldSpec,
    Strategy,
    absolute_url,
    attr,
    extract_fields,
    extract_list,
    parse_html,
    text,
)
from scrapegate.services.utils import fetch, get_scraper_headers, require_text

BASE_URL = "https://soundgasm.net"


class SoundGasmScraper:
    """Scraper for soundgasm.net home, search and audio pages."""

    def __init__(self, base_url: str = BASE_URL) -> None:
        self.base_url = base_url.rstrip("/")
        self.headers = get_scraper_headers(
            accept="text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            accept_language="en-US,en;q=0.5",
        )
        self.home_fields = {
            "title": text("div#container h1", default="SoundGASM"),
            "description": text("div#body p", default=""),
            "footerInfo": text("p.footer strong"),
        }
        self.result_fields = {
            "title": text("h3", ".title"),
            "url": attr("a", "href", post=[absolute_url(self.base_url)]),
            "duration": text(".duration", "time"),
        }
        self.audio_fields = {
            "title": FieldSpec(
                [Strategy('meta[property="og:title"]', "content"), Strategy("h1")]
            ),
            "description": FieldSpec(
                [
                    Strategy('meta[property="og:description"]', "content"),
                    Strategy('meta[name="description"]', "content"),
                ]
            ),
            "audioUrl": FieldSpec(
                [
                    Strategy("audio source", "src"),
                    Strategy("#audio-player source", "src"),
                ],
                post=[absolute_url(self.base_url)],
            ),
            "duration": attr('meta[property="og:duration"]', "content"),
            "waveformImage": attr(".waveform img", "src"),
        }

    async def _get(self, url: str, **kwargs: Any) -> str:
        response = await fetch(
            "GET", url, service="soundgasm", headers=self.headers, **kwargs
        )
        return response.text

    async def get_home(self) -> dict[str, Any]:
        soup = parse_html(await self._get(self.base_url))
        navigation = [
            {"text": link.get_text(strip=True), "url": link.get("href")}
            for link in soup.select("header nav a")
        ]
        return {**extract_fields(soup, self.home_fields), "navigation": navigation}

    async def search(self, query: str) -> dict[str, Any]:
        query = require_text(query, "q")
        html = await self._get(f"{self.base_url}/search", params={"q": query})
        results = extract_list(
            html,
            ".audio-item, .search-result",
            self.result_fields,
            required=("title", "url"),
        )
        return {"query": query, "totalResults": len(results), "results": results}

    async def get_audio(self, url: str) -> dict[str, Any]:
        """Read the metadata and audio file link of one audio page.

        Raises:
            UpstreamError: If the page has no audio source
        """
        url = require_text(url, "url")
        if not url.startswith("http"):
            url = absolute_url(self.base_url)(url)
        audio = extract_fields(await self._get(url), self.audio_fields)
        if not audio["audioUrl"]:
            raise UpstreamError(
                "Audio URL not found on the page", {"service": "soundgasm", "url": url}
            )
        return {"url": url, **audio}
