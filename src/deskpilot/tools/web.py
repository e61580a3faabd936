"""HTTP-backed helpers: instant-answer web search and image search."""

from __future__ import annotations

from typing import Any

from deskpilot.config.secrets import fetch_secret
from deskpilot.logging import get_logger

log = get_logger("tools")

DUCKDUCKGO_URL = "https://api.duckduckgo.com/"
SERPER_IMAGES_URL = "https://google.serper.dev/images"
SERPER_KEY = "SERPER_API_KEY"

HTTP_TIMEOUT = 15.0


class DuckDuckGoSearch:
    """DuckDuckGo Instant Answer API. No key required."""

    def __init__(self, *, timeout: float = HTTP_TIMEOUT, max_topics: int = 3) -> None:
        self._timeout = timeout
        self._max_topics = max_topics

    async def search(self, query: str) -> str:
        import httpx

        params = {"q": query, "format": "json", "no_html": "1"}
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.get(DUCKDUCKGO_URL, params=params)
            response.raise_for_status()
            data = response.json()
        return self.summarize(query, data)

    def summarize(self, query: str, data: dict[str, Any]) -> str:
        """Abstract text if present, else the first related topics."""
        text = data.get("AbstractText") or ""
        if not text:
            topics = data.get("RelatedTopics") or []
            text = "\n".join(
                t["Text"] for t in topics[: self._max_topics] if isinstance(t, dict) and t.get("Text")
            )
        if not text:
            text = f'No instant results for "{query}". Try being more specific.'
        return text


class SerperImageSearch:
    """Google Images through the Serper API; returns the first result's bytes."""

    def __init__(self, api_key: str | None = None, *, timeout: float = HTTP_TIMEOUT) -> None:
        self._api_key = api_key
        self._timeout = timeout

    async def find(self, query: str) -> bytes:
        import httpx

        api_key = self._api_key or fetch_secret(SERPER_KEY)
        if not api_key:
            raise RuntimeError(f"Serper API key not configured ({SERPER_KEY})")

        async with httpx.AsyncClient(timeout=self._timeout, follow_redirects=True) as client:
            response = await client.post(
                SERPER_IMAGES_URL,
                headers={"X-API-KEY": api_key, "Content-Type": "application/json"},
                json={"q": query, "num": 5},
            )
            response.raise_for_status()
            images = response.json().get("images") or []
            if not images or not images[0].get("imageUrl"):
                raise RuntimeError(f'No images found for "{query}"')

            url = images[0]["imageUrl"]
            log.debug("Downloading image for %r from %s", query, url)
            image = await client.get(url)
            image.raise_for_status()
            return image.content
