from __future__ import annotations

import asyncio
from typing import Awaitable, Callable
from urllib.parse import quote_plus

import httpx
from loguru import logger

from haloai.research_core.extract.service import (
    extract_page_text,
    extract_result_links,
    is_absolute_url,
)
from haloai.research_core.models.interfaces import FetchedPage, PageText

SEARCH_PAGE_URL = "https://html.duckduckgo.com/html/?q={query}"
BROWSER_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64)"

Fetcher = Callable[[str, float], Awaitable[FetchedPage]]


async def _fetch_with_httpx(url: str, timeout: float) -> FetchedPage:
    async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
        response = await client.get(url, headers={"User-Agent": BROWSER_USER_AGENT})
        return FetchedPage(url=str(response.url), status_code=int(response.status_code), html=response.text)


class WebFallbackService:
    """Scrape a public search-results page and extract readable page text.

    Used when no search provider is enabled or every provider came back
    empty. Every failure is confined to the URL that caused it.
    """

    def __init__(
        self,
        *,
        timeout: float = 8.0,
        search_timeout: float | None = None,
        fetcher: Fetcher | None = None,
    ):
        self.timeout = max(float(timeout), 0.5)
        self.search_timeout = max(float(search_timeout or timeout), 0.5)
        self._fetcher = fetcher or _fetch_with_httpx

    async def search_links(self, query: str, max_results: int = 4) -> list[str]:
        if not query.strip():
            return []
        url = SEARCH_PAGE_URL.format(query=quote_plus(query))
        try:
            page = await self._fetcher(url, self.search_timeout)
        except Exception as exc:
            logger.warning(f"[web-fallback] search page request failed: {exc}")
            return []
        if not page.ok:
            logger.warning(f"[web-fallback] search page returned HTTP {page.status_code}")
            return []
        return extract_result_links(page.html, max_results)

    async def fetch_and_extract(self, url: str) -> str | None:
        if not is_absolute_url(url):
            return None
        try:
            page = await self._fetcher(url, self.timeout)
        except Exception as exc:
            logger.debug(f"[web-fallback] fetch failed for {url}: {exc}")
            return None
        if not page.ok:
            return None
        try:
            return extract_page_text(page.html)
        except Exception as exc:
            logger.debug(f"[web-fallback] extraction failed for {url}: {exc}")
            return None

    async def retrieve(self, query: str, max_results: int = 4) -> list[PageText]:
        """Return extracted text for every result page that yielded any."""
        links = [link for link in await self.search_links(query, max_results) if is_absolute_url(link)]
        if not links:
            return []
        texts = await asyncio.gather(*(self.fetch_and_extract(link) for link in links))
        return [PageText(url=link, text=text) for link, text in zip(links, texts) if text]
