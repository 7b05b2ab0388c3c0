from __future__ import annotations

from typing import Any

import httpx

from haloai.config import Settings, settings

BRAVE_SEARCH_URL = "https://api.search.brave.com/res/v1/web/search"


async def search(
    query: str,
    *,
    max_results: int = 5,
    timeout: float = 2.5,
    config: Settings | None = None,
) -> list[dict[str, Any]]:
    """Execute a Brave web search and map results to title/url/snippet."""
    config = config or settings
    if not config.brave_api_key:
        raise RuntimeError("BRAVE_API_KEY is not configured")

    async with httpx.AsyncClient(timeout=timeout) as client:
        response = await client.get(
            BRAVE_SEARCH_URL,
            params={"q": query, "count": max_results},
            headers={
                "Accept": "application/json",
                "X-Subscription-Token": config.brave_api_key,
            },
        )
        response.raise_for_status()
        payload = response.json()

    raw_results = (payload.get("web") or {}).get("results") or []
    mapped: list[dict[str, Any]] = []
    for item in raw_results[:max_results]:
        snippets = item.get("extra_snippets", []) or []
        description = item.get("description", "") or ""
        mapped.append(
            {
                "title": item.get("title", ""),
                "url": item.get("url", ""),
                "snippet": description.strip() or " ".join(snippets).strip(),
            }
        )
    return mapped
