from __future__ import annotations

from typing import Any

import httpx

from haloai.config import Settings, settings

BING_SEARCH_URL = "https://api.bing.microsoft.com/v7.0/search"


async def search(
    query: str,
    *,
    max_results: int = 5,
    timeout: float = 2.5,
    config: Settings | None = None,
) -> list[dict[str, Any]]:
    """Execute a Bing Web Search v7 query."""
    config = config or settings
    if not config.bing_api_key:
        raise RuntimeError("BING_API_KEY is not configured")

    async with httpx.AsyncClient(timeout=timeout) as client:
        response = await client.get(
            BING_SEARCH_URL,
            params={"q": query, "count": max_results, "textFormat": "Raw"},
            headers={"Ocp-Apim-Subscription-Key": config.bing_api_key},
        )
        response.raise_for_status()
        payload = response.json()

    pages = (payload.get("webPages") or {}).get("value") or []
    return [
        {
            "title": item.get("name", ""),
            "url": item.get("url", ""),
            "snippet": item.get("snippet", ""),
        }
        for item in pages[:max_results]
    ]
