from __future__ import annotations

from typing import Any

import httpx

from haloai.config import Settings, settings

GOOGLE_PSE_URL = "https://www.googleapis.com/customsearch/v1"
# Custom Search JSON API rejects num > 10
MAX_PAGE_SIZE = 10


async def search(
    query: str,
    *,
    max_results: int = 5,
    timeout: float = 2.5,
    config: Settings | None = None,
) -> list[dict[str, Any]]:
    """Query a Google Programmable Search Engine."""
    config = config or settings
    if not config.google_pse_key or not config.google_pse_cx:
        raise RuntimeError("GOOGLE_PSE_KEY / GOOGLE_PSE_CX are not configured")

    async with httpx.AsyncClient(timeout=timeout) as client:
        response = await client.get(
            GOOGLE_PSE_URL,
            params={
                "key": config.google_pse_key,
                "cx": config.google_pse_cx,
                "q": query,
                "num": max(1, min(max_results, MAX_PAGE_SIZE)),
            },
        )
        response.raise_for_status()
        payload = response.json()

    return [
        {
            "title": item.get("title", ""),
            "url": item.get("link", ""),
            "snippet": item.get("snippet", ""),
        }
        for item in (payload.get("items") or [])[:max_results]
    ]
