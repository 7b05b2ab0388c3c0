from __future__ import annotations

from typing import Any

import httpx

from haloai.config import Settings, settings

SERPAPI_URL = "https://serpapi.com/search.json"


async def search(
    query: str,
    *,
    max_results: int = 5,
    timeout: float = 2.5,
    config: Settings | None = None,
) -> list[dict[str, Any]]:
    """Query Google web results through SerpAPI."""
    config = config or settings
    if not config.serpapi_key:
        raise RuntimeError("SERPAPI_KEY is not configured")

    async with httpx.AsyncClient(timeout=timeout) as client:
        response = await client.get(
            SERPAPI_URL,
            params={
                "engine": "google",
                "q": query,
                "num": max_results,
                "api_key": config.serpapi_key,
            },
        )
        response.raise_for_status()
        payload = response.json()

    if payload.get("error"):
        raise RuntimeError(f"SerpAPI error: {payload['error']}")

    organic = payload.get("organic_results") or []
    results: list[dict[str, Any]] = []
    answer_box = payload.get("answer_box")
    if isinstance(answer_box, dict):
        answer = answer_box.get("answer") or answer_box.get("snippet")
        if answer:
            results.append(
                {
                    "title": answer_box.get("title", ""),
                    "url": answer_box.get("link", ""),
                    "snippet": answer,
                }
            )
    for item in organic:
        results.append(
            {
                "title": item.get("title", ""),
                "url": item.get("link", ""),
                "snippet": item.get("snippet", ""),
            }
        )
    return results[:max_results]
