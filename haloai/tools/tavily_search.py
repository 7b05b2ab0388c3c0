from __future__ import annotations

from typing import Any

from tavily import AsyncTavilyClient

from haloai.config import Settings, settings


async def search(
    query: str,
    *,
    max_results: int = 5,
    timeout: float = 2.5,
    config: Settings | None = None,
) -> list[dict[str, Any]]:
    """Execute a basic-depth Tavily search.

    ``timeout`` is enforced by the caller; the Tavily client keeps its own
    transport timeout.
    """
    config = config or settings
    if not config.tavily_api_key:
        raise RuntimeError("TAVILY_API_KEY is not configured")

    client = AsyncTavilyClient(api_key=config.tavily_api_key)
    response = await client.search(
        query=query,
        search_depth="basic",
        max_results=max_results,
        topic="general",
    )

    return [
        {
            "title": r.get("title", ""),
            "url": r.get("url", ""),
            "snippet": r.get("content", ""),
        }
        for r in response.get("results", [])
    ]
