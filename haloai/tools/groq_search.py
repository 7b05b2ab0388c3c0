from __future__ import annotations

from typing import Any

from haloai.config import Settings, settings

QUICK_ANSWER_TITLE = "Groq Quick Answer"


def _quick_answer_prompt(query: str) -> str:
    return f'Web-style quick answer for:\n"{query}"\nShort sentences only.'


async def search(
    query: str,
    *,
    max_results: int = 5,
    timeout: float = 2.5,
    config: Settings | None = None,
) -> list[dict[str, Any]]:
    """Ask a small Groq-hosted model for a short web-style answer.

    Groq exposes an OpenAI-compatible endpoint, so the OpenAI SDK is used.
    The provider always yields at most one result without a URL.
    """
    from openai import AsyncOpenAI

    config = config or settings
    if not config.groq_api_key:
        raise RuntimeError("GROQ_API_KEY is not configured")

    async with AsyncOpenAI(
        api_key=config.groq_api_key,
        base_url=config.groq_base_url,
        timeout=timeout,
        max_retries=0,
    ) as client:
        completion = await client.chat.completions.create(
            model=config.groq_search_model,
            messages=[{"role": "user", "content": _quick_answer_prompt(query)}],
            temperature=0.2,
            max_tokens=120,
        )

    choices = getattr(completion, "choices", None) or []
    if not choices:
        return []
    text = getattr(choices[0].message, "content", None) or ""
    if not text.strip():
        return []
    return [{"title": QUICK_ANSWER_TITLE, "url": "", "snippet": text.strip()}]
