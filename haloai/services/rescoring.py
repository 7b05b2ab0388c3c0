from __future__ import annotations

from dataclasses import replace
from typing import Any, Iterable, Mapping

from haloai.models.schemas import SearchResult
from haloai.tools.search_provider import PROVIDER_WEIGHTS

DEFAULT_TOP_N = 4
MIN_KEYWORD_LENGTH = 4


def _coerce_field(item: Any, key: str) -> str:
    if isinstance(item, Mapping):
        value = item.get(key)
    else:
        value = getattr(item, key, None)
    if value is None:
        return ""
    return str(value).strip()


def normalize_results(
    raw_results: Iterable[Any] | None,
    *,
    provider: str,
    latency_ms: int = 0,
) -> list[SearchResult]:
    """Map provider payloads to SearchResult, dropping results without a snippet."""
    normalized: list[SearchResult] = []
    for item in raw_results or []:
        snippet = _coerce_field(item, "snippet")
        if not snippet:
            continue
        normalized.append(
            SearchResult(
                title=_coerce_field(item, "title"),
                url=_coerce_field(item, "url"),
                snippet=snippet,
                provider=provider,
                latency_ms=latency_ms,
            )
        )
    return normalized


def keyword_matches(snippet: str, query: str) -> int:
    text = (snippet or "").lower()
    return sum(
        1
        for word in (query or "").lower().split()
        if len(word) >= MIN_KEYWORD_LENGTH and word in text
    )


def score_snippet(snippet: str, query: str, provider: str) -> float:
    length_score = min(len(snippet or "") / 80, 2)
    weight = PROVIDER_WEIGHTS.get(provider, 1.0)
    return (keyword_matches(snippet, query) + length_score) * weight


def rescore_results(
    results: Iterable[SearchResult],
    query: str,
    top_n: int = DEFAULT_TOP_N,
) -> list[SearchResult]:
    """Score, stable-sort descending and keep the best ``top_n`` results."""
    scored = [
        replace(r, score=score_snippet(r.snippet, query, r.provider))
        for r in results
    ]
    # sorted() is stable, so equal scores keep their input order
    scored = sorted(scored, key=lambda r: -r.score)
    return scored[: max(top_n, 0)]
