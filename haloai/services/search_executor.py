from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Sequence

from loguru import logger

from haloai.config import Settings, settings
from haloai.models.schemas import SearchResult, Strategy
from haloai.services.logger import log_search_call
from haloai.services.provider_stats import ProviderStats, provider_stats
from haloai.services.rescoring import normalize_results, rescore_results
from haloai.tools import search_provider
from haloai.tools.search_provider import Provider

CHEAPEST_ORDER: tuple[str, ...] = ("google_pse", "bing", "serpapi", "brave", "tavily", "groq")
ACCURATE_ORDER: tuple[str, ...] = ("bing", "serpapi", "google_pse", "tavily", "brave", "groq")

SEQUENTIAL_ORDERS: dict[Strategy, tuple[str, ...]] = {
    Strategy.CHEAPEST: CHEAPEST_ORDER,
    Strategy.ACCURATE: ACCURATE_ORDER,
}


@dataclass(slots=True)
class ProviderAnswer:
    answer: str
    provider: str
    raw: list[SearchResult] = field(default_factory=list)


async def invoke_provider(
    provider: Provider,
    query: str,
    *,
    max_results: int,
    timeout: float,
    strategy: Strategy,
    stats: ProviderStats | None = None,
    config: Settings | None = None,
) -> list[SearchResult]:
    """Run one provider under a timeout; failures and timeouts yield []."""
    stats = stats or provider_stats
    started = time.monotonic()
    try:
        raw = await asyncio.wait_for(
            provider.query(query, max_results=max_results, timeout=timeout, config=config),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        logger.debug(f"[search] provider={provider.name} timed out after {timeout:.2f}s")
        return []
    except Exception as exc:
        logger.debug(f"[search] provider={provider.name} failed: {exc}")
        return []

    latency_ms = int((time.monotonic() - started) * 1000)
    results = normalize_results(raw, provider=provider.name, latency_ms=latency_ms)
    if results:
        stats.record(provider.name, latency_ms)
        log_search_call(strategy.value, provider.name, latency_ms, len(results))
    return results


async def fastest_strategy(
    query: str,
    providers: Sequence[Provider],
    *,
    max_results: int,
    timeout: float,
    stats: ProviderStats | None = None,
    config: Settings | None = None,
) -> list[SearchResult]:
    """Race every provider; the first non-empty completion wins.

    Losing calls are cancelled once a winner is known.
    """
    if not providers:
        return []

    pending: set[asyncio.Task[list[SearchResult]]] = {
        asyncio.create_task(
            invoke_provider(
                provider,
                query,
                max_results=max_results,
                timeout=timeout,
                strategy=Strategy.FASTEST,
                stats=stats,
                config=config,
            ),
            name=f"search:{provider.name}",
        )
        for provider in providers
    }
    try:
        while pending:
            done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                results = task.result()
                if results:
                    return results
        return []
    finally:
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)


async def sequential_strategy(
    query: str,
    order: Sequence[str],
    providers: Sequence[Provider],
    *,
    strategy: Strategy,
    max_results: int,
    timeout: float,
    stats: ProviderStats | None = None,
    config: Settings | None = None,
) -> list[SearchResult]:
    """Try providers one at a time in ``order``; the first non-empty list wins."""
    by_name = {p.name: p for p in providers}
    for name in order:
        provider = by_name.get(name)
        if provider is None:
            continue
        results = await invoke_provider(
            provider,
            query,
            max_results=max_results,
            timeout=timeout,
            strategy=strategy,
            stats=stats,
            config=config,
        )
        if results:
            return results
    return []


async def run_strategy(
    query: str,
    providers: Sequence[Provider],
    strategy: Strategy,
    *,
    max_results: int,
    timeout: float,
    stats: ProviderStats | None = None,
    config: Settings | None = None,
) -> list[SearchResult]:
    if strategy is Strategy.FASTEST:
        return await fastest_strategy(
            query,
            providers,
            max_results=max_results,
            timeout=timeout,
            stats=stats,
            config=config,
        )
    return await sequential_strategy(
        query,
        SEQUENTIAL_ORDERS[strategy],
        providers,
        strategy=strategy,
        max_results=max_results,
        timeout=timeout,
        stats=stats,
        config=config,
    )


async def smart_search(
    query: str,
    *,
    config: Settings | None = None,
    strategy: Strategy | None = None,
    max_results: int | None = None,
    timeout: float | None = None,
    top_n: int | None = None,
) -> list[SearchResult]:
    """Query the enabled providers with the configured strategy and rescore."""
    config = config or settings
    search_provider.warn_missing_credentials(config)
    if not query or not query.strip():
        return []

    providers = search_provider.list_enabled(config)
    if not providers:
        return []

    results = await run_strategy(
        query,
        providers,
        strategy or config.search_mode,
        max_results=max_results or config.search_max_results,
        timeout=timeout or config.search_timeout_seconds,
        config=config,
    )
    if not results:
        return []
    return rescore_results(results, query, top_n or config.search_top_n)


async def query_provider(
    name: str,
    query: str,
    *,
    config: Settings | None = None,
    max_results: int | None = None,
    timeout: float | None = None,
) -> ProviderAnswer:
    """Query one named provider; the answer is its first snippet or ''."""
    config = config or settings
    provider = search_provider.get_provider(name)
    if provider is None or not provider.is_enabled(config):
        return ProviderAnswer(answer="", provider=name)

    results = await invoke_provider(
        provider,
        query,
        max_results=max_results or config.search_max_results,
        timeout=timeout or config.search_timeout_seconds,
        strategy=config.search_mode,
        config=config,
    )
    if not results:
        return ProviderAnswer(answer="", provider=name)
    return ProviderAnswer(answer=results[0].snippet, provider=name, raw=results)


async def search_all_providers(
    query: str,
    *,
    config: Settings | None = None,
    max_results: int | None = None,
    timeout: float | None = None,
) -> list[SearchResult]:
    """Query every enabled provider concurrently and concatenate the results."""
    config = config or settings
    max_results = max_results or config.search_max_results
    providers = search_provider.list_enabled(config)
    if not query.strip() or not providers:
        return []

    batches: list[list[SearchResult]] = await asyncio.gather(
        *(
            invoke_provider(
                provider,
                query,
                max_results=max_results,
                timeout=timeout or config.search_timeout_seconds,
                strategy=config.search_mode,
                config=config,
            )
            for provider in providers
        )
    )
    merged = [result for batch in batches for result in batch]
    return merged[: max_results * 4]


def get_provider_stats() -> dict[str, dict[str, int | None]]:
    return provider_stats.snapshot()
