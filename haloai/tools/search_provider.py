from __future__ import annotations

from dataclasses import dataclass
from types import ModuleType
from typing import Any

from loguru import logger

from haloai.config import Settings, settings
from haloai.tools import (
    bing_search,
    brave_search,
    google_pse_search,
    groq_search,
    serpapi_search,
    tavily_search,
)

RawResult = dict[str, Any]


@dataclass(frozen=True)
class Provider:
    name: str
    required_credentials: tuple[str, ...]
    backend: ModuleType
    weight: float = 1.0

    def is_enabled(self, config: Settings | None = None) -> bool:
        config = config or settings
        for credential in self.required_credentials:
            value = getattr(config, credential, "")
            if not isinstance(value, str) or not value.strip():
                return False
        return True

    async def query(
        self,
        text: str,
        *,
        max_results: int,
        timeout: float,
        config: Settings | None = None,
    ) -> list[RawResult]:
        return await self.backend.search(
            text,
            max_results=max_results,
            timeout=timeout,
            config=config or settings,
        )


# Declaration order is the registry order.
PROVIDERS: tuple[Provider, ...] = (
    Provider("bing", ("bing_api_key",), bing_search, weight=1.2),
    Provider("serpapi", ("serpapi_key",), serpapi_search, weight=1.1),
    Provider(
        "google_pse",
        ("google_pse_key", "google_pse_cx"),
        google_pse_search,
        weight=1.0,
    ),
    Provider("brave", ("brave_api_key",), brave_search, weight=1.0),
    Provider("tavily", ("tavily_api_key",), tavily_search, weight=1.0),
    Provider("groq", ("groq_api_key",), groq_search, weight=0.9),
)

PROVIDER_NAMES: tuple[str, ...] = tuple(p.name for p in PROVIDERS)
PROVIDER_WEIGHTS: dict[str, float] = {p.name: p.weight for p in PROVIDERS}

_warned: set[str] = set()


def get_provider(name: str) -> Provider | None:
    for provider in PROVIDERS:
        if provider.name == name:
            return provider
    return None


def list_enabled(config: Settings | None = None) -> list[Provider]:
    """Providers whose credentials are all present, in declaration order."""
    config = config or settings
    return [p for p in PROVIDERS if p.is_enabled(config)]


def warn_missing_credentials(config: Settings | None = None) -> None:
    """Warn once per process about every provider that lacks credentials."""
    config = config or settings
    for provider in PROVIDERS:
        if provider.name in _warned or provider.is_enabled(config):
            continue
        _warned.add(provider.name)
        missing = ", ".join(c.upper() for c in provider.required_credentials)
        logger.warning(f"{provider.name} credentials missing ({missing}), skipping provider")
