from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from haloai.tools.search_provider import PROVIDER_NAMES


@dataclass
class ProviderUsage:
    used: int = 0
    last_latency_ms: int | None = None


class ProviderStats:
    """Process-wide usage counters; they only ever grow."""

    def __init__(self, names: Iterable[str] = PROVIDER_NAMES):
        self._usage: dict[str, ProviderUsage] = {name: ProviderUsage() for name in names}

    def record(self, name: str, latency_ms: int) -> None:
        usage = self._usage.setdefault(name, ProviderUsage())
        usage.used += 1
        usage.last_latency_ms = int(latency_ms)

    def used(self, name: str) -> int:
        usage = self._usage.get(name)
        return usage.used if usage else 0

    def snapshot(self) -> dict[str, dict[str, int | None]]:
        return {
            name: {"used": usage.used, "last_latency_ms": usage.last_latency_ms}
            for name, usage in self._usage.items()
        }


provider_stats = ProviderStats()
