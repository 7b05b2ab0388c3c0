from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Mode(str, Enum):
    LOCAL = "local"
    WEB_ONLY = "web"
    CLOUD = "cloud"


class Intent(str, Enum):
    QA = "qa"
    SUMMARIZE = "summarize"
    HIGHLIGHTS = "highlights"


class Strategy(str, Enum):
    FASTEST = "fastest"
    CHEAPEST = "cheapest"
    ACCURATE = "accurate"


@dataclass(slots=True)
class SearchResult:
    """Canonical search result; ``score`` is only ever set by the rescorer."""

    title: str
    url: str
    snippet: str
    provider: str
    latency_ms: int = 0
    score: float = 0.0


@dataclass(frozen=True, slots=True)
class DocumentContext:
    name: str = ""
    text: str = ""

    @property
    def is_loaded(self) -> bool:
        return bool(self.text)


@dataclass(frozen=True, slots=True)
class AnswerContext:
    """Per-call snapshot of mode, flags and document state."""

    mode: Mode
    strategy: Strategy = Strategy.FASTEST
    use_doc: bool = False
    web_plus: bool = False
    document: DocumentContext | None = None
    has_cloud_credential: bool = False
    model: str = "gpt-4o-mini"

    @property
    def has_document(self) -> bool:
        return self.document is not None and self.document.is_loaded

    @property
    def can_use_cloud(self) -> bool:
        return self.mode is Mode.CLOUD and self.has_cloud_credential
