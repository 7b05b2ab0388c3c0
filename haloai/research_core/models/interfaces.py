from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

from haloai.models.schemas import Intent


@dataclass(slots=True)
class FetchedPage:
    url: str
    status_code: int
    html: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


@dataclass(slots=True)
class PageText:
    url: str
    text: str


class DocumentToolkit(Protocol):
    """Chunking, relevance selection and intent detection for documents."""

    def chunk(self, text: str, size: int) -> Sequence[str]: ...

    def select_relevant(self, query: str, text: str, k: int) -> Sequence[str]: ...

    def classify_intent(self, query: str) -> Intent: ...
