from __future__ import annotations

import re

from haloai.models.schemas import Intent

DEFAULT_CHUNK_SIZE = 1400
DEFAULT_OVERLAP = 150

SUMMARIZE_PATTERN = re.compile(
    r"\b(summar(?:y|ise|ize|ised|ized)|overview|tl;?dr|gist|recap)\b",
    re.IGNORECASE,
)
HIGHLIGHTS_PATTERN = re.compile(
    r"\b(highlights?|key points?|action items?|takeaways?|bullet(?:s| points?)?)\b",
    re.IGNORECASE,
)

STOPWORDS = {
    "the", "and", "for", "are", "was", "what", "when", "where", "which", "who",
    "why", "how", "does", "did", "this", "that", "with", "from", "about", "into",
    "document", "doc", "file", "pdf", "attached", "please", "tell",
}


def chunk_text(text: str, size: int = DEFAULT_CHUNK_SIZE, *, overlap: int = DEFAULT_OVERLAP) -> list[str]:
    if not text or not text.strip():
        return []
    size = max(int(size), 1)
    step = max(size - overlap, max(size // 2, 1))
    chunks: list[str] = []
    start = 0
    while start < len(text):
        chunk = text[start : start + size].strip()
        if chunk:
            chunks.append(chunk)
        start += step
    return chunks


def _query_terms(query: str) -> list[str]:
    terms = re.findall(r"[a-z0-9']+", (query or "").lower())
    return [t for t in dict.fromkeys(terms) if len(t) > 2 and t not in STOPWORDS]


def select_relevant_chunks(query: str, text: str, k: int = 6, *, size: int = DEFAULT_CHUNK_SIZE) -> list[str]:
    """Return the ``k`` chunks with the most query-term occurrences."""
    chunks = chunk_text(text, size)
    if k <= 0 or not chunks:
        return []
    terms = _query_terms(query)
    if not terms:
        return chunks[:k]

    scored = []
    for chunk in chunks:
        lowered = chunk.lower()
        scored.append((sum(lowered.count(term) for term in terms), chunk))
    if not any(score for score, _ in scored):
        return chunks[:k]
    scored.sort(key=lambda item: -item[0])
    return [chunk for _, chunk in scored[:k]]


def detect_intent(query: str) -> Intent:
    if SUMMARIZE_PATTERN.search(query or ""):
        return Intent.SUMMARIZE
    if HIGHLIGHTS_PATTERN.search(query or ""):
        return Intent.HIGHLIGHTS
    return Intent.QA


class KeywordDocumentToolkit:
    """Default document collaborator built on keyword overlap."""

    def chunk(self, text: str, size: int) -> list[str]:
        return chunk_text(text, size)

    def select_relevant(self, query: str, text: str, k: int) -> list[str]:
        return select_relevant_chunks(query, text, k)

    def classify_intent(self, query: str) -> Intent:
        return detect_intent(query)
