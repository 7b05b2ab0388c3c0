from __future__ import annotations

import re

SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+")
MIN_SENTENCE_CHARS = 30
BULLET = "•"


def split_sentences(text: str) -> list[str]:
    return SENTENCE_SPLIT.split(text)


def extractive_summary(text: str, query: str = "", max_sentences: int = 6) -> str:
    """Pick the sentences that mention the most query words.

    Ties keep their original order. Sentences of 30 characters or fewer are
    skipped unless nothing else qualifies, in which case the leading
    sentences are returned as-is.
    """
    text = (text or "").strip()
    if not text or max_sentences <= 0:
        return ""

    query_words = [w for w in (query or "").lower().split() if w]
    sentences = split_sentences(text)
    scored = []
    for sentence in sentences:
        lowered = sentence.lower()
        scored.append((sum(1 for w in query_words if w in lowered), sentence.strip()))
    scored.sort(key=lambda item: -item[0])

    chosen = [s for _, s in scored if len(s) > MIN_SENTENCE_CHARS][:max_sentences]
    if chosen:
        return " ".join(chosen)
    return " ".join(s.strip() for s in sentences[:max_sentences]).strip()


def bullet_highlights(summary: str, limit: int = 8) -> str:
    sentences = [s.strip() for s in split_sentences(summary or "") if s.strip()]
    return "\n".join(f"{BULLET} {s}" for s in sentences[:limit])
