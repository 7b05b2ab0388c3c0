from __future__ import annotations

import re
from urllib.parse import parse_qs, urljoin, urlparse

from bs4 import BeautifulSoup

SEARCH_BASE_URL = "https://duckduckgo.com"
RESULT_LINK_SELECTOR = "a.result__a"

BOILERPLATE_PATTERN = re.compile(r"cookie|subscribe|advert", re.IGNORECASE)

MIN_PARAGRAPH_CHARS = 50
MIN_BLOCK_CHARS = 80
MIN_BLOCK_WORDS = 10
MIN_KEPT_CHARS = 40
MAX_PARAGRAPHS = 10


def _collapse_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def _unwrap_redirect(url: str) -> str:
    """Return the target of a DuckDuckGo ``/l/?uddg=`` redirect link."""
    parsed = urlparse(url)
    if parsed.path.startswith("/l/") and "duckduckgo.com" in parsed.netloc:
        target = parse_qs(parsed.query).get("uddg")
        if target and target[0]:
            return target[0]
    return url


def is_absolute_url(url: str) -> bool:
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def extract_result_links(html: str, max_results: int = 4) -> list[str]:
    """Collect organic result links from a search-results page.

    Falls back to any absolute anchor when the result marker is missing.
    """
    if max_results <= 0 or not html:
        return []
    soup = BeautifulSoup(html, "html.parser")
    links: list[str] = []

    for anchor in soup.select(RESULT_LINK_SELECTOR):
        if len(links) >= max_results:
            break
        href = anchor.get("href")
        if not href:
            continue
        links.append(_unwrap_redirect(urljoin(SEARCH_BASE_URL, str(href))))

    if not links:
        for anchor in soup.find_all("a"):
            if len(links) >= max_results:
                break
            href = str(anchor.get("href") or "")
            if href.startswith("http"):
                links.append(href)

    return links[:max_results]


def extract_paragraphs(html: str) -> list[str]:
    """Pull readable paragraph text out of a page.

    Uses ``<p>`` elements first and generic ``<div>`` blocks only when no
    paragraph qualifies.
    """
    if not html:
        return []
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()

    candidates: list[str] = []
    for element in soup.find_all("p"):
        text = _collapse_whitespace(element.get_text(" "))
        if len(text) >= MIN_PARAGRAPH_CHARS and not BOILERPLATE_PATTERN.search(text):
            candidates.append(text)

    if not candidates:
        for element in soup.find_all("div"):
            text = _collapse_whitespace(element.get_text(" "))
            if len(text) >= MIN_BLOCK_CHARS and len(text.split(" ")) >= MIN_BLOCK_WORDS:
                candidates.append(text)

    unique = list(dict.fromkeys(candidates))
    return [c for c in unique if len(c) >= MIN_KEPT_CHARS][:MAX_PARAGRAPHS]


def extract_page_text(html: str) -> str | None:
    paragraphs = extract_paragraphs(html)
    if not paragraphs:
        return None
    return "\n\n".join(paragraphs)
