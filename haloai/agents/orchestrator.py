from __future__ import annotations

import re
from typing import Awaitable, Callable

from loguru import logger

from haloai.config import Settings, settings
from haloai.llm_client import (
    CloudGenerationBackend,
    GenerationBackend,
    GenerationRequest,
    LocalGenerationBackend,
)
from haloai.models.schemas import AnswerContext, Intent, Mode, SearchResult, Strategy
from haloai.research_core.documents.service import KeywordDocumentToolkit
from haloai.research_core.models.interfaces import DocumentToolkit
from haloai.research_core.scrape.service import WebFallbackService
from haloai.research_core.summarize.service import BULLET, bullet_highlights, extractive_summary
from haloai.services import search_executor
from haloai.services.session import AnswerSession, session as default_session

DOC_PATTERN = re.compile(r"\b(document|doc|file|pdf|attached|code review)\b", re.IGNORECASE)
RECENCY_PATTERN = re.compile(r"\b(latest|price|202[4-9])\b", re.IGNORECASE)
WEB_PREFIX = re.compile(r"^web:", re.IGNORECASE)

CHUNK_SIZE = 1400
QA_CHUNKS = 6
MIN_SNIPPET_CHARS = 40
WEB_SNIPPET_COUNT = 4

TASKS = {
    Intent.SUMMARIZE: "Provide a concise summary",
    Intent.HIGHLIGHTS: "List key points as bullets",
}

LOCAL_DOC_PROMPT = """You are HaloAI. Use ONLY the document below to respond.
If the document lacks the answer, say "I couldn't find this in the document."

Document:
\"\"\"
{context}
\"\"\"

Task: {task}"""

DOC_SYSTEM_PROMPT = (
    "You are HaloAI. Answer ONLY using the provided document. If the document does not "
    "contain the answer, say \"I couldn't find this in the document.\" Prefer concise bullets."
)

HYBRID_SYSTEM_PROMPT = """You are HaloAI. Produce the BEST answer by combining the provided document with external knowledge snippets.
Rules:
- Be accurate and concise.
- Prefer the document when it clearly answers; otherwise enrich with the web snippets.
- If something conflicts, say so briefly.
- Use short bullets where helpful."""

HYBRID_USER_PROMPT = """Question: {question}

Document context:
\"\"\"
{doc_context}
\"\"\"

Web snippets:
\"\"\"
{web_context}
\"\"\"

Write one cohesive answer. If you use web info, reflect it clearly."""

GENERIC_SYSTEM_PROMPT = "You are HaloAI. Provide clear, direct answers."

SearchFn = Callable[..., Awaitable[list[SearchResult]]]


def task_for(intent: Intent, query: str) -> str:
    return TASKS.get(intent, f"Answer strictly from the document: {query}")


def web_bullets(items: list[str]) -> str:
    return f"From the web:\n{BULLET} " + f"\n{BULLET} ".join(items)


def no_info_message(query: str) -> str:
    return f"I couldn’t find enough public info for “{query}”."


class AnswerOrchestrator:
    """Decides, per request, how to answer and composes the final text.

    Decision order:
      1. local mode: local model, grounded on the document when one applies
      2. document + web wanted: cloud hybrid prompt, else local hybrid summary
      3. document only: cloud document prompt, else local extractive answer
      4. generic: provider snippets, then cloud model, then scraped pages

    Every generation failure falls through to the next tier; the worst case
    is an apology string.
    """

    def __init__(
        self,
        *,
        config: Settings | None = None,
        session: AnswerSession | None = None,
        search: SearchFn | None = None,
        web_fallback: WebFallbackService | None = None,
        local_backend: GenerationBackend | None = None,
        cloud_backend: GenerationBackend | None = None,
        documents: DocumentToolkit | None = None,
    ):
        self.config = config or settings
        self.session = session or default_session
        self._search = search or search_executor.smart_search
        self.web_fallback = web_fallback or WebFallbackService(
            timeout=self.config.scrape_timeout_seconds
        )
        self.local_backend = local_backend or LocalGenerationBackend(config=self.config)
        self.cloud_backend = cloud_backend or CloudGenerationBackend(config=self.config)
        self.documents = documents or KeywordDocumentToolkit()

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    async def answer(self, query: str, context: AnswerContext | None = None) -> str:
        q = (query or "").strip()
        if not q:
            return ""
        ctx = context or self.session.snapshot(self.config)
        use_doc = self.should_use_doc(q, ctx)
        logger.debug(f"[answer] mode={ctx.mode.value} use_doc={use_doc} strategy={ctx.strategy.value}")

        if ctx.mode is Mode.LOCAL:
            return await self._local_model_answer(q, ctx, use_doc)

        if use_doc:
            text = ctx.document.text if ctx.document else ""
            if self.wants_web(q, ctx):
                if not ctx.can_use_cloud:
                    return await self.local_hybrid_answer(q, text, ctx)
                return await self._cloud_hybrid_answer(q, text, ctx)
            if not ctx.can_use_cloud:
                return self.local_doc_answer(q, text)
            return await self._cloud_doc_answer(q, text, ctx)

        return await self._generic_answer(q, ctx)

    @staticmethod
    def should_use_doc(query: str, ctx: AnswerContext) -> bool:
        return (ctx.use_doc or bool(DOC_PATTERN.search(query))) and ctx.has_document

    @staticmethod
    def wants_web(query: str, ctx: AnswerContext) -> bool:
        return ctx.web_plus or bool(WEB_PREFIX.match(query)) or bool(RECENCY_PATTERN.search(query))

    # ------------------------------------------------------------------
    # Retrieval helpers
    # ------------------------------------------------------------------

    async def get_web_snippets(self, query: str, strategy: Strategy) -> list[SearchResult]:
        try:
            results = await self._search(query, config=self.config, strategy=strategy)
        except Exception as exc:
            logger.warning(f"[answer] provider search failed: {exc}")
            return []
        return [r for r in results if r.snippet][:WEB_SNIPPET_COUNT]

    async def _usable_snippets(self, query: str, ctx: AnswerContext) -> list[str]:
        results = await self.get_web_snippets(query, ctx.strategy)
        return [r.snippet for r in results if len(r.snippet) > MIN_SNIPPET_CHARS]

    async def gather_web_context(self, query: str, ctx: AnswerContext, max_links: int) -> str:
        """Provider snippets, or scraped page text when providers give nothing."""
        snippets = await self._usable_snippets(query, ctx)
        if snippets:
            return "\n".join(snippets)
        pages = await self.web_fallback.retrieve(query, max_links)
        return "\n\n".join(page.text for page in pages)

    async def scraped_summaries(self, query: str) -> list[str]:
        pages = await self.web_fallback.retrieve(query, self.config.scrape_max_links)
        summaries = [extractive_summary(page.text, query, 4) for page in pages]
        return [s for s in summaries if s]

    def document_context(self, query: str, text: str, intent: Intent, k: int) -> str:
        if intent is Intent.QA:
            chunks = self.documents.select_relevant(query, text, QA_CHUNKS)
        else:
            chunks = list(self.documents.chunk(text, CHUNK_SIZE))[:k]
        return "\n\n".join(chunks)

    async def _generate(self, backend: GenerationBackend, request: GenerationRequest) -> str | None:
        try:
            text = await backend.complete(request)
        except Exception as exc:
            logger.warning(f"[answer] {getattr(backend, 'name', 'backend')} generation failed: {exc}")
            return None
        text = (text or "").strip()
        return text or None

    # ------------------------------------------------------------------
    # Local model
    # ------------------------------------------------------------------

    async def _local_model_answer(self, query: str, ctx: AnswerContext, use_doc: bool) -> str:
        text = ctx.document.text if (use_doc and ctx.document) else ""
        if use_doc:
            intent = self.documents.classify_intent(query)
            k = QA_CHUNKS if intent is Intent.QA else 10
            prompt = LOCAL_DOC_PROMPT.format(
                context=self.document_context(query, text, intent, k),
                task=task_for(intent, query),
            )
        else:
            prompt = query

        reply = await self._generate(
            self.local_backend,
            GenerationRequest.from_prompt(prompt, temperature=0.5, max_tokens=256),
        )
        if reply:
            return reply
        if use_doc:
            return self.local_doc_answer(query, text)
        return f"The local model did not return an answer for “{query}”."

    # ------------------------------------------------------------------
    # Document paths
    # ------------------------------------------------------------------

    def local_doc_answer(self, query: str, text: str) -> str:
        intent = self.documents.classify_intent(query)

        if intent is Intent.SUMMARIZE:
            summary = extractive_summary(text, "", 10)
            return summary or "I read the document but could not extract a clean summary."

        if intent is Intent.HIGHLIGHTS:
            summary = extractive_summary(text, "", 12)
            if not summary:
                return "No clear highlights found."
            return f"Here are the key points:\n{bullet_highlights(summary, 8)}"

        context = "\n\n".join(self.documents.select_relevant(query, text, QA_CHUNKS))
        answer = extractive_summary(context, query, 8)
        return answer or "I checked the document but didn’t find a clear answer."

    async def local_hybrid_answer(self, query: str, text: str, ctx: AnswerContext) -> str:
        intent = self.documents.classify_intent(query)
        web_context = await self.gather_web_context(query, ctx, max_links=3)

        if intent is Intent.SUMMARIZE:
            doc_part = extractive_summary(text, "", 10)
        elif intent is Intent.HIGHLIGHTS:
            doc_part = extractive_summary(text, "", 12)
        else:
            doc_part = extractive_summary(self.document_context(query, text, intent, 8), query, 7)
        web_part = extractive_summary(web_context, query, 6)

        if not doc_part and not web_part:
            return (
                f"I couldn't find enough in the document or the web for “{query}”. "
                "Try rephrasing."
            )
        sections = []
        if doc_part:
            sections.append(f"From your document:\n{doc_part}")
        if web_part:
            sections.append(f"From the web:\n{web_part}")
        return "\n\n".join(sections)

    async def _cloud_doc_answer(self, query: str, text: str, ctx: AnswerContext) -> str:
        intent = self.documents.classify_intent(query)
        k = QA_CHUNKS if intent is Intent.QA else 12
        document = self.document_context(query, text, intent, k)
        request = GenerationRequest(
            messages=[
                {"role": "system", "content": DOC_SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": f'Document: """\n{document}\n"""\n\nTask: {task_for(intent, query)}',
                },
            ],
            model=ctx.model,
            temperature=0.3,
            max_tokens=600,
        )
        reply = await self._generate(self.cloud_backend, request)
        return reply or self.local_doc_answer(query, text)

    async def _cloud_hybrid_answer(self, query: str, text: str, ctx: AnswerContext) -> str:
        intent = self.documents.classify_intent(query)
        k = QA_CHUNKS if intent is Intent.QA else 10
        web_context = await self.gather_web_context(query, ctx, max_links=4)
        request = GenerationRequest(
            messages=[
                {"role": "system", "content": HYBRID_SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": HYBRID_USER_PROMPT.format(
                        question=query,
                        doc_context=self.document_context(query, text, intent, k),
                        web_context=web_context or "(no web snippets)",
                    ),
                },
            ],
            model=ctx.model,
            temperature=0.4,
            max_tokens=700,
        )
        reply = await self._generate(self.cloud_backend, request)
        if reply:
            return reply
        return await self.local_hybrid_answer(query, text, ctx)

    # ------------------------------------------------------------------
    # Generic path
    # ------------------------------------------------------------------

    async def _generic_answer(self, query: str, ctx: AnswerContext) -> str:
        snippets = await self._usable_snippets(query, ctx)
        if snippets:
            return web_bullets(snippets)

        if ctx.can_use_cloud:
            reply = await self._generate(
                self.cloud_backend,
                GenerationRequest(
                    messages=[
                        {"role": "system", "content": GENERIC_SYSTEM_PROMPT},
                        {"role": "user", "content": query},
                    ],
                    model=ctx.model,
                    temperature=0.7,
                    max_tokens=350,
                ),
            )
            if reply:
                return reply

        summaries = await self.scraped_summaries(query)
        if summaries:
            return web_bullets(summaries)
        return no_info_message(query)
