from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from haloai.agents.orchestrator import AnswerOrchestrator, no_info_message
from haloai.llm_client import GenerationError
from haloai.models.schemas import AnswerContext, DocumentContext, Mode, SearchResult, Strategy
from haloai.research_core.models.interfaces import PageText
from haloai.services.session import AnswerSession

DOC_TEXT = (
    "HaloAI is a desktop assistant that answers questions from a loaded document. "
    "The pricing section says the team plan costs twelve dollars per seat each month. "
    "Support is available by email during normal business hours on weekdays."
)

WEB_SNIPPET = "HaloAI pricing was updated this year and now includes a free tier for students."


class FakeSearch:
    def __init__(self, results=None, error: Exception | None = None):
        self.results = results or []
        self.error = error
        self.calls: list[tuple[str, Strategy]] = []

    async def __call__(self, query, *, config=None, strategy=None):
        self.calls.append((query, strategy))
        if self.error:
            raise self.error
        return list(self.results)


class FakeWebFallback:
    def __init__(self, pages=None):
        self.pages = pages or []
        self.calls: list[str] = []

    async def retrieve(self, query, max_results=4):
        self.calls.append(query)
        return list(self.pages)


def backend(name, reply=None, error=None):
    complete = AsyncMock(return_value=reply, side_effect=error)
    return SimpleNamespace(name=name, complete=complete)


def snippet(text, provider="brave"):
    return SearchResult(title="t", url="https://example.com", snippet=text, provider=provider)


def context(mode=Mode.CLOUD, *, doc=None, use_doc=False, web_plus=False, cloud=True):
    return AnswerContext(
        mode=mode,
        strategy=Strategy.FASTEST,
        use_doc=use_doc,
        web_plus=web_plus,
        document=DocumentContext(name="notes.txt", text=doc) if doc else None,
        has_cloud_credential=cloud,
        model="gpt-4o-mini",
    )


def build(make_settings, *, search=None, web=None, local=None, cloud=None):
    return AnswerOrchestrator(
        config=make_settings(),
        session=AnswerSession(),
        search=search or FakeSearch(),
        web_fallback=web or FakeWebFallback(),
        local_backend=local or backend("local", error=GenerationError("offline")),
        cloud_backend=cloud or backend("cloud", error=GenerationError("offline")),
    )


@pytest.mark.asyncio
async def test_blank_query_returns_empty_string(make_settings):
    assert await build(make_settings).answer("   ", context()) == ""


@pytest.mark.asyncio
async def test_web_only_document_summary_never_calls_a_model(make_settings):
    local = backend("local", reply="should not be used")
    cloud = backend("cloud", reply="should not be used")
    orchestrator = build(make_settings, local=local, cloud=cloud)

    answer = await orchestrator.answer(
        "summarize the document", context(Mode.WEB_ONLY, doc=DOC_TEXT, cloud=True)
    )

    assert answer == DOC_TEXT
    local.complete.assert_not_awaited()
    cloud.complete.assert_not_awaited()


@pytest.mark.asyncio
async def test_cloud_mode_prefers_provider_snippets(make_settings):
    search = FakeSearch([snippet(WEB_SNIPPET), snippet("too short")])
    cloud = backend("cloud", reply="model answer")
    orchestrator = build(make_settings, search=search, cloud=cloud)

    answer = await orchestrator.answer("what is halo", context(Mode.CLOUD))

    assert answer == f"From the web:\n• {WEB_SNIPPET}"
    assert search.calls == [("what is halo", Strategy.FASTEST)]
    cloud.complete.assert_not_awaited()


@pytest.mark.asyncio
async def test_cloud_model_used_when_snippets_are_empty(make_settings):
    cloud = backend("cloud", reply="  A generated answer.  ")
    web = FakeWebFallback()
    orchestrator = build(make_settings, cloud=cloud, web=web)

    answer = await orchestrator.answer("what is halo", context(Mode.CLOUD))

    assert answer == "A generated answer."
    assert web.calls == []
    request = cloud.complete.await_args.args[0]
    assert request.temperature == 0.7
    assert request.max_tokens == 350


@pytest.mark.asyncio
async def test_generic_answer_falls_back_to_scraped_pages(make_settings):
    web = FakeWebFallback([PageText(url="https://a.example", text=WEB_SNIPPET)])
    orchestrator = build(make_settings, search=FakeSearch(error=RuntimeError("boom")), web=web)

    answer = await orchestrator.answer("halo pricing", context(Mode.WEB_ONLY))

    assert answer == f"From the web:\n• {WEB_SNIPPET}"
    assert web.calls == ["halo pricing"]


@pytest.mark.asyncio
async def test_generic_answer_apologises_when_nothing_is_found(make_settings):
    orchestrator = build(make_settings)

    answer = await orchestrator.answer("obscure question", context(Mode.CLOUD, cloud=True))

    assert answer == no_info_message("obscure question")


@pytest.mark.asyncio
async def test_local_mode_returns_model_reply(make_settings):
    local = backend("local", reply="Local model says hi.")
    search = FakeSearch([snippet(WEB_SNIPPET)])
    orchestrator = build(make_settings, local=local, search=search)

    answer = await orchestrator.answer("hello there", context(Mode.LOCAL))

    assert answer == "Local model says hi."
    assert search.calls == []
    assert local.complete.await_args.args[0].as_prompt() == "hello there"


@pytest.mark.asyncio
async def test_local_mode_grounds_prompt_on_document(make_settings):
    local = backend("local", reply="Twelve dollars per seat.")
    orchestrator = build(make_settings, local=local)

    answer = await orchestrator.answer(
        "what does the pricing cost", context(Mode.LOCAL, doc=DOC_TEXT, use_doc=True)
    )

    assert answer == "Twelve dollars per seat."
    prompt = local.complete.await_args.args[0].as_prompt()
    assert "twelve dollars" in prompt
    assert "Answer strictly from the document: what does the pricing cost" in prompt


@pytest.mark.asyncio
async def test_local_mode_failure_falls_back_to_extractive_answer(make_settings):
    orchestrator = build(make_settings)

    answer = await orchestrator.answer("summarize the document", context(Mode.LOCAL, doc=DOC_TEXT))

    assert answer == DOC_TEXT


@pytest.mark.asyncio
async def test_local_mode_failure_without_document(make_settings):
    orchestrator = build(make_settings)

    answer = await orchestrator.answer("hello", context(Mode.LOCAL))

    assert answer == "The local model did not return an answer for “hello”."


@pytest.mark.asyncio
async def test_highlights_are_bulleted(make_settings):
    orchestrator = build(make_settings)

    answer = await orchestrator.answer(
        "key points please", context(Mode.WEB_ONLY, doc=DOC_TEXT, use_doc=True)
    )

    assert answer.startswith("Here are the key points:\n• HaloAI is a desktop assistant")
    assert answer.count("•") == 3


@pytest.mark.asyncio
async def test_cloud_document_answer_falls_back_when_model_fails(make_settings):
    cloud = backend("cloud", error=GenerationError("rate limited"))
    orchestrator = build(make_settings, cloud=cloud)

    answer = await orchestrator.answer("summarize the document", context(Mode.CLOUD, doc=DOC_TEXT))

    assert answer == DOC_TEXT
    request = cloud.complete.await_args.args[0]
    assert request.temperature == 0.3
    assert request.max_tokens == 600
    assert "Provide a concise summary" in request.messages[1]["content"]


@pytest.mark.asyncio
async def test_local_hybrid_combines_document_and_web(make_settings):
    search = FakeSearch([snippet(WEB_SNIPPET)])
    orchestrator = build(make_settings, search=search)

    answer = await orchestrator.answer(
        "what is the latest pricing in the document",
        context(Mode.WEB_ONLY, doc=DOC_TEXT),
    )

    doc_part, web_part = answer.split("\n\n")
    assert doc_part.startswith("From your document:\n")
    assert "twelve dollars" in doc_part
    assert web_part == f"From the web:\n{WEB_SNIPPET}"


@pytest.mark.asyncio
async def test_cloud_hybrid_failure_falls_back_to_local_hybrid(make_settings):
    search = FakeSearch([snippet(WEB_SNIPPET)])
    cloud = backend("cloud", reply="   ")
    orchestrator = build(make_settings, search=search, cloud=cloud)

    answer = await orchestrator.answer(
        "pricing in the document", context(Mode.CLOUD, doc=DOC_TEXT, web_plus=True)
    )

    assert answer.startswith("From your document:")
    request = cloud.complete.await_args.args[0]
    assert request.max_tokens == 700
    assert WEB_SNIPPET in request.messages[1]["content"]


@pytest.mark.asyncio
async def test_hybrid_uses_scraped_text_when_providers_are_empty(make_settings):
    web = FakeWebFallback([PageText(url="https://a.example", text=WEB_SNIPPET)])
    cloud = backend("cloud", reply="Combined answer.")
    orchestrator = build(make_settings, web=web, cloud=cloud)

    answer = await orchestrator.answer(
        "web: pricing in the document", context(Mode.CLOUD, doc=DOC_TEXT)
    )

    assert answer == "Combined answer."
    assert WEB_SNIPPET in cloud.complete.await_args.args[0].messages[1]["content"]


@pytest.mark.asyncio
async def test_document_keywords_ignored_without_loaded_document(make_settings):
    search = FakeSearch([snippet(WEB_SNIPPET)])
    orchestrator = build(make_settings, search=search)

    answer = await orchestrator.answer("summarize the document", context(Mode.WEB_ONLY, use_doc=True))

    assert answer == f"From the web:\n• {WEB_SNIPPET}"


@pytest.mark.asyncio
async def test_answer_uses_session_snapshot_when_no_context_given(make_settings):
    session = AnswerSession()
    session.set_doc_context("notes.txt", DOC_TEXT)
    orchestrator = AnswerOrchestrator(
        config=make_settings(ai_mode="web"),
        session=session,
        search=FakeSearch(),
        web_fallback=FakeWebFallback(),
        local_backend=backend("local"),
        cloud_backend=backend("cloud"),
    )

    assert await orchestrator.answer("summarize the document") == DOC_TEXT
