from __future__ import annotations

from haloai.config import Settings, settings
from haloai.models.schemas import AnswerContext, DocumentContext


class AnswerSession:
    """Document and flag state set by the UI layer.

    The orchestrator never reads this directly during a call; it takes a
    ``snapshot()`` once, so later changes only affect later calls.
    """

    def __init__(self) -> None:
        self._document: DocumentContext | None = None
        self._use_doc = False
        self._web_plus = False

    def set_doc_context(self, name: str | None, text: str | None) -> DocumentContext:
        self._document = DocumentContext(name=name or "", text=text or "")
        return self._document

    def clear_doc_context(self) -> None:
        self._document = None

    def get_doc_context(self) -> DocumentContext:
        return self._document or DocumentContext()

    def set_use_doc(self, flag: bool) -> bool:
        self._use_doc = bool(flag)
        return self._use_doc

    def set_web_plus(self, flag: bool) -> bool:
        self._web_plus = bool(flag)
        return self._web_plus

    def snapshot(self, config: Settings | None = None) -> AnswerContext:
        config = config or settings
        return AnswerContext(
            mode=config.ai_mode,
            strategy=config.search_mode,
            use_doc=self._use_doc,
            web_plus=self._web_plus,
            document=self._document,
            has_cloud_credential=config.has_cloud_credential,
            model=config.fallback_model,
        )


session = AnswerSession()
