"""Generation backends: an OpenAI-compatible cloud API and a local Ollama server."""
from __future__ import annotations

import json
import time
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from haloai.config import Settings, settings
from haloai.services.logger import log_llm_call


class GenerationError(RuntimeError):
    """The backend produced no usable answer."""


@dataclass
class GenerationRequest:
    messages: list[dict[str, str]]
    model: str = ""
    temperature: float = 0.7
    max_tokens: int = 350

    @classmethod
    def from_prompt(cls, prompt: str, **kwargs: Any) -> "GenerationRequest":
        return cls(messages=[{"role": "user", "content": prompt}], **kwargs)

    def as_prompt(self) -> str:
        """Flatten role-tagged messages into a single prompt string."""
        return "\n\n".join(m["content"] for m in self.messages if m.get("content"))


class GenerationBackend(Protocol):
    name: str

    async def complete(self, request: GenerationRequest) -> str: ...


def get_client(config: Settings | None = None) -> Any:
    """Get an OpenAI-compatible async client for cloud generation."""
    from openai import AsyncOpenAI

    config = config or settings
    base_url = config.openai_base_url.strip() or "https://api.openai.com/v1"
    return AsyncOpenAI(
        api_key=config.openai_api_key,
        base_url=base_url,
    )


def get_model(config: Settings | None = None) -> str:
    """Get the active cloud model id."""
    return (config or settings).fallback_model or "gpt-4o-mini"


_client: Any | None = None


def client() -> Any:
    """Get or create the cloud client."""
    global _client
    if _client is None:
        _client = get_client()
    return _client


class CloudGenerationBackend:
    name = "cloud"

    def __init__(self, openai_client: Any | None = None, *, config: Settings | None = None):
        self._client = openai_client
        self.config = config

    def _api(self) -> Any:
        if self._client is None:
            # the shared client only serves the process-wide settings
            self._client = client() if self.config is None else get_client(self.config)
        return self._client

    async def complete(self, request: GenerationRequest) -> str:
        from openai import APIError

        api = self._api()
        model = request.model or get_model(self.config)
        started = time.monotonic()
        try:
            response = await api.chat.completions.create(
                model=model,
                messages=request.messages,
                temperature=request.temperature,
                max_tokens=request.max_tokens,
            )
        except APIError as exc:
            log_llm_call(model, self.name, _elapsed_ms(started), status="error", error=str(exc))
            raise GenerationError(str(exc)) from exc

        error = getattr(response, "error", None)
        if error:
            message = error.get("message") if isinstance(error, dict) else str(error)
            log_llm_call(model, self.name, _elapsed_ms(started), status="error", error=message)
            raise GenerationError(message or "backend reported an error")

        choices = getattr(response, "choices", None) or []
        content = getattr(choices[0].message, "content", None) if choices else None
        text = (content or "").strip()
        if not text:
            log_llm_call(model, self.name, _elapsed_ms(started), status="empty", error="empty completion")
            raise GenerationError("empty completion")

        log_llm_call(model, self.name, _elapsed_ms(started))
        return text


def parse_local_response(raw: str) -> str:
    """Read an Ollama ``/api/generate`` body, single JSON or NDJSON stream."""
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError:
        payload = None

    if isinstance(payload, dict):
        if payload.get("error"):
            raise GenerationError(str(payload["error"]))
        if isinstance(payload.get("response"), str):
            text = payload["response"].strip()
            if text:
                return text
            raise GenerationError("empty completion")

    parts: list[str] = []
    for line in raw.splitlines():
        try:
            chunk = json.loads(line)
        except json.JSONDecodeError:
            continue
        if not isinstance(chunk, dict):
            continue
        if chunk.get("error"):
            raise GenerationError(str(chunk["error"]))
        parts.append(str(chunk.get("response") or ""))

    merged = "".join(parts).strip()
    if not merged:
        raise GenerationError("unparsable local model response")
    return merged


class LocalGenerationBackend:
    name = "local"

    def __init__(
        self,
        *,
        url: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        http_client: httpx.AsyncClient | None = None,
        config: Settings | None = None,
    ):
        config = config or settings
        self.url = url or config.local_llm_url
        self.model = model or config.local_llm_model
        self.timeout = timeout or max(config.local_llm_timeout_ms, 1000) / 1000.0
        self._http_client = http_client

    def _payload(self, request: GenerationRequest) -> dict[str, Any]:
        return {
            "model": self.model,
            "prompt": request.as_prompt(),
            "stream": False,
            "options": {
                "num_predict": request.max_tokens,
                "temperature": request.temperature,
                "top_k": 40,
                "top_p": 0.9,
            },
        }

    async def complete(self, request: GenerationRequest) -> str:
        started = time.monotonic()
        try:
            if self._http_client is None:
                async with httpx.AsyncClient(timeout=self.timeout) as http:
                    response = await http.post(self.url, json=self._payload(request))
            else:
                response = await self._http_client.post(self.url, json=self._payload(request))
        except httpx.HTTPError as exc:
            log_llm_call(self.model, self.name, _elapsed_ms(started), status="error", error=str(exc))
            raise GenerationError(str(exc)) from exc

        if not response.is_success:
            message = f"HTTP {response.status_code}"
            log_llm_call(self.model, self.name, _elapsed_ms(started), status="error", error=message)
            raise GenerationError(message)

        try:
            text = parse_local_response(response.text)
        except GenerationError as exc:
            log_llm_call(self.model, self.name, _elapsed_ms(started), status="error", error=str(exc))
            raise

        log_llm_call(self.model, self.name, _elapsed_ms(started))
        return text


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)
