"""OpenAI-compatible provider implementation using the OpenAI SDK."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Mapping, Sequence
from typing import Any, cast

import httpx
from openai import AsyncOpenAI, OpenAIError

from ai_debate.debate_engine.types import (
    BackendEvent,
    ContentDelta,
    ReasoningDelta,
    UsageInfo,
)
from ai_debate.exceptions import TransportError

from .base_model_provider import BaseModelProvider, CompletionResult, ToolCall

logger = logging.getLogger(__name__)


def _usage_to_dict(usage: object) -> dict[str, Any]:
    if usage is None:
        return {}
    if isinstance(usage, Mapping):
        return dict(cast(Mapping[str, Any], usage))
    model_dump = getattr(usage, "model_dump", None)
    if callable(model_dump):
        return cast(dict[str, Any], model_dump(exclude_none=True))
    return {}


def _coerce_content_to_text(content: object) -> str:
    """Return textual content from OpenAI-style message content payloads."""
    if isinstance(content, str):
        return content

    if isinstance(content, Sequence):
        parts: list[str] = []
        for element in cast(Sequence[object], content):
            if isinstance(element, str):
                parts.append(element)
            elif isinstance(element, Mapping):
                text_value = cast(Mapping[str, object], element).get("text")
                if isinstance(text_value, str):
                    parts.append(text_value)
        return "".join(parts)

    return ""


def normalize_chunk(chunk: object) -> BackendEvent:
    """Map one streaming chunk to exactly one backend event.

    Content wins over reasoning when a chunk carries both. Chunks of any
    other shape become an empty content delta rather than being dropped.
    """
    choices = getattr(chunk, "choices", None) or []
    if choices:
        delta = getattr(choices[0], "delta", None)
        if delta is not None:
            content = _coerce_content_to_text(getattr(delta, "content", None))
            if content:
                return ContentDelta(content)
            # DeepSeek uses reasoning_content, OpenRouter uses reasoning
            reasoning = getattr(delta, "reasoning_content", None) or getattr(
                delta, "reasoning", None
            )
            if isinstance(reasoning, str) and reasoning:
                return ReasoningDelta(reasoning)

    usage = getattr(chunk, "usage", None)
    if usage is not None:
        return UsageInfo(_usage_to_dict(usage))

    return ContentDelta("")


class OpenAICompatibleProvider(BaseModelProvider):
    """Provider for any backend exposing the OpenAI chat-completions API."""

    def __init__(
        self,
        name: str,
        base_url: str,
        api_key: str,
        timeout: float = 120.0,
        max_retries: int = 2,
        stream_usage: bool = True,
        client: AsyncOpenAI | None = None,
    ):
        self._name = name
        self._stream_usage = stream_usage
        self._client = client or AsyncOpenAI(
            base_url=base_url,
            api_key=api_key,
            timeout=timeout,
            max_retries=max_retries,
        )

    @property
    def provider_name(self) -> str:
        return self._name

    async def complete(
        self,
        model: str,
        messages: list[dict[str, str]],
        *,
        temperature: float,
        max_tokens: int,
        tools: list[dict[str, Any]] | None = None,
    ) -> CompletionResult:
        params: dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if tools:
            params["tools"] = tools

        try:
            response = await self._client.chat.completions.create(**params)
        except (OpenAIError, httpx.HTTPError) as exc:
            logger.error("%s completion failed for %s: %s", self._name, model, exc)
            raise TransportError(self._name, model, f"completion failed: {exc}") from exc

        content = ""
        tool_calls: list[ToolCall] = []
        if response.choices:
            message = response.choices[0].message
            content = _coerce_content_to_text(message.content)
            for call in message.tool_calls or []:
                function = getattr(call, "function", None)
                if function is None:
                    continue
                tool_calls.append(
                    ToolCall(id=call.id, name=function.name, arguments=function.arguments or "")
                )

        usage = _usage_to_dict(response.usage) or None
        logger.debug(
            "Generated %s chars and %s tool call(s) from %s %s",
            len(content),
            len(tool_calls),
            self._name,
            model,
        )
        return CompletionResult(content=content, tool_calls=tool_calls, usage=usage)

    async def open_stream(
        self,
        model: str,
        messages: list[dict[str, str]],
        *,
        temperature: float,
        max_tokens: int,
    ) -> AsyncIterator[BackendEvent]:
        params: dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "stream": True,
        }
        if self._stream_usage:
            params["stream_options"] = {"include_usage": True}

        try:
            stream = await self._client.chat.completions.create(**params)
        except (OpenAIError, httpx.HTTPError) as exc:
            logger.error("%s failed to start stream for %s: %s", self._name, model, exc)
            raise TransportError(self._name, model, f"failed to start stream: {exc}") from exc

        return self._normalize_stream(stream, model)

    async def _normalize_stream(
        self, stream: AsyncIterator[object], model: str
    ) -> AsyncIterator[BackendEvent]:
        try:
            async for chunk in stream:
                yield normalize_chunk(chunk)
        except (OpenAIError, httpx.HTTPError) as exc:
            logger.error("%s stream error for %s: %s", self._name, model, exc)
            raise TransportError(self._name, model, f"stream error: {exc}") from exc
        finally:
            # AsyncStream exposes close(); plain async generators expose aclose()
            close = getattr(stream, "close", None) or getattr(stream, "aclose", None)
            if close is not None:
                await close()
