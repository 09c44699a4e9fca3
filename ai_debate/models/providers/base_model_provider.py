from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any

from ai_debate.debate_engine.types import BackendEvent


@dataclass(frozen=True)
class ToolCall:
    """A tool invocation requested by the model."""

    id: str
    name: str
    arguments: str


@dataclass
class CompletionResult:
    """Result of a single-shot (non-streaming) completion."""

    content: str
    tool_calls: list[ToolCall] = field(default_factory=list)
    usage: dict[str, Any] | None = None


class BaseModelProvider(ABC):
    """Abstract base class for chat-completion providers."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the name of this provider."""
        pass

    @abstractmethod
    async def complete(
        self,
        model: str,
        messages: list[dict[str, str]],
        *,
        temperature: float,
        max_tokens: int,
        tools: list[dict[str, Any]] | None = None,
    ) -> CompletionResult:
        """Run one non-streaming completion, optionally offering tools."""
        pass

    @abstractmethod
    async def open_stream(
        self,
        model: str,
        messages: list[dict[str, str]],
        *,
        temperature: float,
        max_tokens: int,
    ) -> AsyncIterator[BackendEvent]:
        """
        Start a streaming completion.

        Args:
            model: Provider-local model name
            messages: OpenAI-style chat messages
            temperature: Sampling temperature
            max_tokens: Output ceiling

        Returns:
            An async iterator of normalized backend events

        Note:
            Awaiting this method must raise if the call cannot be started, so
            callers can tell a start failure from a mid-stream failure.
        """
        pass
