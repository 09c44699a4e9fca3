"""Execution of a single debate turn against a backend."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import aclosing
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, TypeAlias

from ai_debate.config.settings import RolesConfig
from ai_debate.exceptions import ToolError, TransportError
from ai_debate.tools.web_search import (
    SEARCH_TOOL_DEFINITION,
    SEARCH_TOOL_NAME,
    SearchResult,
    WebSearchClient,
    parse_search_query,
)

from .context_compressor import TokenBudget, compress_transcript
from .models import BackendHandle, TranscriptEntry
from .prompt_builder import ChatMessage, build_judge_prompt, build_side_prompt
from .types import (
    BackendEvent,
    ContentDelta,
    DebatePhase,
    Position,
    SearchPerformed,
    StreamError,
    UsageInfo,
)

if TYPE_CHECKING:
    from ai_debate.models.providers.base_model_provider import ToolCall

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoundSettings:
    """Sampling parameters and context budget for one role."""

    temperature: float
    max_tokens: int
    budget: TokenBudget


Streamer: TypeAlias = Callable[
    [BackendHandle, list[ChatMessage], RoundSettings], AsyncIterator[BackendEvent]
]


async def stream_round(
    handle: BackendHandle, messages: list[ChatMessage], settings: RoundSettings
) -> AsyncIterator[BackendEvent]:
    """Open one streaming call and relay its normalized events.

    Any transport failure ends the stream with a single StreamError.
    """
    try:
        stream = await handle.provider.open_stream(
            handle.model_name,
            messages,
            temperature=settings.temperature,
            max_tokens=settings.max_tokens,
        )
    except TransportError as exc:
        yield StreamError(f"Failed to start stream for {handle.name}: {exc.detail}")
        return

    try:
        async with aclosing(stream) as events:
            async for event in events:
                yield event
    except TransportError as exc:
        yield StreamError(f"Stream error from {handle.name}: {exc.detail}")


class ToolRoundState(Enum):
    """States of a tool-augmented turn."""

    DECIDING = "deciding"
    SEARCHING = "searching"
    STREAMING = "streaming"
    DONE = "done"


class ToolAugmentedRound:
    """Decide, search, then stream: one debater turn with web search available.

    The first call is non-streaming and offers the web_search tool. If the
    model asks for searches, they run, each result is surfaced as an event,
    and a second streaming call is made with the evidence as reference
    material. A failed search becomes placeholder evidence; a failed model
    call ends the turn with a StreamError.
    """

    def __init__(
        self,
        handle: BackendHandle,
        position: Position,
        phase: DebatePhase,
        topic: str,
        transcript: list[TranscriptEntry],
        settings: RoundSettings,
        search_client: WebSearchClient,
        streamer: Streamer = stream_round,
    ):
        self.handle = handle
        self.position = position
        self.phase = phase
        self.topic = topic
        self.transcript = transcript
        self.settings = settings
        self.search_client = search_client
        self.streamer = streamer

        self.state = ToolRoundState.DECIDING
        self.pending_calls: list[ToolCall] = []
        self.searches: list[SearchResult] = []

    async def run(self) -> AsyncIterator[BackendEvent]:
        while self.state is not ToolRoundState.DONE:
            if self.state is ToolRoundState.DECIDING:
                step = self._decide()
            elif self.state is ToolRoundState.SEARCHING:
                step = self._search()
            else:
                step = self._stream()
            async with aclosing(step) as step_events:
                async for event in step_events:
                    yield event

    async def _decide(self) -> AsyncIterator[BackendEvent]:
        messages = build_side_prompt(
            self.position, self.phase, self.topic, self.transcript, tools_enabled=True
        )
        try:
            result = await self.handle.provider.complete(
                self.handle.model_name,
                messages,
                temperature=self.settings.temperature,
                max_tokens=self.settings.max_tokens,
                tools=[SEARCH_TOOL_DEFINITION],
            )
        except TransportError as exc:
            self.state = ToolRoundState.DONE
            yield StreamError(f"Tool decision call failed for {self.handle.name}: {exc.detail}")
            return

        for call in result.tool_calls:
            if call.name == SEARCH_TOOL_NAME:
                self.pending_calls.append(call)
            else:
                logger.warning("Ignoring call to unknown tool %s from %s", call.name, self.handle.name)

        if not self.pending_calls:
            self.state = ToolRoundState.DONE
            yield ContentDelta(result.content)
            if result.usage:
                yield UsageInfo(result.usage)
            return

        logger.info(
            "%s requested %s search(es) for %s/%s",
            self.handle.name,
            len(self.pending_calls),
            self.position.value,
            self.phase.value,
        )
        self.state = ToolRoundState.SEARCHING

    async def _search(self) -> AsyncIterator[BackendEvent]:
        for call in self.pending_calls:
            result = await self._run_search(call)
            self.searches.append(result)
            yield SearchPerformed(query=result.query, results=result.results)
        self.state = ToolRoundState.STREAMING

    async def _run_search(self, call: ToolCall) -> SearchResult:
        query = call.arguments
        try:
            query = parse_search_query(call.arguments)
            return await self.search_client.search(query)
        except ToolError as exc:
            logger.warning("Search failed for %r: %s", query, exc)
            return SearchResult(query=query, results=f"Search failed: {exc}")

    def search_context(self) -> str:
        return "\n\n".join(
            f"### Query: {result.query}\n{result.results}" for result in self.searches
        )

    async def _stream(self) -> AsyncIterator[BackendEvent]:
        messages = build_side_prompt(
            self.position,
            self.phase,
            self.topic,
            self.transcript,
            search_context=self.search_context(),
        )
        async with aclosing(self.streamer(self.handle, messages, self.settings)) as events:
            async for event in events:
                yield event
        self.state = ToolRoundState.DONE


class RoundExecutor:
    """Runs one role's turn for one phase and yields normalized backend events."""

    def __init__(
        self,
        roles_config: RolesConfig,
        search_client: WebSearchClient | None = None,
        streamer: Streamer = stream_round,
    ):
        self.roles_config = roles_config
        self.search_client = search_client
        self.streamer = streamer

    def settings_for(self, position: Position) -> RoundSettings:
        role_config = self.roles_config.for_role(position.value)
        return RoundSettings(
            temperature=role_config.temperature,
            max_tokens=role_config.max_tokens,
            budget=TokenBudget(role_config.context_tokens, role_config.reserved_tokens),
        )

    def tools_enabled(self, position: Position) -> bool:
        """The judge never gets tools; debaters get them when search is configured."""
        if position is Position.JUDGE or self.search_client is None:
            return False
        return self.search_client.is_enabled()

    async def execute(
        self,
        handle: BackendHandle,
        position: Position,
        phase: DebatePhase,
        topic: str,
        transcript: list[TranscriptEntry],
    ) -> AsyncIterator[BackendEvent]:
        settings = self.settings_for(position)
        compressed = compress_transcript(transcript, settings.budget)
        if len(compressed) < len(transcript):
            logger.debug(
                "Compressed transcript for %s from %s to %s entries",
                position.value,
                len(transcript),
                len(compressed),
            )

        if self.tools_enabled(position):
            assert self.search_client is not None
            tool_round = ToolAugmentedRound(
                handle,
                position,
                phase,
                topic,
                compressed,
                settings,
                self.search_client,
                streamer=self.streamer,
            )
            async with aclosing(tool_round.run()) as events:
                async for event in events:
                    yield event
            return

        if position is Position.JUDGE:
            messages = build_judge_prompt(topic, compressed)
        else:
            messages = build_side_prompt(position, phase, topic, compressed)

        async with aclosing(self.streamer(handle, messages, settings)) as events:
            async for event in events:
                yield event

