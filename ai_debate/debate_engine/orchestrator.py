"""Core debate orchestration: the fixed turn sequence and its event stream."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Mapping
from contextlib import aclosing
from typing import TYPE_CHECKING, Any, Protocol

from ai_debate.config.settings import DebateConfig
from ai_debate.exceptions import BindingError, RateLimitError, ValidationError

from .database import HistoryMessage
from .models import BackendHandle, TranscriptEntry
from .rate_limiter import SlidingWindowRateLimiter
from .round_executor import RoundExecutor
from .types import (
    TURN_ORDER,
    ContentDelta,
    DebatePhase,
    Position,
    ReasoningDelta,
    SearchPerformed,
    StreamError,
    StreamEvent,
    UsageInfo,
    done_event,
    error_event,
)

if TYPE_CHECKING:
    from ai_debate.models.manager import BackendResolver

logger = logging.getLogger(__name__)


class TranscriptStore(Protocol):
    """Append-only store of completed turns."""

    def save_message(
        self,
        user_id: str,
        session_id: str,
        role: Position,
        phase: DebatePhase,
        provider: str | None,
        content: str,
    ) -> int: ...

    def fetch_history(
        self, user_id: str, session_id: str, limit: int = 50
    ) -> list[HistoryMessage]: ...


def validate_topic(topic: str, max_length: int = 2000) -> str:
    """Return the stripped topic or raise ValidationError."""
    cleaned = (topic or "").strip()
    if not cleaned:
        raise ValidationError("Topic must not be empty")
    if len(topic) > max_length:
        raise ValidationError(f"Topic exceeds {max_length} characters")
    return cleaned


class DebateSession:
    """One debate: runs every turn in order and yields the outward events.

    The session owns its transcript. Each completed turn is appended and
    persisted before the next turn starts, since every prompt is built from
    all prior turns. The first backend error ends the whole stream.
    """

    def __init__(
        self,
        topic: str,
        user_id: str,
        session_id: str,
        handles: Mapping[Position, BackendHandle],
        executor: RoundExecutor,
        store: TranscriptStore | None = None,
        stop_event: asyncio.Event | None = None,
    ):
        self.topic = topic
        self.user_id = user_id
        self.session_id = session_id
        self.handles = dict(handles)
        self.executor = executor
        self.store = store
        self.stop_event = stop_event
        self.transcript: list[TranscriptEntry] = []

    def stopped(self) -> bool:
        return self.stop_event is not None and self.stop_event.is_set()

    async def run(self) -> AsyncIterator[StreamEvent]:
        yield {
            "type": "phase",
            "phase": "init",
            "message": "Debate started",
            "models": {position.value: handle.model_id for position, handle in self.handles.items()},
        }

        for phase, position in TURN_ORDER:
            if self.stopped():
                logger.info("Debate %s/%s stopped before %s", self.user_id, self.session_id, phase.value)
                yield error_event("Debate cancelled")
                return

            handle = self.handles[position]
            side = position.value
            yield {
                "type": "phase_start",
                "phase": phase.value,
                "side": side,
                "title": phase.title,
                "provider": handle.name,
                "model": handle.model_id,
            }

            parts: list[str] = []
            start_time = time.time()
            events = self.executor.execute(handle, position, phase, self.topic, list(self.transcript))
            async with aclosing(events) as turn_events:
                async for event in turn_events:
                    if isinstance(event, StreamError):
                        logger.error(
                            "Debate %s/%s failed in %s/%s: %s",
                            self.user_id,
                            self.session_id,
                            phase.value,
                            side,
                            event.message,
                        )
                        yield error_event(f"Debate round failed: {event.message}")
                        return

                    if isinstance(event, ContentDelta):
                        parts.append(event.text)
                        yield {
                            "type": "delta",
                            "side": side,
                            "phase": phase.value,
                            "model": handle.model_id,
                            "content": event.text,
                        }
                    elif isinstance(event, ReasoningDelta):
                        yield {
                            "type": "thinking",
                            "side": side,
                            "phase": phase.value,
                            "model": handle.model_id,
                            "content": event.text,
                        }
                    elif isinstance(event, UsageInfo):
                        yield {
                            "type": "usage",
                            "side": side,
                            "phase": phase.value,
                            "model": handle.model_id,
                            "usage": event.usage,
                        }
                    elif isinstance(event, SearchPerformed):
                        yield {
                            "type": "search",
                            "side": side,
                            "phase": phase.value,
                            "model": handle.model_id,
                            "query": event.query,
                            "results": event.results,
                        }

                    if self.stopped():
                        yield error_event("Debate cancelled")
                        return

            entry = TranscriptEntry(
                position=position, phase=phase, content="".join(parts), provider=handle.name
            )
            self.transcript.append(entry)
            logger.info(
                "Round %s/%s by %s completed: %s chars in %.2fs",
                phase.value,
                side,
                handle.model_id,
                len(entry.content),
                time.time() - start_time,
            )
            await self._persist(entry)

            yield {
                "type": "phase_done",
                "phase": phase.value,
                "side": side,
                "provider": handle.name,
                "model": handle.model_id,
            }

        yield done_event()

    async def _persist(self, entry: TranscriptEntry) -> None:
        """Save a turn; storage failures are logged and never end the debate."""
        if self.store is None:
            return
        try:
            await asyncio.to_thread(
                self.store.save_message,
                self.user_id,
                self.session_id,
                entry.position,
                entry.phase,
                entry.provider,
                entry.content,
            )
        except Exception as e:
            logger.error(
                f"Failed to persist {entry.position.value}/{entry.phase.value} "
                f"for {self.user_id}/{self.session_id}: {e}"
            )


class DebateService:
    """Entry point for debate sessions: request gates, history and discovery."""

    def __init__(
        self,
        debate_config: DebateConfig,
        resolver: BackendResolver,
        executor: RoundExecutor,
        rate_limiter: SlidingWindowRateLimiter,
        store: TranscriptStore | None = None,
    ):
        self.debate_config = debate_config
        self.resolver = resolver
        self.executor = executor
        self.rate_limiter = rate_limiter
        self.store = store
        self.start_time = time.monotonic()

    async def stream_debate(
        self,
        topic: str,
        user_id: str,
        session_id: str,
        overrides: Mapping[Position, str | None] | None = None,
        stop_event: asyncio.Event | None = None,
    ) -> AsyncIterator[StreamEvent]:
        """Run a debate and yield its events.

        Rejections (rate limit, bad topic, unbindable backend) are reported
        as a single error event before any backend call is made.
        """
        try:
            await self._check_rate_limit(user_id)
            cleaned_topic = validate_topic(topic, self.debate_config.max_topic_length)
            handles = self._bind_roles(overrides or {})
        except (RateLimitError, ValidationError, BindingError) as exc:
            logger.warning("Rejected debate for %s/%s: %s", user_id, session_id, exc)
            yield error_event(str(exc))
            return

        logger.info("Starting debate %s/%s: '%s'", user_id, session_id, cleaned_topic)
        session = DebateSession(
            cleaned_topic,
            user_id,
            session_id,
            handles,
            self.executor,
            store=self.store,
            stop_event=stop_event,
        )
        async for event in self._with_deadline(session.run()):
            yield event

    async def _check_rate_limit(self, user_id: str) -> None:
        if not await self.rate_limiter.check(user_id):
            raise RateLimitError(
                user_id, self.rate_limiter.window_seconds, self.rate_limiter.max_requests
            )

    def _bind_roles(self, overrides: Mapping[Position, str | None]) -> dict[Position, BackendHandle]:
        return {
            position: self.resolver.resolve(position, overrides.get(position))
            for position in Position
        }

    async def _with_deadline(self, events: AsyncIterator[StreamEvent]) -> AsyncIterator[StreamEvent]:
        """Relay session events until done or until the session deadline passes."""
        timeout = self.debate_config.session_timeout_seconds
        deadline = asyncio.get_running_loop().time() + timeout
        async with aclosing(events) as session_events:
            while True:
                try:
                    async with asyncio.timeout_at(deadline):
                        event = await anext(session_events)
                except StopAsyncIteration:
                    return
                except TimeoutError:
                    logger.error(f"Debate timed out after {timeout:g}s")
                    yield error_event(f"Debate timed out after {timeout:g}s")
                    return
                except Exception as e:
                    logger.exception("Debate failed unexpectedly")
                    yield error_event(f"Debate failed: {type(e).__name__}: {e}")
                    return
                yield event

    async def history(self, user_id: str, session_id: str) -> list[HistoryMessage]:
        """Persisted turns for a session, oldest first, at most history_limit."""
        if self.store is None:
            return []
        try:
            return await asyncio.to_thread(
                self.store.fetch_history, user_id, session_id, self.debate_config.history_limit
            )
        except Exception as e:
            logger.error(f"Failed to fetch history for {user_id}/{session_id}: {e}")
            return []

    def capabilities(self) -> dict[str, Any]:
        search_client = self.executor.search_client
        return {
            "providers": self.resolver.describe_providers(),
            "defaults": self.resolver.default_model_ids(),
            "search_enabled": bool(search_client and search_client.is_enabled()),
        }

    def health(self) -> dict[str, Any]:
        defaults = self.resolver.default_model_ids()
        return {
            "status": "ok",
            "uptime_secs": int(time.monotonic() - self.start_time),
            **defaults,
        }
