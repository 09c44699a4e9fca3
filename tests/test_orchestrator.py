"""Tests for the debate session flow and the service request gates."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from ai_debate.config.settings import DebateConfig, RolesConfig
from ai_debate.debate_engine.database import DatabaseManager
from ai_debate.debate_engine.models import BackendHandle
from ai_debate.debate_engine.orchestrator import DebateService, DebateSession, validate_topic
from ai_debate.debate_engine.rate_limiter import SlidingWindowRateLimiter
from ai_debate.debate_engine.round_executor import RoundExecutor
from ai_debate.debate_engine.types import (
    TURN_ORDER,
    ContentDelta,
    DebatePhase,
    Position,
    ReasoningDelta,
    StreamError,
    UsageInfo,
)
from ai_debate.exceptions import BindingError, PersistenceError, ValidationError


class ScriptedStreamer:
    """Replaces the network streamer; records every prompt it is given."""

    def __init__(self, fail_on_call: int | None = None, hang: bool = False, on_call=None):
        self.fail_on_call = fail_on_call
        self.hang = hang
        self.on_call = on_call
        self.calls: list[tuple[BackendHandle, list[dict[str, str]]]] = []

    async def __call__(self, handle, messages, settings):
        self.calls.append((handle, messages))
        call_number = len(self.calls)
        if self.on_call is not None:
            self.on_call(call_number)
        if self.hang:
            await asyncio.sleep(30)
        if call_number == self.fail_on_call:
            yield ContentDelta("half a thought")
            yield StreamError(f"Stream error from {handle.name}: connection reset")
            return
        yield ContentDelta(f"{handle.name} turn {call_number}. ")
        yield ReasoningDelta("considering")
        yield ContentDelta("Done.")
        yield UsageInfo({"total_tokens": 10})


class FailingStore:
    def __init__(self):
        self.attempts = 0

    def save_message(self, *args: Any) -> int:
        self.attempts += 1
        raise PersistenceError("disk full")

    def fetch_history(self, *args: Any) -> list:
        raise PersistenceError("disk gone")


class FakeResolver:
    """Stands in for BackendResolver."""

    def __init__(self, handles: dict[Position, BackendHandle], fail_for: Position | None = None):
        self.handles = handles
        self.fail_for = fail_for
        self.calls: list[tuple[Position, str | None]] = []

    def resolve(self, position: Position, override: str | None = None) -> BackendHandle:
        self.calls.append((position, override))
        if position is self.fail_for:
            raise BindingError(position.value, override or "default", "GROQ_API_KEY is not set")
        if override:
            provider, _, model = override.partition("/")
            return BackendHandle(name=provider, model_id=override, model_name=model, provider=None)  # type: ignore[arg-type]
        return self.handles[position]

    def describe_providers(self) -> list[dict[str, Any]]:
        return [{"name": "fake", "display_name": "Fake", "has_api_key": True, "models": ["m"]}]

    def default_model_ids(self) -> dict[str, str]:
        return {position.value: handle.model_id for position, handle in self.handles.items()}


def make_service(
    handles,
    streamer,
    store=None,
    resolver=None,
    debate_config: DebateConfig | None = None,
    max_requests: int = 8,
) -> DebateService:
    return DebateService(
        debate_config or DebateConfig(),
        resolver or FakeResolver(handles),
        RoundExecutor(RolesConfig(), streamer=streamer),
        SlidingWindowRateLimiter(max_requests=max_requests),
        store=store,
    )


def collect(events) -> list[dict[str, Any]]:
    async def drain():
        return [event async for event in events]

    return asyncio.run(drain())


def of_type(events: list[dict[str, Any]], kind: str) -> list[dict[str, Any]]:
    return [e for e in events if e["type"] == kind]


# DebateSession


def test_full_debate_runs_fixed_turn_order(
    fake_handles, database: DatabaseManager, sample_debate_topic: str
) -> None:
    streamer = ScriptedStreamer()
    session = DebateSession(
        sample_debate_topic, "alice", "s1", fake_handles, RoundExecutor(RolesConfig(), streamer=streamer), database
    )

    events = collect(session.run())

    assert events[0]["type"] == "phase"
    assert events[0]["phase"] == "init"
    assert events[0]["models"] == {"pro": "fake/pro-model", "con": "fake/con-model", "judge": "fake/judge-model"}
    assert events[-1] == {"type": "done"}
    assert of_type(events, "error") == []

    starts = of_type(events, "phase_start")
    assert [(e["phase"], e["side"]) for e in starts] == [(p.value, s.value) for p, s in TURN_ORDER]
    assert starts[0]["title"] == "Opening Statement"
    assert starts[-1]["provider"] == "judge-backend"
    assert len(of_type(events, "phase_done")) == 9
    assert len(of_type(events, "thinking")) == 9
    assert len(of_type(events, "usage")) == 9

    rows = database.fetch_history("alice", "s1")
    assert [(r["phase"], r["role"]) for r in rows] == [(p.value, s.value) for p, s in TURN_ORDER]
    assert rows[0]["content"] == "pro-backend turn 1. Done."
    assert rows[0]["provider"] == "pro-backend"


def test_each_turn_sees_all_prior_turns(fake_handles, sample_debate_topic: str) -> None:
    streamer = ScriptedStreamer()
    session = DebateSession(
        sample_debate_topic, "alice", "s1", fake_handles, RoundExecutor(RolesConfig(), streamer=streamer)
    )

    collect(session.run())

    con_opening_prompt = "\n".join(m["content"] for m in streamer.calls[1][1])
    judge_prompt = "\n".join(m["content"] for m in streamer.calls[8][1])
    assert "pro-backend turn 1. Done." in con_opening_prompt
    for turn in range(1, 9):
        assert f"turn {turn}. Done." in judge_prompt
    assert len(session.transcript) == 9


def test_delta_events_are_tagged_with_side_phase_and_model(fake_handles, sample_debate_topic: str) -> None:
    session = DebateSession(
        sample_debate_topic, "alice", "s1", fake_handles, RoundExecutor(RolesConfig(), streamer=ScriptedStreamer())
    )

    events = collect(session.run())

    first_delta = of_type(events, "delta")[0]
    assert first_delta == {
        "type": "delta",
        "side": "pro",
        "phase": "opening",
        "model": "fake/pro-model",
        "content": "pro-backend turn 1. ",
    }


def test_backend_error_ends_the_stream(
    fake_handles, database: DatabaseManager, sample_debate_topic: str
) -> None:
    streamer = ScriptedStreamer(fail_on_call=3)
    session = DebateSession(
        sample_debate_topic, "alice", "s1", fake_handles, RoundExecutor(RolesConfig(), streamer=streamer), database
    )

    events = collect(session.run())

    assert events[-1]["type"] == "error"
    assert "connection reset" in events[-1]["message"]
    assert of_type(events, "done") == []
    assert len(of_type(events, "error")) == 1
    assert len(of_type(events, "phase_done")) == 2
    assert len(streamer.calls) == 3
    # the partial turn is neither kept nor persisted
    assert database.count_messages("alice", "s1") == 2
    assert len(session.transcript) == 2


def test_persistence_failures_do_not_stop_the_debate(fake_handles, sample_debate_topic: str) -> None:
    store = FailingStore()
    session = DebateSession(
        sample_debate_topic, "alice", "s1", fake_handles, RoundExecutor(RolesConfig(), streamer=ScriptedStreamer()), store
    )

    events = collect(session.run())

    assert events[-1] == {"type": "done"}
    assert len(of_type(events, "phase_done")) == 9
    assert store.attempts == 9


def test_stop_signal_cancels_between_events(fake_handles, sample_debate_topic: str) -> None:
    stop_event = asyncio.Event()

    def stop_on_second_turn(call_number: int) -> None:
        if call_number == 2:
            stop_event.set()

    streamer = ScriptedStreamer(on_call=stop_on_second_turn)
    session = DebateSession(
        sample_debate_topic,
        "alice",
        "s1",
        fake_handles,
        RoundExecutor(RolesConfig(), streamer=streamer),
        stop_event=stop_event,
    )

    events = collect(session.run())

    assert events[-1] == {"type": "error", "message": "Debate cancelled"}
    assert of_type(events, "done") == []
    assert len(streamer.calls) == 2
    assert len(of_type(events, "phase_done")) == 1


def test_stop_signal_set_before_start(fake_handles, sample_debate_topic: str) -> None:
    stop_event = asyncio.Event()
    stop_event.set()
    streamer = ScriptedStreamer()
    session = DebateSession(
        sample_debate_topic, "alice", "s1", fake_handles,
        RoundExecutor(RolesConfig(), streamer=streamer), stop_event=stop_event,
    )

    events = collect(session.run())

    assert [e["type"] for e in events] == ["phase", "error"]
    assert streamer.calls == []


# topic validation


def test_validate_topic() -> None:
    assert validate_topic("  Cats vs dogs  ") == "Cats vs dogs"
    assert validate_topic("x" * 2000) == "x" * 2000
    with pytest.raises(ValidationError):
        validate_topic("   ")
    with pytest.raises(ValidationError):
        validate_topic("x" * 2001)


# DebateService gates


def test_empty_topic_is_rejected_before_any_backend_call(fake_handles) -> None:
    streamer = ScriptedStreamer()
    resolver = FakeResolver(fake_handles)
    service = make_service(fake_handles, streamer, resolver=resolver)

    events = collect(service.stream_debate("", "alice", "s1"))

    assert len(events) == 1
    assert events[0]["type"] == "error"
    assert "empty" in events[0]["message"]
    assert resolver.calls == []
    assert streamer.calls == []


def test_oversized_topic_is_rejected(fake_handles) -> None:
    service = make_service(fake_handles, ScriptedStreamer())

    events = collect(service.stream_debate("x" * 2001, "alice", "s1"))

    assert [e["type"] for e in events] == ["error"]
    assert "2000" in events[0]["message"]


def test_ninth_debate_in_window_is_rate_limited(fake_handles, sample_debate_topic: str) -> None:
    streamer = ScriptedStreamer()
    service = make_service(fake_handles, streamer)

    async def run() -> list[list[dict[str, Any]]]:
        results = []
        for _ in range(9):
            results.append([event async for event in service.stream_debate(sample_debate_topic, "alice", "s1")])
        return results

    results = asyncio.run(run())

    for events in results[:8]:
        assert events[-1] == {"type": "done"}
    assert len(results[8]) == 1
    assert results[8][0]["type"] == "error"
    assert "Rate limit" in results[8][0]["message"]
    assert len(streamer.calls) == 8 * 9


def test_rate_limit_applies_before_topic_validation(fake_handles) -> None:
    service = make_service(fake_handles, ScriptedStreamer(), max_requests=1)

    async def run():
        first = [e async for e in service.stream_debate("", "alice", "s1")]
        second = [e async for e in service.stream_debate("", "alice", "s1")]
        return first, second

    first, second = asyncio.run(run())

    assert "empty" in first[0]["message"]
    assert "Rate limit" in second[0]["message"]


def test_binding_failure_is_single_error_event(fake_handles, sample_debate_topic: str) -> None:
    streamer = ScriptedStreamer()
    resolver = FakeResolver(fake_handles, fail_for=Position.JUDGE)
    service = make_service(fake_handles, streamer, resolver=resolver)

    events = collect(service.stream_debate(sample_debate_topic, "alice", "s1"))

    assert len(events) == 1
    assert "GROQ_API_KEY" in events[0]["message"]
    assert streamer.calls == []


def test_overrides_are_passed_per_role(fake_handles, sample_debate_topic: str) -> None:
    resolver = FakeResolver(fake_handles)
    service = make_service(fake_handles, ScriptedStreamer(), resolver=resolver)

    events = collect(
        service.stream_debate(
            sample_debate_topic,
            "alice",
            "s1",
            overrides={Position.CON: "openrouter/meta-llama/llama-3.3-70b-instruct"},
        )
    )

    assert (Position.CON, "openrouter/meta-llama/llama-3.3-70b-instruct") in resolver.calls
    assert (Position.PRO, None) in resolver.calls
    assert events[0]["models"]["con"] == "openrouter/meta-llama/llama-3.3-70b-instruct"


def test_session_deadline_produces_error_event(fake_handles, sample_debate_topic: str) -> None:
    service = make_service(
        fake_handles,
        ScriptedStreamer(hang=True),
        debate_config=DebateConfig(session_timeout_seconds=0.05),
    )

    events = collect(service.stream_debate(sample_debate_topic, "alice", "s1"))

    assert events[-1]["type"] == "error"
    assert "timed out" in events[-1]["message"]
    assert of_type(events, "done") == []


def test_history_is_capped_and_oldest_first(
    fake_handles, database: DatabaseManager, sample_debate_topic: str
) -> None:
    service = make_service(
        fake_handles, ScriptedStreamer(), store=database, debate_config=DebateConfig(history_limit=5)
    )

    collect(service.stream_debate(sample_debate_topic, "alice", "s1"))
    history = asyncio.run(service.history("alice", "s1"))

    assert [(h["phase"], h["role"]) for h in history] == [
        (p.value, s.value) for p, s in TURN_ORDER[4:]
    ]
    assert history[-1]["role"] == "judge"


def test_history_store_failure_returns_empty(fake_handles) -> None:
    service = make_service(fake_handles, ScriptedStreamer(), store=FailingStore())

    assert asyncio.run(service.history("alice", "s1")) == []


def test_capabilities_report_search_disabled(fake_handles) -> None:
    service = make_service(fake_handles, ScriptedStreamer())

    capabilities = service.capabilities()

    assert capabilities["search_enabled"] is False
    assert capabilities["defaults"]["judge"] == "fake/judge-model"
    assert capabilities["providers"][0]["name"] == "fake"


def test_health_reports_default_models(fake_handles) -> None:
    health = make_service(fake_handles, ScriptedStreamer()).health()

    assert health["status"] == "ok"
    assert health["pro"] == "fake/pro-model"
    assert health["uptime_secs"] >= 0


def test_phase_titles_cover_every_phase() -> None:
    assert [p.title for p in DebatePhase] == [
        "Opening Statement",
        "Rebuttal",
        "Defense",
        "Closing Statement",
        "Judgement",
    ]
