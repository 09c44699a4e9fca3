"""Shared types and enums for the debate engine."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal, TypeAlias, TypedDict


class Position(Enum):
    """Debate roles."""

    PRO = "pro"
    CON = "con"
    JUDGE = "judge"

    @property
    def label(self) -> str:
        return self.value.title()


class DebatePhase(Enum):
    """Phases of a debate, in speaking order."""

    OPENING = "opening"
    REBUTTAL = "rebuttal"
    DEFENSE = "defense"
    CLOSING = "closing"
    JUDGEMENT = "judgement"

    @property
    def title(self) -> str:
        return PHASE_TITLES[self]


PHASE_TITLES: dict[DebatePhase, str] = {
    DebatePhase.OPENING: "Opening Statement",
    DebatePhase.REBUTTAL: "Rebuttal",
    DebatePhase.DEFENSE: "Defense",
    DebatePhase.CLOSING: "Closing Statement",
    DebatePhase.JUDGEMENT: "Judgement",
}

DEBATE_PHASES: tuple[DebatePhase, ...] = (
    DebatePhase.OPENING,
    DebatePhase.REBUTTAL,
    DebatePhase.DEFENSE,
    DebatePhase.CLOSING,
)

# Fixed turn order: pro then con in each debate phase, judge alone at the end.
TURN_ORDER: tuple[tuple[DebatePhase, Position], ...] = tuple(
    (phase, side) for phase in DEBATE_PHASES for side in (Position.PRO, Position.CON)
) + ((DebatePhase.JUDGEMENT, Position.JUDGE),)


# Backend events: the closed set every provider stream is normalized into.


@dataclass(frozen=True)
class ContentDelta:
    text: str


@dataclass(frozen=True)
class ReasoningDelta:
    text: str


@dataclass(frozen=True)
class UsageInfo:
    usage: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SearchPerformed:
    query: str
    results: str


@dataclass(frozen=True)
class StreamError:
    message: str


BackendEvent: TypeAlias = ContentDelta | ReasoningDelta | UsageInfo | SearchPerformed | StreamError


# Outward stream events, one JSON object per line.


class InitEventData(TypedDict):
    type: Literal["phase"]
    phase: Literal["init"]
    message: str
    models: dict[str, str]


class PhaseStartEventData(TypedDict):
    type: Literal["phase_start"]
    phase: str
    side: str
    title: str
    provider: str
    model: str


class DeltaEventData(TypedDict):
    type: Literal["delta", "thinking"]
    side: str
    phase: str
    model: str
    content: str


class UsageEventData(TypedDict):
    type: Literal["usage"]
    side: str
    phase: str
    model: str
    usage: dict[str, Any]


class SearchEventData(TypedDict):
    type: Literal["search"]
    side: str
    phase: str
    model: str
    query: str
    results: str


class PhaseDoneEventData(TypedDict):
    type: Literal["phase_done"]
    phase: str
    side: str
    provider: str
    model: str


class ErrorEventData(TypedDict):
    type: Literal["error"]
    message: str


class DoneEventData(TypedDict):
    type: Literal["done"]


StreamEvent: TypeAlias = (
    InitEventData
    | PhaseStartEventData
    | DeltaEventData
    | UsageEventData
    | SearchEventData
    | PhaseDoneEventData
    | ErrorEventData
    | DoneEventData
)


def error_event(message: str) -> ErrorEventData:
    return {"type": "error", "message": message}


def done_event() -> DoneEventData:
    return {"type": "done"}
