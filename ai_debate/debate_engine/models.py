"""Data models for the debate engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .types import DebatePhase, Position

if TYPE_CHECKING:
    from ai_debate.models.providers.base_model_provider import BaseModelProvider


@dataclass(frozen=True)
class TranscriptEntry:
    """A single completed turn in the debate."""

    position: Position
    phase: DebatePhase
    content: str
    provider: str


@dataclass(frozen=True)
class BackendHandle:
    """A role's resolved binding to a concrete backend and model.

    Handles carry no per-session state and are shared read-only between
    sessions that use the same default model.
    """

    name: str
    model_id: str
    model_name: str
    provider: BaseModelProvider
