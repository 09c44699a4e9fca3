"""Debate orchestration and flow management."""

from .context_compressor import TokenBudget, compress_transcript, estimate_tokens
from .models import BackendHandle, TranscriptEntry
from .orchestrator import DebateService, DebateSession, validate_topic
from .rate_limiter import SlidingWindowRateLimiter
from .round_executor import RoundExecutor, ToolAugmentedRound, ToolRoundState
from .types import DebatePhase, Position, TURN_ORDER

__all__ = [
    "BackendHandle",
    "DebatePhase",
    "DebateService",
    "DebateSession",
    "Position",
    "RoundExecutor",
    "SlidingWindowRateLimiter",
    "TURN_ORDER",
    "TokenBudget",
    "ToolAugmentedRound",
    "ToolRoundState",
    "TranscriptEntry",
    "compress_transcript",
    "estimate_tokens",
    "validate_topic",
]
