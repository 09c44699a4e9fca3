"""Token-budget-aware transcript compression.

Token counts here are an estimate, not a tokenizer: one token per four
characters of content, never less than one. The estimate is deterministic and
deliberately conservative for the mostly-prose content debates produce.
"""

from dataclasses import dataclass, replace

from .models import TranscriptEntry

CHARS_PER_TOKEN = 4
TRUNCATION_MARKER = "\n\n[...truncated]"


@dataclass(frozen=True)
class TokenBudget:
    """A role's prompt budget: total tokens and the share reserved for output."""

    max_tokens: int
    reserved_tokens: int

    @property
    def allowed_tokens(self) -> int:
        return max(0, self.max_tokens - self.reserved_tokens)


def estimate_tokens(text: str) -> int:
    """Estimate tokens from text (~1 token per 4 characters, minimum 1)."""
    return max(1, len(text) // CHARS_PER_TOKEN)


def estimate_transcript_tokens(transcript: list[TranscriptEntry]) -> int:
    return sum(estimate_tokens(entry.content) for entry in transcript)


def compress_transcript(
    transcript: list[TranscriptEntry], budget: TokenBudget
) -> list[TranscriptEntry]:
    """Return the longest recent suffix of the transcript that fits the budget.

    Older entries are dropped first. If even the most recent entry is over
    budget, a truncated copy of that entry is returned on its own so the
    role always gets some context.
    """
    if not transcript:
        return []

    allowed = budget.allowed_tokens
    kept: list[TranscriptEntry] = []
    total = 0
    for entry in reversed(transcript):
        est = estimate_tokens(entry.content)
        if total + est > allowed:
            break
        kept.append(entry)
        total += est

    if kept:
        kept.reverse()
        return kept

    latest = transcript[-1]
    allowed_chars = allowed * CHARS_PER_TOKEN
    return [replace(latest, content=latest.content[:allowed_chars] + TRUNCATION_MARKER)]
