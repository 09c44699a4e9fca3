"""Prompt construction for debaters and the judge."""

from typing import TypeAlias

from .models import TranscriptEntry
from .types import DebatePhase, Position

ChatMessage: TypeAlias = dict[str, str]

STANCES = {
    Position.PRO: "You are the Pro side. You support the motion.",
    Position.CON: "You are the Con side. You oppose the motion.",
}

PHASE_GOALS = {
    DebatePhase.OPENING: "Opening statement: state your position and core arguments.",
    DebatePhase.REBUTTAL: "Rebuttal: refute the opponent's arguments point by point and add supporting evidence.",
    DebatePhase.DEFENSE: "Defense: answer the opponent's rebuttal and reinforce your own arguments.",
    DebatePhase.CLOSING: "Closing statement: summarize your key arguments and drive home your conclusion.",
}

TOOL_INSTRUCTION = """
- When facts, data, statistics or recent information would strengthen an argument, call the web_search tool to find evidence.
- Weave search findings naturally into your argument. Never mention the tool or the search process."""


def format_history(transcript: list[TranscriptEntry]) -> str:
    """Serialize transcript entries as labelled blocks."""
    return "".join(
        f"[{entry.position.label} - {entry.phase.title} - {entry.provider}]\n{entry.content}\n\n"
        for entry in transcript
    )


def build_side_prompt(
    position: Position,
    phase: DebatePhase,
    topic: str,
    transcript: list[TranscriptEntry],
    tools_enabled: bool = False,
    search_context: str | None = None,
) -> list[ChatMessage]:
    """Build the message list for a debater's turn.

    The transcript should already be compressed to the role's budget.
    """
    if position not in STANCES or phase not in PHASE_GOALS:
        raise ValueError(f"{position.value} does not speak in the {phase.value} phase")

    tool_instruction = TOOL_INSTRUCTION if tools_enabled else ""
    system = f"""{STANCES[position]}
Motion: {topic}
Current phase: {PHASE_GOALS[phase]}
Requirements:
- Write in Markdown.
- Include a `## Reasoning` section (concise bullet points) and a `## Final Position` section (this turn's conclusion).
- Be concise and forceful; do not repeat yourself.
- Aim for 120-220 words.{tool_instruction}
"""

    messages: list[ChatMessage] = [{"role": "system", "content": system}]

    history = format_history(transcript)
    if history:
        messages.append({"role": "user", "content": f"Debate so far:\n{history}"})

    if search_context:
        messages.append(
            {
                "role": "user",
                "content": (
                    "Reference material from web search. Work the relevant parts "
                    f"naturally into your argument:\n\n{search_context}"
                ),
            }
        )

    messages.append({"role": "user", "content": f"Deliver your {phase.title} now."})
    return messages


def build_judge_prompt(topic: str, transcript: list[TranscriptEntry]) -> list[ChatMessage]:
    """Build the message list for the judge's verdict."""
    system = f"""You are a neutral judge. Decide the debate from the full record.
Motion: {topic}
Requirements:
- Write in Markdown.
- Include a `## Reasoning` section (your evaluation, clearly structured) and a `## Verdict` section.
- State the winner in the verdict as `Winner: Pro` or `Winner: Con`.
- Be brief and objective; do not restate the arguments at length.
"""
    return [
        {"role": "system", "content": system},
        {"role": "user", "content": f"Full debate record:\n{format_history(transcript)}"},
    ]
