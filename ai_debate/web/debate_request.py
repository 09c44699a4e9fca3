from pydantic import BaseModel, Field

from ai_debate.debate_engine.types import Position


class DebateRequest(BaseModel):
    """Request model for starting a streamed debate."""

    user_id: str = Field(..., min_length=1)
    session_id: str = Field(..., min_length=1)
    # Topic checks happen in the service so rejections arrive as stream events.
    topic: str = ""
    pro_model: str | None = None
    con_model: str | None = None
    judge_model: str | None = None

    def model_overrides(self) -> dict[Position, str | None]:
        return {
            Position.PRO: self.pro_model,
            Position.CON: self.con_model,
            Position.JUDGE: self.judge_model,
        }


class HistoryQuery(BaseModel):
    """Identifies one session's persisted transcript."""

    user_id: str = Field(..., min_length=1)
    session_id: str = Field(..., min_length=1)
