"""Debate streaming and history endpoints."""

import json
import logging
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from ai_debate.debate_engine.orchestrator import DebateService
from ai_debate.web.debate_request import DebateRequest, HistoryQuery

logger = logging.getLogger(__name__)

router = APIRouter()

NDJSON_MEDIA_TYPE = "application/x-ndjson"


def get_debate_service(request: Request) -> DebateService:
    return request.app.state.debate_service


@router.post("/debate/stream")
async def stream_debate(
    body: DebateRequest, service: DebateService = Depends(get_debate_service)
):
    """Run a debate and stream its events as newline-delimited JSON.

    A client disconnect cancels the response task, which closes the
    session's event iterator and aborts any in-flight backend call.
    """
    logger.info(f"Debate stream requested by {body.user_id}/{body.session_id}")

    async def event_lines() -> AsyncIterator[str]:
        async for event in service.stream_debate(
            body.topic,
            body.user_id,
            body.session_id,
            overrides=body.model_overrides(),
        ):
            yield json.dumps(event) + "\n"

    return StreamingResponse(
        event_lines(),
        media_type=NDJSON_MEDIA_TYPE,
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@router.get("/history")
async def get_history(
    query: HistoryQuery = Depends(), service: DebateService = Depends(get_debate_service)
):
    """Persisted turns for a session, oldest first."""
    history = await service.history(query.user_id, query.session_id)
    return {"history": history}


@router.post("/history")
async def post_history(
    query: HistoryQuery, service: DebateService = Depends(get_debate_service)
):
    history = await service.history(query.user_id, query.session_id)
    return {"history": history}
