"""System health and capability discovery endpoints."""

import logging

from fastapi import APIRouter, Depends

from ai_debate.debate_engine.orchestrator import DebateService
from ai_debate.web.endpoints.debates import get_debate_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check(service: DebateService = Depends(get_debate_service)):
    """Health check endpoint to verify API is running."""
    return service.health()


@router.get("/capabilities")
async def get_capabilities(service: DebateService = Depends(get_debate_service)):
    """Providers, their models and key status, plus the default model per role."""
    return service.capabilities()
