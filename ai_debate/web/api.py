"""FastAPI web application for the AI debate service."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ai_debate import __version__
from ai_debate.config.settings import AppConfig, get_default_config
from ai_debate.debate_engine.database import DatabaseManager
from ai_debate.debate_engine.orchestrator import DebateService
from ai_debate.debate_engine.rate_limiter import SlidingWindowRateLimiter
from ai_debate.debate_engine.round_executor import RoundExecutor
from ai_debate.models.manager import BackendResolver
from ai_debate.models.providers import log_key_check
from ai_debate.tools.web_search import WebSearchClient
from ai_debate.web.endpoints.debates import router as debates_router
from ai_debate.web.endpoints.system import router as system_router

logger: logging.Logger = logging.getLogger(__name__)


def build_debate_service(config: AppConfig) -> DebateService:
    """Wire the resolver, executor, store and limiter from configuration."""
    log_key_check()

    resolver = BackendResolver(config.roles, config.system)
    defaults = resolver.resolve_defaults()
    for position, handle in defaults.items():
        logger.info(f"Default {position.value} backend: {handle.model_id}")

    search_client = WebSearchClient(config.search)
    if search_client.is_enabled():
        logger.info("Web search enabled for debaters")
    else:
        logger.info(f"Web search disabled ({config.search.api_key_env} not set)")

    return DebateService(
        config.debate,
        resolver,
        RoundExecutor(config.roles, search_client=search_client),
        SlidingWindowRateLimiter(
            window_seconds=config.rate_limit.window_seconds,
            max_requests=config.rate_limit.max_requests,
        ),
        store=DatabaseManager(config.system.database_path),
    )


def create_app(
    service: DebateService | None = None, config: AppConfig | None = None
) -> FastAPI:
    """Create the application; a prebuilt service skips startup wiring."""
    app_config = config or get_default_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Manage application lifespan - startup and shutdown."""
        if getattr(app.state, "debate_service", None) is None:
            app.state.debate_service = build_debate_service(app_config)
        logger.info("Debate service ready")
        yield
        logger.info("Debate service stopped")

    app = FastAPI(
        title="AI Debate Service",
        description="Streamed three-role debates between language model backends",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.debate_service = service

    allowed_origins = app_config.system.allowed_origins
    logger.info(f"Setting CORS allowed origins: {allowed_origins}")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials="*" not in allowed_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(debates_router)
    app.include_router(system_router)
    return app
