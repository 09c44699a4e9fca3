"""Main entry point for the AI debate service."""

import logging

from ai_debate.config.settings import AppConfig, get_default_config


def setup_logging(level: str = "INFO") -> None:
    """Configure logging for the web server."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )

    # Suppress noisy third-party loggers
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def start_web_server(config: AppConfig) -> None:
    """Start the FastAPI web server."""
    import uvicorn

    from ai_debate.web.api import create_app

    logger = logging.getLogger(__name__)
    logger.info(f"Starting debate server on {config.system.host}:{config.system.port}")
    logger.info(f"API documentation: http://localhost:{config.system.port}/docs")

    app = create_app(config=config)
    uvicorn.run(app, host=config.system.host, port=config.system.port, log_level="info")


def main() -> None:
    """Main entry point."""
    config = get_default_config()
    setup_logging(config.system.log_level)
    start_web_server(config)


if __name__ == "__main__":
    main()
