"""Pytest configuration and shared fixtures.

Fixtures here are available to every test module without importing. Fakes
that only one module needs live in that module.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from ai_debate.config.settings import AppConfig
from ai_debate.debate_engine.database import DatabaseManager
from ai_debate.debate_engine.models import BackendHandle
from ai_debate.debate_engine.types import Position


# =============================================================================
# SHARED FIXTURES - Available to all test modules
# =============================================================================


@pytest.fixture
def sample_debate_topic() -> str:
    """Provide a standard debate topic for testing."""
    return "Should artificial intelligence be regulated by governments?"


@pytest.fixture
def app_config() -> AppConfig:
    """Template configuration, untouched by env vars or config files."""
    return AppConfig()


@pytest.fixture
def database(tmp_path: Path) -> DatabaseManager:
    """A fresh SQLite transcript store in a temporary directory."""
    return DatabaseManager(str(tmp_path / "debate.db"))


@pytest.fixture
def fake_handles() -> dict[Position, BackendHandle]:
    """One handle per role; provider is unused when a fake streamer is injected."""
    return {
        position: BackendHandle(
            name=f"{position.value}-backend",
            model_id=f"fake/{position.value}-model",
            model_name=f"{position.value}-model",
            provider=None,  # type: ignore[arg-type]
        )
        for position in Position
    }


@pytest.fixture(autouse=True)
def no_search_key(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's real Tavily key from enabling search in tests."""
    monkeypatch.delenv("TAVILY_API_KEY", raising=False)


# =============================================================================
# PYTEST CONFIGURATION HOOKS
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
