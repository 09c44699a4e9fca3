"""Configuration settings and data models."""

import json
import logging
import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

CONFIG_FILENAMES = ("debate_config.json", "debate_config.yaml", "debate_config.yml")

# Env var that overrides each role's default model id, e.g. PRO_MODEL_ID=deepseek/deepseek-chat
ROLE_MODEL_ENV_KEYS = {
    "pro": "PRO_MODEL_ID",
    "con": "CON_MODEL_ID",
    "judge": "JUDGE_MODEL_ID",
}


class RoleConfig(BaseModel):
    """Backend binding and generation limits for one debate role."""

    model_id: str = Field(..., description="Default model id as 'provider/model'")
    fallback_model_id: str | None = Field(
        default="mistral/mistral-small-latest",
        description="Single alternate model tried if the primary fails to initialize",
    )
    temperature: float = Field(default=0.7, description="Sampling temperature")
    max_tokens: int = Field(default=2048, description="Output ceiling per turn")
    context_tokens: int = Field(
        default=8000, description="Total token budget for the role's prompt"
    )
    reserved_tokens: int = Field(
        default=2048, description="Tokens held back from the history budget for output"
    )

    @field_validator("temperature")
    @classmethod
    def validate_temperature(cls, v: float) -> float:
        if not 0.0 <= v <= 2.0:
            raise ValueError("temperature must be between 0.0 and 2.0")
        return v

    @field_validator("max_tokens", "context_tokens")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("token limits must be positive")
        return v

    @field_validator("reserved_tokens")
    @classmethod
    def validate_reserved(cls, v: int) -> int:
        if v < 0:
            raise ValueError("reserved_tokens cannot be negative")
        return v


class RolesConfig(BaseModel):
    """Role assignments: pro, con and judge."""

    pro: RoleConfig = Field(
        default_factory=lambda: RoleConfig(model_id="deepseek/deepseek-chat")
    )
    con: RoleConfig = Field(
        default_factory=lambda: RoleConfig(model_id="zhipu/glm-4-plus")
    )
    judge: RoleConfig = Field(
        default_factory=lambda: RoleConfig(
            model_id="groq/llama-3.3-70b-versatile",
            temperature=0.3,
            max_tokens=1024,
            context_tokens=32000,
            reserved_tokens=1024,
        )
    )

    def for_role(self, role: str) -> RoleConfig:
        """Return the config for a role value ('pro', 'con' or 'judge')."""
        if role not in ("pro", "con", "judge"):
            raise ValueError(f"Unknown role: {role}")
        return getattr(self, role)


class DebateConfig(BaseModel):
    """Session-level debate limits."""

    max_topic_length: int = Field(default=2000, description="Maximum topic length in characters")
    session_timeout_seconds: float = Field(
        default=420.0, description="Ceiling on total orchestration time per session"
    )
    history_limit: int = Field(default=50, description="Maximum turns returned by history queries")


class RateLimitConfig(BaseModel):
    """Per-identity session start limits."""

    window_seconds: float = Field(default=10.0, description="Sliding window width")
    max_requests: int = Field(default=8, description="Admitted debates per window")


class SearchConfig(BaseModel):
    """Web search (tool-augmented rounds) configuration."""

    api_key_env: str = Field(default="TAVILY_API_KEY", description="Env var holding the Tavily key")
    base_url: str = Field(default="https://api.tavily.com", description="Tavily API base URL")
    search_depth: Literal["basic", "advanced"] = Field(default="basic")
    max_results: int = Field(default=3, description="Results requested per query")
    snippet_chars: int = Field(default=300, description="Characters kept from each result")
    timeout: float = Field(default=20.0, description="Search request timeout in seconds")


class ProviderConnectionConfig(BaseModel):
    """Connection settings shared by all OpenAI-compatible providers."""

    timeout: float = Field(default=120.0, description="API request timeout in seconds")
    max_retries: int = Field(default=2, description="SDK-level retries per call")


class SystemConfig(BaseModel):
    """System-wide configuration."""

    database_path: str = Field(default="debate.db", description="SQLite database file")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000)
    allowed_origins: list[str] = Field(default_factory=lambda: ["*"])
    providers: ProviderConnectionConfig = Field(default_factory=ProviderConnectionConfig)


class AppConfig(BaseModel):
    """Complete application configuration."""

    roles: RolesConfig = Field(default_factory=RolesConfig)
    debate: DebateConfig = Field(default_factory=DebateConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    system: SystemConfig = Field(default_factory=SystemConfig)

    @classmethod
    def load_from_file(cls, config_path: Path) -> "AppConfig":
        """Load configuration from a JSON or YAML file."""
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path, "r", encoding="utf-8") as f:
            if config_path.suffix in (".yaml", ".yml"):
                data = yaml.safe_load(f) or {}
            else:
                data = json.load(f)

        if not isinstance(data, dict):
            raise ValueError(f"Config root must be a mapping: {config_path}")

        return cls(**data)

    def save_to_file(self, config_path: Path) -> None:
        """Save configuration to YAML file."""
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w", encoding="utf-8") as f:
            yaml.dump(
                self.model_dump(exclude_unset=True),
                f,
                default_flow_style=False,
                indent=2,
            )

    def apply_env_overrides(self) -> "AppConfig":
        """Apply environment variable overrides in place and return self."""
        for role, env_key in ROLE_MODEL_ENV_KEYS.items():
            model_id = os.environ.get(env_key)
            if model_id and model_id.strip():
                self.roles.for_role(role).model_id = model_id.strip()
                logger.info("Using %s=%s for %s", env_key, model_id, role)

        database_path = os.environ.get("DATABASE_PATH")
        if database_path:
            self.system.database_path = database_path

        port = os.environ.get("PORT")
        if port:
            self.system.port = int(port)

        origins = os.environ.get("ALLOWED_ORIGINS")
        if origins:
            self.system.allowed_origins = [o.strip() for o in origins.split(",") if o.strip()]

        return self


def get_default_config() -> AppConfig:
    """Load configuration from the first debate_config file found, else the template."""
    for filename in CONFIG_FILENAMES:
        config_path = Path(filename)
        if config_path.exists():
            logger.info("Loading configuration from %s", config_path)
            return AppConfig.load_from_file(config_path).apply_env_overrides()
    return get_template_config().apply_env_overrides()


def get_template_config() -> AppConfig:
    """Get template configuration for config file generation."""
    return AppConfig()
