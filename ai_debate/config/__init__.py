"""Application configuration."""

from .settings import (
    AppConfig,
    DebateConfig,
    RateLimitConfig,
    RoleConfig,
    RolesConfig,
    SearchConfig,
    SystemConfig,
    get_default_config,
    get_template_config,
)

__all__ = [
    "AppConfig",
    "DebateConfig",
    "RateLimitConfig",
    "RoleConfig",
    "RolesConfig",
    "SearchConfig",
    "SystemConfig",
    "get_default_config",
    "get_template_config",
]
