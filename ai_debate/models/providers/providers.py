import logging
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .base_model_provider import BaseModelProvider
from .exceptions import ProviderInitError
from .openai_compatible_provider import OpenAICompatibleProvider

if TYPE_CHECKING:
    from ai_debate.config.settings import SystemConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderInfo:
    """Static description of an OpenAI-compatible provider."""

    name: str
    display_name: str
    api_key_env: str
    base_url: str
    models: tuple[str, ...]
    stream_usage: bool = True

    def has_api_key(self) -> bool:
        return bool(os.getenv(self.api_key_env))


PROVIDER_REGISTRY: dict[str, ProviderInfo] = {
    "deepseek": ProviderInfo(
        name="deepseek",
        display_name="DeepSeek",
        api_key_env="DEEPSEEK_API_KEY",
        base_url="https://api.deepseek.com/v1",
        models=("deepseek-chat", "deepseek-reasoner"),
    ),
    "zhipu": ProviderInfo(
        name="zhipu",
        display_name="Zhipu GLM",
        api_key_env="ZHIPU_API_KEY",
        base_url="https://open.bigmodel.cn/api/paas/v4",
        models=("glm-4-plus", "glm-4-air", "glm-4-flash"),
        stream_usage=False,
    ),
    "groq": ProviderInfo(
        name="groq",
        display_name="Groq",
        api_key_env="GROQ_API_KEY",
        base_url="https://api.groq.com/openai/v1",
        models=("llama-3.3-70b-versatile", "llama-3.1-8b-instant"),
    ),
    "mistral": ProviderInfo(
        name="mistral",
        display_name="Mistral",
        api_key_env="MISTRAL_API_KEY",
        base_url="https://api.mistral.ai/v1",
        models=("mistral-small-latest", "mistral-large-latest"),
        stream_usage=False,
    ),
    "openai": ProviderInfo(
        name="openai",
        display_name="OpenAI",
        api_key_env="OPENAI_API_KEY",
        base_url="https://api.openai.com/v1",
        models=("gpt-4o-mini", "gpt-4o"),
    ),
    "openrouter": ProviderInfo(
        name="openrouter",
        display_name="OpenRouter",
        api_key_env="OPENROUTER_API_KEY",
        base_url="https://openrouter.ai/api/v1",
        models=("anthropic/claude-3-haiku", "meta-llama/llama-3.3-70b-instruct"),
    ),
}


class ProviderFactory:
    """Factory for creating model providers."""

    _providers = PROVIDER_REGISTRY

    @classmethod
    def create_provider(
        cls, provider_name: str, system_config: "SystemConfig"
    ) -> BaseModelProvider:
        """Create a provider instance by name."""
        if provider_name not in cls._providers:
            raise ProviderInitError(
                provider_name,
                f"Unknown provider. Available: {cls.get_available_providers()}",
            )

        info = cls._providers[provider_name]
        api_key = os.getenv(info.api_key_env)
        if not api_key:
            raise ProviderInitError(provider_name, f"{info.api_key_env} is not set")

        return OpenAICompatibleProvider(
            name=info.name,
            base_url=info.base_url,
            api_key=api_key,
            timeout=system_config.providers.timeout,
            max_retries=system_config.providers.max_retries,
            stream_usage=info.stream_usage,
        )

    @classmethod
    def get_available_providers(cls) -> list[str]:
        """Get list of available provider names."""
        return list(cls._providers.keys())


def log_key_check() -> None:
    """Log which provider credentials are present, without revealing them."""
    for info in PROVIDER_REGISTRY.values():
        if info.has_api_key():
            logger.info("Key check: %s (%s) is SET", info.display_name, info.api_key_env)
        else:
            logger.info("Key check: %s (%s) is MISSING", info.display_name, info.api_key_env)
