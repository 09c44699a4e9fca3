"""Model providers package."""

from .base_model_provider import BaseModelProvider, CompletionResult, ToolCall
from .exceptions import ProviderInitError
from .openai_compatible_provider import OpenAICompatibleProvider, normalize_chunk
from .providers import PROVIDER_REGISTRY, ProviderFactory, ProviderInfo, log_key_check

__all__ = [
    "BaseModelProvider",
    "CompletionResult",
    "ToolCall",
    "ProviderInitError",
    "OpenAICompatibleProvider",
    "normalize_chunk",
    "PROVIDER_REGISTRY",
    "ProviderFactory",
    "ProviderInfo",
    "log_key_check",
]
