"""Backend binding: resolves debate roles to concrete model providers."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any, TypeAlias

from ai_debate.config.settings import RolesConfig, SystemConfig
from ai_debate.debate_engine.models import BackendHandle
from ai_debate.debate_engine.types import Position
from ai_debate.exceptions import BindingError

from .providers.base_model_provider import BaseModelProvider
from .providers.exceptions import ProviderInitError
from .providers.providers import PROVIDER_REGISTRY, ProviderFactory

ProviderBuilder: TypeAlias = Callable[[str, SystemConfig], BaseModelProvider]

logger = logging.getLogger(__name__)


def split_model_id(model_id: str) -> tuple[str, str]:
    """Split 'provider/model' into its parts. The model part may contain '/'."""
    provider_name, sep, model_name = model_id.strip().partition("/")
    if not sep or not provider_name or not model_name:
        raise ValueError(f"Model id must look like 'provider/model': {model_id!r}")
    return provider_name, model_name


class BackendResolver:
    """Resolves (role, optional override) pairs to backend handles.

    Default handles are built once and reused by every session. Overrides
    always produce a fresh handle for exactly the requested model.
    """

    def __init__(
        self,
        roles_config: RolesConfig,
        system_config: SystemConfig,
        provider_builder: ProviderBuilder = ProviderFactory.create_provider,
    ):
        self._roles_config = roles_config
        self._system_config = system_config
        self._provider_builder = provider_builder
        self._defaults: dict[Position, BackendHandle] = {}
        self._lock = threading.Lock()

    def build_handle(self, model_id: str) -> BackendHandle:
        """Construct a handle for one model id, raising ProviderInitError on failure."""
        try:
            provider_name, model_name = split_model_id(model_id)
        except ValueError as exc:
            raise ProviderInitError(model_id, str(exc)) from exc

        provider = self._provider_builder(provider_name, self._system_config)
        logger.info("Provider [%s] ready, model: %s", provider_name, model_id)
        return BackendHandle(
            name=provider_name,
            model_id=model_id,
            model_name=model_name,
            provider=provider,
        )

    def build_with_fallback(self, position: Position) -> BackendHandle:
        """Build the role's default handle, trying its fallback model once."""
        role_config = self._roles_config.for_role(position.value)
        primary = role_config.model_id
        try:
            return self.build_handle(primary)
        except ProviderInitError as exc:
            fallback = role_config.fallback_model_id
            if not fallback or fallback == primary:
                raise BindingError(position.value, primary, str(exc)) from exc
            logger.warning(
                "Primary model %s for %s failed to initialize (%s); falling back to %s",
                primary,
                position.value,
                exc,
                fallback,
            )

        try:
            return self.build_handle(fallback)
        except ProviderInitError as exc:
            raise BindingError(
                position.value, fallback, f"primary {primary} and fallback failed: {exc}"
            ) from exc

    def resolve_defaults(self) -> dict[Position, BackendHandle]:
        """Resolve (or return the cached) default handle for every role."""
        with self._lock:
            for position in Position:
                if position not in self._defaults:
                    self._defaults[position] = self.build_with_fallback(position)
            return dict(self._defaults)

    def default_handle(self, position: Position) -> BackendHandle:
        with self._lock:
            handle = self._defaults.get(position)
            if handle is None:
                handle = self.build_with_fallback(position)
                self._defaults[position] = handle
            return handle

    def resolve(self, position: Position, override: str | None = None) -> BackendHandle:
        """Resolve a role to a handle, honouring a non-blank caller override."""
        if override is not None and override.strip():
            model_id = override.strip()
            try:
                return self.build_handle(model_id)
            except ProviderInitError as exc:
                raise BindingError(position.value, model_id, str(exc)) from exc
        return self.default_handle(position)

    def describe_providers(self) -> list[dict[str, Any]]:
        """Static provider registry, for capability discovery."""
        return [
            {
                "name": info.name,
                "display_name": info.display_name,
                "api_key_env": info.api_key_env,
                "has_api_key": info.has_api_key(),
                "models": list(info.models),
            }
            for info in PROVIDER_REGISTRY.values()
        ]

    def default_model_ids(self) -> dict[str, str]:
        """Model id per role: the resolved handle if built, else the configured id."""
        with self._lock:
            return {
                position.value: (
                    self._defaults[position].model_id
                    if position in self._defaults
                    else self._roles_config.for_role(position.value).model_id
                )
                for position in Position
            }
