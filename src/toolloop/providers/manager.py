"""Provider manager: explicit registration and routing of provider clients.

Built once at process start (usually via :meth:`ProviderManager.from_config`)
and passed by reference to whatever needs a provider. There is no
process-wide cached client.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from toolloop.core.errors import ConfigError

if TYPE_CHECKING:
    from toolloop.config.schema import ToolloopConfig
    from toolloop.providers.base import ModelProvider


class ProviderManager:
    """Central registry for provider adapters.

    Routes a ``model_ref`` (``provider_id:model_id``) to its provider.
    A bare model id resolves against the default provider, which is the
    first one registered unless set explicitly.
    """

    def __init__(self, *, default_provider: str | None = None) -> None:
        self._providers: dict[str, ModelProvider] = {}
        self._default_provider = default_provider

    # ── Registration ─────────────────────────────────────────────

    def register(self, provider: ModelProvider) -> None:
        """Register a provider.

        Raises:
            ValueError: If a provider with the same provider_id is
                already registered.
        """
        pid = provider.provider_id
        if pid in self._providers:
            msg = f"Provider already registered: {pid}"
            raise ValueError(msg)
        self._providers[pid] = provider
        if self._default_provider is None:
            self._default_provider = pid

    def unregister(self, provider_id: str) -> None:
        """Remove a provider.

        Raises:
            KeyError: If the provider_id is not registered.
        """
        if provider_id not in self._providers:
            msg = f"Provider not registered: {provider_id}"
            raise KeyError(msg)
        del self._providers[provider_id]
        if self._default_provider == provider_id:
            self._default_provider = next(iter(self._providers), None)

    @property
    def provider_ids(self) -> list[str]:
        return list(self._providers)

    # ── Routing ──────────────────────────────────────────────────

    def get_provider(self, model_ref: str) -> tuple[ModelProvider, str]:
        """Resolve a model_ref to its provider and model_id.

        Raises:
            ConfigError: If no registered provider matches.
        """
        provider_id, sep, model_id = model_ref.partition(":")
        if not sep:
            provider_id, model_id = self._default_provider or "", model_ref
        provider = self._providers.get(provider_id)
        if provider is None:
            msg = f"No provider registered for model: {model_ref}"
            raise ConfigError(msg)
        if not model_id:
            msg = f"Model id missing in model reference: {model_ref}"
            raise ConfigError(msg)
        return provider, model_id

    # ── Construction ─────────────────────────────────────────────

    @classmethod
    def from_config(cls, config: ToolloopConfig) -> ProviderManager:
        """Instantiate and register providers from config.

        Providers that are disabled or have no API key are skipped.
        """
        provider_id, sep, _ = config.general.model.partition(":")
        manager = cls(default_provider=provider_id if sep else None)

        for name, prov_config in config.providers.items():
            if not prov_config.enabled or prov_config.api_key is None:
                continue

            if name == "openai":
                from toolloop.providers.openai import OpenAIProvider

                manager.register(
                    OpenAIProvider(
                        api_key=prov_config.api_key,
                        base_url=prov_config.base_url,
                        timeout=prov_config.timeout_seconds,
                    )
                )
            elif name == "anthropic":
                from toolloop.providers.anthropic import AnthropicProvider

                manager.register(
                    AnthropicProvider(
                        api_key=prov_config.api_key,
                        timeout=prov_config.timeout_seconds,
                    )
                )
            else:
                msg = f"Unknown provider in config: {name}"
                raise ConfigError(msg)

        return manager
