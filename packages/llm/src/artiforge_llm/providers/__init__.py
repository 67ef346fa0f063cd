"""AI provider implementations and factory.

Providers are created from :class:`AIConfig` objects, plain dicts, or the
``ai.providers.<id>`` sections of a :class:`~artiforge_common.settings.Settings`.
"""

import logging
from typing import Any, Dict, List, Mapping, Type, Union

from artiforge_common.settings import Settings
from artiforge_llm.base import AIConfig, AsyncAIProvider, normalize_ai_config
from artiforge_llm.exceptions import UnknownProviderError
from artiforge_llm.providers.anthropic import AnthropicFunctionCallingProvider, AnthropicProvider
from artiforge_llm.providers.echo import EchoProvider, StandardEchoProvider
from artiforge_llm.providers.http import HTTPProvider
from artiforge_llm.providers.openai import OpenAIFunctionCallingProvider, OpenAIProvider

logger = logging.getLogger(__name__)

PROVIDER_CATALOG: List[Dict[str, Any]] = [
    {
        "id": "anthropic",
        "name": "Anthropic",
        "models": [
            "claude-3-5-sonnet-20241022",
            "claude-3-5-haiku-20241022",
            "claude-3-opus-20240229",
            "claude-3-sonnet-20240229",
            "claude-3-haiku-20240307",
        ],
    },
    {
        "id": "openai",
        "name": "OpenAI",
        "models": [
            "o1-preview",
            "o1-mini",
            "gpt-4o-mini",
            "gpt-4o",
            "gpt-4-turbo-preview",
            "gpt-4",
            "gpt-3.5-turbo",
        ],
    },
]


def list_providers() -> List[Dict[str, Any]]:
    """Return the selectable providers as ``{id, name, models}`` records."""
    return [dict(entry, models=list(entry["models"])) for entry in PROVIDER_CATALOG]


class AIProviderFactory:
    """Factory and per-process cache of AI providers.

    Example:
        ```python
        factory = AIProviderFactory(settings)
        provider = factory.get_provider()            # default provider
        openai = factory.get_provider("openai")      # cached instance
        await factory.close()
        ```

    Args:
        settings: Settings holding ``ai.default_provider`` and
            ``ai.providers.<id>`` sections. ``None`` means explicit configs only.
    """

    _providers: Dict[str, Type[AsyncAIProvider]] = {
        "openai": OpenAIProvider,
        "openai-function-calling": OpenAIFunctionCallingProvider,
        "anthropic": AnthropicProvider,
        "anthropic-function-calling": AnthropicFunctionCallingProvider,
        "echo": EchoProvider,
        "echo-standard": StandardEchoProvider,
    }

    def __init__(self, settings: Settings | None = None):
        self.settings = settings
        self._instances: Dict[str, AsyncAIProvider] = {}

    @classmethod
    def register_provider(cls, name: str, provider_class: Type[AsyncAIProvider]) -> None:
        """Register a custom provider class under ``name``."""
        cls._providers[name.lower()] = provider_class

    @classmethod
    def available_providers(cls) -> List[str]:
        """Registered provider identifiers."""
        return sorted(cls._providers)

    @property
    def default_provider_id(self) -> str:
        """Identifier used when a call names no provider."""
        if self.settings is None:
            return "anthropic"
        return str(self.settings.get("ai.default_provider", "anthropic"))

    def create(self, config: Union[AIConfig, Settings, Mapping[str, Any]], **kwargs: Any) -> AsyncAIProvider:
        """Create a new provider instance (not cached).

        Raises:
            UnknownProviderError: If the configured provider is not registered.
        """
        ai_config = normalize_ai_config(config)
        provider_class = self._providers.get(ai_config.provider.lower())
        if provider_class is None:
            raise UnknownProviderError(ai_config.provider, self.available_providers())
        return provider_class(ai_config, **kwargs)

    def get_provider(self, provider_id: str | None = None) -> AsyncAIProvider:
        """Return the cached provider for ``provider_id`` (default when ``None``).

        Raises:
            UnknownProviderError: If the identifier is not registered.
        """
        key = (provider_id or self.default_provider_id).lower()
        if key not in self._instances:
            if key not in self._providers:
                raise UnknownProviderError(key, self.available_providers())
            section: Dict[str, Any] = {}
            if self.settings is not None:
                section = self.settings.get(f"ai.providers.{key}", {}) or {}
            self._instances[key] = self.create({**section, "provider": key})
            logger.debug("Created AI provider %s", key)
        return self._instances[key]

    def register_instance(self, provider: AsyncAIProvider, provider_id: str | None = None) -> None:
        """Use an already-built provider for ``provider_id``."""
        self._instances[(provider_id or provider.provider_id).lower()] = provider

    async def close(self) -> None:
        """Close every cached provider."""
        for provider in self._instances.values():
            await provider.close()

    def __call__(self, config: Union[AIConfig, Settings, Mapping[str, Any]], **kwargs: Any) -> AsyncAIProvider:
        """Allow factory to be called directly."""
        return self.create(config, **kwargs)


def create_ai_provider(config: Union[AIConfig, Settings, Mapping[str, Any]]) -> AsyncAIProvider:
    """Create a provider from configuration.

    Example:
        ```python
        provider = create_ai_provider({
            "provider": "openai",
            "model": "gpt-4",
            "api_key": "...",
        })
        ```
    """
    return AIProviderFactory().create(config)


__all__ = [
    "AIProviderFactory",
    "AnthropicFunctionCallingProvider",
    "AnthropicProvider",
    "EchoProvider",
    "HTTPProvider",
    "OpenAIFunctionCallingProvider",
    "OpenAIProvider",
    "PROVIDER_CATALOG",
    "StandardEchoProvider",
    "create_ai_provider",
    "list_providers",
]
