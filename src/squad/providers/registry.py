"""Provider registry for swappable AI backends.

Owns the set of initialized Provider instances and which one is active.
The registry is constructed explicitly by the composition root and injected
into the task executor; there is no module-level instance.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

import structlog

from src.squad.providers.adapters import (
    AnthropicProvider,
    GeminiProvider,
    GroqProvider,
    OllamaProvider,
    OpenAIProvider,
    OpenRouterProvider,
)
from src.squad.providers.base import Provider
from src.squad.providers.schemas import ProviderConfig

logger = structlog.get_logger(__name__)

ProviderFactory = Callable[[], Provider]


@dataclass(frozen=True)
class ProviderInfo:
    """Provider metadata shown by setup flows and status tools."""

    name: str
    display_name: str
    description: str
    env_var: str
    default_model: str
    requires_api_key: bool
    setup_url: str | None = None


PROVIDER_INFO: dict[str, ProviderInfo] = {
    "anthropic": ProviderInfo(
        name="anthropic",
        display_name="Anthropic (Claude)",
        description="Claude models - best for reasoning and tool use",
        env_var="ANTHROPIC_API_KEY",
        default_model=AnthropicProvider.default_model,
        requires_api_key=True,
        setup_url="https://console.anthropic.com/settings/keys",
    ),
    "openai": ProviderInfo(
        name="openai",
        display_name="OpenAI (GPT)",
        description="GPT-4o and other OpenAI models",
        env_var="OPENAI_API_KEY",
        default_model=OpenAIProvider.default_model,
        requires_api_key=True,
        setup_url="https://platform.openai.com/api-keys",
    ),
    "groq": ProviderInfo(
        name="groq",
        display_name="Groq",
        description="Ultra-fast inference for open models (Llama, Mixtral)",
        env_var="GROQ_API_KEY",
        default_model=GroqProvider.default_model,
        requires_api_key=True,
        setup_url="https://console.groq.com/keys",
    ),
    "gemini": ProviderInfo(
        name="gemini",
        display_name="Google Gemini",
        description="Google's Gemini models",
        env_var="GOOGLE_API_KEY",
        default_model=GeminiProvider.default_model,
        requires_api_key=True,
        setup_url="https://aistudio.google.com/apikey",
    ),
    "ollama": ProviderInfo(
        name="ollama",
        display_name="Ollama (Local)",
        description="Run models locally via Ollama",
        env_var="OLLAMA_HOST",
        default_model=OllamaProvider.default_model,
        requires_api_key=False,
        setup_url="https://ollama.ai",
    ),
    "openrouter": ProviderInfo(
        name="openrouter",
        display_name="OpenRouter",
        description="Access multiple providers through one API",
        env_var="OPENROUTER_API_KEY",
        default_model=OpenRouterProvider.default_model,
        requires_api_key=True,
        setup_url="https://openrouter.ai/keys",
    ),
}


def _builtin_factories() -> dict[str, ProviderFactory]:
    return {
        "anthropic": AnthropicProvider,
        "openai": OpenAIProvider,
        "groq": GroqProvider,
        "gemini": GeminiProvider,
        "ollama": OllamaProvider,
        "openrouter": OpenRouterProvider,
    }


class ProviderRegistry:
    """Registry of provider types and initialized provider instances.

    The first provider initialized becomes active unless set_active() picks
    another one later.
    """

    def __init__(self, factories: dict[str, ProviderFactory] | None = None) -> None:
        self._factories: dict[str, ProviderFactory] = (
            dict(factories) if factories is not None else _builtin_factories()
        )
        self._providers: dict[str, Provider] = {}
        self._active: str | None = None

    def register_provider_type(self, name: str, factory: ProviderFactory) -> None:
        """Add or replace a provider type."""
        self._factories[name] = factory
        logger.debug("provider_type_registered", provider=name)

    async def init_provider(self, name: str, config: ProviderConfig | None = None) -> Provider:
        """Create and initialize a provider of the given type.

        Raises:
            ValueError: If the provider type is unknown.
            ProviderInitError: If the provider cannot be initialized.
        """
        factory = self._factories.get(name)
        if factory is None:
            available = ", ".join(self._factories)
            raise ValueError(f"Unknown provider: {name}. Available: {available}")

        provider = factory()
        await provider.init(config or ProviderConfig())
        self._providers[name] = provider

        if self._active is None:
            self._active = name

        logger.info(
            "provider_ready",
            provider=name,
            model=provider.current_model(),
            active=self._active == name,
        )
        return provider

    def add_provider(self, name: str, provider: Provider) -> None:
        """Register an already-initialized provider instance."""
        self._providers[name] = provider
        if self._active is None:
            self._active = name

    def get_provider(self, name: str) -> Provider | None:
        return self._providers.get(name)

    def get_active(self) -> Provider | None:
        """Return the active provider, or None if no provider is initialized."""
        if self._active is None:
            return None
        return self._providers.get(self._active)

    @property
    def active_name(self) -> str | None:
        return self._active

    def set_active(self, name: str) -> None:
        """Make an initialized provider active.

        Raises:
            ValueError: If no provider with that name has been initialized.
        """
        if name not in self._providers:
            raise ValueError(f"Provider not initialized: {name}")
        self._active = name
        logger.info("provider_activated", provider=name)

    def list_providers(self) -> list[str]:
        """Names of initialized providers."""
        return list(self._providers)

    def list_available_types(self) -> list[str]:
        """Names of provider types that can be initialized."""
        return list(self._factories)

    def get_provider_info(self) -> list[ProviderInfo]:
        return list(PROVIDER_INFO.values())

    def has_provider_type(self, name: str) -> bool:
        return name in self._factories
