"""Concrete backend adapters.

Each adapter is a LiteLLMProvider configured for one backend. Ollama is the
only one with real behavior of its own: it needs no credential, but checks
the host on init and lists installed models from the host's tag endpoint.
"""

from __future__ import annotations

import os
from typing import Any

import httpx
import structlog

from src.squad.providers.base import ProviderInitError
from src.squad.providers.gateway import LiteLLMProvider
from src.squad.providers.schemas import ProviderConfig

logger = structlog.get_logger(__name__)


class AnthropicProvider(LiteLLMProvider):
    """Claude models via the Anthropic API."""

    name = "anthropic"
    display_name = "Anthropic"
    route_prefix = "anthropic"
    env_vars = ("ANTHROPIC_API_KEY",)
    default_model = "claude-sonnet-4-5"
    default_max_tokens = 8192
    static_models = ("claude-opus-4-5", "claude-sonnet-4-5", "claude-haiku-3-5")


class OpenAIProvider(LiteLLMProvider):
    """GPT models via the OpenAI API."""

    name = "openai"
    display_name = "OpenAI"
    route_prefix = "openai"
    env_vars = ("OPENAI_API_KEY",)
    default_model = "gpt-4o"
    static_models = ("gpt-4o", "gpt-4o-mini", "gpt-4-turbo", "o1-preview", "o1-mini")


class GroqProvider(LiteLLMProvider):
    """Open models on Groq's inference API."""

    name = "groq"
    display_name = "Groq"
    route_prefix = "groq"
    env_vars = ("GROQ_API_KEY",)
    default_model = "llama-3.1-70b-versatile"
    static_models = (
        "llama-3.1-70b-versatile",
        "llama-3.1-8b-instant",
        "mixtral-8x7b-32768",
        "gemma2-9b-it",
    )


class GeminiProvider(LiteLLMProvider):
    """Google Gemini models. URL images are not accepted inline."""

    name = "gemini"
    display_name = "Gemini"
    route_prefix = "gemini"
    env_vars = ("GOOGLE_API_KEY", "GEMINI_API_KEY")
    default_model = "gemini-1.5-pro"
    default_max_tokens = 8192
    static_models = (
        "gemini-1.5-pro",
        "gemini-1.5-flash",
        "gemini-1.5-flash-8b",
        "gemini-2.0-flash-exp",
    )
    supports_image_urls = False


class OpenRouterProvider(LiteLLMProvider):
    """Multi-provider gateway. Sends site attribution headers."""

    name = "openrouter"
    display_name = "OpenRouter"
    route_prefix = "openrouter"
    env_vars = ("OPENROUTER_API_KEY",)
    default_model = "anthropic/claude-3.5-sonnet"
    static_models = (
        "anthropic/claude-3.5-sonnet",
        "openai/gpt-4o",
        "google/gemini-pro-1.5",
        "meta-llama/llama-3.1-70b-instruct",
    )

    def __init__(self) -> None:
        super().__init__()
        self._site_url: str | None = None
        self._site_name = "Marketing Squad"

    async def _after_init(self, config: ProviderConfig) -> None:
        self._site_url = os.getenv("OPENROUTER_SITE_URL")
        self._site_name = os.getenv("OPENROUTER_SITE_NAME") or "Marketing Squad"

    def _extra_params(self) -> dict[str, Any]:
        headers = {"X-Title": self._site_name}
        if self._site_url:
            headers["HTTP-Referer"] = self._site_url
        return {"extra_headers": headers}


class OllamaProvider(LiteLLMProvider):
    """Local models served by Ollama.

    No credential is required; init() fails if the host does not answer.
    URL images are dropped since the chat endpoint only takes inline data.
    """

    name = "ollama"
    display_name = "Ollama"
    route_prefix = "ollama_chat"
    env_vars = ()
    default_model = "llama3.1"
    default_base_url = "http://localhost:11434"
    static_models = ("llama3.1", "llama3.1:70b", "mixtral", "codellama", "phi3")
    supports_image_urls = False
    requires_credential = False

    connect_timeout = 5.0

    def _resolve_credential(self, config: ProviderConfig) -> str | None:
        return config.api_key

    async def _after_init(self, config: ProviderConfig) -> None:
        self._base_url = config.base_url or os.getenv("OLLAMA_HOST") or self.default_base_url
        try:
            async with httpx.AsyncClient(timeout=self.connect_timeout) as client:
                response = await client.get(f"{self._base_url}/api/tags")
                response.raise_for_status()
        except httpx.HTTPError as exc:
            raise ProviderInitError(
                f"Ollama: Cannot connect to {self._base_url}. Is Ollama running?"
            ) from exc

    async def list_models(self) -> list[str]:
        base_url = self._base_url or self.default_base_url
        try:
            async with httpx.AsyncClient(timeout=self.connect_timeout) as client:
                response = await client.get(f"{base_url}/api/tags")
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError):
            logger.debug("ollama_list_models_fallback", base_url=base_url)
            return list(self.static_models)

        models = data.get("models") if isinstance(data, dict) else None
        if not isinstance(models, list):
            logger.debug("ollama_list_models_unexpected_payload", base_url=base_url)
            return list(self.static_models)

        names = [
            model["name"]
            for model in models
            if isinstance(model, dict) and isinstance(model.get("name"), str) and model["name"]
        ]
        return names or list(self.static_models)
