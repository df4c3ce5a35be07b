"""Swappable AI provider layer.

Exports:
    Provider: Contract every backend adapter implements.
    ProviderRegistry: Initialized providers and the active one.
    LiteLLMProvider: Base adapter routing through LiteLLM.
    AnthropicProvider, OpenAIProvider, GroqProvider, GeminiProvider,
    OllamaProvider, OpenRouterProvider: Concrete adapters.
    Message, ToolCall, ToolDefinition, CompletionRequest,
    CompletionResponse, ProviderConfig: Normalized schemas.
    ProviderError, ProviderInitError, ProviderNotInitializedError,
    ProviderApiError: Provider failures.
"""

from __future__ import annotations

from src.squad.providers.adapters import (
    AnthropicProvider,
    GeminiProvider,
    GroqProvider,
    OllamaProvider,
    OpenAIProvider,
    OpenRouterProvider,
)
from src.squad.providers.base import (
    Provider,
    ProviderApiError,
    ProviderError,
    ProviderInitError,
    ProviderNotInitializedError,
)
from src.squad.providers.gateway import LiteLLMProvider
from src.squad.providers.registry import PROVIDER_INFO, ProviderInfo, ProviderRegistry
from src.squad.providers.schemas import (
    CompletionRequest,
    CompletionResponse,
    ImageContent,
    ImageSource,
    Message,
    ProviderConfig,
    TextContent,
    ToolCall,
    ToolDefinition,
    Usage,
)

__all__ = [
    "PROVIDER_INFO",
    "AnthropicProvider",
    "CompletionRequest",
    "CompletionResponse",
    "GeminiProvider",
    "GroqProvider",
    "ImageContent",
    "ImageSource",
    "LiteLLMProvider",
    "Message",
    "OllamaProvider",
    "OpenAIProvider",
    "OpenRouterProvider",
    "Provider",
    "ProviderApiError",
    "ProviderConfig",
    "ProviderError",
    "ProviderInfo",
    "ProviderInitError",
    "ProviderNotInitializedError",
    "ProviderRegistry",
    "TextContent",
    "ToolCall",
    "ToolDefinition",
    "Usage",
]
