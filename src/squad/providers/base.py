"""Provider contract implemented by every AI backend adapter.

The task execution engine depends only on ``Provider``; concrete adapters
(anthropic, openai, groq, gemini, ollama, openrouter) are interchangeable
behind it and are selected at runtime through the ProviderRegistry.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.squad.providers.schemas import CompletionRequest, CompletionResponse, ProviderConfig


# ── Errors ───────────────────────────────────────────────────────────────────


class ProviderError(Exception):
    """Base class for provider failures."""


class ProviderInitError(ProviderError):
    """Raised when init() cannot resolve a credential or reach the backend."""


class ProviderNotInitializedError(ProviderError):
    """Raised when complete() is called before a successful init()."""

    def __init__(self, provider: str) -> None:
        self.provider = provider
        super().__init__(f"{provider} provider not initialized")


class ProviderApiError(ProviderError):
    """Raised when the backend rejects or fails a request.

    Attributes:
        provider: Name of the provider that failed.
        status: HTTP-like status code if the backend reported one.
        detail: Backend error detail.
    """

    def __init__(self, provider: str, detail: str, status: int | None = None) -> None:
        self.provider = provider
        self.status = status
        self.detail = detail
        prefix = f"{provider} API error"
        if status is not None:
            prefix = f"{prefix}: {status}"
        super().__init__(f"{prefix} - {detail}")


# ── Contract ─────────────────────────────────────────────────────────────────


class Provider(ABC):
    """Capability contract for one AI backend.

    Lifecycle: construct -> ``await init(config)`` -> ``is_ready()`` -> any
    number of ``await complete(request)`` calls. Calling ``init`` again with
    a different config replaces all prior state.
    """

    name: str = ""

    @abstractmethod
    async def init(self, config: ProviderConfig) -> None:
        """Store credentials, model, and limits.

        Raises:
            ProviderInitError: If no credential can be resolved.
        """
        ...

    @abstractmethod
    def is_ready(self) -> bool:
        """True only after a successful init()."""
        ...

    @abstractmethod
    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        """Produce one completion for the given message history.

        Raises:
            ProviderNotInitializedError: If init() has not succeeded.
            ProviderApiError: On backend failure.
        """
        ...

    @abstractmethod
    async def list_models(self) -> list[str]:
        """Supported model identifiers. Never raises."""
        ...

    @abstractmethod
    def current_model(self) -> str:
        """Default model before init, configured model after."""
        ...
