"""LiteLLM-backed implementation of the Provider contract.

Every supported backend speaks a different wire format (Anthropic content
blocks, OpenAI function calling, Gemini parts, Ollama chat). LiteLLM already
normalizes those to the OpenAI chat-completions shape, so each adapter only
declares its route prefix, credentials, defaults and capabilities; this
module does the translation between the normalized ``Message`` model and the
OpenAI-compatible payload, plus:

- Credential resolution (oauth token > auth token > api key > environment)
- Transient-failure retry with tenacity exponential backoff
- Prometheus metrics for every call via track_llm_call()
- Backend failures wrapped in ProviderApiError
"""

from __future__ import annotations

import json
import os
from typing import Any, ClassVar

import litellm
import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.squad.core.monitoring import track_llm_call
from src.squad.providers.base import (
    Provider,
    ProviderApiError,
    ProviderInitError,
    ProviderNotInitializedError,
)
from src.squad.providers.schemas import (
    CompletionRequest,
    CompletionResponse,
    ImageContent,
    Message,
    MessageContent,
    ProviderConfig,
    TextContent,
    ToolCall,
    ToolDefinition,
    Usage,
)

logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 60.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_TEMPERATURE = 0.7

# Errors worth retrying: the same request may succeed a moment later.
_TRANSIENT_ERRORS: tuple[type[Exception], ...] = (
    litellm.RateLimitError,
    litellm.APIConnectionError,
    litellm.Timeout,
    litellm.ServiceUnavailableError,
    litellm.InternalServerError,
)


# ── Payload conversion ───────────────────────────────────────────────────────


def convert_content(content: MessageContent, supports_image_urls: bool = True) -> str | list[dict]:
    """Convert normalized content to OpenAI-compatible content.

    Base64 images become data URIs. URL images are passed through when the
    backend accepts them and silently dropped otherwise.
    """
    if isinstance(content, str):
        return content

    parts: list[dict] = []
    for part in content:
        if isinstance(part, TextContent):
            parts.append({"type": "text", "text": part.text})
        elif isinstance(part, ImageContent):
            source = part.source
            if source.type == "base64" and source.data:
                media_type = source.media_type or "image/jpeg"
                parts.append({
                    "type": "image_url",
                    "image_url": {"url": f"data:{media_type};base64,{source.data}"},
                })
            elif source.type == "url" and source.url and supports_image_urls:
                parts.append({"type": "image_url", "image_url": {"url": source.url}})
    return parts


def convert_messages(
    messages: list[Message],
    system_prompt: str | None = None,
    supports_image_urls: bool = True,
) -> list[dict]:
    """Convert the normalized history into OpenAI-compatible message dicts.

    An explicit ``system_prompt`` replaces any system entries in the history.
    """
    converted: list[dict] = []

    if system_prompt:
        converted.append({"role": "system", "content": system_prompt})

    for message in messages:
        if message.role == "system":
            if not system_prompt:
                converted.append({"role": "system", "content": message.text()})
            continue

        if message.role == "tool":
            converted.append({
                "role": "tool",
                "tool_call_id": message.tool_call_id,
                "content": message.text(),
            })
        elif message.role == "assistant" and message.tool_calls:
            converted.append({
                "role": "assistant",
                "content": message.text() or None,
                "tool_calls": [
                    {
                        "id": call.id,
                        "type": "function",
                        "function": {
                            "name": call.name,
                            "arguments": json.dumps(call.arguments),
                        },
                    }
                    for call in message.tool_calls
                ],
            })
        else:
            converted.append({
                "role": message.role,
                "content": convert_content(message.content, supports_image_urls),
            })

    return converted


def convert_tools(tools: list[ToolDefinition] | None) -> list[dict] | None:
    """Convert tool definitions to OpenAI function-calling declarations."""
    if not tools:
        return None
    return [
        {
            "type": "function",
            "function": {
                "name": tool.name,
                "description": tool.description,
                "parameters": tool.parameters,
            },
        }
        for tool in tools
    ]


def _int_or_none(value: Any) -> int | None:
    return value if isinstance(value, int) else None


def _parse_arguments(provider: str, raw: Any) -> dict[str, Any]:
    if raw is None or raw == "":
        return {}
    if isinstance(raw, dict):
        return raw
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise ProviderApiError(provider, f"malformed tool call arguments: {raw!r}") from exc
    if not isinstance(parsed, dict):
        raise ProviderApiError(provider, f"tool call arguments are not an object: {raw!r}")
    return parsed


def parse_response(provider: str, response: Any, requested_model: str) -> CompletionResponse:
    """Normalize a LiteLLM ModelResponse into a CompletionResponse."""
    choices = getattr(response, "choices", None)
    if not choices:
        raise ProviderApiError(provider, "no response choices returned")

    choice = choices[0]
    message = choice.message

    tool_calls: list[ToolCall] = []
    for index, raw_call in enumerate(getattr(message, "tool_calls", None) or []):
        function = raw_call.function
        tool_calls.append(
            ToolCall(
                id=getattr(raw_call, "id", None) or f"call_{index}",
                name=function.name,
                arguments=_parse_arguments(provider, function.arguments),
            )
        )

    usage = None
    raw_usage = getattr(response, "usage", None)
    if raw_usage is not None:
        usage = Usage(
            input_tokens=_int_or_none(getattr(raw_usage, "prompt_tokens", 0)) or 0,
            output_tokens=_int_or_none(getattr(raw_usage, "completion_tokens", 0)) or 0,
            cache_read_tokens=_int_or_none(getattr(raw_usage, "cache_read_input_tokens", None)),
            cache_write_tokens=_int_or_none(getattr(raw_usage, "cache_creation_input_tokens", None)),
        )

    model = getattr(response, "model", None)
    return CompletionResponse(
        content=message.content or "",
        model=model if isinstance(model, str) and model else requested_model,
        tool_calls=tool_calls or None,
        usage=usage,
        stop_reason=getattr(choice, "finish_reason", None) or None,
    )


# ── Provider ─────────────────────────────────────────────────────────────────


class LiteLLMProvider(Provider):
    """Provider that routes completions through ``litellm.acompletion``.

    Subclasses set the class attributes below; most need nothing else.
    """

    name: ClassVar[str] = ""
    display_name: ClassVar[str] = ""
    route_prefix: ClassVar[str] = ""
    env_vars: ClassVar[tuple[str, ...]] = ()
    default_model: ClassVar[str] = ""
    default_max_tokens: ClassVar[int] = 4096
    default_base_url: ClassVar[str | None] = None
    static_models: ClassVar[tuple[str, ...]] = ()
    supports_image_urls: ClassVar[bool] = True
    requires_credential: ClassVar[bool] = True

    # Overridable in tests to avoid real backoff sleeps
    retry_wait = wait_exponential(multiplier=0.5, min=0.5, max=8)

    def __init__(self) -> None:
        self._ready = False
        self._api_key: str | None = None
        self._base_url: str | None = self.default_base_url
        self._model = self.default_model
        self._max_tokens = self.default_max_tokens
        self._timeout = DEFAULT_TIMEOUT_SECONDS
        self._max_retries = DEFAULT_MAX_RETRIES
        self._logger = structlog.get_logger(__name__).bind(provider=self.name)

    # ── Lifecycle ────────────────────────────────────────────────────────

    def _env_credential(self) -> str | None:
        for var in self.env_vars:
            value = os.getenv(var)
            if value:
                return value
        return None

    def _resolve_credential(self, config: ProviderConfig) -> str | None:
        return config.oauth_token or config.auth_token or config.api_key or self._env_credential()

    async def init(self, config: ProviderConfig) -> None:
        self._ready = False

        credential = self._resolve_credential(config)
        if self.requires_credential and not credential:
            env_hint = " or ".join(self.env_vars) or "an API key"
            raise ProviderInitError(
                f"{self.display_name}: No API key or auth token provided. Set {env_hint}."
            )

        self._api_key = credential
        self._base_url = config.base_url or self.default_base_url
        self._model = config.model or self.default_model
        self._max_tokens = config.max_tokens or self.default_max_tokens
        self._timeout = config.timeout or DEFAULT_TIMEOUT_SECONDS
        self._max_retries = config.max_retries or DEFAULT_MAX_RETRIES

        await self._after_init(config)

        self._ready = True
        self._logger.info("provider_initialized", model=self._model, base_url=self._base_url)

    async def _after_init(self, config: ProviderConfig) -> None:
        """Hook for backend-specific readiness checks. Raise ProviderInitError to fail."""

    def is_ready(self) -> bool:
        return self._ready

    def current_model(self) -> str:
        return self._model

    async def list_models(self) -> list[str]:
        return list(self.static_models)

    # ── Completion ───────────────────────────────────────────────────────

    def _extra_params(self) -> dict[str, Any]:
        """Backend-specific keyword arguments for litellm.acompletion."""
        return {}

    def _build_params(self, request: CompletionRequest, model: str) -> dict[str, Any]:
        params: dict[str, Any] = {
            "model": f"{self.route_prefix}/{model}",
            "messages": convert_messages(
                request.messages,
                system_prompt=request.system_prompt,
                supports_image_urls=self.supports_image_urls,
            ),
            "max_tokens": request.max_tokens or self._max_tokens,
            "temperature": (
                request.temperature if request.temperature is not None else DEFAULT_TEMPERATURE
            ),
            "timeout": self._timeout,
        }
        if self._api_key:
            params["api_key"] = self._api_key
        if self._base_url:
            params["api_base"] = self._base_url

        tools = convert_tools(request.tools)
        if tools:
            params["tools"] = tools

        params.update(self._extra_params())
        return params

    async def _call_backend(self, params: dict[str, Any]) -> Any:
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(_TRANSIENT_ERRORS),
            stop=stop_after_attempt(self._max_retries),
            wait=self.retry_wait,
            reraise=True,
        ):
            with attempt:
                return await litellm.acompletion(**params)

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        if not self._ready:
            raise ProviderNotInitializedError(self.display_name or self.name)

        model = request.model or self._model
        params = self._build_params(request, model)

        async with track_llm_call(self.name, model) as usage:
            try:
                raw = await self._call_backend(params)
            except Exception as exc:
                self._logger.warning(
                    "provider_call_failed",
                    model=model,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
                raise ProviderApiError(
                    self.display_name or self.name,
                    str(exc),
                    status=_int_or_none(getattr(exc, "status_code", None)),
                ) from exc

            response = parse_response(self.display_name or self.name, raw, model)
            if response.usage:
                usage.input_tokens = response.usage.input_tokens
                usage.output_tokens = response.usage.output_tokens

        self._logger.debug(
            "provider_call_completed",
            model=response.model,
            tool_calls=len(response.tool_calls or []),
            stop_reason=response.stop_reason,
        )
        return response
