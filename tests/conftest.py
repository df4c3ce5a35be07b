"""Shared fixtures for sub-agent tests.

Provides:
- ScriptedProvider: in-memory Provider that replays queued responses and
  records every request it receives
- Provider, tool, event, and agent registries wired the way create_squad()
  wires them, but without touching the network or the environment
- Factory fixtures (make_provider, make_config, text_response,
  tool_response, echo_tool) so test modules never import from here
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import pytest

from src.squad.agents.registry import SubAgentRegistry
from src.squad.agents.schemas import AgentConfig, AgentIdentity, AgentSpecialty, AgentVoice
from src.squad.events.bus import TaskEventBus
from src.squad.observability.cost import CostTracker
from src.squad.providers.base import Provider, ProviderNotInitializedError
from src.squad.providers.registry import ProviderRegistry
from src.squad.providers.schemas import (
    CompletionRequest,
    CompletionResponse,
    ProviderConfig,
    ToolCall,
)
from src.squad.tools.bridge import ToolBridge
from src.squad.tools.registry import ToolRegistry
from src.squad.tools.schemas import FunctionTool, ToolResult

ResponseStep = CompletionResponse | Exception | Callable[[CompletionRequest], Any]


class ScriptedProvider(Provider):
    """Provider double that answers from a script.

    Each queued step is a CompletionResponse to return, an exception to
    raise, or a callable (sync or async) receiving the request. Once the
    script is exhausted, ``fallback`` is used for every further call.
    """

    name = "scripted"

    def __init__(
        self,
        steps: list[ResponseStep] | None = None,
        fallback: ResponseStep | None = None,
        ready: bool = True,
        init_error: Exception | None = None,
    ) -> None:
        self.steps: list[ResponseStep] = list(steps or [])
        self.fallback = fallback or _text_response("done")
        self.requests: list[CompletionRequest] = []
        self._ready = ready
        self._init_error = init_error
        self._model = "scripted-model"

    async def init(self, config: ProviderConfig) -> None:
        if self._init_error is not None:
            raise self._init_error
        self._model = config.model or self._model
        self._ready = True

    def is_ready(self) -> bool:
        return self._ready

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        if not self._ready:
            raise ProviderNotInitializedError(self.name)
        self.requests.append(request)
        step = self.steps.pop(0) if self.steps else self.fallback
        if isinstance(step, Exception):
            raise step
        if callable(step):
            outcome = step(request)
            if asyncio.iscoroutine(outcome):
                outcome = await outcome
            return outcome
        return step

    async def list_models(self) -> list[str]:
        return [self._model]

    def current_model(self) -> str:
        return self._model

    @property
    def call_count(self) -> int:
        return len(self.requests)


def _text_response(content: str) -> CompletionResponse:
    return CompletionResponse(content=content, model="scripted-model", stop_reason="end_turn")


def _tool_response(*calls: tuple[str, str, dict[str, Any]], content: str = "") -> CompletionResponse:
    """Response asking for tools; each call is ``(id, name, arguments)``."""
    return CompletionResponse(
        content=content,
        model="scripted-model",
        tool_calls=[ToolCall(id=cid, name=name, arguments=args) for cid, name, args in calls],
        stop_reason="tool_use",
    )


def _make_config(
    agent_id: str = "twitter",
    name: str = "Tweety",
    emoji: str = "🐦",
    tools: list[str] | None = None,
    required_tools: list[str] | None = None,
    **overrides: Any,
) -> AgentConfig:
    """AgentConfig with sensible defaults for tests."""
    return AgentConfig(
        identity=AgentIdentity(name=name, emoji=emoji, voice=AgentVoice.PLAYFUL),
        specialty=AgentSpecialty(
            id=agent_id,
            display_name=f"{agent_id.title()} Specialist",
            description=f"Handles {agent_id} work",
            system_prompt=f"You handle {agent_id} tasks.",
            tools=tools,
            required_tools=required_tools,
        ),
        **overrides,
    )


def _echo_tool(name: str = "echo") -> FunctionTool:
    async def handler(params: dict[str, Any]) -> ToolResult:
        return ToolResult(success=True, message="echoed", data={"echo": params})

    return FunctionTool(
        name=name,
        description=f"Echo the arguments back ({name})",
        handler=handler,
        parameters={"type": "object", "properties": {"text": {"type": "string"}}},
    )


# ── Fixtures ─────────────────────────────────────────────────────────────────


@pytest.fixture
def provider() -> ScriptedProvider:
    return ScriptedProvider()


@pytest.fixture
def providers(provider: ScriptedProvider) -> ProviderRegistry:
    registry = ProviderRegistry(factories={})
    registry.add_provider(provider.name, provider)
    return registry


@pytest.fixture
def cost_tracker() -> CostTracker:
    return CostTracker()


@pytest.fixture
def tool_registry(cost_tracker: CostTracker) -> ToolRegistry:
    return ToolRegistry(budget_gate=cost_tracker)


@pytest.fixture
def bridge(tool_registry: ToolRegistry) -> ToolBridge:
    return ToolBridge(tool_registry)


@pytest.fixture
def events() -> TaskEventBus:
    return TaskEventBus()


@pytest.fixture
def agents(providers: ProviderRegistry, bridge: ToolBridge, events: TaskEventBus) -> SubAgentRegistry:
    return SubAgentRegistry(providers, bridge, events, default_wait_timeout_ms=5_000)


# ── Factory fixtures ─────────────────────────────────────────────────────────


@pytest.fixture
def make_provider() -> Callable[..., ScriptedProvider]:
    """Build extra ScriptedProviders; also usable as a ProviderRegistry factory."""
    return ScriptedProvider


@pytest.fixture
def make_config() -> Callable[..., AgentConfig]:
    return _make_config


@pytest.fixture
def text_response() -> Callable[[str], CompletionResponse]:
    return _text_response


@pytest.fixture
def tool_response() -> Callable[..., CompletionResponse]:
    return _tool_response


@pytest.fixture
def echo_tool() -> Callable[..., FunctionTool]:
    return _echo_tool
