"""Specialist sub-agents and the engine that runs their tasks.

Exports:
    SubAgentRegistry: Agent configs, task lists, spawning, and waiting.
    TaskExecutor: Tool-calling loop for one task.
    AgentConfig, AgentIdentity, AgentSpecialty, AgentManifest, AgentVoice,
    Task, TaskStatus, AgentRuntimeState: Data model.
    AgentsConfig, AgentOverride, initialize_agents, create_custom_agent:
        Loading built-in and custom agents.
    BUILTIN_SPECIALISTS: Built-in specialist manifests.
    build_agent_tools: Tools the main assistant uses to delegate.
    build_agent_prompt: System prompt construction.
"""

from __future__ import annotations

from src.squad.agents.errors import (
    AgentDisabledError,
    AgentError,
    AgentNotFoundError,
    MaxIterationsExceededError,
    ProviderMissingError,
    TaskNotFoundError,
    TaskTimeoutError,
)
from src.squad.agents.executor import TaskExecutor
from src.squad.agents.loader import (
    AgentOverride,
    AgentsConfig,
    create_custom_agent,
    initialize_agents,
)
from src.squad.agents.prompts import build_agent_prompt
from src.squad.agents.registry import SubAgentRegistry
from src.squad.agents.schemas import (
    AgentConfig,
    AgentIdentity,
    AgentManifest,
    AgentRuntimeState,
    AgentSpecialty,
    AgentVoice,
    ManifestSpecialty,
    Task,
    TaskStatus,
)
from src.squad.agents.specialists import BUILTIN_SPECIALISTS
from src.squad.agents.tools import build_agent_tools

__all__ = [
    "BUILTIN_SPECIALISTS",
    "AgentConfig",
    "AgentDisabledError",
    "AgentError",
    "AgentIdentity",
    "AgentManifest",
    "AgentNotFoundError",
    "AgentOverride",
    "AgentRuntimeState",
    "AgentSpecialty",
    "AgentVoice",
    "AgentsConfig",
    "ManifestSpecialty",
    "MaxIterationsExceededError",
    "ProviderMissingError",
    "SubAgentRegistry",
    "Task",
    "TaskExecutor",
    "TaskNotFoundError",
    "TaskStatus",
    "TaskTimeoutError",
    "build_agent_prompt",
    "build_agent_tools",
    "create_custom_agent",
    "initialize_agents",
]
