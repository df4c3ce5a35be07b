"""Tools that let the main assistant discover and delegate to sub-agents.

These are ordinary Tool implementations registered in the ToolRegistry under
the ``agents`` category. They hold a reference to the SubAgentRegistry they
manage rather than reaching for a global one.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import structlog
from pydantic import ValidationError

from src.squad.agents.errors import AgentError, TaskTimeoutError
from src.squad.agents.loader import create_custom_agent
from src.squad.agents.registry import SubAgentRegistry
from src.squad.agents.schemas import (
    AgentIdentity,
    AgentManifest,
    AgentVoice,
    ManifestSpecialty,
    TaskStatus,
)
from src.squad.tools.schemas import Tool, ToolResult

logger = structlog.get_logger(__name__)


class AgentTool(Tool):
    """Base for tools bound to a SubAgentRegistry."""

    def __init__(self, registry: SubAgentRegistry) -> None:
        self._registry = registry

    def _not_found(self, agent_id: str) -> ToolResult:
        return ToolResult(
            success=False,
            message=f"Agent not found: {agent_id}. Use list_agents to see available agents.",
        )


class ListAgentsTool(AgentTool):
    name = "list_agents"
    description = "List available sub-agents and their specialties"
    parameters = {
        "type": "object",
        "properties": {
            "show_disabled": {"type": "boolean", "description": "Include disabled agents"},
        },
    }

    async def execute(self, params: dict[str, Any]) -> ToolResult:
        states = self._registry.list() if params.get("show_disabled") else self._registry.list_enabled()
        agents = [
            {
                "id": state.config.specialty.id,
                "name": state.config.identity.name,
                "emoji": state.config.identity.emoji,
                "specialty": state.config.specialty.display_name,
                "enabled": state.config.enabled,
                "max_concurrent": state.config.max_concurrent,
                "active_tasks": len(state.active_tasks),
            }
            for state in states
        ]
        return ToolResult(
            success=True,
            message=f"{len(agents)} agents available",
            data={"agents": agents},
        )


class DelegateTaskTool(AgentTool):
    name = "delegate_task"
    description = (
        "Delegate a task to a specialist sub-agent whose expertise matches it. "
        "For anything that takes more than a few seconds (research, analysis, "
        "long-form content) pass wait=false; the user is notified when it finishes."
    )
    parameters = {
        "type": "object",
        "properties": {
            "agent_id": {
                "type": "string",
                "description": 'Agent to delegate to, e.g. "twitter", "email", "creative"',
            },
            "task": {"type": "string", "description": "What the agent should do"},
            "context": {
                "type": "string",
                "description": "Additional context as a JSON object (optional)",
            },
            "wait": {
                "type": "boolean",
                "description": "Wait for the result. Defaults to true; use false for long tasks.",
            },
        },
        "required": ["agent_id", "task"],
    }

    def __init__(self, registry: SubAgentRegistry, wait_timeout_ms: int = 120_000) -> None:
        super().__init__(registry)
        self._wait_timeout_ms = wait_timeout_ms

    async def execute(self, params: dict[str, Any]) -> ToolResult:
        agent_id = params.get("agent_id", "")
        state = self._registry.get(agent_id)
        if state is None:
            return self._not_found(agent_id)
        if not state.config.enabled:
            return ToolResult(success=False, message=f"Agent is disabled: {agent_id}")

        context: dict[str, Any] | None = None
        raw_context = params.get("context")
        if raw_context:
            if isinstance(raw_context, dict):
                context = raw_context
            else:
                try:
                    context = json.loads(raw_context)
                except (TypeError, json.JSONDecodeError):
                    return ToolResult(success=False, message="Invalid context JSON")
                if not isinstance(context, dict):
                    return ToolResult(success=False, message="Invalid context JSON")

        is_async = params.get("wait") is False
        identity = state.config.identity
        try:
            task = await self._registry.spawn(
                agent_id,
                params.get("task", ""),
                context,
                notify_on_complete=is_async,
            )
        except AgentError as exc:
            return ToolResult(success=False, message=str(exc))

        if is_async:
            return ToolResult(
                success=True,
                message=(
                    f"{identity.emoji} Got it! I've handed this to **{identity.name}**. "
                    "I'll let you know when it's done."
                ),
                data={
                    "task_id": task.id,
                    "agent_id": agent_id,
                    "agent_name": identity.name,
                    "async": True,
                },
            )

        try:
            finished = await self._registry.wait_for_task(task.id, self._wait_timeout_ms)
        except TaskTimeoutError:
            return ToolResult(
                success=False,
                message="Task timed out. Check status with get_task_status.",
                data={"task_id": task.id},
            )

        if finished.status == TaskStatus.COMPLETED:
            return ToolResult(
                success=True,
                message=f"{identity.emoji} {identity.name} completed the task",
                data={
                    "task_id": task.id,
                    "agent_name": identity.name,
                    "result": finished.result,
                },
            )
        return ToolResult(
            success=False,
            message=f"Task failed: {finished.error}",
            data={"task_id": task.id},
        )


class GetTaskStatusTool(AgentTool):
    name = "get_task_status"
    description = "Check the status of a delegated task"
    parameters = {
        "type": "object",
        "properties": {
            "task_id": {"type": "string", "description": "The task id to check"},
        },
        "required": ["task_id"],
    }

    async def execute(self, params: dict[str, Any]) -> ToolResult:
        task_id = params.get("task_id", "")
        task = self._registry.get_task(task_id)
        if task is None:
            return ToolResult(success=False, message=f"Task not found: {task_id}")
        return ToolResult(
            success=True,
            message=f"Task status: {task.status.value}",
            data=task.model_dump(
                mode="json",
                include={
                    "id",
                    "agent_id",
                    "status",
                    "result",
                    "error",
                    "created_at",
                    "completed_at",
                },
            ),
        )


class AgentInfoTool(AgentTool):
    name = "agent_info"
    description = "Get detailed information about a sub-agent"
    parameters = {
        "type": "object",
        "properties": {"agent_id": {"type": "string", "description": "Agent id"}},
        "required": ["agent_id"],
    }

    async def execute(self, params: dict[str, Any]) -> ToolResult:
        agent_id = params.get("agent_id", "")
        state = self._registry.get(agent_id)
        if state is None:
            return self._not_found(agent_id)

        config = state.config
        return ToolResult(
            success=True,
            message=f"{config.identity.emoji} {config.identity.name}",
            data={
                "id": config.specialty.id,
                "identity": config.identity.model_dump(mode="json"),
                "specialty": {
                    "name": config.specialty.display_name,
                    "description": config.specialty.description,
                    "tools": config.specialty.tools,
                },
                "enabled": config.enabled,
                "model": config.model or "default",
                "max_concurrent": config.max_concurrent,
                "missing_tools": self._registry.missing_tools(agent_id),
                "active_tasks": len(state.active_tasks),
                "completed_tasks": len(state.completed_tasks),
            },
        )


class SetAgentModelTool(AgentTool):
    name = "set_agent_model"
    description = (
        'Set the AI model a sub-agent uses. Pass "default" to go back to the global model.'
    )
    parameters = {
        "type": "object",
        "properties": {
            "agent_id": {"type": "string", "description": 'Agent id, e.g. "twitter"'},
            "model": {
                "type": "string",
                "description": 'Model name, e.g. "gpt-4o-mini", or "default"',
            },
        },
        "required": ["agent_id", "model"],
    }

    async def execute(self, params: dict[str, Any]) -> ToolResult:
        agent_id = params.get("agent_id", "")
        state = self._registry.get(agent_id)
        if state is None:
            return self._not_found(agent_id)

        requested = params.get("model") or "default"
        model = None if requested == "default" else requested
        self._registry.set_model(agent_id, model)

        shown = model or "default (global)"
        identity = state.config.identity
        return ToolResult(
            success=True,
            message=f"{identity.emoji} {identity.name} now uses: {shown}",
            data={"agent_id": agent_id, "model": shown},
        )


class ListAgentModelsTool(AgentTool):
    name = "list_agent_models"
    description = "Show which model each enabled sub-agent is configured to use"

    async def execute(self, params: dict[str, Any]) -> ToolResult:
        agents = [
            {
                "id": state.config.specialty.id,
                "name": state.config.identity.name,
                "emoji": state.config.identity.emoji,
                "model": state.config.model or "default",
            }
            for state in self._registry.list_enabled()
        ]
        lines = "\n".join(f"{a['emoji']} {a['name']}: {a['model']}" for a in agents)
        return ToolResult(
            success=True,
            message=f"Agent models:\n{lines}",
            data={"agents": agents},
        )


class CreateAgentTool(AgentTool):
    name = "create_agent"
    description = "Create a custom sub-agent with its own personality and expertise"
    parameters = {
        "type": "object",
        "properties": {
            "id": {"type": "string", "description": "Unique agent id (lowercase, no spaces)"},
            "name": {"type": "string", "description": "Display name"},
            "emoji": {"type": "string", "description": "Agent emoji"},
            "persona": {"type": "string", "description": 'e.g. "a sarcastic copywriter"'},
            "voice": {
                "type": "string",
                "enum": [voice.value for voice in AgentVoice],
                "description": "Communication style",
            },
            "specialty_name": {"type": "string", "description": "Specialty display name"},
            "specialty_description": {
                "type": "string",
                "description": "What the agent specializes in",
            },
            "system_prompt": {"type": "string", "description": "Detailed expertise prompt"},
            "tools": {
                "type": "string",
                "description": "Comma-separated tool names the agent may use (empty = all)",
            },
            "model": {"type": "string", "description": "Model override (optional)"},
        },
        "required": [
            "id",
            "name",
            "emoji",
            "specialty_name",
            "specialty_description",
            "system_prompt",
        ],
    }

    def __init__(self, registry: SubAgentRegistry, agents_dir: str | Path) -> None:
        super().__init__(registry)
        self._agents_dir = Path(agents_dir)

    async def execute(self, params: dict[str, Any]) -> ToolResult:
        agent_id = params.get("id", "")
        if agent_id in self._registry:
            return ToolResult(success=False, message=f"Agent already exists: {agent_id}")

        tools = params.get("tools")
        try:
            manifest = AgentManifest(
                id=agent_id,
                identity=AgentIdentity(
                    name=params.get("name", ""),
                    emoji=params.get("emoji", ""),
                    persona=params.get("persona"),
                    voice=params.get("voice") or AgentVoice.FRIENDLY,
                ),
                specialty=ManifestSpecialty(
                    display_name=params.get("specialty_name", ""),
                    description=params.get("specialty_description", ""),
                    system_prompt=params.get("system_prompt", ""),
                    tools=[t.strip() for t in tools.split(",") if t.strip()] if tools else None,
                ),
                default_model=params.get("model"),
            )
        except ValidationError as exc:
            return ToolResult(success=False, message=f"Invalid agent definition: {exc}")

        create_custom_agent(self._registry, manifest, self._agents_dir)
        return ToolResult(
            success=True,
            message=f"{manifest.identity.emoji} {manifest.identity.name} created and ready!",
            data={"agent_id": agent_id, "manifest": manifest.model_dump(mode="json", by_alias=True)},
        )


def build_agent_tools(
    registry: SubAgentRegistry,
    agents_dir: str | Path,
    delegate_wait_timeout_ms: int = 120_000,
) -> list[Tool]:
    """Instantiate every agent-management tool bound to ``registry``."""
    return [
        ListAgentsTool(registry),
        DelegateTaskTool(registry, wait_timeout_ms=delegate_wait_timeout_ms),
        GetTaskStatusTool(registry),
        AgentInfoTool(registry),
        SetAgentModelTool(registry),
        ListAgentModelsTool(registry),
        CreateAgentTool(registry, agents_dir),
    ]
