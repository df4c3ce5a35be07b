"""Sub-agent registry: configuration, task bookkeeping, and spawning.

The SubAgentRegistry is the single owner of agent configs and task lists.
It supports:
- Registration (direct or from a manifest) and in-place reconfiguration
- Fire-and-forget spawning: each task runs as its own asyncio task
- Task lookup across active and completed lists, and awaitable completion
- Lifecycle events (task:start, task:complete, task:error) on a TaskEventBus

Every mutation of task state happens in a method that does not await, so on
the event loop thread each transition is atomic with respect to other tasks.
Re-registering an agent replaces its config but never touches tasks that are
already running.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any

import structlog
from pydantic_core import to_jsonable_python

from src.squad.agents.errors import (
    AgentDisabledError,
    AgentNotFoundError,
    TaskNotFoundError,
    TaskTimeoutError,
)
from src.squad.agents.executor import TaskExecutor
from src.squad.agents.schemas import (
    AgentConfig,
    AgentManifest,
    AgentRuntimeState,
    Task,
    TaskStatus,
    generate_task_id,
)
from src.squad.core.logging import task_log_context
from src.squad.core.monitoring import record_task_outcome
from src.squad.events.bus import TaskEventBus
from src.squad.events.schemas import TaskEvent, TaskEventType
from src.squad.providers.registry import ProviderRegistry
from src.squad.tools.bridge import ToolBridge

logger = structlog.get_logger(__name__)


class SubAgentRegistry:
    """Registry and scheduler for specialist sub-agents.

    Args:
        providers: Provider registry the executor draws the active backend from.
        tools: Tool bridge shared by every agent.
        events: Bus that receives lifecycle events. A private bus is created
            when omitted.
        default_model: Model used when an agent has no override.
        retention: Completed tasks kept per agent.
        default_wait_timeout_ms: Timeout for ``wait_for_task`` when the
            caller does not pass one.
        executor: Engine override, mostly for tests.
    """

    def __init__(
        self,
        providers: ProviderRegistry,
        tools: ToolBridge,
        events: TaskEventBus | None = None,
        *,
        default_model: str | None = None,
        retention: int = 50,
        default_wait_timeout_ms: int = 300_000,
        executor: TaskExecutor | None = None,
    ) -> None:
        self._agents: dict[str, AgentRuntimeState] = {}
        self._tools = tools
        self._events = events or TaskEventBus()
        self._retention = retention
        self._default_wait_timeout_ms = default_wait_timeout_ms
        self._executor = executor or TaskExecutor(providers, tools, default_model=default_model)
        self._done: dict[str, asyncio.Event] = {}
        self._runs: set[asyncio.Task[None]] = set()

    @property
    def events(self) -> TaskEventBus:
        return self._events

    # ── Registration ─────────────────────────────────────────────────────

    def register(self, agent_id: str, config: AgentConfig) -> None:
        """Register an agent, or replace the config of an existing one."""
        state = self._agents.get(agent_id)
        if state is None:
            self._agents[agent_id] = AgentRuntimeState(config=config, retention=self._retention)
        else:
            logger.warning("agent_already_registered", agent_id=agent_id)
            state.config = config
            state.is_running = config.enabled

        logger.info(
            "agent_registered",
            agent_id=agent_id,
            agent_name=config.identity.name,
            specialty=config.specialty.display_name,
            enabled=config.enabled,
        )

        missing = self.missing_tools(agent_id)
        if missing:
            logger.warning("agent_tools_missing", agent_id=agent_id, missing=missing)

    def register_from_manifest(
        self,
        manifest: AgentManifest,
        overrides: dict[str, Any] | None = None,
    ) -> AgentConfig:
        """Register an agent built from a manifest, applying config overrides."""
        config = manifest.to_config()
        if overrides:
            config = config.model_copy(update=overrides)
        self.register(manifest.id, config)
        return config

    def unregister(self, agent_id: str) -> bool:
        """Remove an agent and forget its finished tasks.

        An agent with tasks still in flight is kept; disable it and drain
        first. Returns True only when the agent was removed.
        """
        state = self._agents.get(agent_id)
        if state is None:
            return False
        if state.active_tasks:
            logger.warning(
                "agent_unregister_refused",
                agent_id=agent_id,
                active_tasks=len(state.active_tasks),
            )
            return False

        del self._agents[agent_id]
        for task in state.completed_tasks:
            self._done.pop(task.id, None)
        logger.info("agent_unregistered", agent_id=agent_id)
        return True

    # ── Lookup & Configuration ───────────────────────────────────────────

    def get(self, agent_id: str) -> AgentRuntimeState | None:
        return self._agents.get(agent_id)

    def list(self) -> list[AgentRuntimeState]:
        return list(self._agents.values())

    def list_enabled(self) -> list[AgentRuntimeState]:
        return [state for state in self._agents.values() if state.config.enabled]

    def list_ids(self) -> list[str]:
        return list(self._agents.keys())

    def __len__(self) -> int:
        return len(self._agents)

    def __contains__(self, agent_id: str) -> bool:
        return agent_id in self._agents

    def set_enabled(self, agent_id: str, enabled: bool) -> None:
        """Enable or disable an agent. Unknown ids are ignored."""
        state = self._agents.get(agent_id)
        if state is None:
            return
        state.config = state.config.model_copy(update={"enabled": enabled})
        state.is_running = enabled

    def set_model(self, agent_id: str, model: str | None) -> bool:
        """Set or clear the agent's model override."""
        state = self._agents.get(agent_id)
        if state is None:
            return False
        state.config = state.config.model_copy(update={"model": model or None})
        logger.info("agent_model_updated", agent_id=agent_id, model=model or "default")
        return True

    def get_model(self, agent_id: str) -> str | None:
        state = self._agents.get(agent_id)
        return state.config.model if state else None

    def update_config(self, agent_id: str, **updates: Any) -> bool:
        """Apply field updates to an agent's config.

        Raises:
            ValueError: If an update names a field AgentConfig does not have.
        """
        state = self._agents.get(agent_id)
        if state is None:
            return False
        unknown = set(updates) - set(AgentConfig.model_fields)
        if unknown:
            raise ValueError(f"Unknown config fields: {', '.join(sorted(unknown))}")
        state.config = AgentConfig.model_validate({**state.config.model_dump(), **updates})
        if "enabled" in updates:
            state.is_running = state.config.enabled
        return True

    def missing_tools(self, agent_id: str) -> list[str]:
        """Required tools of the agent that the tool registry lacks."""
        state = self._agents.get(agent_id)
        if state is None:
            return []
        required = state.config.specialty.required_tools or []
        return [name for name in required if not self._tools.registry.has(name)]

    # ── Tasks ────────────────────────────────────────────────────────────

    async def spawn(
        self,
        agent_id: str,
        prompt: str,
        context: dict[str, Any] | None = None,
        *,
        notify_on_complete: bool = False,
        notify_target: str | None = None,
    ) -> Task:
        """Create a task for an agent and start it in the background.

        Returns the task immediately, still ``pending``.

        Raises:
            AgentNotFoundError: No agent with this id.
            AgentDisabledError: The agent is disabled.
        """
        state = self._agents.get(agent_id)
        if state is None:
            raise AgentNotFoundError(agent_id)
        if not state.config.enabled:
            raise AgentDisabledError(agent_id)

        task = Task(
            agent_id=agent_id,
            prompt=prompt,
            context=context,
            notify_on_complete=notify_on_complete,
            notify_target=notify_target,
        )
        while task.id in self._done:
            task.id = generate_task_id()

        state.active_tasks.append(task)
        self._done[task.id] = asyncio.Event()

        run = asyncio.create_task(self._run(task, state), name=task.id)
        self._runs.add(run)
        run.add_done_callback(self._runs.discard)

        logger.info("task_spawned", task_id=task.id, agent_id=agent_id, prompt=prompt[:50])
        return task

    def get_task(self, task_id: str) -> Task | None:
        """Find a task in any agent's active or completed list."""
        for state in self._agents.values():
            for task in state.active_tasks:
                if task.id == task_id:
                    return task
            for task in state.completed_tasks:
                if task.id == task_id:
                    return task
        return None

    async def wait_for_task(self, task_id: str, timeout_ms: int | None = None) -> Task:
        """Wait until a task reaches a terminal state.

        The timeout only bounds the wait; the task itself keeps running.

        Raises:
            TaskNotFoundError: The id is unknown or has aged out.
            TaskTimeoutError: The task was still running at the deadline.
        """
        task = self.get_task(task_id)
        done = self._done.get(task_id)
        if task is None or done is None:
            raise TaskNotFoundError(task_id)
        if task.status.is_terminal:
            return task

        timeout_ms = self._default_wait_timeout_ms if timeout_ms is None else timeout_ms
        try:
            await asyncio.wait_for(done.wait(), timeout=timeout_ms / 1000)
        except asyncio.TimeoutError:
            raise TaskTimeoutError(task_id, timeout_ms) from None
        return task

    async def drain(self) -> None:
        """Wait for every in-flight task run to finish."""
        while self._runs:
            await asyncio.gather(*list(self._runs), return_exceptions=True)
        await self._events.flush()

    # ── Execution ────────────────────────────────────────────────────────

    async def _run(self, task: Task, state: AgentRuntimeState) -> None:
        with task_log_context(task.id, task.agent_id):
            config = state.config
            deadline: asyncio.Timeout | None = None
            try:
                self._start(task)
                async with asyncio.timeout(config.task_timeout_ms / 1000) as deadline:
                    result = await self._executor.run(task, config)
            except asyncio.CancelledError:
                self._finish(task, state, error="Task cancelled")
                raise
            except Exception as exc:
                if deadline is not None and deadline.expired():
                    error = f"Task timed out after {config.task_timeout_ms / 1000:g}s"
                else:
                    error = str(exc) or type(exc).__name__
                self._finish(task, state, error=error)
            else:
                self._finish(task, state, result=result)

    def _start(self, task: Task) -> None:
        task.status = TaskStatus.RUNNING
        task.started_at = datetime.now(timezone.utc)
        logger.info("task_started", task_id=task.id, agent_id=task.agent_id)
        self._emit(TaskEventType.TASK_START, task)

    def _finish(
        self,
        task: Task,
        state: AgentRuntimeState,
        result: str | None = None,
        error: str | None = None,
    ) -> None:
        if error is None:
            task.status = TaskStatus.COMPLETED
            task.result = result if result is not None else ""
        else:
            task.status = TaskStatus.FAILED
            task.error = error
        task.completed_at = datetime.now(timezone.utc)

        if task in state.active_tasks:
            state.active_tasks.remove(task)
        if len(state.completed_tasks) == state.completed_tasks.maxlen:
            self._done.pop(state.completed_tasks[0].id, None)
        state.completed_tasks.append(task)

        done = self._done.get(task.id)
        if done is not None:
            done.set()

        record_task_outcome(task.agent_id, task.status.value, task.duration_seconds)
        if error is None:
            logger.info(
                "task_completed",
                task_id=task.id,
                agent_id=task.agent_id,
                duration_seconds=task.duration_seconds,
            )
        else:
            logger.error("task_failed", task_id=task.id, agent_id=task.agent_id, error=error)

        self._emit(TaskEventType.TASK_COMPLETE, task)
        if error is not None:
            self._emit(TaskEventType.TASK_ERROR, task)

    def _emit(self, event_type: TaskEventType, task: Task) -> None:
        # Context values are opaque; anything not JSON-native is rendered with str()
        self._events.publish(
            TaskEvent(
                event_type=event_type,
                agent_id=task.agent_id,
                task_id=task.id,
                status=task.status.value,
                data=to_jsonable_python(task, fallback=str),
                error=task.error,
            )
        )
