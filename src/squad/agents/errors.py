"""Errors raised by the agent registry and the task engine."""

from __future__ import annotations


class AgentError(Exception):
    """Base class for sub-agent failures."""


class AgentNotFoundError(AgentError):
    def __init__(self, agent_id: str) -> None:
        self.agent_id = agent_id
        super().__init__(f"Agent not found: {agent_id}")


class AgentDisabledError(AgentError):
    def __init__(self, agent_id: str) -> None:
        self.agent_id = agent_id
        super().__init__(f"Agent is disabled: {agent_id}")


class ProviderMissingError(AgentError):
    """No provider is active, or the active one is not ready."""

    def __init__(self) -> None:
        super().__init__("No AI provider configured")


class MaxIterationsExceededError(AgentError):
    def __init__(self, max_iterations: int) -> None:
        self.max_iterations = max_iterations
        super().__init__(f"Agent max iterations exceeded ({max_iterations})")


class TaskNotFoundError(AgentError):
    def __init__(self, task_id: str) -> None:
        self.task_id = task_id
        super().__init__(f"Task not found: {task_id}")


class TaskTimeoutError(AgentError):
    """Raised to a waiting caller only; the task keeps running."""

    def __init__(self, task_id: str, timeout_ms: int) -> None:
        self.task_id = task_id
        self.timeout_ms = timeout_ms
        super().__init__(f"Task {task_id} timed out after {timeout_ms}ms")
