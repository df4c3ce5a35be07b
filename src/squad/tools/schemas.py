"""Tool abstractions: the Tool base class, results, and execution context."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel

from src.squad.observability.cost import ToolCost
from src.squad.providers.schemas import ToolDefinition


class ToolCategory(str, Enum):
    SCHEDULING = "scheduling"
    KNOWLEDGE = "knowledge"
    MARKETING = "marketing"
    MEMORY = "memory"
    SOCIAL = "social"
    RESEARCH = "research"
    UTILITY = "utility"
    AGENTS = "agents"


class ToolResult(BaseModel):
    """Outcome of one tool execution."""

    success: bool
    message: str = ""
    data: Any = None
    cost: ToolCost | None = None


@dataclass(frozen=True)
class ExecutionContext:
    """Who a tool runs on behalf of, for cost attribution and budgets."""

    agent: str | None = None
    product_id: str | None = None
    user_id: str | None = None
    task_id: str | None = None


class Tool(ABC):
    """A named capability the model can call with JSON-schema arguments."""

    name: str = ""
    description: str = ""
    parameters: dict[str, Any] = {"type": "object", "properties": {}}

    @abstractmethod
    async def execute(self, params: dict[str, Any]) -> ToolResult:
        ...

    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name=self.name,
            description=self.description,
            parameters=self.parameters,
        )


class FunctionTool(Tool):
    """Tool backed by an async function ``handler(params) -> ToolResult``."""

    def __init__(
        self,
        name: str,
        description: str,
        handler: Callable[[dict[str, Any]], Awaitable[ToolResult]],
        parameters: dict[str, Any] | None = None,
    ) -> None:
        self.name = name
        self.description = description
        self.parameters = parameters or {"type": "object", "properties": {}}
        self._handler = handler

    async def execute(self, params: dict[str, Any]) -> ToolResult:
        return await self._handler(params)


@dataclass
class RegisteredTool:
    """A tool plus its registry metadata."""

    tool: Tool
    category: ToolCategory | None = None
    enabled: bool = True

    @property
    def name(self) -> str:
        return self.tool.name


class ToolExecutionError(Exception):
    """A tool invocation failed. Folded into the conversation, never fatal."""

    def __init__(self, tool: str, message: str) -> None:
        self.tool = tool
        super().__init__(message)
