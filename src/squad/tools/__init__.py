"""Tool registry and the bridge sub-agents use to call tools."""

from __future__ import annotations

from src.squad.tools.bridge import ToolBridge, serialize_result
from src.squad.tools.registry import ToolRegistry
from src.squad.tools.schemas import (
    ExecutionContext,
    FunctionTool,
    RegisteredTool,
    Tool,
    ToolCategory,
    ToolExecutionError,
    ToolResult,
)

__all__ = [
    "ExecutionContext",
    "FunctionTool",
    "RegisteredTool",
    "Tool",
    "ToolBridge",
    "ToolCategory",
    "ToolExecutionError",
    "ToolRegistry",
    "ToolResult",
    "serialize_result",
]
