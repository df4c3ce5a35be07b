"""Bridge between the task loop and the tool registry.

The engine only ever sees tool definitions and plain-text tool output. Whatever
happens inside a tool is turned into a string the model can read on the next
turn; nothing here raises.
"""

from __future__ import annotations

import json
from typing import Any

import structlog

from src.squad.providers.schemas import ToolDefinition
from src.squad.tools.registry import ToolRegistry
from src.squad.tools.schemas import ExecutionContext, ToolExecutionError, ToolResult

logger = structlog.get_logger(__name__)


def serialize_result(result: ToolResult) -> str:
    """Render a ToolResult as the text of a tool message."""
    if not result.success:
        return result.message
    if result.data is None:
        return result.message
    if isinstance(result.data, str):
        return result.data
    return json.dumps(result.data, default=str)


class ToolBridge:
    """Filtered view of a ToolRegistry for one agent at a time."""

    def __init__(self, registry: ToolRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    def list_definitions(self, allow_list: list[str] | None = None) -> list[ToolDefinition]:
        """Enabled tool definitions, narrowed to ``allow_list`` when non-empty."""
        definitions = self._registry.get_definitions()
        if not allow_list:
            return definitions
        allowed = set(allow_list)
        return [d for d in definitions if d.name in allowed]

    async def invoke(
        self,
        name: str,
        args: dict[str, Any],
        context: ExecutionContext | None = None,
    ) -> str:
        try:
            result = await self._registry.execute(name, args, context)
        except Exception as exc:
            error = ToolExecutionError(name, str(exc))
            logger.warning("tool_bridge_error", tool=name, error=str(error))
            return f"Tool execution failed: {error}"
        return serialize_result(result)
