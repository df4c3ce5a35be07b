"""Tool registry: registration, discovery, and gated execution.

execute() never raises. Unknown or disabled tools, budget blocks, and tool
exceptions all come back as a failed ToolResult whose message explains why,
so callers can hand the text straight back to the model.
"""

from __future__ import annotations

from typing import Any

import structlog

from src.squad.core.monitoring import record_tool_invocation
from src.squad.observability.cost import BudgetGate
from src.squad.providers.schemas import ToolDefinition
from src.squad.tools.schemas import (
    ExecutionContext,
    RegisteredTool,
    Tool,
    ToolCategory,
    ToolResult,
)

logger = structlog.get_logger(__name__)


class ToolRegistry:
    """Registry of tools available to the assistant and its sub-agents.

    Args:
        budget_gate: Optional cost ledger consulted before each execution
            and told about any cost a tool reports.
    """

    def __init__(self, budget_gate: BudgetGate | None = None) -> None:
        self._tools: dict[str, RegisteredTool] = {}
        self._budget_gate = budget_gate

    def register(
        self,
        tool: Tool,
        category: ToolCategory | None = None,
        enabled: bool = True,
    ) -> None:
        """Register a tool, replacing any tool with the same name."""
        self._tools[tool.name] = RegisteredTool(tool=tool, category=category, enabled=enabled)
        logger.debug("tool_registered", tool=tool.name, category=category and category.value)

    def register_all(self, tools: list[Tool], category: ToolCategory | None = None) -> None:
        for tool in tools:
            self.register(tool, category=category)

    def unregister(self, name: str) -> bool:
        return self._tools.pop(name, None) is not None

    def get(self, name: str) -> RegisteredTool | None:
        return self._tools.get(name)

    def has(self, name: str) -> bool:
        return name in self._tools

    def list(
        self,
        category: ToolCategory | None = None,
        enabled: bool | None = None,
    ) -> list[RegisteredTool]:
        tools = list(self._tools.values())
        if category is not None:
            tools = [t for t in tools if t.category == category]
        if enabled is not None:
            tools = [t for t in tools if t.enabled == enabled]
        return tools

    def get_definitions(self, category: ToolCategory | None = None) -> list[ToolDefinition]:
        """JSON-schema definitions of enabled tools, for the model."""
        return [t.tool.definition() for t in self.list(category=category, enabled=True)]

    def enable(self, name: str) -> bool:
        registered = self._tools.get(name)
        if registered is None:
            return False
        registered.enabled = True
        return True

    def disable(self, name: str) -> bool:
        registered = self._tools.get(name)
        if registered is None:
            return False
        registered.enabled = False
        return True

    @property
    def count(self) -> int:
        return len(self._tools)

    def clear(self) -> None:
        self._tools.clear()

    async def execute(
        self,
        name: str,
        params: dict[str, Any] | None = None,
        context: ExecutionContext | None = None,
    ) -> ToolResult:
        """Execute a tool by name with budget gating and cost logging."""
        context = context or ExecutionContext()
        params = params or {}

        registered = self._tools.get(name)
        if registered is None:
            record_tool_invocation(name, "not_found")
            return ToolResult(success=False, message=f"Tool not found: {name}")

        if not registered.enabled:
            record_tool_invocation(name, "disabled")
            return ToolResult(success=False, message=f"Tool is disabled: {name}")

        try:
            if self._budget_gate is not None:
                decision = await self._budget_gate.should_block(
                    tool=name,
                    agent=context.agent,
                    product_id=context.product_id,
                    user_id=context.user_id,
                )
                if decision.blocked:
                    record_tool_invocation(name, "blocked")
                    return ToolResult(
                        success=False,
                        message=f"Blocked by budget: {decision.reason}",
                    )

            result = await registered.tool.execute(params)

            if self._budget_gate is not None and result.cost is not None and result.cost.usd > 0:
                await self._budget_gate.log(
                    tool=name,
                    cost=result.cost,
                    agent=context.agent,
                    product_id=context.product_id,
                    user_id=context.user_id,
                    meta={"params": params, "task_id": context.task_id},
                )
        except Exception as exc:
            record_tool_invocation(name, "error")
            logger.warning(
                "tool_execution_failed",
                tool=name,
                agent=context.agent,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return ToolResult(success=False, message=f"Tool execution failed: {exc}")

        record_tool_invocation(name, "success" if result.success else "failure")
        return result
