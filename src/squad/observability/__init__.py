"""Cost observability for tool executions.

Exports:
    CostTracker: In-memory cost ledger with budget gating.
    BudgetGate: Protocol consulted by the tool registry.
    Budget, BudgetDecision, BudgetStatus, CostRecord, ToolCost: Models.
"""

from __future__ import annotations

from src.squad.observability.cost import (
    Budget,
    BudgetAction,
    BudgetDecision,
    BudgetGate,
    BudgetPeriod,
    BudgetScope,
    BudgetStatus,
    CostRecord,
    CostTracker,
    ToolCost,
)

__all__ = [
    "Budget",
    "BudgetAction",
    "BudgetDecision",
    "BudgetGate",
    "BudgetPeriod",
    "BudgetScope",
    "BudgetStatus",
    "CostRecord",
    "CostTracker",
    "ToolCost",
]
