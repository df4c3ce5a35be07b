"""Per-tool, per-agent cost ledger with budget gating.

Tools that spend money (image generation, email sends, LLM calls) report a
ToolCost in their result; the tool registry appends it here via log(). Before
a tool runs, the registry asks should_block() whether any applicable budget
with a blocking action is already exhausted for the current period.

The ledger lives in memory. Anything that satisfies the BudgetGate protocol
can stand in for it (a persistent ledger, a test double).
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Protocol

import structlog
from pydantic import BaseModel, Field

logger = structlog.get_logger(__name__)


# ── Models ───────────────────────────────────────────────────────────────────


class ToolCost(BaseModel):
    """Cost incurred by one tool execution, normalized to USD."""

    usd: float = Field(..., ge=0)
    provider: str
    units: float | None = None
    unit_type: str | None = Field(
        default=None, description="tokens, emails, images, characters, api_calls, minutes"
    )
    breakdown: dict[str, float] = Field(default_factory=dict)


class CostRecord(BaseModel):
    """One logged cost entry."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    tool: str
    agent: str | None = None
    product_id: str | None = None
    user_id: str | None = None
    cost: ToolCost
    meta: dict[str, Any] = Field(default_factory=dict)


class BudgetScope(str, Enum):
    GLOBAL = "global"
    PRODUCT = "product"
    AGENT = "agent"
    USER = "user"


class BudgetPeriod(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class BudgetAction(str, Enum):
    WARN = "warn"
    BLOCK = "block"
    WARN_THEN_BLOCK = "warn_then_block"


class Budget(BaseModel):
    """A spending limit over a scope and period."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    scope: BudgetScope = BudgetScope.GLOBAL
    scope_id: str | None = None
    period: BudgetPeriod = BudgetPeriod.MONTHLY
    limit_usd: float = Field(..., gt=0)
    action: BudgetAction = BudgetAction.WARN
    enabled: bool = True
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def applies_to(
        self,
        agent: str | None = None,
        product_id: str | None = None,
        user_id: str | None = None,
    ) -> bool:
        if self.scope == BudgetScope.GLOBAL:
            return True
        if self.scope == BudgetScope.PRODUCT:
            return self.scope_id is not None and self.scope_id == product_id
        if self.scope == BudgetScope.AGENT:
            return self.scope_id is not None and self.scope_id == agent
        return self.scope_id is not None and self.scope_id == user_id


class BudgetStatus(BaseModel):
    budget: Budget
    spent: float
    remaining: float
    percent_used: float
    is_exceeded: bool


class BudgetDecision(BaseModel):
    """Answer to should_block()."""

    blocked: bool
    reason: str | None = None
    budget_id: str | None = None


# ── Contract ─────────────────────────────────────────────────────────────────


class BudgetGate(Protocol):
    """What the tool registry consults before and after priced operations."""

    async def should_block(
        self,
        tool: str,
        agent: str | None = None,
        product_id: str | None = None,
        user_id: str | None = None,
    ) -> BudgetDecision: ...

    async def log(
        self,
        tool: str,
        cost: ToolCost,
        agent: str | None = None,
        product_id: str | None = None,
        user_id: str | None = None,
        meta: dict[str, Any] | None = None,
    ) -> CostRecord: ...


# ── Tracker ──────────────────────────────────────────────────────────────────


def period_start(period: BudgetPeriod, now: datetime | None = None) -> datetime:
    """Start of the current budget period in UTC."""
    now = now or datetime.now(timezone.utc)
    day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if period == BudgetPeriod.DAILY:
        return day_start
    if period == BudgetPeriod.WEEKLY:
        return day_start - timedelta(days=day_start.weekday())
    return day_start.replace(day=1)


class CostTracker:
    """In-memory cost ledger and budget checker.

    Implements BudgetGate. Records are kept for the process lifetime;
    ``max_records`` bounds memory by discarding the oldest entries.

    Args:
        max_records: Maximum number of cost records retained.
    """

    def __init__(self, max_records: int = 10_000) -> None:
        self._records: list[CostRecord] = []
        self._budgets: dict[str, Budget] = {}
        self._max_records = max_records

    # ── Logging ──────────────────────────────────────────────────────────

    async def log(
        self,
        tool: str,
        cost: ToolCost,
        agent: str | None = None,
        product_id: str | None = None,
        user_id: str | None = None,
        meta: dict[str, Any] | None = None,
    ) -> CostRecord:
        """Append a cost record."""
        record = CostRecord(
            tool=tool,
            agent=agent,
            product_id=product_id,
            user_id=user_id,
            cost=cost,
            meta=meta or {},
        )
        self._records.append(record)
        if len(self._records) > self._max_records:
            del self._records[: len(self._records) - self._max_records]

        logger.info(
            "cost_logged",
            tool=tool,
            agent=agent,
            usd=cost.usd,
            provider=cost.provider,
        )
        return record

    def records(self, since: datetime | None = None) -> list[CostRecord]:
        if since is None:
            return list(self._records)
        return [r for r in self._records if r.timestamp >= since]

    def summary(self, since: datetime | None = None) -> dict[str, Any]:
        """Aggregate spend by tool, agent, and provider."""
        by_tool: dict[str, float] = {}
        by_agent: dict[str, float] = {}
        by_provider: dict[str, float] = {}
        total = 0.0

        records = self.records(since)
        for record in records:
            usd = record.cost.usd
            total += usd
            by_tool[record.tool] = by_tool.get(record.tool, 0.0) + usd
            by_provider[record.cost.provider] = by_provider.get(record.cost.provider, 0.0) + usd
            if record.agent:
                by_agent[record.agent] = by_agent.get(record.agent, 0.0) + usd

        return {
            "total_usd": round(total, 6),
            "count": len(records),
            "by_tool": by_tool,
            "by_agent": by_agent,
            "by_provider": by_provider,
        }

    # ── Budgets ──────────────────────────────────────────────────────────

    def add_budget(self, budget: Budget) -> Budget:
        self._budgets[budget.id] = budget
        logger.info(
            "budget_added",
            budget_id=budget.id,
            name=budget.name,
            scope=budget.scope.value,
            limit_usd=budget.limit_usd,
        )
        return budget

    def remove_budget(self, budget_id: str) -> bool:
        return self._budgets.pop(budget_id, None) is not None

    def list_budgets(self) -> list[Budget]:
        return list(self._budgets.values())

    def check_budget(self, budget: Budget, now: datetime | None = None) -> BudgetStatus:
        """Compute spend against a budget for its current period."""
        since = period_start(budget.period, now)
        spent = sum(
            record.cost.usd
            for record in self._records
            if record.timestamp >= since
            and budget.applies_to(record.agent, record.product_id, record.user_id)
        )
        remaining = max(0.0, budget.limit_usd - spent)
        return BudgetStatus(
            budget=budget,
            spent=spent,
            remaining=remaining,
            percent_used=(spent / budget.limit_usd) * 100,
            is_exceeded=spent >= budget.limit_usd,
        )

    def get_alerts(self, warning_threshold: float = 80.0) -> list[BudgetStatus]:
        """Budgets at or above ``warning_threshold`` percent used."""
        alerts = []
        for budget in self._budgets.values():
            if not budget.enabled:
                continue
            status = self.check_budget(budget)
            if status.percent_used >= warning_threshold:
                alerts.append(status)
        return alerts

    async def should_block(
        self,
        tool: str,
        agent: str | None = None,
        product_id: str | None = None,
        user_id: str | None = None,
    ) -> BudgetDecision:
        """Block if any applicable blocking budget is exhausted."""
        for budget in self._budgets.values():
            if not budget.enabled:
                continue
            if budget.action not in (BudgetAction.BLOCK, BudgetAction.WARN_THEN_BLOCK):
                continue
            if not budget.applies_to(agent, product_id, user_id):
                continue

            status = self.check_budget(budget)
            if status.is_exceeded:
                reason = (
                    f'Budget "{budget.name}" exceeded: ${status.spent:.2f} / '
                    f"${budget.limit_usd:.2f} ({budget.period.value})"
                )
                logger.warning("budget_blocked", tool=tool, agent=agent, budget_id=budget.id)
                return BudgetDecision(blocked=True, reason=reason, budget_id=budget.id)

        return BudgetDecision(blocked=False)
