"""Prometheus metrics for sub-agent tasks, LLM calls, and tool invocations.

Provides:
- Task, LLM, and tool counters and histograms
- track_llm_call(): async context manager around one backend call
- record_task_outcome() and record_tool_invocation() for the registries
- get_metrics_text(): Prometheus exposition output
"""

from __future__ import annotations

import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from prometheus_client import (
    REGISTRY,
    Counter,
    Histogram,
    generate_latest,
)

# ── Task Metrics ─────────────────────────────────────────────────────────────

subagent_tasks_total = Counter(
    "subagent_tasks_total",
    "Total sub-agent tasks reaching a terminal state",
    ["agent_id", "status"],
)

subagent_task_duration_seconds = Histogram(
    "subagent_task_duration_seconds",
    "Sub-agent task duration from start to terminal state",
    ["agent_id"],
    buckets=(0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0),
)

# ── LLM Metrics ──────────────────────────────────────────────────────────────

llm_requests_total = Counter(
    "llm_requests_total",
    "Total LLM API requests",
    ["provider", "model", "status"],
)

llm_request_duration_seconds = Histogram(
    "llm_request_duration_seconds",
    "LLM API request duration in seconds",
    ["provider", "model"],
    buckets=(0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
)

llm_tokens_used_total = Counter(
    "llm_tokens_used_total",
    "Total LLM tokens consumed",
    ["provider", "model", "token_type"],
)

# ── Tool Metrics ─────────────────────────────────────────────────────────────

tool_invocations_total = Counter(
    "tool_invocations_total",
    "Total tool invocations made on behalf of sub-agents",
    ["tool", "status"],
)


# ── Helpers ──────────────────────────────────────────────────────────────────


@dataclass
class LLMCallUsage:
    """Token counts filled in by the caller inside ``track_llm_call``."""

    input_tokens: int = 0
    output_tokens: int = 0


@asynccontextmanager
async def track_llm_call(provider: str, model: str) -> AsyncIterator[LLMCallUsage]:
    """Record count, latency, and token usage for one backend call.

    The request is counted as ``error`` when the block raises. Token counters
    only move for non-zero usage.
    """
    usage = LLMCallUsage()
    started = time.perf_counter()
    status = "error"
    try:
        yield usage
        status = "success"
    finally:
        llm_requests_total.labels(provider=provider, model=model, status=status).inc()
        llm_request_duration_seconds.labels(provider=provider, model=model).observe(
            time.perf_counter() - started
        )
        for token_type, count in (("prompt", usage.input_tokens), ("completion", usage.output_tokens)):
            if count:
                llm_tokens_used_total.labels(
                    provider=provider, model=model, token_type=token_type
                ).inc(count)


def record_task_outcome(agent_id: str, status: str, duration_seconds: float | None) -> None:
    """Record a task's terminal status and, if it started, its duration."""
    subagent_tasks_total.labels(agent_id=agent_id, status=status).inc()
    if duration_seconds is not None:
        subagent_task_duration_seconds.labels(agent_id=agent_id).observe(duration_seconds)


def record_tool_invocation(tool: str, status: str) -> None:
    tool_invocations_total.labels(tool=tool, status=status).inc()


def get_metrics_text() -> bytes:
    """Prometheus exposition output for the default registry."""
    return generate_latest(REGISTRY)
