"""Tests for the sub-agent registry: registration, spawning, lookup, and waiting.

Covers:
- Registration, re-registration, enable/disable, model overrides
- spawn() validation (no task is created for unknown or disabled agents)
- Fire-and-forget spawning and monotonic status transitions
- wait_for_task() idempotence, timeouts that do not cancel, unknown ids
- Completed-task retention ring buffer
- Lifecycle event ordering
- Unregistering agents with and without tasks in flight
- Isolation between concurrently running agents
"""

from __future__ import annotations

import asyncio

import pytest

from src.squad.agents.errors import (
    AgentDisabledError,
    AgentNotFoundError,
    TaskNotFoundError,
    TaskTimeoutError,
)
from src.squad.agents.registry import SubAgentRegistry
from src.squad.agents.schemas import AgentManifest, TaskStatus
from src.squad.events.schemas import TaskEvent, TaskEventType


# ── Registration Tests ───────────────────────────────────────────────────────


def test_register_agent(agents: SubAgentRegistry, make_config):
    agents.register("twitter", make_config())
    assert "twitter" in agents
    assert len(agents) == 1
    state = agents.get("twitter")
    assert state is not None
    assert state.is_running is True
    assert state.active_tasks == []
    assert len(state.completed_tasks) == 0


def test_reregister_replaces_config(agents: SubAgentRegistry, make_config):
    agents.register("twitter", make_config(name="Tweety"))
    agents.register("twitter", make_config(name="Birdie", enabled=False))
    assert len(agents) == 1
    state = agents.get("twitter")
    assert state.config.identity.name == "Birdie"
    assert state.is_running is False


def test_register_from_manifest_applies_overrides(agents: SubAgentRegistry):
    manifest = AgentManifest.model_validate({
        "id": "seo",
        "version": "1.0.0",
        "identity": {"name": "Sage", "emoji": "🔎"},
        "specialty": {
            "displayName": "SEO Specialist",
            "description": "Search optimization",
            "systemPrompt": "You do SEO.",
        },
        "defaultModel": "gpt-4o-mini",
    })
    config = agents.register_from_manifest(manifest, {"max_iterations": 3})
    assert config.specialty.id == "seo"
    assert config.model == "gpt-4o-mini"
    assert agents.get("seo").config.max_iterations == 3


def test_list_enabled_filters_disabled(agents: SubAgentRegistry, make_config):
    agents.register("twitter", make_config("twitter"))
    agents.register("email", make_config("email", enabled=False))
    assert [s.config.specialty.id for s in agents.list()] == ["twitter", "email"]
    assert [s.config.specialty.id for s in agents.list_enabled()] == ["twitter"]


def test_set_enabled_toggles_running_flag(agents: SubAgentRegistry, make_config):
    agents.register("twitter", make_config())
    agents.set_enabled("twitter", False)
    assert agents.get("twitter").config.enabled is False
    assert agents.get("twitter").is_running is False
    agents.set_enabled("twitter", True)
    assert agents.get("twitter").is_running is True


def test_set_enabled_unknown_is_noop(agents: SubAgentRegistry):
    agents.set_enabled("ghost", False)
    assert "ghost" not in agents


def test_set_and_get_model(agents: SubAgentRegistry, make_config):
    agents.register("twitter", make_config())
    assert agents.get_model("twitter") is None
    assert agents.set_model("twitter", "gpt-4o-mini") is True
    assert agents.get_model("twitter") == "gpt-4o-mini"
    assert agents.set_model("twitter", None) is True
    assert agents.get_model("twitter") is None
    assert agents.set_model("ghost", "x") is False
    assert agents.get_model("ghost") is None


def test_update_config(agents: SubAgentRegistry, make_config):
    agents.register("twitter", make_config())
    assert agents.update_config("twitter", max_iterations=4, enabled=False) is True
    state = agents.get("twitter")
    assert state.config.max_iterations == 4
    assert state.is_running is False
    assert agents.update_config("ghost", max_iterations=4) is False


def test_update_config_rejects_unknown_field(agents: SubAgentRegistry, make_config):
    agents.register("twitter", make_config())
    with pytest.raises(ValueError, match="bogus"):
        agents.update_config("twitter", bogus=1)


def test_missing_tools_reports_unregistered(
    agents: SubAgentRegistry, tool_registry, make_config, echo_tool
):
    tool_registry.register(echo_tool("post_tweet"))
    agents.register("twitter", make_config(required_tools=["post_tweet", "schedule_post"]))
    assert agents.missing_tools("twitter") == ["schedule_post"]
    assert agents.missing_tools("ghost") == []


# ── Spawn Tests ──────────────────────────────────────────────────────────────


async def test_spawn_unknown_agent_creates_no_task(agents: SubAgentRegistry, make_config):
    agents.register("twitter", make_config())
    with pytest.raises(AgentNotFoundError):
        await agents.spawn("ghost", "hello")
    assert agents.get("twitter").active_tasks == []


async def test_spawn_disabled_agent_raises(agents: SubAgentRegistry, make_config):
    agents.register("email", make_config("email", enabled=False))
    with pytest.raises(AgentDisabledError):
        await agents.spawn("email", "hello")
    assert agents.get("email").active_tasks == []


async def test_spawn_returns_pending_task_immediately(agents: SubAgentRegistry, make_config):
    agents.register("twitter", make_config())
    task = await agents.spawn("twitter", "Write a tweet", {"brand": "Acme"})

    assert task.status == TaskStatus.PENDING
    assert task.id.startswith("task_")
    assert task.agent_id == "twitter"
    assert task.context == {"brand": "Acme"}
    assert agents.get("twitter").active_tasks == [task]
    assert agents.get_task(task.id) is task

    await agents.drain()


async def test_spawn_records_notification_fields(agents: SubAgentRegistry, make_config):
    agents.register("twitter", make_config())
    task = await agents.spawn("twitter", "x", notify_on_complete=True, notify_target="chat-1")
    assert task.notify_on_complete is True
    assert task.notify_target == "chat-1"
    await agents.drain()


async def test_task_ids_are_unique(agents: SubAgentRegistry, make_config):
    agents.register("twitter", make_config())
    tasks = [await agents.spawn("twitter", f"tweet {i}") for i in range(20)]
    assert len({t.id for t in tasks}) == 20
    await agents.drain()


async def test_completed_task_moves_to_completed_list(agents: SubAgentRegistry, make_config):
    agents.register("twitter", make_config())
    task = await agents.spawn("twitter", "Write a tweet")
    finished = await agents.wait_for_task(task.id)

    assert finished is task
    assert finished.status == TaskStatus.COMPLETED
    assert finished.result == "done"
    assert finished.error is None
    state = agents.get("twitter")
    assert task not in state.active_tasks
    assert list(state.completed_tasks) == [task]


async def test_status_transitions_are_monotonic(
    agents: SubAgentRegistry, provider, make_config, text_response
):
    gate = asyncio.Event()
    seen: list[TaskStatus] = []

    async def slow(request):
        await gate.wait()
        return text_response("ok")

    provider.fallback = slow
    agents.register("twitter", make_config())
    task = await agents.spawn("twitter", "x")
    seen.append(task.status)

    await asyncio.sleep(0)
    await asyncio.sleep(0)
    seen.append(task.status)

    gate.set()
    await agents.wait_for_task(task.id)
    seen.append(task.status)

    assert seen == [TaskStatus.PENDING, TaskStatus.RUNNING, TaskStatus.COMPLETED]
    assert task.started_at is not None
    assert task.completed_at >= task.started_at >= task.created_at


# ── Wait Tests ───────────────────────────────────────────────────────────────


async def test_wait_for_task_is_idempotent(agents: SubAgentRegistry, make_config):
    agents.register("twitter", make_config())
    task = await agents.spawn("twitter", "x")
    first = await agents.wait_for_task(task.id)
    second = await agents.wait_for_task(task.id)
    assert first is second
    assert first.status == TaskStatus.COMPLETED
    assert first.result == second.result


async def test_wait_for_unknown_task_raises(agents: SubAgentRegistry):
    with pytest.raises(TaskNotFoundError):
        await agents.wait_for_task("task_0_nothing")


async def test_wait_timeout_does_not_cancel_task(
    agents: SubAgentRegistry, provider, make_config, text_response
):
    gate = asyncio.Event()

    async def slow(request):
        await gate.wait()
        return text_response("eventually")

    provider.fallback = slow
    agents.register("twitter", make_config())
    task = await agents.spawn("twitter", "x")

    with pytest.raises(TaskTimeoutError):
        await agents.wait_for_task(task.id, timeout_ms=20)
    assert task.status == TaskStatus.RUNNING

    gate.set()
    finished = await agents.wait_for_task(task.id)
    assert finished.status == TaskStatus.COMPLETED
    assert finished.result == "eventually"


# ── Retention Tests ──────────────────────────────────────────────────────────


async def test_completed_tasks_are_bounded(providers, bridge, events, make_config):
    registry = SubAgentRegistry(providers, bridge, events, retention=3)
    registry.register("twitter", make_config())

    tasks = []
    for i in range(5):
        task = await registry.spawn("twitter", f"tweet {i}")
        await registry.wait_for_task(task.id)
        tasks.append(task)

    completed = list(registry.get("twitter").completed_tasks)
    assert completed == tasks[2:]
    assert registry.get_task(tasks[0].id) is None
    with pytest.raises(TaskNotFoundError):
        await registry.wait_for_task(tasks[0].id)


# ── Event Tests ──────────────────────────────────────────────────────────────


async def test_success_emits_start_then_complete(agents: SubAgentRegistry, events, make_config):
    received: list[TaskEvent] = []
    events.subscribe(received.append)

    agents.register("twitter", make_config())
    task = await agents.spawn("twitter", "x")
    await agents.wait_for_task(task.id)
    await agents.drain()

    assert [e.event_type for e in received] == [
        TaskEventType.TASK_START,
        TaskEventType.TASK_COMPLETE,
    ]
    assert received[0].status == "running"
    assert received[1].status == "completed"
    assert received[1].data["result"] == "done"
    assert all(e.task_id == task.id for e in received)


async def test_failure_emits_complete_then_error(
    agents: SubAgentRegistry, provider, events, make_config
):
    provider.fallback = RuntimeError("backend exploded")
    received: list[TaskEventType] = []
    events.subscribe(lambda e: received.append(e.event_type))

    agents.register("twitter", make_config())
    task = await agents.spawn("twitter", "x")
    finished = await agents.wait_for_task(task.id)

    assert finished.status == TaskStatus.FAILED
    assert finished.error == "backend exploded"
    assert finished.result is None
    assert received == [
        TaskEventType.TASK_START,
        TaskEventType.TASK_COMPLETE,
        TaskEventType.TASK_ERROR,
    ]
    assert task in agents.get("twitter").completed_tasks


async def test_event_observes_state_after_mutation(agents: SubAgentRegistry, events, make_config):
    snapshots: list[tuple[str, bool]] = []

    def check(event: TaskEvent) -> None:
        task = agents.get_task(event.task_id)
        in_completed = task in agents.get("twitter").completed_tasks
        snapshots.append((task.status.value, in_completed))

    events.subscribe(check)
    agents.register("twitter", make_config())
    task = await agents.spawn("twitter", "x")
    await agents.wait_for_task(task.id)

    assert snapshots == [("running", False), ("completed", True)]


# ── Isolation Tests ──────────────────────────────────────────────────────────


async def test_one_failure_does_not_affect_siblings(
    agents: SubAgentRegistry, provider, make_config, text_response
):
    def answer(request):
        prompt = request.messages[0].text()
        if prompt == "fail":
            raise RuntimeError("boom")
        return text_response(f"answer to {prompt}")

    provider.fallback = answer
    agents.register("twitter", make_config("twitter"))
    agents.register("email", make_config("email", name="Emma", emoji="✉️"))

    failing = await agents.spawn("twitter", "fail")
    fine = await agents.spawn("email", "subject lines")
    await agents.drain()

    assert failing.status == TaskStatus.FAILED
    assert fine.status == TaskStatus.COMPLETED
    assert fine.result == "answer to subject lines"
    assert list(agents.get("twitter").completed_tasks) == [failing]
    assert list(agents.get("email").completed_tasks) == [fine]


async def test_reregistration_does_not_cancel_running_task(
    agents: SubAgentRegistry, provider, make_config, text_response
):
    gate = asyncio.Event()

    async def slow(request):
        await gate.wait()
        return text_response("finished")

    provider.fallback = slow
    agents.register("twitter", make_config())
    task = await agents.spawn("twitter", "x")
    await asyncio.sleep(0)

    agents.register("twitter", make_config(name="Birdie"))
    gate.set()
    finished = await agents.wait_for_task(task.id)

    assert finished.status == TaskStatus.COMPLETED
    assert finished.result == "finished"


async def test_opaque_context_values_do_not_strand_task(
    agents: SubAgentRegistry, events, make_config
):
    class Opaque:
        def __str__(self) -> str:
            return "opaque-handle"

    received: list[TaskEvent] = []
    events.subscribe(received.append)
    agents.register("twitter", make_config())

    task = await agents.spawn("twitter", "x", {"handle": Opaque()})
    finished = await agents.wait_for_task(task.id)

    assert finished.status == TaskStatus.COMPLETED
    assert agents.get("twitter").active_tasks == []
    assert [e.event_type for e in received] == [
        TaskEventType.TASK_START,
        TaskEventType.TASK_COMPLETE,
    ]
    assert received[0].data["context"] == {"handle": "opaque-handle"}


# ── Unregister Tests ─────────────────────────────────────────────────────────


async def test_unregister_refused_while_task_in_flight(
    agents: SubAgentRegistry, provider, make_config, text_response
):
    gate = asyncio.Event()

    async def slow(request):
        await gate.wait()
        return text_response("still delivered")

    provider.fallback = slow
    agents.register("twitter", make_config())
    task = await agents.spawn("twitter", "x")
    await asyncio.sleep(0)

    assert agents.unregister("twitter") is False
    assert "twitter" in agents

    gate.set()
    finished = await agents.wait_for_task(task.id)

    assert finished.status == TaskStatus.COMPLETED
    assert finished.result == "still delivered"
    assert agents.get_task(task.id) is finished


async def test_unregister_after_drain_forgets_tasks(agents: SubAgentRegistry, make_config):
    agents.register("twitter", make_config())
    task = await agents.spawn("twitter", "x")
    await agents.drain()

    assert agents.unregister("twitter") is True
    assert "twitter" not in agents
    assert agents.get_task(task.id) is None
    with pytest.raises(TaskNotFoundError):
        await agents.wait_for_task(task.id)


def test_unregister_unknown_agent(agents: SubAgentRegistry):
    assert agents.unregister("ghost") is False
