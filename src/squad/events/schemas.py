"""Event schemas for sub-agent task lifecycle notifications.

Every event carries the agent and task it concerns plus a snapshot of the
task taken right after the state change that triggered it.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class TaskEventType(str, Enum):
    """Lifecycle events emitted by the agent registry."""

    TASK_START = "task:start"
    TASK_COMPLETE = "task:complete"
    TASK_ERROR = "task:error"


class TaskEvent(BaseModel):
    """One task lifecycle notification.

    Attributes:
        event_id: Unique identifier (auto-generated UUID4).
        event_type: Which transition happened.
        timestamp: UTC creation time.
        agent_id: Agent that owns the task.
        task_id: Task the event concerns.
        status: Task status after the transition.
        data: JSON-safe snapshot of the task.
        error: Failure message, set on ``task:error`` and failed completions.
    """

    event_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    event_type: TaskEventType
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    agent_id: str
    task_id: str
    status: str
    data: dict[str, Any] = Field(default_factory=dict)
    error: str | None = None
