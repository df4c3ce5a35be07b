"""Task lifecycle events.

Exports:
    TaskEvent: Lifecycle event model with a task snapshot.
    TaskEventType: ``task:start``, ``task:complete``, ``task:error``.
    TaskEventBus: In-process publish/subscribe for task events.
"""

from __future__ import annotations

from src.squad.events.bus import EventHandler, TaskEventBus
from src.squad.events.schemas import TaskEvent, TaskEventType

__all__ = [
    "EventHandler",
    "TaskEvent",
    "TaskEventBus",
    "TaskEventType",
]
