"""In-process event bus for task lifecycle events.

Subscribers are plain callables (sync or async). A subscriber that raises is
logged and skipped; publishing never fails because of a listener. Consumers
that prefer pulling can open a queue with ``stream()``.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from typing import Union

import structlog

from src.squad.events.schemas import TaskEvent, TaskEventType

logger = structlog.get_logger(__name__)

EventHandler = Callable[[TaskEvent], Union[None, Awaitable[None]]]


class TaskEventBus:
    """Fan task events out to subscribers and queues.

    Handlers can subscribe to one event type or, with ``event_type=None``,
    to all of them. Async handlers are scheduled on the running loop and
    tracked so ``flush()`` can wait for them.
    """

    def __init__(self) -> None:
        self._handlers: list[tuple[TaskEventType | None, EventHandler]] = []
        self._queues: list[tuple[TaskEventType | None, asyncio.Queue[TaskEvent]]] = []
        self._pending: set[asyncio.Task[None]] = set()

    def subscribe(
        self,
        handler: EventHandler,
        event_type: TaskEventType | None = None,
    ) -> Callable[[], None]:
        """Register a handler. Returns a callable that unsubscribes it."""
        entry = (event_type, handler)
        self._handlers.append(entry)

        def unsubscribe() -> None:
            if entry in self._handlers:
                self._handlers.remove(entry)

        return unsubscribe

    def stream(self, event_type: TaskEventType | None = None) -> asyncio.Queue[TaskEvent]:
        """Open an unbounded queue that receives every matching event."""
        queue: asyncio.Queue[TaskEvent] = asyncio.Queue()
        self._queues.append((event_type, queue))
        return queue

    def close_stream(self, queue: asyncio.Queue[TaskEvent]) -> None:
        self._queues = [(t, q) for t, q in self._queues if q is not queue]

    @property
    def subscriber_count(self) -> int:
        return len(self._handlers)

    def publish(self, event: TaskEvent) -> None:
        """Deliver an event synchronously to handlers and queues."""
        for event_type, queue in self._queues:
            if event_type is None or event_type == event.event_type:
                queue.put_nowait(event)

        for event_type, handler in list(self._handlers):
            if event_type is not None and event_type != event.event_type:
                continue
            try:
                outcome = handler(event)
            except Exception as exc:
                self._log_handler_error(event, exc)
                continue
            if inspect.isawaitable(outcome):
                task = asyncio.ensure_future(self._await_handler(event, outcome))
                self._pending.add(task)
                task.add_done_callback(self._pending.discard)

        logger.debug(
            "event_published",
            event_type=event.event_type.value,
            event_id=event.event_id,
            task_id=event.task_id,
            agent_id=event.agent_id,
        )

    async def flush(self) -> None:
        """Wait for async handlers scheduled so far."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    async def _await_handler(self, event: TaskEvent, outcome: Awaitable[None]) -> None:
        try:
            await outcome
        except Exception as exc:
            self._log_handler_error(event, exc)

    @staticmethod
    def _log_handler_error(event: TaskEvent, exc: Exception) -> None:
        logger.error(
            "event_handler_failed",
            event_type=event.event_type.value,
            task_id=event.task_id,
            error=str(exc),
            error_type=type(exc).__name__,
        )
