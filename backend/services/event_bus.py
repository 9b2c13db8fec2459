"""
In-process event bus for content lifecycle events.

Delivery contract:
- ``publish`` never raises and never waits for a subscriber.
- Plain function subscribers run inline, each inside its own try/except.
- Coroutine subscribers are scheduled as their own asyncio.Task; a failure is
  logged from the task's done-callback.
- At-most-once: nothing is retried or persisted.

Usage::

    from services.event_bus import event_bus

    event_bus.subscribe(EventKind.CONTENT_CREATED, on_created)
    event_bus.publish(EventKind.CONTENT_CREATED, event)
"""

import asyncio
import inspect
import logging
from collections import defaultdict
from collections.abc import Callable
from typing import Any

from core.domain.events import EventKind
from core.interfaces.services import EventPublisher

logger = logging.getLogger(__name__)

Subscriber = Callable[[Any], Any]


class EventBus(EventPublisher):
    """Dispatches lifecycle events to subscribers registered per event kind."""

    def __init__(self) -> None:
        self._subscribers: dict[EventKind, list[Subscriber]] = defaultdict(list)
        # Strong references so pending deliveries are not garbage-collected mid-flight
        self._pending: set[asyncio.Task] = set()

    # ── Registration ──────────────────────────────────────────────────────────

    def subscribe(self, event_kind: EventKind, subscriber: Subscriber) -> None:
        """Register *subscriber* for *event_kind*; duplicates are ignored."""
        if subscriber not in self._subscribers[event_kind]:
            self._subscribers[event_kind].append(subscriber)

    def unsubscribe(self, event_kind: EventKind, subscriber: Subscriber) -> None:
        if subscriber in self._subscribers[event_kind]:
            self._subscribers[event_kind].remove(subscriber)

    def subscribers(self, event_kind: EventKind) -> list[Subscriber]:
        return list(self._subscribers[event_kind])

    def clear(self) -> None:
        self._subscribers.clear()

    # ── Delivery ──────────────────────────────────────────────────────────────

    def publish(self, event_kind: EventKind, payload: Any) -> None:
        for subscriber in self.subscribers(event_kind):
            name = getattr(subscriber, "__qualname__", repr(subscriber))
            if inspect.iscoroutinefunction(subscriber):
                self._schedule(event_kind, name, subscriber, payload)
                continue
            try:
                result = subscriber(payload)
                if inspect.isawaitable(result):
                    self._schedule_awaitable(event_kind, name, result)
            except Exception as exc:
                logger.error(
                    "event_bus: subscriber %s failed on %s: %s",
                    name,
                    event_kind,
                    exc,
                    exc_info=True,
                    extra={"event": str(event_kind)},
                )

    @property
    def pending(self) -> int:
        """Number of asynchronous deliveries still running."""
        return len(self._pending)

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for in-flight asynchronous deliveries, up to *timeout* seconds."""
        if not self._pending:
            return
        done, not_done = await asyncio.wait(set(self._pending), timeout=timeout)
        if not_done:
            logger.warning(
                "event_bus: %d deliveries still running after %.1fs, cancelling",
                len(not_done),
                timeout or 0.0,
            )
            for task in not_done:
                task.cancel()

    # ── Internal helpers ──────────────────────────────────────────────────────

    def _schedule(
        self, event_kind: EventKind, name: str, subscriber: Subscriber, payload: Any
    ) -> None:
        try:
            coro = subscriber(payload)
        except Exception as exc:
            logger.error(
                "event_bus: subscriber %s failed on %s: %s", name, event_kind, exc, exc_info=True
            )
            return
        self._schedule_awaitable(event_kind, name, coro)

    def _schedule_awaitable(self, event_kind: EventKind, name: str, awaitable: Any) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No running event loop to deliver on
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            logger.warning(
                "event_bus: no running loop, dropped %s delivery to %s", event_kind, name
            )
            return

        task = asyncio.ensure_future(awaitable, loop=loop)
        self._pending.add(task)
        task.add_done_callback(lambda t: self._finished(t, event_kind, name))

    def _finished(self, task: asyncio.Task, event_kind: EventKind, name: str) -> None:
        self._pending.discard(task)
        if task.cancelled():
            logger.debug("event_bus: delivery of %s to %s cancelled", event_kind, name)
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "event_bus: async subscriber %s failed on %s: %s",
                name,
                event_kind,
                exc,
                exc_info=exc,
                extra={"event": str(event_kind)},
            )


# ── Module-level singleton ────────────────────────────────────────────────────

event_bus = EventBus()
