"""
Default subscribers for content lifecycle events.

Notification and analytics delivery live outside this service; these
subscribers log what would be sent so the event flow is observable end to end.
"""

import asyncio
import json
import logging
from datetime import UTC, datetime
from typing import Any

from core.domain.content import AuthorInfo
from core.domain.events import (
    ContentCreated,
    ContentStatusChanged,
    ContentUpdated,
    EventKind,
    LifecycleEvent,
)

from .event_bus import EventBus

logger = logging.getLogger(__name__)


def _actor_label(identity: AuthorInfo | None, actor_id: str) -> str:
    if identity is None or not identity.name:
        return actor_id
    return f"{identity.name} (ID: {identity.id})"


def describe_event(event: LifecycleEvent) -> str:
    """One-line human description of an event."""
    if isinstance(event, ContentCreated):
        return (
            f"Content {event.content.id} created with status {event.content.status} "
            f"by user {_actor_label(event.content.author, event.actor_id)}"
        )
    if isinstance(event, ContentUpdated):
        fields = ", ".join(sorted(event.changes)) or "no fields"
        editor = _actor_label(event.actor, event.actor_id)
        return f"Content {event.content_id} updated by user {editor} ({fields})"
    if isinstance(event, ContentStatusChanged):
        return (
            f"Content {event.content_id} status changed from {event.from_status} "
            f"to {event.to_status} by user {event.actor_id}"
        )
    return f"Unrecognised content event {event!r}"


def build_analytics_record(event: LifecycleEvent) -> dict[str, Any]:
    """Flatten an event into the record shape analytics consumers ingest."""
    record: dict[str, Any] = {
        "event": str(event.kind),
        "content_id": event.content_id,
        "actor_id": event.actor_id,
        "occurred_at": event.timestamp.isoformat(),
        "prepared_at": datetime.now(UTC).isoformat(),
    }
    if isinstance(event, ContentStatusChanged):
        record["from"] = str(event.from_status)
        record["to"] = str(event.to_status)
    elif isinstance(event, ContentCreated):
        record["status"] = str(event.content.status)
        record["sector"] = str(event.content.sector)
    elif isinstance(event, ContentUpdated):
        record["fields"] = sorted(event.changes)
    return record


def log_lifecycle_event(event: LifecycleEvent) -> None:
    logger.info(
        describe_event(event),
        extra={"content_id": event.content_id, "actor_id": event.actor_id, "event": str(event.kind)},
    )


async def send_notification(event: LifecycleEvent) -> None:
    """Simulated notification (e.g. email to reviewers)."""
    await asyncio.sleep(0)
    logger.info(
        "Notification simulated for content %s (%s)",
        event.content_id,
        event.kind,
        extra={"content_id": event.content_id, "event": str(event.kind)},
    )


async def prepare_analytics(event: LifecycleEvent) -> None:
    record = build_analytics_record(event)
    logger.info("Analytics prepared: %s", json.dumps(record, default=str))


def register_default_subscribers(bus: EventBus) -> None:
    """Wire the log, notification and analytics subscribers at startup."""
    for kind in EventKind:
        bus.subscribe(kind, log_lifecycle_event)
        bus.subscribe(kind, send_notification)

    # Edits are noted but not counted as analytics events
    bus.subscribe(EventKind.CONTENT_CREATED, prepare_analytics)
    bus.subscribe(EventKind.CONTENT_STATUS_CHANGED, prepare_analytics)
