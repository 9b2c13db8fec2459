"""Lifecycle events emitted after a content mutation is committed."""
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from .content import AuthorInfo, Content, ContentStatus


class EventKind(StrEnum):
    """Names subscribers register against."""
    CONTENT_CREATED = "content.created"
    CONTENT_UPDATED = "content.updated"
    CONTENT_STATUS_CHANGED = "content.status_changed"


def _now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class ContentCreated:
    """A draft was persisted; carries the full record with author display info."""

    content: Content
    actor_id: str
    timestamp: datetime = field(default_factory=_now)

    kind = EventKind.CONTENT_CREATED

    @property
    def content_id(self) -> str:
        return self.content.id


@dataclass(frozen=True)
class ContentUpdated:
    """A draft was edited; ``changes`` holds only the fields that were supplied."""

    content_id: str
    actor_id: str
    changes: dict[str, Any]
    # Display identity of the editor
    actor: AuthorInfo | None = None
    timestamp: datetime = field(default_factory=_now)

    kind = EventKind.CONTENT_UPDATED


@dataclass(frozen=True)
class ContentStatusChanged:
    """A transition moved the content to its next status."""

    content_id: str
    from_status: ContentStatus
    to_status: ContentStatus
    actor_id: str
    timestamp: datetime = field(default_factory=_now)

    kind = EventKind.CONTENT_STATUS_CHANGED


LifecycleEvent = ContentCreated | ContentUpdated | ContentStatusChanged
