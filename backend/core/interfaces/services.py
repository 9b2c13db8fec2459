"""Service interfaces for collaborators outside the workflow core."""

from abc import ABC, abstractmethod
from typing import Any

from ..domain.events import EventKind


class EventPublisher(ABC):
    """Fire-and-forget broadcast of lifecycle events."""

    @abstractmethod
    def publish(self, event_kind: EventKind, payload: Any) -> None:
        """Hand ``payload`` to every subscriber of ``event_kind``.

        Must return without waiting for subscribers to finish.
        """
        ...
