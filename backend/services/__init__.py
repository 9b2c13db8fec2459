"""
Service layer for business logic.
"""

from services.content_lifecycle import ContentLifecycleService
from services.content_query import ContentQueryService
from services.event_bus import EventBus, event_bus

__all__ = [
    "ContentLifecycleService",
    "ContentQueryService",
    "EventBus",
    "event_bus",
]
