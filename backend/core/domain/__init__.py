# Domain Entities
# Pure business objects with no external dependencies
from .content import (
    AuthorInfo,
    Content,
    ContentFilters,
    ContentPage,
    ContentPatch,
    ContentStatus,
    ContentView,
    DraftInput,
    Sector,
)
from .events import ContentCreated, ContentStatusChanged, ContentUpdated, EventKind, LifecycleEvent
from .user import Actor, UserRole

__all__ = [
    "Actor",
    "UserRole",
    "AuthorInfo",
    "Content",
    "ContentFilters",
    "ContentPage",
    "ContentPatch",
    "ContentStatus",
    "ContentView",
    "DraftInput",
    "Sector",
    "EventKind",
    "LifecycleEvent",
    "ContentCreated",
    "ContentUpdated",
    "ContentStatusChanged",
]
