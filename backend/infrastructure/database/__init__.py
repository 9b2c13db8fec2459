"""
Persistence for users and content: engine, sessions, models and the content store.
"""

from .connection import (
    async_session_maker,
    close_db,
    engine,
    get_db,
    get_db_context,
    init_db,
)
from .content_repository import SqlContentRepository
from .models import Base, ContentRecord, User

__all__ = [
    "Base",
    "ContentRecord",
    "User",
    "SqlContentRepository",
    "engine",
    "async_session_maker",
    "get_db",
    "get_db_context",
    "init_db",
    "close_db",
]
