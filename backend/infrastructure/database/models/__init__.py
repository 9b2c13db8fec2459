"""
SQLAlchemy database models.
"""

from .base import Base, TimestampMixin
from .content import ContentRecord
from .user import User

__all__ = [
    "Base",
    "TimestampMixin",
    "User",
    "ContentRecord",
]
