"""
Content database model.
"""

from typing import Optional
from uuid import uuid4

from sqlalchemy import ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.domain.content import ContentStatus

from .base import Base, TimestampMixin
from .user import User


class ContentRecord(Base, TimestampMixin):
    """Row backing a Content domain entity."""

    __tablename__ = "contents"

    # Primary key
    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    sector: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    status: Mapped[str] = mapped_column(
        String(20),
        default=ContentStatus.DRAFT.value,
        nullable=False,
        index=True,
    )

    # Owner (never changes after creation)
    created_by: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    author: Mapped[Optional[User]] = relationship(User, lazy="raise")

    __table_args__ = (
        Index("ix_contents_status_sector_created_at", "status", "sector", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<ContentRecord(id={self.id}, title={self.title[:30]}, status={self.status})>"
