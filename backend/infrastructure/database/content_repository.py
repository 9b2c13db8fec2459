"""
SQLAlchemy-backed content store.
"""

import logging
from datetime import UTC, datetime
from typing import Any, NoReturn

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from core.domain.content import AuthorInfo, Content, ContentStatus
from core.errors import StoreFailure
from core.interfaces.repositories import ContentRepository

from .models.base import utcnow
from .models.content import ContentRecord

logger = logging.getLogger(__name__)

_FILTERABLE_COLUMNS = {
    "status": ContentRecord.status,
    "sector": ContentRecord.sector,
}

_WRITABLE_FIELDS = {"title", "body", "sector", "status"}


def _as_utc(value: datetime) -> datetime:
    # SQLite drops the offset on read; stored values are always UTC
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value


def _to_domain(record: ContentRecord) -> Content:
    author = None
    if record.author is not None:
        author = AuthorInfo(id=record.author.id, name=record.author.name)
    return Content(
        id=record.id,
        title=record.title,
        body=record.body,
        sector=record.sector,
        status=record.status,
        created_by=record.created_by,
        created_at=_as_utc(record.created_at),
        updated_at=_as_utc(record.updated_at),
        author=author,
    )


def _column_values(fields: dict[str, Any]) -> dict[str, Any]:
    """Convert enum members to their stored string values."""
    return {key: getattr(value, "value", value) for key, value in fields.items()}


def _where(filters: dict[str, Any]) -> list:
    clauses = []
    for key, value in filters.items():
        column = _FILTERABLE_COLUMNS.get(key)
        if column is None:
            raise ValueError(f"Unsupported content filter: {key}")
        clauses.append(column == getattr(value, "value", value))
    return clauses


class SqlContentRepository(ContentRepository):
    """Content store on an AsyncSession; every write commits before returning."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(self, fields: dict[str, Any]) -> Content:
        record = ContentRecord(**_column_values(fields))
        try:
            self._session.add(record)
            await self._session.commit()
        except SQLAlchemyError as exc:
            await self._failed("create", exc)
        content = await self.find_by_id(record.id)
        if content is None:
            raise StoreFailure("Content vanished after insert")
        return content

    async def find_by_id(self, content_id: str) -> Content | None:
        stmt = (
            select(ContentRecord)
            .options(joinedload(ContentRecord.author))
            .where(ContentRecord.id == content_id)
            .execution_options(populate_existing=True)
        )
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as exc:
            await self._failed("find_by_id", exc)
        record = result.scalar_one_or_none()
        return _to_domain(record) if record is not None else None

    async def update(
        self,
        content_id: str,
        fields: dict[str, Any],
        expected_status: ContentStatus | None = None,
    ) -> Content | None:
        unknown = set(fields) - _WRITABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be written: {sorted(unknown)}")

        values = _column_values(fields)
        values["updated_at"] = utcnow()

        stmt = update(ContentRecord).where(ContentRecord.id == content_id)
        if expected_status is not None:
            stmt = stmt.where(ContentRecord.status == expected_status.value)
        stmt = stmt.values(**values).execution_options(synchronize_session=False)

        try:
            result = await self._session.execute(stmt)
            if result.rowcount == 0:
                await self._session.rollback()
                return None
            await self._session.commit()
        except SQLAlchemyError as exc:
            await self._failed("update", exc)
        return await self.find_by_id(content_id)

    async def find_many(
        self, filters: dict[str, Any], skip: int = 0, limit: int = 20
    ) -> list[Content]:
        stmt = (
            select(ContentRecord)
            .options(joinedload(ContentRecord.author))
            .where(*_where(filters))
            .order_by(ContentRecord.created_at.desc(), ContentRecord.id.desc())
            .offset(skip)
            .limit(limit)
        )
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as exc:
            await self._failed("find_many", exc)
        return [_to_domain(record) for record in result.scalars().all()]

    async def count(self, filters: dict[str, Any]) -> int:
        stmt = select(func.count()).select_from(ContentRecord).where(*_where(filters))
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as exc:
            await self._failed("count", exc)
        return result.scalar() or 0

    async def _failed(self, operation: str, exc: SQLAlchemyError) -> NoReturn:
        logger.error("content store %s failed: %s", operation, exc, exc_info=True)
        try:
            await self._session.rollback()
        except SQLAlchemyError:
            logger.warning("content store rollback after failed %s also failed", operation)
        raise StoreFailure() from exc
