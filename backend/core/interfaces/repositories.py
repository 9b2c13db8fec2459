"""Repository interfaces for data access."""

from abc import ABC, abstractmethod
from typing import Any

from ..domain.content import Content, ContentStatus


class ContentRepository(ABC):
    """Abstract store for Content records.

    The store owns identity: records are addressed by primary key only.
    """

    @abstractmethod
    async def create(self, fields: dict[str, Any]) -> Content:
        """Persist a new content record and return it with its assigned id."""
        ...

    @abstractmethod
    async def find_by_id(self, content_id: str) -> Content | None:
        """Get content by ID."""
        ...

    @abstractmethod
    async def update(
        self,
        content_id: str,
        fields: dict[str, Any],
        expected_status: ContentStatus | None = None,
    ) -> Content | None:
        """Apply ``fields`` to one record.

        When ``expected_status`` is given the write only happens if the stored
        status still equals it; None is returned when no row matched.
        """
        ...

    @abstractmethod
    async def find_many(
        self, filters: dict[str, Any], skip: int = 0, limit: int = 20
    ) -> list[Content]:
        """List content matching equality filters, newest first."""
        ...

    @abstractmethod
    async def count(self, filters: dict[str, Any]) -> int:
        """Count content matching equality filters."""
        ...
