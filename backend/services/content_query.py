"""
Read-only content listings.

Listings bypass the lifecycle engine entirely: they filter, paginate and
project, and never write.
"""

import logging
import math

from core.domain.content import ContentFilters, ContentPage, ContentView
from core.errors import ValidationError
from core.interfaces.repositories import ContentRepository

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def page_to_skip(page: int, page_size: int) -> int:
    """Convert a 1-based page number into a row offset."""
    if page < 1:
        raise ValidationError("page must be at least 1")
    return (page - 1) * page_size


def page_count(total: int, page_size: int) -> int:
    return math.ceil(total / page_size) if page_size else 0


class ContentQueryService:
    """Filtered, paginated access to content projected to its public view."""

    def __init__(self, repository: ContentRepository, *, max_page_size: int = MAX_PAGE_SIZE):
        self._repository = repository
        self._max_page_size = max_page_size

    async def list_contents(
        self,
        filters: ContentFilters | None = None,
        skip: int = 0,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> ContentPage:
        """Return one newest-first window of matching content and the total match count."""
        if skip < 0:
            raise ValidationError("skip must not be negative")
        if not 1 <= limit <= self._max_page_size:
            raise ValidationError(f"limit must be between 1 and {self._max_page_size}")

        where = (filters or ContentFilters()).as_dict()

        # One session cannot run two statements concurrently, so these stay sequential
        contents = await self._repository.find_many(where, skip=skip, limit=limit)
        total = await self._repository.count(where)

        logger.debug(
            "Listed %d of %d contents (filters=%s, skip=%d, limit=%d)",
            len(contents),
            total,
            where,
            skip,
            limit,
        )
        return ContentPage(items=[ContentView.from_content(c) for c in contents], total=total)
