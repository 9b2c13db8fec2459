"""Content domain entities."""
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Optional


class ContentStatus(StrEnum):
    """Content lifecycle status."""
    DRAFT = "DRAFT"
    IN_REVIEW = "IN_REVIEW"
    PUBLISHED = "PUBLISHED"


class Sector(StrEnum):
    """Editorial sector a piece of content belongs to."""
    TECHNOLOGY = "TECHNOLOGY"
    HEALTH = "HEALTH"
    FINANCE = "FINANCE"
    EDUCATION = "EDUCATION"
    ENTERTAINMENT = "ENTERTAINMENT"
    SPORTS = "SPORTS"
    POLITICS = "POLITICS"
    SCIENCE = "SCIENCE"


TITLE_MIN_LENGTH = 3
BODY_MIN_LENGTH = 10


@dataclass(frozen=True)
class AuthorInfo:
    """Display identity of the actor who created a content item."""

    id: str
    name: Optional[str] = None


@dataclass
class Content:
    """A content item moving through the editorial workflow."""

    id: str
    title: str
    body: str
    sector: Sector
    created_by: str
    status: ContentStatus = ContentStatus.DRAFT

    # Timestamps
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    # Resolved by the store from created_by
    author: Optional[AuthorInfo] = None

    def __post_init__(self):
        if isinstance(self.status, str):
            self.status = ContentStatus(self.status)
        if isinstance(self.sector, str):
            self.sector = Sector(self.sector)

    @property
    def is_editable(self) -> bool:
        """Only drafts accept edits."""
        return self.status == ContentStatus.DRAFT

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class DraftInput:
    """Fields supplied when creating a draft."""

    title: str
    body: str
    sector: Sector


@dataclass(frozen=True)
class ContentPatch:
    """Partial update; None means "leave unchanged"."""

    title: Optional[str] = None
    body: Optional[str] = None
    sector: Optional[Sector] = None

    def changes(self) -> dict[str, Any]:
        """Return only the fields that were provided."""
        return {
            key: value
            for key, value in (("title", self.title), ("body", self.body), ("sector", self.sector))
            if value is not None
        }


@dataclass(frozen=True)
class ContentFilters:
    """Equality filters accepted by content listings."""

    status: Optional[ContentStatus] = None
    sector: Optional[Sector] = None

    def as_dict(self) -> dict[str, Any]:
        filters: dict[str, Any] = {}
        if self.status is not None:
            filters["status"] = self.status
        if self.sector is not None:
            filters["sector"] = self.sector
        return filters


@dataclass(frozen=True)
class ContentView:
    """Public projection of a content item returned by listings."""

    id: str
    title: str
    status: ContentStatus
    sector: Sector
    created_by: AuthorInfo
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_content(cls, content: Content) -> "ContentView":
        return cls(
            id=content.id,
            title=content.title,
            status=content.status,
            sector=content.sector,
            created_by=content.author or AuthorInfo(id=content.created_by),
            created_at=content.created_at,
            updated_at=content.updated_at,
        )


@dataclass(frozen=True)
class ContentPage:
    """One window of a listing plus the total number of matches."""

    items: list[ContentView]
    total: int
