"""
Content API schemas for drafts, lifecycle actions and listings.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from core.domain.content import (
    BODY_MIN_LENGTH,
    TITLE_MIN_LENGTH,
    ContentPatch,
    ContentStatus,
    ContentView,
    DraftInput,
    Sector,
)


class DraftCreateRequest(BaseModel):
    """Request to create a draft."""

    title: str = Field(..., min_length=TITLE_MIN_LENGTH, max_length=500)
    body: str = Field(..., min_length=BODY_MIN_LENGTH)
    sector: Sector

    def to_domain(self) -> DraftInput:
        return DraftInput(title=self.title, body=self.body, sector=self.sector)


class ContentUpdateRequest(BaseModel):
    """Partial update of a draft; omitted fields stay unchanged."""

    title: str | None = Field(None, min_length=TITLE_MIN_LENGTH, max_length=500)
    body: str | None = Field(None, min_length=BODY_MIN_LENGTH)
    sector: Sector | None = None

    @model_validator(mode="after")
    def reject_explicit_nulls(self) -> "ContentUpdateRequest":
        nulls = [name for name in self.model_fields_set if getattr(self, name) is None]
        if nulls:
            raise ValueError(f"Fields cannot be null: {', '.join(sorted(nulls))}")
        return self

    def to_domain(self) -> ContentPatch:
        return ContentPatch(title=self.title, body=self.body, sector=self.sector)


class ContentActionResponse(BaseModel):
    """Outcome of a lifecycle action."""

    message: str
    content_id: str
    status: ContentStatus


class AuthorResponse(BaseModel):
    id: str
    name: str | None = None

    model_config = ConfigDict(from_attributes=True)


class ContentResponse(BaseModel):
    """Public view of a content item; the body is never included."""

    id: str
    title: str
    status: ContentStatus
    sector: Sector
    created_by: AuthorResponse
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_view(cls, view: ContentView) -> "ContentResponse":
        return cls.model_validate(view)


class ContentListResponse(BaseModel):
    """List of contents response."""

    items: list[ContentResponse]
    total: int
    page: int
    page_size: int
    pages: int
