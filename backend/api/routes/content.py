"""
Content workflow API routes.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status

from api.dependencies import get_lifecycle_service, get_query_service, require_operation
from api.middleware.rate_limit import get_rate_limit, limiter
from api.schemas.content import (
    ContentActionResponse,
    ContentListResponse,
    ContentResponse,
    ContentUpdateRequest,
    DraftCreateRequest,
)
from core.domain.content import ContentFilters, ContentStatus, Sector
from core.domain.user import Actor
from core.permissions import Operation
from infrastructure.config import get_settings
from services.content_lifecycle import ContentLifecycleService
from services.content_query import ContentQueryService, page_count, page_to_skip

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/content", tags=["content"])
settings = get_settings()

DRAFT_CREATED = "Draft created successfully"
DRAFT_UPDATED = "Draft updated successfully"
CONTENT_SUBMITTED = "Content submitted for review"
CONTENT_APPROVED = "Content approved and published"


@router.post("/drafts", response_model=ContentActionResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(get_rate_limit("write"))
async def create_draft(
    request: Request,
    payload: DraftCreateRequest,
    actor: Annotated[Actor, Depends(require_operation(Operation.CREATE_DRAFT))],
    service: Annotated[ContentLifecycleService, Depends(get_lifecycle_service)],
):
    """Create a new draft owned by the caller."""
    content = await service.create_draft(payload.to_domain(), actor.id)
    return ContentActionResponse(message=DRAFT_CREATED, content_id=content.id, status=content.status)


@router.put("/{content_id}", response_model=ContentActionResponse)
@limiter.limit(get_rate_limit("write"))
async def update_content(
    request: Request,
    content_id: str,
    payload: ContentUpdateRequest,
    actor: Annotated[Actor, Depends(require_operation(Operation.UPDATE_CONTENT))],
    service: Annotated[ContentLifecycleService, Depends(get_lifecycle_service)],
):
    """Edit a draft. Only its author or an admin may do so."""
    content = await service.update_content(content_id, payload.to_domain(), actor)
    return ContentActionResponse(message=DRAFT_UPDATED, content_id=content.id, status=content.status)


@router.post("/{content_id}/submit", response_model=ContentActionResponse)
@limiter.limit(get_rate_limit("write"))
async def submit_for_review(
    request: Request,
    content_id: str,
    actor: Annotated[Actor, Depends(require_operation(Operation.SUBMIT_FOR_REVIEW))],
    service: Annotated[ContentLifecycleService, Depends(get_lifecycle_service)],
):
    """Send a draft to review."""
    content = await service.submit_for_review(content_id, actor)
    return ContentActionResponse(
        message=CONTENT_SUBMITTED, content_id=content.id, status=content.status
    )


@router.post("/{content_id}/approve", response_model=ContentActionResponse)
@limiter.limit(get_rate_limit("write"))
async def approve_content(
    request: Request,
    content_id: str,
    actor: Annotated[Actor, Depends(require_operation(Operation.APPROVE_CONTENT))],
    service: Annotated[ContentLifecycleService, Depends(get_lifecycle_service)],
):
    """Publish content that is in review."""
    content = await service.approve_content(content_id, actor.id)
    return ContentActionResponse(
        message=CONTENT_APPROVED, content_id=content.id, status=content.status
    )


@router.get("", response_model=ContentListResponse)
async def list_contents(
    actor: Annotated[Actor, Depends(require_operation(Operation.LIST_CONTENTS))],
    service: Annotated[ContentQueryService, Depends(get_query_service)],
    content_status: Annotated[ContentStatus | None, Query(alias="status")] = None,
    sector: Sector | None = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
):
    """List content newest first, optionally filtered by status and sector."""
    filters = ContentFilters(status=content_status, sector=sector)
    result = await service.list_contents(filters, skip=page_to_skip(page, page_size), limit=page_size)

    return ContentListResponse(
        items=[ContentResponse.from_view(view) for view in result.items],
        total=result.total,
        page=page,
        page_size=page_size,
        pages=page_count(result.total, page_size),
    )
