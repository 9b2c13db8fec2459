"""
API dependencies for identity, authorization and service wiring.
"""

from collections.abc import Awaitable, Callable
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.domain.user import Actor
from core.permissions import Operation, require_capability
from infrastructure.config import get_settings
from infrastructure.database.connection import get_db
from infrastructure.database.content_repository import SqlContentRepository
from infrastructure.database.models.user import User
from services.content_lifecycle import ContentLifecycleService
from services.content_query import ContentQueryService
from services.event_bus import EventBus, event_bus


async def get_current_actor(
    request: Request,
    x_user_id: Annotated[str | None, Header()] = None,
    db: AsyncSession = Depends(get_db),
) -> Actor:
    """
    Resolve the calling actor from the ``X-User-Id`` header.

    Stands in for a real authentication step: the header names an existing
    user, whose id, role and name become the request's Actor.
    """
    user_id = x_user_id.strip() if x_user_id else ""
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    request.state.user_id = user.id
    return Actor(id=user.id, role=user.role, name=user.name)


def require_operation(operation: Operation) -> Callable[..., Awaitable[Actor]]:
    """
    Build a dependency that admits only roles listed for *operation*.

    Raises Forbidden (mapped to 403) through the capability gate.
    """

    async def _gate(actor: Annotated[Actor, Depends(get_current_actor)]) -> Actor:
        require_capability(actor, operation)
        return actor

    return _gate


def get_event_bus() -> EventBus:
    return event_bus


def get_lifecycle_service(
    db: AsyncSession = Depends(get_db),
    bus: EventBus = Depends(get_event_bus),
) -> ContentLifecycleService:
    settings = get_settings()
    return ContentLifecycleService(
        SqlContentRepository(db),
        bus,
        block_self_approval=settings.block_self_approval,
    )


def get_query_service(db: AsyncSession = Depends(get_db)) -> ContentQueryService:
    settings = get_settings()
    return ContentQueryService(SqlContentRepository(db), max_page_size=settings.max_page_size)
