"""
Content lifecycle engine.

Drives a content item through DRAFT -> IN_REVIEW -> PUBLISHED. Every
operation follows the same sequence: load the record, check ownership where
the operation requires it, check the source status, write through the store
with a conditional update, and only after the commit publish the event.

A transition attempted from the wrong status raises InvalidState and leaves
the record untouched: no store write, no event.
"""

import logging
from enum import StrEnum
from typing import Any

from core.domain.content import (
    BODY_MIN_LENGTH,
    TITLE_MIN_LENGTH,
    AuthorInfo,
    Content,
    ContentPatch,
    ContentStatus,
    DraftInput,
    Sector,
)
from core.domain.events import (
    ContentCreated,
    ContentStatusChanged,
    ContentUpdated,
    LifecycleEvent,
)
from core.domain.user import Actor
from core.errors import Forbidden, InvalidState, NotFound, ValidationError
from core.interfaces.repositories import ContentRepository
from core.interfaces.services import EventPublisher
from core.permissions import ensure_can_mutate

logger = logging.getLogger(__name__)


class Transition(StrEnum):
    SUBMIT = "submit"
    APPROVE = "approve"


# transition -> (required source status, target status)
TRANSITIONS: dict[Transition, tuple[ContentStatus, ContentStatus]] = {
    Transition.SUBMIT: (ContentStatus.DRAFT, ContentStatus.IN_REVIEW),
    Transition.APPROVE: (ContentStatus.IN_REVIEW, ContentStatus.PUBLISHED),
}

DRAFT_ONLY_EDITABLE = "only draft content is editable"
DRAFT_ONLY_SUBMIT = "only draft content can be submitted"
IN_REVIEW_ONLY_APPROVE = "only in-review content can be approved"

_TRANSITION_ERRORS = {
    Transition.SUBMIT: DRAFT_ONLY_SUBMIT,
    Transition.APPROVE: IN_REVIEW_ONLY_APPROVE,
}


def next_status(current: ContentStatus, transition: Transition) -> ContentStatus | None:
    """Target status of *transition* from *current*, or None if the edge does not exist."""
    source, target = TRANSITIONS[transition]
    return target if current == source else None


def _check_text(name: str, value: Any, min_length: int) -> None:
    if not isinstance(value, str) or len(value) < min_length:
        raise ValidationError(f"{name} must be a string of at least {min_length} characters")


def _check_sector(value: Any) -> Sector:
    try:
        return Sector(value)
    except ValueError:
        raise ValidationError(f"sector must be one of: {', '.join(Sector)}") from None


def validate_draft(draft: DraftInput) -> None:
    _check_text("title", draft.title, TITLE_MIN_LENGTH)
    _check_text("body", draft.body, BODY_MIN_LENGTH)
    _check_sector(draft.sector)


def validate_patch(patch: ContentPatch) -> None:
    if patch.title is not None:
        _check_text("title", patch.title, TITLE_MIN_LENGTH)
    if patch.body is not None:
        _check_text("body", patch.body, BODY_MIN_LENGTH)
    if patch.sector is not None:
        _check_sector(patch.sector)


class ContentLifecycleService:
    """State machine for content drafts, reviews and publication."""

    def __init__(
        self,
        repository: ContentRepository,
        publisher: EventPublisher,
        *,
        block_self_approval: bool = False,
    ) -> None:
        self._repository = repository
        self._publisher = publisher
        self._block_self_approval = block_self_approval

    # ── Operations ────────────────────────────────────────────────────────────

    async def create_draft(self, draft: DraftInput, actor_id: str) -> Content:
        """Persist a new DRAFT owned by *actor_id* and announce it."""
        validate_draft(draft)

        content = await self._repository.create(
            {
                "title": draft.title,
                "body": draft.body,
                "sector": Sector(draft.sector),
                "status": ContentStatus.DRAFT,
                "created_by": actor_id,
            }
        )
        logger.info(
            "Draft %s created by %s",
            content.id,
            actor_id,
            extra={"content_id": content.id, "actor_id": actor_id},
        )

        self._emit(ContentCreated(content=content, actor_id=actor_id))
        return content

    async def update_content(self, content_id: str, patch: ContentPatch, actor: Actor) -> Content:
        """Apply the supplied fields of *patch* to a draft.

        Checks run in a fixed order: existence, ownership, then status, so a
        non-owner is refused even when the content is no longer a draft.
        """
        validate_patch(patch)

        content = await self._find_or_raise(content_id)
        ensure_can_mutate(content.created_by, actor)
        if not content.is_editable:
            raise InvalidState(DRAFT_ONLY_EDITABLE)

        changes = patch.changes()
        updated = await self._repository.update(
            content_id, changes, expected_status=ContentStatus.DRAFT
        )
        if updated is None:
            # Status moved between the read and the conditional write
            raise InvalidState(DRAFT_ONLY_EDITABLE)

        logger.info(
            "Content %s updated by %s (%s)",
            content_id,
            actor.id,
            ", ".join(sorted(changes)) or "no fields",
            extra={"content_id": content_id, "actor_id": actor.id},
        )
        self._emit(
            ContentUpdated(
                content_id=content_id,
                actor_id=actor.id,
                changes=changes,
                actor=AuthorInfo(id=actor.id, name=actor.name),
            )
        )
        return updated

    async def submit_for_review(self, content_id: str, actor: Actor) -> Content:
        """Move a draft owned by *actor* (or any draft, for admins) to IN_REVIEW."""
        content = await self._find_or_raise(content_id)
        ensure_can_mutate(content.created_by, actor)
        return await self._transition(content, Transition.SUBMIT, actor.id)

    async def approve_content(self, content_id: str, actor_id: str) -> Content:
        """Publish an IN_REVIEW item.

        Ownership is not checked: whoever the boundary allowed to approve may
        approve any author's work, unless self-approval blocking is enabled.
        """
        content = await self._find_or_raise(content_id)
        if self._block_self_approval and content.created_by == actor_id:
            raise Forbidden("Authors cannot approve their own content")
        return await self._transition(content, Transition.APPROVE, actor_id)

    # ── Internal helpers ──────────────────────────────────────────────────────

    async def _find_or_raise(self, content_id: str) -> Content:
        content = await self._repository.find_by_id(content_id)
        if content is None:
            raise NotFound()
        return content

    async def _transition(self, content: Content, transition: Transition, actor_id: str) -> Content:
        target = next_status(content.status, transition)
        if target is None:
            raise InvalidState(_TRANSITION_ERRORS[transition])

        source = content.status
        updated = await self._repository.update(
            content.id, {"status": target}, expected_status=source
        )
        if updated is None:
            raise InvalidState(_TRANSITION_ERRORS[transition])

        logger.info(
            "Content %s moved %s -> %s by %s",
            content.id,
            source,
            target,
            actor_id,
            extra={"content_id": content.id, "actor_id": actor_id},
        )
        self._emit(
            ContentStatusChanged(
                content_id=content.id,
                from_status=source,
                to_status=target,
                actor_id=actor_id,
            )
        )
        return updated

    def _emit(self, event: LifecycleEvent) -> None:
        # The mutation is already committed; a publisher failure must not undo it
        try:
            self._publisher.publish(event.kind, event)
        except Exception as exc:
            logger.error(
                "Failed to publish %s for content %s: %s",
                event.kind,
                event.content_id,
                exc,
                exc_info=True,
                extra={"content_id": event.content_id, "event": str(event.kind)},
            )
