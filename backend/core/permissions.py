"""
Authorization rules for the content workflow.

Two independent checks guard every mutation:

- the capability table decides which roles may invoke an operation at all;
- ownership decides whether an actor may touch a particular content item.

Everything here is pure: no I/O, no state, and every predicate returns a bool
for any role value (unknown roles are simply not permitted).
"""

from enum import StrEnum

from .domain.user import Actor, UserRole
from .errors import Forbidden


class Operation(StrEnum):
    """Operations exposed by the workflow boundary."""

    CREATE_DRAFT = "create_draft"
    UPDATE_CONTENT = "update_content"
    SUBMIT_FOR_REVIEW = "submit_for_review"
    APPROVE_CONTENT = "approve_content"
    LIST_CONTENTS = "list_contents"


ALL_ROLES = frozenset(UserRole)

CAPABILITIES: dict[Operation, frozenset[UserRole]] = {
    Operation.CREATE_DRAFT: ALL_ROLES,
    Operation.UPDATE_CONTENT: frozenset({UserRole.EDITOR, UserRole.ADMIN}),
    Operation.SUBMIT_FOR_REVIEW: frozenset({UserRole.EDITOR, UserRole.ADMIN}),
    Operation.APPROVE_CONTENT: frozenset({UserRole.REVIEWER, UserRole.ADMIN}),
    Operation.LIST_CONTENTS: ALL_ROLES,
}


def is_permitted(role: UserRole | str, operation: Operation) -> bool:
    """Check if a role may invoke an operation."""
    return role in CAPABILITIES.get(operation, frozenset())


def require_capability(actor: Actor, operation: Operation) -> None:
    """Gate checked once before dispatching an operation.

    Raises:
        Forbidden: if the actor's role is not in the operation's capability set
    """
    if not is_permitted(actor.role, operation):
        raise Forbidden()


def can_create_draft(role: UserRole | str) -> bool:
    return is_permitted(role, Operation.CREATE_DRAFT)


def can_submit_for_review(role: UserRole | str) -> bool:
    return is_permitted(role, Operation.SUBMIT_FOR_REVIEW)


def can_approve(role: UserRole | str) -> bool:
    return is_permitted(role, Operation.APPROVE_CONTENT)


def can_mutate(created_by: str, actor: Actor) -> bool:
    """The author and admins may mutate a content item; nobody else."""
    return actor.id == created_by or actor.role == UserRole.ADMIN


def ensure_can_mutate(created_by: str, actor: Actor) -> None:
    """Raise Forbidden unless ``actor`` may mutate content owned by ``created_by``."""
    if not can_mutate(created_by, actor):
        raise Forbidden()
