"""Actor domain entity."""

from dataclasses import dataclass
from enum import StrEnum


class UserRole(StrEnum):
    """Roles an authenticated actor can hold."""

    EDITOR = "EDITOR"
    REVIEWER = "REVIEWER"
    ADMIN = "ADMIN"


@dataclass(frozen=True)
class Actor:
    """Authenticated identity issuing a request.

    Resolved by the identity layer before any lifecycle operation runs; the
    core trusts it as given and only authorizes against it.
    """

    id: str
    role: UserRole | str
    name: str | None = None

    @property
    def is_admin(self) -> bool:
        """Check if actor has admin privileges."""
        return self.role == UserRole.ADMIN
