"""Typed errors raised by the content workflow core.

The boundary maps each class to a response status; the core itself never
deals in status codes.
"""


class ContentWorkflowError(Exception):
    """Base class for every error the workflow core raises."""

    default_message = "Content workflow error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ContentWorkflowError):
    """Malformed input reached the core; rejected before any store access."""

    default_message = "Invalid content input"


class NotFound(ContentWorkflowError):
    """Referenced content does not exist."""

    default_message = "Content not found"


class Forbidden(ContentWorkflowError):
    """Actor lacks the ownership or role the operation requires."""

    default_message = "This action is not allowed"


class InvalidState(ContentWorkflowError):
    """Requested transition is not legal from the current status."""

    default_message = "Invalid content state for this action"


class StoreFailure(ContentWorkflowError):
    """The underlying persistence layer failed."""

    default_message = "Content store failure"
