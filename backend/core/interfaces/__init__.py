# Interfaces (Abstract Contracts)
# Adapters implement these interfaces
from .repositories import ContentRepository
from .services import EventPublisher

__all__ = [
    "ContentRepository",
    "EventPublisher",
]
