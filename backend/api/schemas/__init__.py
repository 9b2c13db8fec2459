"""
API request and response schemas.
"""

from .content import (
    AuthorResponse,
    ContentActionResponse,
    ContentListResponse,
    ContentResponse,
    ContentUpdateRequest,
    DraftCreateRequest,
)

__all__ = [
    "AuthorResponse",
    "ContentActionResponse",
    "ContentListResponse",
    "ContentResponse",
    "ContentUpdateRequest",
    "DraftCreateRequest",
]
