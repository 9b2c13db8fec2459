"""
Rate limiting middleware using slowapi.

Requests are bucketed per acting user when the ``X-User-Id`` header is
present, and per client IP otherwise.

Rate Limits:
- Writes (draft creation, edits, transitions): 30 per minute
- Default: settings.rate_limit_default (100 per minute)
"""

import ipaddress
import logging
import re

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from infrastructure.config.settings import settings

logger = logging.getLogger(__name__)

# Simple pattern to quickly reject obviously invalid IPs before parsing
_IP_LIKE = re.compile(r"^[\d.:a-fA-F]+$")

# User ids are UUID-shaped; anything else is not trusted as a bucket key
_USER_ID = re.compile(r"^[0-9a-fA-F-]{1,64}$")


def _is_valid_ip(value: str) -> bool:
    """Return True if *value* looks like a valid IPv4 or IPv6 address."""
    if not _IP_LIKE.match(value):
        return False
    try:
        ipaddress.ip_address(value)
        return True
    except ValueError:
        return False


def _is_private_ip(value: str) -> bool:
    """Return True if *value* is a private, loopback, or link-local address.

    Private IPs in X-Forwarded-For are spoofable and would let a caller pick
    its own bucket.
    """
    try:
        addr = ipaddress.ip_address(value)
        return addr.is_private or addr.is_loopback or addr.is_link_local
    except ValueError:
        return False


def _get_client_ip(request: Request) -> str:
    """Extract real client IP from proxy headers, falling back to remote address."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        # X-Forwarded-For can be a comma-separated list; first entry is the client
        candidate = forwarded.split(",")[0].strip()
        if _is_valid_ip(candidate) and not _is_private_ip(candidate):
            return candidate
    return get_remote_address(request)


def rate_limit_key(request: Request) -> str:
    """Bucket by acting user when identified, else by client IP."""
    user_id = (request.headers.get("x-user-id") or "").strip()
    if user_id and _USER_ID.match(user_id):
        return f"user:{user_id}"
    return f"ip:{_get_client_ip(request)}"


# Rate limit configurations
# Format: "count/period" where period can be: second, minute, hour, day
RATE_LIMITS = {
    "write": "30/minute",
    "default": settings.rate_limit_default,
}

if settings.rate_limit_storage_uri.startswith("memory://") and settings.environment == "production":
    logger.warning(
        "Rate limiter using in-memory storage; not suitable for multi-worker production"
    )

limiter = Limiter(
    key_func=rate_limit_key,
    storage_uri=settings.rate_limit_storage_uri,
    default_limits=[RATE_LIMITS["default"]],
)


def get_rate_limit(endpoint: str) -> str:
    """
    Get rate limit configuration for a specific endpoint.

    Example:
        >>> get_rate_limit("write")
        "30/minute"
        >>> get_rate_limit("unknown")
        "100/minute"
    """
    return RATE_LIMITS.get(endpoint, RATE_LIMITS["default"])
