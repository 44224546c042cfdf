"""Rate Limit Dependencies: abuse limiters wired into anonymous routes.

Invariants:
    - The client address is read from the request and handed straight to the
      limiter, which hashes it; it is never logged, stored or returned
    - Rejections are fail-closed 429s with a generic body and no quota headers
    - X-Forwarded-For is only honoured when rate_limit_trust_proxy is set

Design Decisions:
    - Limiters built lazily from settings and cached (lru_cache), like get_settings();
      tests call get_abuse_limiters.cache_clear() for fresh counters
    - Plain dependencies instead of middleware: each route picks its limiters
      explicitly
"""

from dataclasses import dataclass
from functools import lru_cache

from fastapi import Request

from relay.config import get_settings
from relay.core.abuse_limiter import FixedWindowLimiter
from relay.core.errors import RateLimitExceededError


@dataclass(frozen=True)
class AbuseLimiters:
    anonymous: FixedWindowLimiter
    mailbox_creation: FixedWindowLimiter
    broadcast_creation: FixedWindowLimiter


@lru_cache
def get_abuse_limiters() -> AbuseLimiters:
    settings = get_settings()
    prefix = settings.rate_limit_token_prefix
    return AbuseLimiters(
        anonymous=FixedWindowLimiter(
            settings.anonymous_rate_max_requests,
            settings.anonymous_rate_window_seconds,
            prefix,
        ),
        mailbox_creation=FixedWindowLimiter(
            settings.mailbox_creation_max_requests,
            settings.mailbox_creation_window_seconds,
            f"{prefix}-mailbox",
        ),
        broadcast_creation=FixedWindowLimiter(
            settings.broadcast_creation_max_requests,
            settings.broadcast_creation_window_seconds,
            f"{prefix}-broadcast",
        ),
    )


def client_identifier(request: Request, trust_proxy: bool) -> str:
    """Transient origin identifier for token derivation."""
    if trust_proxy:
        forwarded = request.headers.get("x-forwarded-for", "")
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return request.client.host if request.client else "unknown"


def _enforce(limiter: FixedWindowLimiter, request: Request) -> None:
    identifier = client_identifier(request, get_settings().rate_limit_trust_proxy)
    if not limiter.hit(identifier):
        raise RateLimitExceededError()


async def anonymous_rate_limit(request: Request) -> None:
    _enforce(get_abuse_limiters().anonymous, request)


async def mailbox_creation_rate_limit(request: Request) -> None:
    _enforce(get_abuse_limiters().mailbox_creation, request)


async def broadcast_creation_rate_limit(request: Request) -> None:
    _enforce(get_abuse_limiters().broadcast_creation, request)
