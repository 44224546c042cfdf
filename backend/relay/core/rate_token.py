"""Rate Token Derivation: one-way, time-bucketed tokens from transient origin identifiers.

Invariants:
    - The raw identifier is only ever hash input; it is never returned or stored
    - Same identifier + same bucket -> same token
    - Crossing a bucket boundary changes the salt, so tokens from different
      buckets cannot be correlated without brute-forcing the identifier space
    - Pure: time is an argument, never read from the system clock

Design Decisions:
    - sha256 over "{prefix}-{bucket}:{identifier}", truncated to 16 hex chars:
      enough entropy to key an in-memory counter, too short to be a stable fingerprint
    - Bucket derived from epoch seconds so every process agrees on boundaries
"""

import hashlib
import math
from datetime import datetime, timezone

TOKEN_HEX_LENGTH = 16


def time_bucket(now: datetime, window_seconds: int) -> int:
    """Index of the fixed window that contains `now`."""
    if window_seconds <= 0:
        raise ValueError("window_seconds must be positive")
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return math.floor(now.timestamp() / window_seconds)


def derive_rate_token(
    identifier: str, now: datetime, window_seconds: int, prefix: str,
) -> str:
    """Hash an origin identifier into the token for the window containing `now`."""
    bucket = time_bucket(now, window_seconds)
    digest = hashlib.sha256(
        f"{prefix}-{bucket}:{identifier}".encode("utf-8"),
    ).hexdigest()
    return digest[:TOKEN_HEX_LENGTH]
