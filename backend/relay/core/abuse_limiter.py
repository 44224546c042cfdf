"""Abuse Limiter: fixed-window request caps keyed by derived rate tokens.

Invariants:
    - Counters are keyed by derive_rate_token(), never by the raw identifier
    - Fail-closed: once a token reaches max_requests, every further hit in the
      same window is refused
    - Entering a new window discards every counter from the previous one
      (tokens embed the bucket, so old counters can never match again)
    - Process-local: scaling past one process needs a shared counter store

Design Decisions:
    - Token window == limiter window: the token is stable for exactly one window,
      so a 1-hour creation cap is not reset by a 5-minute token rotation
    - Injectable clock: tests cross window boundaries without sleeping
    - threading.Lock: dependencies may run in the threadpool
"""

from threading import Lock

from relay.core.clock import Clock, utc_now
from relay.core.rate_token import derive_rate_token, time_bucket


class FixedWindowLimiter:
    """Counts hits per rate token in fixed, epoch-aligned windows."""

    def __init__(
        self,
        max_requests: int,
        window_seconds: int,
        prefix: str,
        clock: Clock = utc_now,
    ):
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.prefix = prefix
        self._clock = clock
        self._counts: dict[str, int] = {}
        self._bucket: int | None = None
        self._lock = Lock()

    def hit(self, identifier: str) -> bool:
        """Record one request. Returns False if the cap is already reached."""
        now = self._clock()
        bucket = time_bucket(now, self.window_seconds)
        token = derive_rate_token(
            identifier, now, self.window_seconds, self.prefix,
        )
        with self._lock:
            if bucket != self._bucket:
                self._counts.clear()
                self._bucket = bucket
            count = self._counts.get(token, 0)
            if count >= self.max_requests:
                return False
            self._counts[token] = count + 1
            return True

    @property
    def tracked_tokens(self) -> int:
        return len(self._counts)

    @property
    def tokens(self) -> frozenset[str]:
        """Counter keys for the current window (derived tokens only)."""
        with self._lock:
            return frozenset(self._counts)

    def reset(self) -> None:
        with self._lock:
            self._counts.clear()
            self._bucket = None
