"""
Sliding window rate limiting for upstream API calls.

The window lives in memory and is reset when the process restarts. Each
deployed worker keeps its own budget; a shared limiter can be plugged in
through the ``RequestLimiter`` protocol.
"""

import time
from collections import deque
from datetime import datetime, timezone
from typing import Callable, Deque, Optional, Protocol

from .config import RateLimitConfig

Clock = Callable[[], float]


class RequestLimiter(Protocol):
    """Admission control contract used by CongressApiService."""

    def can_make_request(self) -> bool: ...

    def record_request(self) -> float: ...

    def release(self, stamp: float) -> None: ...

    def get_remaining_requests(self) -> int: ...

    def get_reset_time(self) -> Optional[datetime]: ...


class RateLimitService:
    """Sliding window limiter over a list of request timestamps.

    Cleanup is lazy: stale timestamps are dropped whenever the window is
    queried. Not thread-safe; intended for a single event loop.
    """

    def __init__(self, config: Optional[RateLimitConfig] = None, clock: Clock = time.time):
        self.config = config or RateLimitConfig()
        self._clock = clock
        self._timestamps: Deque[float] = deque()

    @property
    def max_requests(self) -> int:
        return self.config.max_requests

    @property
    def window_seconds(self) -> float:
        return self.config.window_seconds

    def _cleanup(self) -> None:
        cutoff = self._clock() - self.config.window_seconds
        while self._timestamps and self._timestamps[0] <= cutoff:
            self._timestamps.popleft()

    def can_make_request(self) -> bool:
        """True if another request fits in the current window"""
        self._cleanup()
        return len(self._timestamps) < self.config.max_requests

    def record_request(self) -> float:
        """Record a request issued now and return its timestamp"""
        stamp = self._clock()
        self._timestamps.append(stamp)
        return stamp

    def release(self, stamp: float) -> None:
        """Give back a slot taken by record_request that was never used"""
        # Already gone if the window slid past it
        if stamp in self._timestamps:
            self._timestamps.remove(stamp)

    def get_remaining_requests(self) -> int:
        self._cleanup()
        return max(0, self.config.max_requests - len(self._timestamps))

    def get_reset_time(self) -> Optional[datetime]:
        """When the oldest request in the window expires, or None if empty"""
        self._cleanup()
        if not self._timestamps:
            return None
        return datetime.fromtimestamp(self._timestamps[0] + self.config.window_seconds, tz=timezone.utc)

    def reset(self) -> None:
        self._timestamps.clear()
