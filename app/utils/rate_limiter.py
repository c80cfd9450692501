"""Per-client sliding window rate limiting.

Each client key (normally the remote IP) keeps a log of the timestamps of
its accepted requests. A request is accepted when fewer than
``max_requests`` accepted requests fall inside the trailing window;
rejected requests are not recorded, so a client regains budget as soon as
its oldest accepted request leaves the window. Keys with nothing left in
the window are swept out, so memory follows recently active clients only.
"""

import asyncio
import logging
import time
from collections import deque
from typing import Callable, Deque, Dict

from app.exceptions import RateLimitError

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."


class SlidingWindowRateLimiter:
    """
    Sliding window log limiter keyed by client.

    Example:
        limiter = SlidingWindowRateLimiter(max_requests=5, window_seconds=60)
        await limiter.hit("203.0.113.7")  # raises RateLimitError on the 6th call
    """

    def __init__(
        self,
        max_requests: int = 5,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize rate limiter.

        Args:
            max_requests: Accepted requests allowed per window per key
            window_seconds: Window length in seconds
            clock: Monotonic time source (injectable for tests)
        """
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = {}
        self._lock = asyncio.Lock()
        self._last_sweep = clock()

    async def hit(self, key: str) -> int:
        """
        Record a request for ``key`` or reject it.

        The prune, count and append run under one lock so concurrent
        requests from the same key cannot undercount.

        Args:
            key: Client identifier

        Returns:
            Requests remaining in the current window

        Raises:
            RateLimitError: If the key has exhausted its window budget
        """
        async with self._lock:
            now = self._clock()
            self._sweep(now)

            hits = self._hits.get(key)
            if hits is not None:
                self._prune(hits, now)

            if hits and len(hits) >= self.max_requests:
                retry_after = max(0.0, hits[0] + self.window_seconds - now)
                logger.warning(
                    f"Rate limit exceeded for {key}: "
                    f"{len(hits)}/{self.max_requests} in {self.window_seconds}s"
                )
                raise RateLimitError(RATE_LIMIT_MESSAGE, retry_after=retry_after)

            hits = self._hits.setdefault(key, deque())
            hits.append(now)
            return self.max_requests - len(hits)

    def _sweep(self, now: float) -> None:
        """Drop keys with no requests left in the window, at most once per window."""
        if now - self._last_sweep < self.window_seconds:
            return
        self._last_sweep = now
        for key in list(self._hits):
            self._prune(self._hits[key], now)
            if not self._hits[key]:
                del self._hits[key]

    def _prune(self, hits: Deque[float], now: float) -> None:
        cutoff = now - self.window_seconds
        while hits and hits[0] <= cutoff:
            hits.popleft()
