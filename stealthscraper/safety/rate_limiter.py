"""
Sliding Window Rate Limiter Module

Bounds how many scrapes a caller identifier may start inside a rolling time window.
Each identifier keeps an ordered log of request timestamps.
"""

import asyncio
import logging
import time
from collections import deque
from typing import Callable, Deque, Dict

from stealthscraper.config import RateLimitConfig


logger = logging.getLogger(__name__)


class SlidingWindowRateLimiter:
    """
    Per-identifier rate limiter using a sliding log of timestamps.

    Features:
    - At most ``max_requests`` allowed inside any ``window_seconds`` interval
    - Denied checks leave state unchanged
    - Cooperative waiting that recomputes the wait from the oldest surviving entry
    - Shares its lock with the proxy manager when owned by a TrafficGovernor

    Example:
        limiter = SlidingWindowRateLimiter(max_requests=10, window_seconds=60)
        await limiter.wait_for_rate_limit("client-42")
        # Now safe to start the scrape
    """

    def __init__(
        self,
        max_requests: int | None = None,
        window_seconds: float | None = None,
        wait_buffer_seconds: float | None = None,
        settings: RateLimitConfig | None = None,
        lock: asyncio.Lock | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the rate limiter.

        Args:
            max_requests: Requests allowed per window (default from settings)
            window_seconds: Window length in seconds (default from settings)
            wait_buffer_seconds: Buffer added to every computed wait (default from settings)
            settings: Rate limit configuration
            lock: Lock guarding the timestamp table
            clock: Monotonic time source
        """
        settings = settings or RateLimitConfig()
        self._max_requests = max_requests if max_requests is not None else settings.max_requests
        self._window = window_seconds if window_seconds is not None else settings.window_seconds
        self._buffer = (
            wait_buffer_seconds if wait_buffer_seconds is not None else settings.wait_buffer_seconds
        )
        self._clock = clock
        self._lock = lock or asyncio.Lock()
        self._requests: Dict[str, Deque[float]] = {}

    @property
    def max_requests(self) -> int:
        return self._max_requests

    @property
    def window_seconds(self) -> float:
        return self._window

    def _prune(self, identifier: str, now: float) -> Deque[float]:
        """Drop timestamps that fell out of the window.

        The window is half-open: a request exactly ``window_seconds`` old no
        longer counts, so at most ``max_requests`` fit in any window-length span.
        """
        timestamps = self._requests.setdefault(identifier, deque())
        while timestamps and now - timestamps[0] >= self._window:
            timestamps.popleft()
        return timestamps

    async def check_rate_limit(self, identifier: str) -> bool:
        """
        Record a request for ``identifier`` if it fits in the window.

        Args:
            identifier: Caller identifier (client id, domain, ...)

        Returns:
            True if allowed (and recorded), False if the limit is reached
        """
        async with self._lock:
            now = self._clock()
            timestamps = self._prune(identifier, now)

            if len(timestamps) >= self._max_requests:
                return False

            timestamps.append(now)
            return True

    async def time_until_available(self, identifier: str) -> float:
        """
        Seconds until the oldest surviving request leaves the window.

        Args:
            identifier: Caller identifier

        Returns:
            Seconds to wait (0 if a request would be allowed now)
        """
        async with self._lock:
            now = self._clock()
            timestamps = self._prune(identifier, now)

            if len(timestamps) < self._max_requests or not timestamps:
                return 0.0
            return max(0.0, self._window - (now - timestamps[0]))

    async def wait_for_rate_limit(self, identifier: str) -> None:
        """
        Suspend until a request for ``identifier`` is allowed, then record it.

        Long waits are expected and are not errors.

        Args:
            identifier: Caller identifier
        """
        while not await self.check_rate_limit(identifier):
            wait_time = await self.time_until_available(identifier) + self._buffer
            logger.info(f"Rate limit reached for {identifier}. Waiting {wait_time:.2f}s...")
            await asyncio.sleep(wait_time)

    async def get_stats(self, identifier: str) -> dict:
        """
        Get statistics for an identifier.

        Args:
            identifier: Caller identifier

        Returns:
            Dict with identifier stats
        """
        async with self._lock:
            timestamps = self._prune(identifier, self._clock())
            return {
                "identifier": identifier,
                "requests_in_window": len(timestamps),
                "max_requests": self._max_requests,
                "window_seconds": self._window,
                "is_limited": len(timestamps) >= self._max_requests,
            }

    def reset(self, identifier: str | None = None) -> None:
        """Forget recorded requests for one identifier, or all of them."""
        if identifier is None:
            self._requests.clear()
        else:
            self._requests.pop(identifier, None)
