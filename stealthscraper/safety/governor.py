"""
Traffic Governor Module

Combines the rate limiter and the proxy manager behind one synchronization point,
so concurrent scrapes share a single view of request cadence and proxy rotation.
"""

import asyncio
import logging
from typing import Optional

from stealthscraper.config import ProxySettings, RateLimitConfig
from stealthscraper.safety.rate_limiter import SlidingWindowRateLimiter
from stealthscraper.stealth.proxy_pool import ProxyConfig, ProxyManager


logger = logging.getLogger(__name__)


class TrafficGovernor:
    """
    Owned rate-limit and proxy-rotation state for all scrapes of a process.

    Example:
        governor = TrafficGovernor(rate_limit=RateLimitConfig(max_requests=5))
        await governor.acquire("example.com")
        proxy_url = await governor.next_proxy_url()
    """

    def __init__(
        self,
        rate_limit: RateLimitConfig | None = None,
        proxy_settings: ProxySettings | None = None,
        proxies: list[ProxyConfig] | None = None,
        rate_limiter: SlidingWindowRateLimiter | None = None,
        proxy_manager: ProxyManager | None = None,
    ):
        """
        Initialize the governor.

        Args:
            rate_limit: Rate limit configuration
            proxy_settings: Proxy configuration; its proxy_file is loaded if set
            proxies: Initial proxies, in rotation order
            rate_limiter: Pre-built limiter (its own lock is kept)
            proxy_manager: Pre-built proxy manager (its own lock is kept)
        """
        self._lock = asyncio.Lock()
        self._proxy_settings = proxy_settings or ProxySettings()

        self.rate_limiter = rate_limiter or SlidingWindowRateLimiter(
            settings=rate_limit,
            lock=self._lock,
        )
        self.proxy_manager = proxy_manager or ProxyManager(
            proxies=proxies,
            settings=self._proxy_settings,
            lock=self._lock,
        )

        if proxy_manager is None and self._proxy_settings.proxy_file:
            count = self.proxy_manager.load_from_file(self._proxy_settings.proxy_file)
            logger.info(f"Loaded {count} proxies from {self._proxy_settings.proxy_file}")

    async def acquire(self, identifier: str) -> None:
        """
        Block until ``identifier`` may start another request.

        Args:
            identifier: Caller identifier
        """
        await self.rate_limiter.wait_for_rate_limit(identifier)

    async def try_acquire(self, identifier: str) -> bool:
        """Non-blocking variant of acquire."""
        return await self.rate_limiter.check_rate_limit(identifier)

    async def next_proxy(self) -> Optional[ProxyConfig]:
        """Next proxy according to the configured rotation strategy."""
        return await self.proxy_manager.get_proxy()

    async def next_proxy_url(self) -> Optional[str]:
        """Next proxy as a URL, or None if no proxies are configured."""
        proxy = await self.next_proxy()
        return proxy.url if proxy else None

    def get_stats(self) -> dict:
        """Get governor statistics."""
        return {
            "max_requests": self.rate_limiter.max_requests,
            "window_seconds": self.rate_limiter.window_seconds,
            "proxies": self.proxy_manager.get_stats(),
        }
