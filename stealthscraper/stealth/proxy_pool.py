"""
Proxy Manager Module

Holds an ordered list of proxy endpoints and hands them out round-robin or at random.
Health probes are advisory: a proxy that fails a probe stays in rotation.
"""

import asyncio
import logging
import random
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Optional
from urllib.parse import unquote, urlparse

import httpx

from stealthscraper.config import ProxySettings


logger = logging.getLogger(__name__)

ProxyType = Literal["http", "https", "socks4", "socks5"]

PROXY_TYPES = ("http", "https", "socks4", "socks5")


@dataclass(frozen=True)
class ProxyConfig:
    """A single proxy endpoint."""

    host: str
    port: int
    username: Optional[str] = None
    password: Optional[str] = None
    type: ProxyType = "http"

    @property
    def url(self) -> str:
        """Proxy URL: type://[user:pass@]host:port"""
        return format_proxy_url(self)


def format_proxy_url(proxy: ProxyConfig) -> str:
    """Render a proxy as a URL; credentials are included only when both are set."""
    auth = f"{proxy.username}:{proxy.password}@" if proxy.username and proxy.password else ""
    return f"{proxy.type}://{auth}{proxy.host}:{proxy.port}"


def parse_proxy_url(url: str) -> ProxyConfig:
    """
    Parse a proxy URL into a ProxyConfig.

    Args:
        url: "type://[user:pass@]host:port" or bare "host:port" (http assumed)

    Returns:
        The parsed ProxyConfig

    Raises:
        ValueError: If the URL has no host/port or an unsupported type
    """
    url = url.strip()
    if "://" not in url:
        url = f"http://{url}"

    parsed = urlparse(url)
    if parsed.scheme not in PROXY_TYPES:
        raise ValueError(f"Unsupported proxy type: {parsed.scheme}")
    if not parsed.hostname or parsed.port is None:
        raise ValueError(f"Proxy URL needs host and port: {url}")

    return ProxyConfig(
        host=parsed.hostname,
        port=parsed.port,
        username=unquote(parsed.username) if parsed.username else None,
        password=unquote(parsed.password) if parsed.password else None,
        type=parsed.scheme,
    )


class ProxyManager:
    """
    Rotates through a fixed, ordered list of proxies.

    Features:
    - Round-robin rotation with wraparound
    - Uniform random selection
    - Advisory connectivity probes through httpx
    - Load from file or programmatic addition

    Example:
        manager = ProxyManager()
        manager.load_from_file("proxies.txt")

        proxy = await manager.get_next_proxy()
        if proxy:
            launch_with(proxy.url)
    """

    def __init__(
        self,
        proxies: list[ProxyConfig] | None = None,
        settings: ProxySettings | None = None,
        lock: asyncio.Lock | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the proxy manager.

        Args:
            proxies: Initial proxies, in rotation order
            settings: Proxy configuration (health check URL, strategy)
            lock: Lock guarding the rotation index
            transport: Custom httpx transport for health probes
        """
        self._proxies: list[ProxyConfig] = list(proxies or [])
        self._current_index = 0
        self._lock = lock or asyncio.Lock()
        self._settings = settings or ProxySettings()
        self._transport = transport

    def add_proxy(self, proxy: ProxyConfig | str) -> None:
        """
        Append a proxy to the rotation.

        Args:
            proxy: A ProxyConfig or a proxy URL
        """
        if isinstance(proxy, str):
            proxy = parse_proxy_url(proxy)
        self._proxies.append(proxy)

    def load_from_file(self, file_path: str | Path) -> int:
        """
        Load proxies from a file (one URL per line, '#' comments allowed).

        Args:
            file_path: Path to proxy list file

        Returns:
            Number of proxies loaded
        """
        path = Path(file_path)
        if not path.exists():
            return 0

        count = 0
        with open(path, "r") as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("#"):
                    continue
                try:
                    self.add_proxy(line)
                    count += 1
                except ValueError as e:
                    logger.warning(f"Skipping proxy entry {line!r}: {e}")

        return count

    async def get_next_proxy(self) -> Optional[ProxyConfig]:
        """
        Get the next proxy in rotation order, wrapping around.

        Returns:
            A ProxyConfig, or None if no proxies are configured
        """
        async with self._lock:
            if not self._proxies:
                return None

            proxy = self._proxies[self._current_index % len(self._proxies)]
            self._current_index = (self._current_index + 1) % len(self._proxies)
            return proxy

    async def get_random_proxy(self) -> Optional[ProxyConfig]:
        """
        Get a proxy chosen uniformly at random.

        Returns:
            A ProxyConfig, or None if no proxies are configured
        """
        async with self._lock:
            if not self._proxies:
                return None
            return random.choice(self._proxies)

    async def get_proxy(self) -> Optional[ProxyConfig]:
        """Get a proxy using the configured rotation strategy."""
        if self._settings.rotation_strategy == "random":
            return await self.get_random_proxy()
        return await self.get_next_proxy()

    async def test_proxy(self, proxy: ProxyConfig) -> bool:
        """
        Probe a single proxy's connectivity.

        The result is advisory; it never changes the rotation.

        Args:
            proxy: The proxy to check

        Returns:
            True if the probe URL answered 200 through the proxy
        """
        client_kwargs: dict = {"timeout": self._settings.health_check_timeout}
        if self._transport is not None:
            client_kwargs["mounts"] = {"all://": self._transport}

        try:
            async with httpx.AsyncClient(proxy=proxy.url, **client_kwargs) as client:
                start = time.time()
                response = await client.get(self._settings.health_check_url)
                logger.debug(
                    f"Proxy {proxy.host}:{proxy.port} answered {response.status_code} "
                    f"in {time.time() - start:.2f}s"
                )
                return response.status_code == 200

        except Exception as e:
            logger.warning(f"Proxy test failed for {proxy.host}:{proxy.port}: {e}")
            return False

    async def get_working_proxies(self) -> list[ProxyConfig]:
        """
        Probe every proxy and return the ones that passed.

        Failing proxies are reported but remain in rotation.

        Returns:
            Proxies whose probe succeeded, in rotation order
        """
        proxies = list(self._proxies)
        checks = await asyncio.gather(*(self.test_proxy(p) for p in proxies))
        return [proxy for proxy, ok in zip(proxies, checks) if ok]

    def get_stats(self) -> dict:
        """Get manager statistics."""
        return {
            "total": len(self._proxies),
            "next_index": self._current_index,
            "strategy": self._settings.rotation_strategy,
        }

    @property
    def proxies(self) -> list[ProxyConfig]:
        """Configured proxies in rotation order."""
        return list(self._proxies)

    @property
    def size(self) -> int:
        """Total number of proxies."""
        return len(self._proxies)
