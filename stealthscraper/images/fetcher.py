"""
HTTP Fetcher Module

Async binary fetcher used for image downloads.
Uses httpx with User-Agent rotation and optional proxy support.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Optional

import httpx

from stealthscraper.stealth.user_agents import UserAgentRotator


logger = logging.getLogger(__name__)

IMAGE_ACCEPT = "image/avif,image/webp,image/apng,image/svg+xml,image/*,*/*;q=0.8"


@dataclass
class FetchResult:
    """Result of a fetch operation."""

    url: str
    status_code: int
    content: bytes = b""
    headers: dict = field(default_factory=dict)
    response_time: float = 0.0
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        """Check if fetch was successful."""
        return 200 <= self.status_code < 300 and self.error is None

    @property
    def content_type(self) -> Optional[str]:
        value = self.headers.get("content-type")
        return value.split(";")[0].strip().lower() if value else None


class HTTPFetcher:
    """
    Async HTTP fetcher for binary resources.

    Features:
    - User-Agent rotation per request
    - Optional per-request proxy
    - Injectable transport (tests use httpx.MockTransport)
    - Response time tracking

    Example:
        fetcher = HTTPFetcher()
        result = await fetcher.fetch("https://example.com/logo.png")
        if result.success:
            Path("logo.png").write_bytes(result.content)
    """

    def __init__(
        self,
        user_agent_rotator: UserAgentRotator | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the HTTP fetcher.

        Args:
            user_agent_rotator: UA rotator instance (creates default if None)
            timeout: Request timeout in seconds
            transport: Custom httpx transport
        """
        self._ua_rotator = user_agent_rotator or UserAgentRotator()
        self._timeout = timeout
        self._transport = transport

    def _client(self, proxy: str | None = None) -> httpx.AsyncClient:
        kwargs = {"timeout": self._timeout, "follow_redirects": True}
        if self._transport is not None:
            kwargs["transport"] = self._transport
        elif proxy:
            kwargs["proxy"] = proxy
        return httpx.AsyncClient(**kwargs)

    async def fetch(
        self,
        url: str,
        headers: dict | None = None,
        proxy: str | None = None,
    ) -> FetchResult:
        """
        Fetch a URL and return its raw bytes.

        Args:
            url: The URL to fetch
            headers: Optional additional headers
            proxy: Proxy URL for this request

        Returns:
            FetchResult with content and metadata; transport errors are
            reported through ``error`` rather than raised
        """
        request_headers = self._ua_rotator.get_headers(accept=IMAGE_ACCEPT)
        if headers:
            request_headers.update(headers)

        start_time = time.time()

        try:
            async with self._client(proxy) as client:
                response = await client.get(url, headers=request_headers)
                return FetchResult(
                    url=url,
                    status_code=response.status_code,
                    content=response.content,
                    headers=dict(response.headers),
                    response_time=time.time() - start_time,
                )

        except httpx.TimeoutException:
            logger.debug(f"Timed out fetching {url}")
            return FetchResult(
                url=url,
                status_code=0,
                error="Request timed out",
                response_time=time.time() - start_time,
            )
        except httpx.RequestError as e:
            logger.debug(f"Request error fetching {url}: {e}")
            return FetchResult(
                url=url,
                status_code=0,
                error=str(e) or type(e).__name__,
                response_time=time.time() - start_time,
            )
