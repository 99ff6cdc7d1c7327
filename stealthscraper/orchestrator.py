"""
Scrape Coordinator Module

The central coordinator that connects all scraping components.
Runs one request end to end: validate, gate, launch, navigate, extract, download.
"""

import logging
import random
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict
from urllib.parse import urlparse

import pydantic

from stealthscraper import __version__
from stealthscraper.browser.base import BrowserLauncher
from stealthscraper.config import ScraperConfig
from stealthscraper.errors import ScraperError, ValidationError
from stealthscraper.extraction.engine import ContentExtractionEngine
from stealthscraper.images.downloader import ImageDownloader
from stealthscraper.images.fetcher import HTTPFetcher
from stealthscraper.models import ExtractedContent, ScrapeOptions, ScrapeRequest
from stealthscraper.safety.governor import TrafficGovernor
from stealthscraper.session import SessionOrchestrator


logger = logging.getLogger(__name__)

# Extra wait before extraction is drawn from [wait_time, wait_time + WAIT_JITTER_MS]
WAIT_JITTER_MS = 2000


@dataclass
class ScraperStats:
    """Statistics for the coordinator's lifetime."""

    started_at: float = 0.0
    requests: int = 0
    successful: int = 0
    failed: int = 0
    captchas_detected: int = 0
    degraded_extractions: int = 0
    images_downloaded: int = 0

    @property
    def duration(self) -> float:
        """Duration in seconds."""
        return time.time() - self.started_at

    @property
    def success_rate(self) -> float:
        """Success rate percentage."""
        if self.requests == 0:
            return 0.0
        return (self.successful / self.requests) * 100

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "duration_seconds": round(self.duration, 2),
            "requests": self.requests,
            "successful": self.successful,
            "failed": self.failed,
            "success_rate": round(self.success_rate, 2),
            "captchas_detected": self.captchas_detected,
            "degraded_extractions": self.degraded_extractions,
            "images_downloaded": self.images_downloaded,
        }


class ScrapeCoordinator:
    """
    Main scraper coordinator connecting all components.

    Implements the complete workflow:
    1. Request validation
    2. Rate limiter wait
    3. Proxy selection
    4. Stealth session launch and navigation
    5. Human behavior, settle wait and scrolling
    6. Content extraction
    7. Image download
    8. Session teardown (always)

    Example:
        coordinator = ScrapeCoordinator(ScraperConfig(), launcher=PlaywrightLauncher())
        content = await coordinator.scrape("https://example.com")
        print(content.to_json())
    """

    def __init__(
        self,
        settings: ScraperConfig | None = None,
        launcher: BrowserLauncher | None = None,
        governor: TrafficGovernor | None = None,
        orchestrator: SessionOrchestrator | None = None,
        engine: ContentExtractionEngine | None = None,
        downloader: ImageDownloader | None = None,
        rng: random.Random | None = None,
    ):
        """
        Initialize the coordinator.

        Args:
            settings: Process configuration (defaults if None)
            launcher: Browser automation capability (required unless orchestrator is given)
            governor: Shared rate-limit and proxy state
            orchestrator: Session driver (built from launcher if None)
            engine: Content extraction engine
            downloader: Image downloader
            rng: Random source for the pre-extraction wait
        """
        self._settings = settings or ScraperConfig()
        self._rng = rng or random.Random()

        if orchestrator is None:
            if launcher is None:
                raise ValueError("Either a browser launcher or a session orchestrator is required")
            orchestrator = SessionOrchestrator(
                launcher,
                settings=self._settings.browser,
                production=self._settings.is_production,
                rng=self._rng,
            )
        self._orchestrator = orchestrator

        self._governor = governor or TrafficGovernor(
            rate_limit=self._settings.rate_limit,
            proxy_settings=self._settings.proxy,
        )
        self._engine = engine or ContentExtractionEngine()
        self._downloader = downloader or ImageDownloader(
            HTTPFetcher(timeout=self._settings.storage.download_timeout),
            download_dir=self._settings.storage.download_dir,
            max_workers=self._settings.storage.download_workers,
        )

        self._stats = ScraperStats(started_at=time.time())

    @staticmethod
    def validate(url: Any, options: ScrapeOptions | Dict[str, Any] | None = None) -> ScrapeRequest:
        """
        Build a validated request.

        Args:
            url: Target URL
            options: ScrapeOptions, or a dict in either snake_case or camelCase

        Returns:
            The ScrapeRequest

        Raises:
            ValidationError: If the URL or options are malformed
        """
        if not url:
            raise ValidationError("url", url, "URL is required")

        try:
            return ScrapeRequest(url=url, options=options if options is not None else ScrapeOptions())
        except pydantic.ValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first["loc"]) or "request"
            value = url if field == "url" else first.get("input")
            raise ValidationError(field, value, first["msg"]) from e

    async def _resolve_options(self, options: ScrapeOptions) -> ScrapeOptions:
        """Attach a pooled proxy when one is requested (or pooling is enabled) but none was given."""
        if options.proxy_url or not (options.use_proxy or self._settings.proxy.enabled):
            return options

        proxy_url = await self._governor.next_proxy_url()
        if proxy_url is None:
            logger.warning("Proxy requested but the proxy pool is empty; connecting directly")
            return options
        return options.model_copy(update={"use_proxy": True, "proxy_url": proxy_url})

    async def scrape(
        self,
        url: Any,
        options: ScrapeOptions | Dict[str, Any] | None = None,
        identifier: str | None = None,
    ) -> ExtractedContent:
        """
        Scrape one URL.

        Args:
            url: Absolute http(s) URL
            options: Extraction toggles and behavior knobs
            identifier: Rate-limit identifier (defaults to the URL host)

        Returns:
            ExtractedContent for the page

        Raises:
            ValidationError: Malformed request; no session is created
            SessionInitError: The browser could not be launched
            NavigationError: The page could not be loaded (session already torn down)
        """
        request = self.validate(url, options)
        self._stats.requests += 1

        try:
            content = await self._run(request, identifier or urlparse(request.url).hostname)
        except ScraperError as e:
            self._stats.failed += 1
            logger.error(f"Scrape of {request.url} failed: {e.message}")
            raise
        except Exception:
            self._stats.failed += 1
            raise

        self._stats.successful += 1
        if content.captcha_detected:
            self._stats.captchas_detected += 1
        if not content.extraction_report.is_complete:
            self._stats.degraded_extractions += 1
        self._stats.images_downloaded += len(content.downloaded_images or [])
        return content

    async def _run(self, request: ScrapeRequest, identifier: str) -> ExtractedContent:
        await self._governor.acquire(identifier)
        options = await self._resolve_options(request.options)

        logger.info(f"Scraping {request.url}")

        async with self._orchestrator.open(options) as session:
            captcha_detected = await self._orchestrator.navigate(session, request.url)

            if options.human_behavior:
                await self._orchestrator.simulate_human_behavior(session)

            await session.browser.wait(
                self._rng.randint(options.wait_time, options.wait_time + WAIT_JITTER_MS)
            )

            if options.scroll_to_bottom:
                await self._orchestrator.scroll_to_bottom(session)

            content = await self._engine.extract_all(session, request.url, options)

        update: Dict[str, Any] = {
            "captcha_detected": captcha_detected,
            "timestamp": datetime.now(timezone.utc),
        }

        if options.extract_images and content.images:
            images = await self._downloader.download_all(
                content.images,
                proxy_url=options.proxy_url if options.use_proxy else None,
            )
            update["images"] = images
            update["downloaded_images"] = [image.local_path for image in images if image.downloaded]

        degraded = content.extraction_report.degraded_fields
        if degraded:
            logger.warning(f"Degraded fields for {request.url}: {', '.join(degraded)}")

        return content.model_copy(update=update)

    def get_stats(self) -> dict:
        """Get scrape and governor statistics."""
        return {
            **self._stats.to_dict(),
            "governor": self._governor.get_stats(),
        }

    @staticmethod
    def describe() -> dict:
        """Static capability descriptor."""
        return {
            "message": "Stealth Scraper",
            "version": __version__,
            "operations": {
                "scrape": "Scrape a website with the given options",
            },
        }
