"""
Session Orchestrator Module

Owns one browser session per scrape: stealth launch, navigation with CAPTCHA
observation, human-behavior simulation, lazy-load scrolling and guaranteed teardown.
"""

import logging
import random
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Optional

from stealthscraper.browser.base import BrowserLauncher, BrowserSession, LaunchOptions
from stealthscraper.config import BrowserConfig
from stealthscraper.errors import NavigationError, SessionInitError
from stealthscraper.models import ScrapeOptions
from stealthscraper.stealth.evasion import (
    STEALTH_ARGS,
    SUPPRESSED_DEFAULT_ARGS,
    Viewport,
    build_environment_patches,
    random_viewport,
)
from stealthscraper.stealth.user_agents import UserAgentRotator


logger = logging.getLogger(__name__)

# Checked in order; the first match wins
CAPTCHA_SELECTORS = (
    '[class*="captcha" i]',
    '[id*="captcha" i]',
    '[class*="recaptcha" i]',
    '[id*="recaptcha" i]',
    'iframe[src*="recaptcha" i]',
    'iframe[src*="hcaptcha" i]',
    ".g-recaptcha",
    "#cf-challenge-stage",
    ".cf-browser-verification",
    '[class*="cloudflare" i]',
)

DEFAULT_VIEWPORT = Viewport(1280, 720)

SCROLL_HEIGHT_SCRIPT = "return document.body ? document.body.scrollHeight : 0;"


@dataclass
class ScrapeSession:
    """A live browser session plus what the orchestrator decided for it."""

    browser: BrowserSession
    options: ScrapeOptions
    viewport: Optional[Viewport] = None
    user_agent: Optional[str] = None
    captcha_detected: bool = False
    captcha_selector: Optional[str] = None
    closed: bool = False
    visited: list[str] = field(default_factory=list)

    @property
    def stealth(self) -> bool:
        return self.options.stealth_enabled


class SessionOrchestrator:
    """
    Drives one browser session through a scrape.

    Features:
    - Evasion launch switches, random desktop viewport and user agent
    - Environment patches applied after each page load
    - CAPTCHA observation with a single grace pause (no solving)
    - Best-effort human behavior simulation
    - Height-bounded scrolling for lazy-loaded content
    - Exactly-once teardown

    Example:
        orchestrator = SessionOrchestrator(PlaywrightLauncher())
        async with orchestrator.open(ScrapeOptions()) as session:
            await orchestrator.navigate(session, "https://example.com")
    """

    def __init__(
        self,
        launcher: BrowserLauncher,
        settings: BrowserConfig | None = None,
        production: bool = False,
        user_agent_rotator: UserAgentRotator | None = None,
        rng: random.Random | None = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            launcher: Browser automation capability
            settings: Browser timing configuration
            production: Production execution context (forces headless)
            user_agent_rotator: Source of desktop user agents
            rng: Random source for jitter, viewports and coordinates
        """
        self._launcher = launcher
        self._settings = settings or BrowserConfig()
        self._production = production
        self._rng = rng or random.Random()
        self._ua_rotator = user_agent_rotator or UserAgentRotator(rng=self._rng)

    def _jitter(self, low: int, high: int) -> int:
        return self._rng.randint(min(low, high), max(low, high))

    def build_launch_options(self, options: ScrapeOptions) -> LaunchOptions:
        """
        Translate scrape options into backend launch options.

        Args:
            options: The scrape's options

        Returns:
            LaunchOptions for the browser capability
        """
        launch = LaunchOptions(
            headless=self._production or self._settings.headless,
            navigation_timeout=self._settings.navigation_timeout,
        )

        if options.stealth_enabled:
            viewport = random_viewport(self._rng)
            user_agent = self._ua_rotator.get_user_agent()
            launch.args = [
                *STEALTH_ARGS,
                f"--user-agent={user_agent}",
                f"--window-size={viewport.width},{viewport.height}",
            ]
            launch.ignore_default_args = list(SUPPRESSED_DEFAULT_ARGS)
            launch.user_agent = user_agent
            launch.viewport = viewport
            launch.stealth = True

        if options.use_proxy and options.proxy_url:
            launch.proxy_url = options.proxy_url

        return launch

    async def init_session(self, options: ScrapeOptions) -> ScrapeSession:
        """
        Launch a browser session for one scrape.

        Args:
            options: The scrape's options

        Returns:
            The new ScrapeSession

        Raises:
            SessionInitError: If the backend cannot start a session
        """
        launch = self.build_launch_options(options)

        try:
            browser = await self._launcher.launch(launch)
        except Exception as e:
            logger.error(f"Browser launch failed: {e}")
            raise SessionInitError(str(e) or type(e).__name__) from e

        logger.debug(
            f"Session started (stealth={launch.stealth}, headless={launch.headless}, "
            f"proxy={'yes' if launch.proxy_url else 'no'})"
        )
        return ScrapeSession(
            browser=browser,
            options=options,
            viewport=launch.viewport,
            user_agent=launch.user_agent,
        )

    async def navigate(self, session: ScrapeSession, url: str) -> bool:
        """
        Load a URL, let it settle, and look for a CAPTCHA.

        Args:
            session: The active session
            url: Absolute URL to load

        Returns:
            True if a CAPTCHA signature was observed

        Raises:
            NavigationError: If the page could not be loaded
        """
        try:
            await session.browser.navigate(url)
        except Exception as e:
            logger.error(f"Navigation to {url} failed: {e}")
            raise NavigationError(url, str(e) or type(e).__name__) from e

        session.visited.append(url)

        if session.stealth:
            await self.apply_evasion(session)

        await session.browser.wait(
            self._jitter(self._settings.settle_delay_min, self._settings.settle_delay_max)
        )

        selector = await self.detect_captcha(session)
        if selector is not None and not session.captcha_detected:
            session.captcha_detected = True
            session.captcha_selector = selector
            logger.warning(
                f"CAPTCHA detected on {url} ({selector}) - manual intervention may be required"
            )
            await session.browser.wait(self._settings.captcha_pause)

        return session.captcha_detected

    async def apply_evasion(self, session: ScrapeSession) -> None:
        """Apply the environment patch battery to the loaded page."""
        patches = build_environment_patches(session.viewport or DEFAULT_VIEWPORT)
        try:
            await session.browser.patch_environment(patches)
        except Exception as e:
            logger.warning(f"Environment patching failed: {e}")

    async def detect_captcha(self, session: ScrapeSession) -> Optional[str]:
        """
        Scan the page for CAPTCHA signatures.

        Returns:
            The first matching selector, or None
        """
        for selector in CAPTCHA_SELECTORS:
            try:
                elements = await session.browser.find_all(selector)
            except Exception as e:
                logger.debug(f"CAPTCHA selector {selector} failed: {e}")
                continue
            if elements:
                return selector
        return None

    async def simulate_human_behavior(self, session: ScrapeSession) -> None:
        """
        Move the pointer around and scroll a little, like a person reading.

        Best-effort: failures are logged and absorbed.
        """
        viewport = session.viewport or DEFAULT_VIEWPORT
        browser = session.browser

        try:
            for _ in range(self._settings.mouse_moves):
                x = self._rng.randint(0, viewport.width - 1)
                y = self._rng.randint(0, viewport.height - 1)
                await browser.execute_script(
                    "document.dispatchEvent(new MouseEvent('mousemove', "
                    f"{{ clientX: {x}, clientY: {y}, bubbles: true }}));"
                )

            distance = self._jitter(50, 250)
            await browser.execute_script(f"window.scrollBy(0, {distance});")
            await browser.wait(self._jitter(200, 700))
            await browser.execute_script(f"window.scrollBy(0, {-(distance // 2)});")

            await browser.wait(
                self._jitter(self._settings.human_pause_min, self._settings.human_pause_max)
            )
        except Exception as e:
            logger.warning(f"Human behavior simulation error: {e}")

    async def scroll_to_bottom(self, session: ScrapeSession) -> int:
        """
        Scroll in random steps until the accumulated distance reaches the
        document's scroll height, then scroll back a little.

        Returns:
            Total distance scrolled down (px)
        """
        browser = session.browser
        settings = self._settings
        total = 0

        for _ in range(settings.max_scroll_steps):
            height = await browser.execute_script(SCROLL_HEIGHT_SCRIPT) or 0
            step = self._jitter(settings.scroll_step_min, settings.scroll_step_max)
            await browser.execute_script(f"window.scrollBy(0, {step});")
            total += step

            if total >= height:
                break
            await browser.wait(self._jitter(settings.scroll_interval_min, settings.scroll_interval_max))
        else:
            logger.warning(f"Stopped scrolling after {settings.max_scroll_steps} steps")

        await browser.wait(self._jitter(500, 1500))
        overshoot = self._jitter(0, settings.scroll_overshoot_max)
        await browser.execute_script(f"window.scrollBy(0, {-overshoot});")

        return total

    async def teardown(self, session: ScrapeSession) -> None:
        """
        Release the browser session. Safe to call more than once; only the
        first call reaches the backend, and backend errors are logged.
        """
        if session.closed:
            return
        session.closed = True

        try:
            await session.browser.quit()
        except Exception as e:
            logger.warning(f"Browser teardown failed: {e}")

    @asynccontextmanager
    async def open(self, options: ScrapeOptions) -> AsyncIterator[ScrapeSession]:
        """Session scoped to a ``async with`` block; torn down on every exit."""
        session = await self.init_session(options)
        try:
            yield session
        finally:
            await self.teardown(session)
