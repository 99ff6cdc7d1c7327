"""
Playwright Browser Backend

Chromium sessions driven by Playwright, with playwright-stealth applied to stealth
sessions. Playwright is imported on first launch so the rest of the package works
without a browser installed.
"""

import logging
from typing import Any, Optional, Sequence

from stealthscraper.browser.base import BrowserElement, LaunchOptions
from stealthscraper.stealth.evasion import EnvironmentPatch, render_patch_script
from stealthscraper.stealth.proxy_pool import parse_proxy_url


logger = logging.getLogger(__name__)


def _playwright_proxy(proxy_url: str) -> dict:
    """Convert a proxy URL into Playwright's proxy settings."""
    proxy = parse_proxy_url(proxy_url)
    settings = {"server": f"{proxy.type}://{proxy.host}:{proxy.port}"}
    if proxy.username and proxy.password:
        settings["username"] = proxy.username
        settings["password"] = proxy.password
    return settings


class PlaywrightElement:
    """An element handle exposed through the BrowserElement protocol."""

    def __init__(self, handle):
        self._handle = handle

    async def get_attribute(self, name: str) -> Optional[str]:
        return await self._handle.get_attribute(name)

    async def get_text(self) -> str:
        return await self._handle.inner_text()


class PlaywrightSession:
    """
    One Playwright browser, context and page.

    Scripts passed to ``execute_script`` are statement blocks whose ``return``
    value is handed back, as with WebDriver.
    """

    def __init__(self, playwright, browser, context, page, navigation_timeout: int):
        self._playwright = playwright
        self._browser = browser
        self._context = context
        self._page = page
        self._timeout = navigation_timeout

    async def navigate(self, url: str) -> None:
        await self._page.goto(url, timeout=self._timeout, wait_until="domcontentloaded")

    async def execute_script(self, code: str) -> Any:
        return await self._page.evaluate(f"() => {{\n{code}\n}}")

    async def find_all(self, selector: str) -> Sequence[BrowserElement]:
        handles = await self._page.query_selector_all(selector)
        return [PlaywrightElement(handle) for handle in handles]

    async def patch_environment(self, patches: Sequence[EnvironmentPatch]) -> None:
        await self.execute_script(render_patch_script(list(patches)))

    async def wait(self, ms: int) -> None:
        await self._page.wait_for_timeout(ms)

    async def quit(self) -> None:
        """Close page, context and browser, then stop Playwright."""
        try:
            await self._context.close()
            await self._browser.close()
        finally:
            await self._playwright.stop()


class PlaywrightLauncher:
    """
    Launches Chromium sessions.

    Example:
        launcher = PlaywrightLauncher()
        session = await launcher.launch(LaunchOptions(headless=True))
        try:
            await session.navigate("https://example.com")
        finally:
            await session.quit()
    """

    def __init__(self, channel: str | None = None):
        """
        Initialize the launcher.

        Args:
            channel: Browser channel ("chrome", "msedge"); bundled Chromium if None
        """
        self._channel = channel

    async def launch(self, options: LaunchOptions) -> PlaywrightSession:
        try:
            from playwright.async_api import async_playwright
            from playwright_stealth import Stealth
        except ImportError as e:
            raise ImportError(
                "playwright and playwright-stealth are required. "
                "Install with: pip install playwright playwright-stealth && playwright install chromium"
            ) from e

        playwright = await async_playwright().start()
        try:
            launch_kwargs: dict = {
                "headless": options.headless,
                "args": list(options.args),
            }
            if options.ignore_default_args:
                launch_kwargs["ignore_default_args"] = list(options.ignore_default_args)
            if options.proxy_url:
                launch_kwargs["proxy"] = _playwright_proxy(options.proxy_url)
            if self._channel:
                launch_kwargs["channel"] = self._channel

            browser = await playwright.chromium.launch(**launch_kwargs)

            context_kwargs: dict = {}
            if options.user_agent:
                context_kwargs["user_agent"] = options.user_agent
            if options.viewport:
                context_kwargs["viewport"] = {
                    "width": options.viewport.width,
                    "height": options.viewport.height,
                }

            context = await browser.new_context(**context_kwargs)
            page = await context.new_page()

            if options.stealth:
                await Stealth().apply_stealth_async(page)

        except Exception:
            await playwright.stop()
            raise

        logger.debug(f"Launched Chromium (headless={options.headless}, stealth={options.stealth})")
        return PlaywrightSession(playwright, browser, context, page, options.navigation_timeout)
