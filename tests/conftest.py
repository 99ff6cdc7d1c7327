"""
Shared fixtures: an in-memory browser backed by BeautifulSoup.
"""

import random
from typing import Any, List, Optional

import pytest
from bs4 import BeautifulSoup

from stealthscraper.browser.base import LaunchOptions
from stealthscraper.config import BrowserConfig
from stealthscraper.extraction.engine import SNAPSHOT_SCRIPT
from stealthscraper.images.fetcher import HTTPFetcher
from stealthscraper.session import SCROLL_HEIGHT_SCRIPT


class FakeElement:
    def __init__(self, tag):
        self._tag = tag

    async def get_attribute(self, name: str) -> Optional[str]:
        value = self._tag.get(name)
        if isinstance(value, list):
            return " ".join(value)
        return value

    async def get_text(self) -> str:
        return self._tag.get_text(" ", strip=True)


class FakeBrowserSession:
    """Serves a fixed document; records everything the pipeline asks of it."""

    def __init__(
        self,
        html: str = "<html><body></body></html>",
        url: str = "https://example.com/",
        scroll_height: int = 0,
        navigate_error: Exception | None = None,
        script_error: Exception | None = None,
        snapshot_error: Exception | None = None,
    ):
        self.html = html
        self.url = url
        self.soup = BeautifulSoup(html, "lxml")
        self.scroll_height = scroll_height
        self.navigate_error = navigate_error
        self.script_error = script_error
        self.snapshot_error = snapshot_error

        self.navigated: List[str] = []
        self.scripts: List[str] = []
        self.selectors: List[str] = []
        self.patches: list = []
        self.waits: List[int] = []
        self.quit_calls = 0

    async def navigate(self, url: str) -> None:
        if self.navigate_error is not None:
            raise self.navigate_error
        self.navigated.append(url)

    async def execute_script(self, code: str) -> Any:
        if code == SNAPSHOT_SCRIPT:
            if self.snapshot_error is not None:
                raise self.snapshot_error
            html_tag = self.soup.find("html")
            return {
                "url": self.url,
                "title": self.soup.title.get_text() if self.soup.title else "",
                "lang": (html_tag.get("lang") if html_tag else "") or "",
                "html": self.html,
                "text": self.soup.body.get_text("\n", strip=True) if self.soup.body else "",
            }

        self.scripts.append(code)
        if self.script_error is not None:
            raise self.script_error
        if code == SCROLL_HEIGHT_SCRIPT:
            return self.scroll_height
        return None

    async def find_all(self, selector: str) -> List[FakeElement]:
        self.selectors.append(selector)
        return [FakeElement(tag) for tag in self.soup.select(selector)]

    async def patch_environment(self, patches) -> None:
        self.patches.append(list(patches))

    async def wait(self, ms: int) -> None:
        self.waits.append(ms)

    async def quit(self) -> None:
        self.quit_calls += 1


class FakeLauncher:
    """Hands out one prepared session, or fails."""

    def __init__(self, session: FakeBrowserSession | None = None, error: Exception | None = None):
        self.session = session or FakeBrowserSession()
        self.error = error
        self.launches: List[LaunchOptions] = []

    async def launch(self, options: LaunchOptions) -> FakeBrowserSession:
        self.launches.append(options)
        if self.error is not None:
            raise self.error
        return self.session


class RecordingFetcher(HTTPFetcher):
    """Fetcher that remembers the proxy of every request."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.proxies = []

    async def fetch(self, url, headers=None, proxy=None):
        self.proxies.append(proxy)
        return await super().fetch(url, headers=headers, proxy=proxy)


@pytest.fixture
def fast_browser_settings() -> BrowserConfig:
    """Browser timings small enough to reason about in assertions."""
    return BrowserConfig(
        settle_delay_min=10,
        settle_delay_max=20,
        captcha_pause=5000,
        mouse_moves=2,
        human_pause_min=1,
        human_pause_max=2,
        scroll_interval_min=1,
        scroll_interval_max=2,
    )


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)
