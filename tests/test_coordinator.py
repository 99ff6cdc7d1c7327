"""
Tests for the scrape coordinator.
"""

import httpx
import pytest

from stealthscraper.config import ScraperConfig, StorageConfig
from stealthscraper.errors import NavigationError, SessionInitError, ValidationError
from stealthscraper.extraction.engine import ContentExtractionEngine
from stealthscraper.images.downloader import ImageDownloader
from stealthscraper.images.fetcher import HTTPFetcher
from stealthscraper.models import ScrapeOptions
from stealthscraper.orchestrator import ScrapeCoordinator
from stealthscraper.safety.governor import TrafficGovernor
from stealthscraper.session import SessionOrchestrator
from stealthscraper.stealth.proxy_pool import ProxyConfig

from conftest import FakeBrowserSession, FakeLauncher, RecordingFetcher


PAGE = """
<html><head><title>Shop</title></head>
<body>
  <h1>Welcome</h1>
  <p>Contact us at a@b.com or (212) 555-1234</p>
  <img src="/logo.png" alt="Logo">
  <img src="/missing.png">
  <a href="/about">About</a>
</body></html>
"""

LOGO = b"\x89PNG\r\n\x1a\nlogo"


def image_server(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/logo.png":
        return httpx.Response(200, content=LOGO)
    return httpx.Response(404)


@pytest.fixture
def settings(tmp_path, fast_browser_settings):
    return ScraperConfig(
        browser=fast_browser_settings,
        storage=StorageConfig(download_dir=tmp_path / "downloads", export_dir=tmp_path / "exports"),
    )


def make_coordinator(settings, rng, browser=None, launcher=None, governor=None, fetcher=None):
    launcher = launcher or FakeLauncher(browser or FakeBrowserSession(html=PAGE, url="https://shop.example.com/"))
    downloader = ImageDownloader(
        fetcher or HTTPFetcher(transport=httpx.MockTransport(image_server)),
        download_dir=settings.storage.download_dir,
    )
    orchestrator = SessionOrchestrator(launcher, settings=settings.browser, rng=rng)
    coordinator = ScrapeCoordinator(
        settings,
        orchestrator=orchestrator,
        governor=governor,
        engine=ContentExtractionEngine(),
        downloader=downloader,
        rng=rng,
    )
    return coordinator, launcher


class TestValidation:
    """Invalid requests never reach the browser."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("url", ["", "not a url", "ftp://files.example.com/a", "/relative/path", None])
    async def test_invalid_url(self, settings, rng, url):
        coordinator, launcher = make_coordinator(settings, rng)

        with pytest.raises(ValidationError) as exc_info:
            await coordinator.scrape(url)

        assert launcher.launches == []
        assert exc_info.value.to_dict()["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_invalid_options(self, settings, rng):
        coordinator, launcher = make_coordinator(settings, rng)

        with pytest.raises(ValidationError):
            await coordinator.scrape("https://shop.example.com/", {"waitTime": -5})

        assert launcher.launches == []

    def test_camel_case_options(self):
        request = ScrapeCoordinator.validate(
            "https://shop.example.com/", {"extractImages": False, "scrollToBottom": True}
        )

        assert request.options.extract_images is False
        assert request.options.scroll_to_bottom is True


class TestScrape:
    """End-to-end runs against the in-memory browser."""

    @pytest.mark.asyncio
    async def test_full_scrape(self, settings, rng):
        browser = FakeBrowserSession(html=PAGE, url="https://shop.example.com/")
        coordinator, _ = make_coordinator(settings, rng, browser=browser)

        content = await coordinator.scrape("https://shop.example.com/", ScrapeOptions(wait_time=100))

        assert content.title == "Shop"
        assert content.contact_info.emails == {"a@b.com"}
        assert content.captcha_detected is False
        assert content.timestamp.tzinfo is not None

        logo, missing = content.images
        assert logo.downloaded is True and logo.size == len(LOGO)
        assert missing.downloaded is False
        assert content.downloaded_images == [logo.local_path]

        assert browser.quit_calls == 1
        assert any(100 <= ms <= 2100 for ms in browser.waits)

    @pytest.mark.asyncio
    async def test_images_disabled_skips_download(self, settings, rng):
        coordinator, _ = make_coordinator(settings, rng)

        content = await coordinator.scrape(
            "https://shop.example.com/", ScrapeOptions(extract_images=False, wait_time=0)
        )

        assert content.images == []
        assert content.downloaded_images is None
        assert not settings.storage.download_dir.exists()

    @pytest.mark.asyncio
    async def test_captcha_flag(self, settings, rng):
        browser = FakeBrowserSession(
            html='<html><body><div class="g-recaptcha"></div><div class="captcha"></div></body></html>'
        )
        coordinator, _ = make_coordinator(settings, rng, browser=browser)

        content = await coordinator.scrape("https://shop.example.com/", ScrapeOptions(wait_time=0))

        assert content.captcha_detected is True
        assert coordinator.get_stats()["captchas_detected"] == 1

    @pytest.mark.asyncio
    async def test_scroll_and_human_behavior(self, settings, rng):
        browser = FakeBrowserSession(html=PAGE, scroll_height=300)
        coordinator, _ = make_coordinator(settings, rng, browser=browser)

        await coordinator.scrape(
            "https://shop.example.com/",
            ScrapeOptions(wait_time=0, scroll_to_bottom=True, human_behavior=True),
        )

        assert any("mousemove" in script for script in browser.scripts)
        assert "return document.body ? document.body.scrollHeight : 0;" in browser.scripts

    @pytest.mark.asyncio
    async def test_unwritable_download_dir_keeps_result(self, settings, rng):
        settings.storage.download_dir.write_text("not a directory")
        coordinator, _ = make_coordinator(settings, rng)

        content = await coordinator.scrape("https://shop.example.com/", ScrapeOptions(wait_time=0))

        assert content.title == "Shop"
        assert len(content.images) == 2
        assert all(image.downloaded is False for image in content.images)
        assert content.downloaded_images == []
        assert coordinator.get_stats()["successful"] == 1

    @pytest.mark.asyncio
    async def test_navigation_error_tears_down(self, settings, rng):
        browser = FakeBrowserSession(navigate_error=ConnectionError("net::ERR_NAME_NOT_RESOLVED"))
        coordinator, _ = make_coordinator(settings, rng, browser=browser)

        with pytest.raises(NavigationError):
            await coordinator.scrape("https://shop.example.com/")

        assert browser.quit_calls == 1
        assert coordinator.get_stats()["failed"] == 1

    @pytest.mark.asyncio
    async def test_extraction_failure_still_tears_down(self, settings, rng, monkeypatch):
        browser = FakeBrowserSession(html=PAGE)
        coordinator, _ = make_coordinator(settings, rng, browser=browser)

        async def exploding_extract(*args, **kwargs):
            raise RuntimeError("renderer crashed")

        monkeypatch.setattr(coordinator._engine, "extract_all", exploding_extract)

        with pytest.raises(RuntimeError):
            await coordinator.scrape("https://shop.example.com/", ScrapeOptions(wait_time=0))

        assert browser.quit_calls == 1

    @pytest.mark.asyncio
    async def test_session_init_error(self, settings, rng):
        launcher = FakeLauncher(error=RuntimeError("no browser"))
        coordinator, _ = make_coordinator(settings, rng, launcher=launcher)

        with pytest.raises(SessionInitError):
            await coordinator.scrape("https://shop.example.com/")


class TestProxyResolution:
    """Proxy selection before launch."""

    @pytest.mark.asyncio
    async def test_pool_proxy_used(self, settings, rng):
        governor = TrafficGovernor(proxies=[ProxyConfig("10.0.0.1", 8080), ProxyConfig("10.0.0.2", 8080)])
        coordinator, launcher = make_coordinator(settings, rng, governor=governor)

        for _ in range(2):
            await coordinator.scrape(
                "https://shop.example.com/", ScrapeOptions(use_proxy=True, wait_time=0, extract_images=False)
            )

        assert [launch.proxy_url for launch in launcher.launches] == [
            "http://10.0.0.1:8080",
            "http://10.0.0.2:8080",
        ]

    @pytest.mark.asyncio
    async def test_pool_proxy_used_for_images(self, settings, rng):
        governor = TrafficGovernor(proxies=[ProxyConfig("10.0.0.1", 8080)])
        fetcher = RecordingFetcher(transport=httpx.MockTransport(image_server))
        coordinator, launcher = make_coordinator(settings, rng, governor=governor, fetcher=fetcher)

        await coordinator.scrape("https://shop.example.com/", ScrapeOptions(use_proxy=True, wait_time=0))

        assert launcher.launches[0].proxy_url == "http://10.0.0.1:8080"
        assert fetcher.proxies == ["http://10.0.0.1:8080", "http://10.0.0.1:8080"]

    @pytest.mark.asyncio
    async def test_images_go_direct_without_proxy(self, settings, rng):
        fetcher = RecordingFetcher(transport=httpx.MockTransport(image_server))
        coordinator, _ = make_coordinator(settings, rng, fetcher=fetcher)

        await coordinator.scrape("https://shop.example.com/", ScrapeOptions(wait_time=0))

        assert fetcher.proxies == [None, None]

    @pytest.mark.asyncio
    async def test_explicit_proxy_wins(self, settings, rng):
        governor = TrafficGovernor(proxies=[ProxyConfig("10.0.0.1", 8080)])
        coordinator, launcher = make_coordinator(settings, rng, governor=governor)

        await coordinator.scrape(
            "https://shop.example.com/",
            ScrapeOptions(use_proxy=True, proxy_url="http://proxy.local:3128", wait_time=0, extract_images=False),
        )

        assert launcher.launches[0].proxy_url == "http://proxy.local:3128"

    @pytest.mark.asyncio
    async def test_no_proxy_by_default(self, settings, rng):
        coordinator, launcher = make_coordinator(settings, rng)

        await coordinator.scrape("https://shop.example.com/", ScrapeOptions(wait_time=0, extract_images=False))

        assert launcher.launches[0].proxy_url is None


class TestCoordinatorInfo:
    """Stats and the capability descriptor."""

    @pytest.mark.asyncio
    async def test_stats(self, settings, rng):
        coordinator, _ = make_coordinator(settings, rng)

        await coordinator.scrape("https://shop.example.com/", ScrapeOptions(wait_time=0))

        stats = coordinator.get_stats()
        assert stats["requests"] == 1
        assert stats["successful"] == 1
        assert stats["images_downloaded"] == 1
        assert stats["governor"]["max_requests"] == settings.rate_limit.max_requests

    def test_describe(self):
        descriptor = ScrapeCoordinator.describe()

        assert descriptor["version"] == "1.0.0"
        assert "scrape" in descriptor["operations"]

    def test_requires_launcher_or_orchestrator(self):
        with pytest.raises(ValueError):
            ScrapeCoordinator(ScraperConfig())
