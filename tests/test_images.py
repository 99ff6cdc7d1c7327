"""
Tests for image fetching and downloading.
"""

import re
from pathlib import Path

import httpx
import pytest

from stealthscraper.images.downloader import ImageDownloader, format_from_content_type, image_filename
from stealthscraper.images.fetcher import HTTPFetcher
from stealthscraper.models import ImageRecord

from conftest import RecordingFetcher


PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
WEBP_BYTES = b"RIFF\x00\x00\x00\x00WEBP"


def image_server(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path == "/logo.png":
        return httpx.Response(200, content=PNG_BYTES, headers={"content-type": "image/png"})
    if path == "/avatar":
        return httpx.Response(200, content=WEBP_BYTES, headers={"content-type": "image/webp"})
    if path == "/broken.png":
        raise httpx.ConnectError("connection reset", request=request)
    return httpx.Response(404)


@pytest.fixture
def fetcher():
    return HTTPFetcher(transport=httpx.MockTransport(image_server))


class TestHTTPFetcher:
    """Tests for HTTPFetcher class."""

    @pytest.mark.asyncio
    async def test_fetch_bytes(self, fetcher):
        result = await fetcher.fetch("https://cdn.example.com/logo.png")

        assert result.success
        assert result.content == PNG_BYTES
        assert result.content_type == "image/png"

    @pytest.mark.asyncio
    async def test_sends_browser_headers(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(request.headers)
            return httpx.Response(200)

        await HTTPFetcher(transport=httpx.MockTransport(handler)).fetch("https://cdn.example.com/a.png")

        assert "Mozilla/5.0" in seen["user-agent"]
        assert seen["accept"].startswith("image/")

    @pytest.mark.asyncio
    async def test_not_found(self, fetcher):
        result = await fetcher.fetch("https://cdn.example.com/missing.png")

        assert result.status_code == 404
        assert not result.success

    @pytest.mark.asyncio
    async def test_transport_error(self, fetcher):
        result = await fetcher.fetch("https://cdn.example.com/broken.png")

        assert result.status_code == 0
        assert not result.success
        assert "connection reset" in result.error


class TestImageFilename:
    """Tests for image_filename."""

    def test_last_segment(self):
        assert image_filename("https://x.com/a/b/logo.png?v=3") == "logo.png"

    def test_extension_appended(self):
        assert image_filename("https://x.com/media/avatar", "webp") == "avatar.webp"

    def test_no_extension_and_no_format(self):
        assert image_filename("https://x.com/media/avatar") == "avatar"

    def test_percent_encoded_segment(self):
        assert image_filename("https://x.com/my%20photo.jpg") == "my photo.jpg"

    @pytest.mark.parametrize("url", ["https://x.com/", "https://x.com", "https://x.com/a/.."])
    def test_fallback_name(self, url):
        assert re.fullmatch(r"image_\d+\.jpg", image_filename(url))

    def test_fallback_uses_format(self):
        assert re.fullmatch(r"image_\d+\.gif", image_filename("https://x.com/", "gif"))

    def test_collisions_are_not_deduplicated(self):
        assert image_filename("https://a.com/x/logo.png") == image_filename("https://b.com/y/logo.png")

    def test_format_from_content_type(self):
        assert format_from_content_type("image/jpeg") == "jpg"
        assert format_from_content_type("image/svg+xml") == "svg"
        assert format_from_content_type("image/png") == "png"
        assert format_from_content_type("text/html") is None
        assert format_from_content_type(None) is None


class TestImageDownloader:
    """Tests for ImageDownloader class."""

    @pytest.mark.asyncio
    async def test_round_trip(self, fetcher, tmp_path):
        downloader = ImageDownloader(fetcher, download_dir=tmp_path)
        image = ImageRecord(src="https://cdn.example.com/logo.png", alt="Logo", format="png")

        [result] = await downloader.download_all([image])

        assert result.downloaded is True
        assert Path(result.local_path).read_bytes() == PNG_BYTES
        assert result.size == len(PNG_BYTES)
        assert result.alt == "Logo"

    @pytest.mark.asyncio
    async def test_failures_are_isolated(self, fetcher, tmp_path):
        downloader = ImageDownloader(fetcher, download_dir=tmp_path, max_workers=2)
        images = [
            ImageRecord(src="https://cdn.example.com/logo.png"),
            ImageRecord(src="https://cdn.example.com/missing.png", alt="gone"),
            ImageRecord(src="https://cdn.example.com/broken.png"),
            ImageRecord(src="https://cdn.example.com/avatar"),
        ]

        results = await downloader.download_all(images)

        assert [r.src for r in results] == [i.src for i in images]
        assert [r.downloaded for r in results] == [True, False, False, True]

        missing = results[1]
        assert missing.alt == "gone"
        assert missing.local_path is None
        assert missing.size is None

        # No format from the URL; the content type supplies the extension
        assert results[3].local_path.endswith("avatar.webp")

    @pytest.mark.asyncio
    async def test_destination_override(self, fetcher, tmp_path):
        downloader = ImageDownloader(fetcher, download_dir=tmp_path / "default")
        target = tmp_path / "nested" / "images"

        [result] = await downloader.download_all(
            [ImageRecord(src="https://cdn.example.com/logo.png")], destination_dir=target
        )

        assert Path(result.local_path).parent == target
        assert not (tmp_path / "default").exists()

    @pytest.mark.asyncio
    async def test_write_failure_is_isolated(self, fetcher, tmp_path):
        downloader = ImageDownloader(fetcher, download_dir=tmp_path)
        # A directory where the file should go makes the write fail
        (tmp_path / "logo.png").mkdir()

        [result] = await downloader.download_all([ImageRecord(src="https://cdn.example.com/logo.png")])

        assert result.downloaded is False

    @pytest.mark.asyncio
    async def test_empty_batch(self, fetcher, tmp_path):
        assert await ImageDownloader(fetcher, download_dir=tmp_path).download_all([]) == []

    @pytest.mark.asyncio
    async def test_uncreatable_destination_fails_each_record(self, fetcher, tmp_path):
        blocked = tmp_path / "downloads"
        blocked.write_text("not a directory")
        downloader = ImageDownloader(fetcher, download_dir=blocked)
        images = [
            ImageRecord(src="https://cdn.example.com/logo.png", alt="Logo"),
            ImageRecord(src="https://cdn.example.com/avatar"),
        ]

        results = await downloader.download_all(images)

        assert [r.src for r in results] == [i.src for i in images]
        assert all(r.downloaded is False and r.local_path is None for r in results)
        assert results[0].alt == "Logo"

    @pytest.mark.asyncio
    async def test_proxy_reaches_fetcher(self, tmp_path):
        fetcher = RecordingFetcher(transport=httpx.MockTransport(image_server))
        downloader = ImageDownloader(fetcher, download_dir=tmp_path)
        images = [
            ImageRecord(src="https://cdn.example.com/logo.png"),
            ImageRecord(src="https://cdn.example.com/avatar"),
        ]

        await downloader.download_all(images, proxy_url="http://10.0.0.1:8080")

        assert fetcher.proxies == ["http://10.0.0.1:8080", "http://10.0.0.1:8080"]
