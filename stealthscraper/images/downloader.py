"""
Image Downloader Module

Materializes extracted images on local disk.

Downloads run in parallel under a fixed worker bound. Each image succeeds or
fails on its own: a failed fetch or write marks that record ``downloaded=False``
and leaves the rest of the batch untouched.
"""

import asyncio
import logging
import time
from pathlib import Path
from typing import List, Optional
from urllib.parse import unquote, urlparse

import aiofiles

from stealthscraper.errors import ImageFetchError
from stealthscraper.extraction.links import IMAGE_FORMATS
from stealthscraper.images.fetcher import FetchResult, HTTPFetcher
from stealthscraper.models import ImageRecord


logger = logging.getLogger(__name__)

DEFAULT_IMAGE_FORMAT = "jpg"

_CONTENT_TYPE_FORMATS = {
    "image/jpeg": "jpg",
    "image/svg+xml": "svg",
    "image/x-icon": "ico",
    "image/vnd.microsoft.icon": "ico",
}


def format_from_content_type(content_type: Optional[str]) -> Optional[str]:
    """Map an image MIME type to a file extension, if recognizable."""
    if not content_type:
        return None
    if content_type in _CONTENT_TYPE_FORMATS:
        return _CONTENT_TYPE_FORMATS[content_type]
    if content_type.startswith("image/"):
        subtype = content_type.split("/", 1)[1]
        return subtype if subtype in IMAGE_FORMATS else None
    return None


def image_filename(url: str, image_format: Optional[str] = None) -> str:
    """
    Local file name for an image URL.

    The last path segment is used as-is; the detected format is appended when
    the segment has no extension. URLs with no usable segment get a
    timestamp-qualified default name. Distinct URLs that end in the same
    segment map to the same name.

    Args:
        url: Absolute image URL
        image_format: Detected image format, if known

    Returns:
        A bare file name
    """
    try:
        path = urlparse(url).path
    except ValueError:
        path = ""

    segment = unquote(path.rsplit("/", 1)[-1]).replace("/", "_").replace("\\", "_").strip()

    if not segment or segment in (".", ".."):
        timestamp = int(time.time() * 1000)
        return f"image_{timestamp}.{image_format or DEFAULT_IMAGE_FORMAT}"

    if "." not in segment and image_format:
        return f"{segment}.{image_format}"

    return segment


class ImageDownloader:
    """
    Downloads a batch of images with bounded concurrency.

    Features:
    - Fixed worker limit (asyncio.Semaphore)
    - Per-image failure isolation
    - Async file writes
    - Output order matches input order

    Example:
        downloader = ImageDownloader(HTTPFetcher(), download_dir="downloads")
        images = await downloader.download_all(content.images)
        saved = [image.local_path for image in images if image.downloaded]
    """

    def __init__(
        self,
        fetcher: HTTPFetcher | None = None,
        download_dir: Path | str = "downloads",
        max_workers: int = 4,
    ):
        """
        Initialize the downloader.

        Args:
            fetcher: HTTP fetch capability (creates default if None)
            download_dir: Default destination directory
            max_workers: Maximum concurrent downloads
        """
        self._fetcher = fetcher or HTTPFetcher()
        self._download_dir = Path(download_dir)
        self._max_workers = max(1, max_workers)

    async def download_all(
        self,
        images: List[ImageRecord],
        destination_dir: Path | str | None = None,
        proxy_url: str | None = None,
    ) -> List[ImageRecord]:
        """
        Download every image to the destination directory.

        Args:
            images: Extracted image records
            destination_dir: Target directory (default download_dir)
            proxy_url: Proxy for the image requests

        Returns:
            One record per input image, in input order
        """
        if not images:
            return []

        destination = Path(destination_dir) if destination_dir is not None else self._download_dir
        try:
            destination.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            for image in images:
                logger.warning(ImageFetchError(image.src, f"cannot create {destination}: {e}").message)
            return [image.model_copy(update={"downloaded": False}) for image in images]

        semaphore = asyncio.Semaphore(self._max_workers)

        async def download_with_semaphore(image: ImageRecord) -> ImageRecord:
            async with semaphore:
                return await self.download(image, destination, proxy_url)

        results = await asyncio.gather(*(download_with_semaphore(image) for image in images))

        downloaded = sum(1 for image in results if image.downloaded)
        logger.info(f"Downloaded {downloaded}/{len(results)} images to {destination}")
        return list(results)

    async def download(
        self,
        image: ImageRecord,
        destination: Path,
        proxy_url: str | None = None,
    ) -> ImageRecord:
        """
        Download one image; never raises.

        Args:
            image: The image record
            destination: Existing target directory
            proxy_url: Proxy for the image request

        Returns:
            The updated record
        """
        try:
            result = await self._fetcher.fetch(image.src, proxy=proxy_url)
            if not result.success:
                raise ImageFetchError(image.src, result.error or f"HTTP {result.status_code}")
            local_path = await self._write(image, result, destination)
        except ImageFetchError as e:
            logger.warning(e.message)
            return image.model_copy(update={"downloaded": False})
        except Exception as e:
            logger.warning(ImageFetchError(image.src, f"{type(e).__name__}: {e}").message)
            return image.model_copy(update={"downloaded": False})

        return image.model_copy(
            update={
                "downloaded": True,
                "size": len(result.content),
                "local_path": str(local_path),
            }
        )

    @staticmethod
    async def _write(image: ImageRecord, result: FetchResult, destination: Path) -> Path:
        detected = image.format or format_from_content_type(result.content_type)
        local_path = destination / image_filename(image.src, detected)

        try:
            async with aiofiles.open(local_path, "wb") as f:
                await f.write(result.content)
        except OSError as e:
            raise ImageFetchError(image.src, f"write to {local_path} failed: {e}") from e

        return local_path
