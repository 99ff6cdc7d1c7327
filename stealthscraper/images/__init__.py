"""Images module - HTTP fetching and bounded parallel downloads."""

from .fetcher import FetchResult, HTTPFetcher
from .downloader import ImageDownloader, image_filename

__all__ = ["FetchResult", "HTTPFetcher", "ImageDownloader", "image_filename"]
