"""
Link and image URL rules.

Both functions are pure: identical inputs always give identical outputs.
"""

from typing import Optional
from urllib.parse import urljoin, urlparse

from stealthscraper.models import LinkType


FILE_EXTENSIONS = (".pdf", ".doc", ".docx", ".xls", ".xlsx", ".zip", ".rar", ".mp3", ".mp4", ".avi")

IMAGE_FORMATS = frozenset({"jpg", "jpeg", "png", "gif", "webp", "svg", "bmp", "ico"})


def classify_link(href: str, base_url: str) -> tuple[LinkType, Optional[str]]:
    """
    Classify an anchor href relative to the page it appears on.

    Args:
        href: The raw href attribute
        base_url: URL of the page

    Returns:
        (type, domain); domain is set only for external links
    """
    href = href.strip()
    lowered = href.lower()

    if lowered.startswith("mailto:"):
        return "email", None
    if lowered.startswith("tel:"):
        return "phone", None
    if href.startswith(("#", "/")):
        return "internal", None

    try:
        parsed = urlparse(href)
        hostname = parsed.hostname
        base_hostname = urlparse(base_url).hostname
    except ValueError:
        return "internal", None

    # Relative paths and opaque schemes (javascript:, data:) stay on the page
    if not parsed.scheme or not hostname:
        return "internal", None

    if parsed.path.lower().endswith(FILE_EXTENSIONS):
        return "file", None

    if hostname == base_hostname:
        return "internal", None

    return "external", hostname


def resolve_url(href: str, base_url: str) -> str:
    """Resolve a possibly-relative URL against the page URL."""
    try:
        return urljoin(base_url, href.strip())
    except ValueError:
        return href.strip()


def image_format(url: str) -> Optional[str]:
    """
    The image format implied by the URL's trailing extension.

    Args:
        url: Absolute image URL

    Returns:
        Lowercase extension if it is a known image format, else None
    """
    try:
        path = urlparse(url).path
    except ValueError:
        return None

    last_segment = path.rsplit("/", 1)[-1]
    if "." not in last_segment:
        return None

    extension = last_segment.rsplit(".", 1)[-1].lower()
    return extension if extension in IMAGE_FORMATS else None
