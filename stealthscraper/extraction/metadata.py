"""
Head metadata and social profile links.
"""

import re
from typing import Dict, List, Optional

from bs4 import BeautifulSoup

from stealthscraper.extraction.structured import parse_json_ld
from stealthscraper.models import Metadata


# First matching anchor per platform wins
SOCIAL_SELECTORS = {
    "facebook": 'a[href*="facebook.com"], a[href*="fb.com"]',
    "twitter": 'a[href*="twitter.com"], a[href*="://x.com"], a[href*="www.x.com"]',
    "instagram": 'a[href*="instagram.com"]',
    "linkedin": 'a[href*="linkedin.com"]',
    "youtube": 'a[href*="youtube.com"], a[href*="youtu.be"]',
    "tiktok": 'a[href*="tiktok.com"]',
}

_CHARSET_IN_CONTENT_TYPE = re.compile(r"charset=([\w-]+)", re.IGNORECASE)


def meta_content(soup: BeautifulSoup, key: str) -> Optional[str]:
    """Content of ``meta[name=key]`` or ``meta[property=key]``, if non-empty."""
    tag = soup.find("meta", attrs={"name": key}) or soup.find("meta", attrs={"property": key})
    if tag is None:
        return None
    content = (tag.get("content") or "").strip()
    return content or None


def link_href(soup: BeautifulSoup, rel: str) -> Optional[str]:
    tag = soup.find("link", rel=rel)
    if tag is None:
        return None
    return tag.get("href") or None


def extract_charset(soup: BeautifulSoup) -> Optional[str]:
    tag = soup.find("meta", charset=True)
    if tag is not None:
        return tag["charset"].strip() or None

    tag = soup.find("meta", attrs={"http-equiv": re.compile("^content-type$", re.IGNORECASE)})
    if tag is not None:
        match = _CHARSET_IN_CONTENT_TYPE.search(tag.get("content") or "")
        if match:
            return match.group(1)
    return None


def _collect(soup: BeautifulSoup, attribute: str, prefix: str) -> Dict[str, str]:
    collected: Dict[str, str] = {}
    pattern = re.compile(f"^{re.escape(prefix)}")
    for tag in soup.find_all("meta", attrs={attribute: pattern}):
        key = tag.get(attribute)
        content = tag.get("content")
        if key and content:
            collected[key] = content
    return collected


def extract_open_graph(soup: BeautifulSoup) -> Dict[str, str]:
    """Every ``og:*`` meta property, keyed by property."""
    return _collect(soup, "property", "og:")


def extract_twitter_card(soup: BeautifulSoup) -> Dict[str, str]:
    """Every ``twitter:*`` meta name, keyed by name."""
    return _collect(soup, "name", "twitter:")


def extract_metadata(soup: BeautifulSoup) -> Metadata:
    return Metadata(
        charset=extract_charset(soup),
        viewport=meta_content(soup, "viewport"),
        robots=meta_content(soup, "robots"),
        canonical=link_href(soup, "canonical"),
        open_graph=extract_open_graph(soup),
        twitter_card=extract_twitter_card(soup),
        json_ld=parse_json_ld(soup),
    )


def extract_keywords(soup: BeautifulSoup) -> List[str]:
    content = meta_content(soup, "keywords")
    if not content:
        return []
    return [keyword.strip() for keyword in content.split(",") if keyword.strip()]


def extract_social_media(soup: BeautifulSoup) -> Dict[str, str]:
    social: Dict[str, str] = {}
    for platform, selector in SOCIAL_SELECTORS.items():
        anchor = soup.select_one(selector)
        if anchor is not None and anchor.get("href"):
            social[platform] = anchor["href"]
    return social
