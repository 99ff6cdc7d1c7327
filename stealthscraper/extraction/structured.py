"""
Structured data: JSON-LD blocks and microdata items.
"""

import json
import logging
from typing import Any, Dict, List

from bs4 import BeautifulSoup, Tag

from stealthscraper.pipeline.cleaner import TextCleaner


logger = logging.getLogger(__name__)

_cleaner = TextCleaner()


def parse_json_ld(soup: BeautifulSoup) -> List[Any]:
    """
    Parse every ``application/ld+json`` script block.

    Unparsable blocks are skipped; the rest of the batch is kept.
    """
    blocks: List[Any] = []

    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        content = script.string if script.string is not None else script.get_text()
        if not content or not content.strip():
            continue
        try:
            blocks.append(json.loads(content))
        except ValueError as e:
            logger.debug(f"Skipping unparsable JSON-LD block: {e}")

    return blocks


def _owning_scope(element: Tag) -> Tag | None:
    return element.find_parent(attrs={"itemscope": True})


def extract_microdata(soup: BeautifulSoup) -> List[Dict[str, Any]]:
    """
    One object per ``itemscope`` element.

    Properties come from the ``itemprop`` elements that belong to that scope
    (not to a nested one); the ``content`` attribute wins over visible text.
    """
    items: List[Dict[str, Any]] = []

    for scope in soup.find_all(attrs={"itemscope": True}):
        properties: Dict[str, str] = {}

        for prop in scope.find_all(attrs={"itemprop": True}):
            if _owning_scope(prop) is not scope:
                continue
            name = prop.get("itemprop")
            if isinstance(name, list):
                name = " ".join(name)
            value = prop.get("content") or _cleaner.clean_text(prop.get_text(" "))
            if name and value:
                properties[name] = value

        if properties:
            items.append({"@type": scope.get("itemtype"), **properties})

    return items


def extract_structured_data(soup: BeautifulSoup) -> List[Any]:
    """JSON-LD blocks followed by microdata items."""
    return [*parse_json_ld(soup), *extract_microdata(soup)]
