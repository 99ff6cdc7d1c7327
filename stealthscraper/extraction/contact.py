"""
Contact detail heuristics over rendered page text.

These are best-effort patterns, not RFC-exact validators.
"""

import re

from stealthscraper.models import ContactInfo


EMAIL_PATTERN = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")

# North American numbers: optional +1, optional parentheses, -, . or space separators
PHONE_PATTERN = re.compile(
    r"(?<![\w+])(\+?1[-.\s]?)?\(?(\d{3})\)?[-.\s]?(\d{3})[-.\s]?(\d{4})(?!\d)"
)

ADDRESS_PATTERN = re.compile(
    r"\d+\s+[A-Za-z0-9\s,.-]+"
    r"(?:Street|St|Avenue|Ave|Road|Rd|Boulevard|Blvd|Lane|Ln|Drive|Dr|Court|Ct|Place|Pl)"
    r"\s*,?\s*[A-Za-z\s]+,?\s*[A-Z]{2}\s*\d{5}"
)


def normalize_phone(match: re.Match) -> str:
    """Render a phone match as "(212) 555-1234" or "+1 (212) 555-1234"."""
    country, area, exchange, line = match.groups()
    prefix = "+1 " if country else ""
    return f"{prefix}({area}) {exchange}-{line}"


def find_emails(text: str) -> frozenset[str]:
    return frozenset(EMAIL_PATTERN.findall(text))


def find_phones(text: str) -> frozenset[str]:
    return frozenset(normalize_phone(m) for m in PHONE_PATTERN.finditer(text))


def find_addresses(text: str) -> frozenset[str]:
    return frozenset(" ".join(m.group(0).split()) for m in ADDRESS_PATTERN.finditer(text))


def extract_contact_info(text: str) -> ContactInfo:
    """
    Run the three matchers independently over the text.

    Args:
        text: Rendered page text

    Returns:
        ContactInfo with deduplicated emails, phones and addresses
    """
    if not text:
        return ContactInfo()

    return ContactInfo(
        emails=find_emails(text),
        phones=find_phones(text),
        addresses=find_addresses(text),
    )
