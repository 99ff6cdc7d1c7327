"""
User-Agent Rotator Module

Picks modern desktop browser fingerprints for stealth sessions and image requests.
Always use modern, real browser fingerprints - never use default Python-Requests agent.
"""

import random
from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class BrowserProfile:
    """A complete browser fingerprint with matching headers."""

    user_agent: str
    sec_ch_ua: str = ""
    sec_ch_ua_platform: str = ""
    accept_language: str = "en-US,en;q=0.9"

    @property
    def sends_client_hints(self) -> bool:
        """Chromium browsers send Sec-Ch-Ua headers; Firefox and Safari don't."""
        return bool(self.sec_ch_ua)


# Desktop-only: the launched browser is a desktop Chromium with a desktop viewport
DESKTOP_PROFILES = [
    # Chrome on Windows
    BrowserProfile(
        user_agent="Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
        sec_ch_ua='"Chromium";v="124", "Google Chrome";v="124", "Not-A.Brand";v="99"',
        sec_ch_ua_platform='"Windows"',
    ),
    BrowserProfile(
        user_agent="Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/123.0.0.0 Safari/537.36",
        sec_ch_ua='"Google Chrome";v="123", "Not:A-Brand";v="8", "Chromium";v="123"',
        sec_ch_ua_platform='"Windows"',
    ),
    # Chrome on macOS
    BrowserProfile(
        user_agent="Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
        sec_ch_ua='"Chromium";v="124", "Google Chrome";v="124", "Not-A.Brand";v="99"',
        sec_ch_ua_platform='"macOS"',
    ),
    # Chrome on Linux
    BrowserProfile(
        user_agent="Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
        sec_ch_ua='"Chromium";v="124", "Google Chrome";v="124", "Not-A.Brand";v="99"',
        sec_ch_ua_platform='"Linux"',
    ),
    # Edge on Windows
    BrowserProfile(
        user_agent="Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36 Edg/124.0.0.0",
        sec_ch_ua='"Chromium";v="124", "Microsoft Edge";v="124", "Not-A.Brand";v="99"',
        sec_ch_ua_platform='"Windows"',
    ),
    # Firefox on Windows / macOS
    BrowserProfile(
        user_agent="Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:125.0) Gecko/20100101 Firefox/125.0",
    ),
    BrowserProfile(
        user_agent="Mozilla/5.0 (Macintosh; Intel Mac OS X 10.15; rv:125.0) Gecko/20100101 Firefox/125.0",
    ),
    # Safari on macOS
    BrowserProfile(
        user_agent="Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.4 Safari/605.1.15",
    ),
]


class UserAgentRotator:
    """
    Rotates desktop User-Agent strings with matching Client Hints.

    Example:
        rotator = UserAgentRotator()
        user_agent = rotator.get_user_agent()
        headers = rotator.get_headers()
    """

    def __init__(
        self,
        profiles: list[BrowserProfile] | None = None,
        rng: random.Random | None = None,
    ):
        """
        Initialize the rotator.

        Args:
            profiles: Custom browser profiles (uses desktop defaults if None)
            rng: Random source (module-level random if None)
        """
        self._profiles = list(profiles) if profiles is not None else DESKTOP_PROFILES.copy()
        self._rng = rng or random.Random()

    def get_random_profile(self) -> BrowserProfile:
        """Get a random browser profile."""
        return self._rng.choice(self._profiles)

    def get_user_agent(self) -> str:
        """Get just a random User-Agent string."""
        return self.get_random_profile().user_agent

    def get_headers(self, accept: str | None = None) -> Dict[str, str]:
        """
        Get a complete set of request headers for a random profile.

        Args:
            accept: Accept header override (defaults to a document Accept)

        Returns:
            Dict of HTTP headers
        """
        profile = self.get_random_profile()

        headers = {
            "User-Agent": profile.user_agent,
            "Accept": accept or "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
            "Accept-Language": profile.accept_language,
            # Accept-Encoding is left to httpx, which handles decompression
            "DNT": "1",
            "Connection": "keep-alive",
        }

        if profile.sends_client_hints:
            headers["Sec-Ch-Ua"] = profile.sec_ch_ua
            headers["Sec-Ch-Ua-Mobile"] = "?0"
            headers["Sec-Ch-Ua-Platform"] = profile.sec_ch_ua_platform

        return headers

    @property
    def profile_count(self) -> int:
        """Number of available profiles."""
        return len(self._profiles)
