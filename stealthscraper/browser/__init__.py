"""Browser module - the automation capability and its Playwright backend."""

from .base import BrowserElement, BrowserLauncher, BrowserSession, LaunchOptions
from .playwright_backend import PlaywrightLauncher

__all__ = ["BrowserElement", "BrowserLauncher", "BrowserSession", "LaunchOptions", "PlaywrightLauncher"]
