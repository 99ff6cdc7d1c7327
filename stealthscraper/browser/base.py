"""
Browser Automation Capability

The scrape pipeline drives a browser only through these protocols, so any backend
(Playwright, a remote WebDriver, an in-memory fake) can be injected.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, Sequence, runtime_checkable

from stealthscraper.stealth.evasion import EnvironmentPatch, Viewport


@dataclass
class LaunchOptions:
    """Everything a backend needs to start one session."""

    headless: bool = True
    args: list[str] = field(default_factory=list)
    ignore_default_args: list[str] = field(default_factory=list)
    user_agent: Optional[str] = None
    viewport: Optional[Viewport] = None
    proxy_url: Optional[str] = None
    stealth: bool = False
    navigation_timeout: int = 30000


@runtime_checkable
class BrowserElement(Protocol):
    async def get_attribute(self, name: str) -> Optional[str]: ...

    async def get_text(self) -> str: ...


@runtime_checkable
class BrowserSession(Protocol):
    """One live browser connection. Processes one command at a time."""

    async def navigate(self, url: str) -> None: ...

    async def execute_script(self, code: str) -> Any:
        """Run a JS statement block; its ``return`` value is passed back."""
        ...

    async def find_all(self, selector: str) -> Sequence[BrowserElement]: ...

    async def patch_environment(self, patches: Sequence[EnvironmentPatch]) -> None: ...

    async def wait(self, ms: int) -> None: ...

    async def quit(self) -> None: ...


@runtime_checkable
class BrowserLauncher(Protocol):
    async def launch(self, options: LaunchOptions) -> BrowserSession: ...
