"""
Evasion Module

Fingerprint evasion as data: launch switches, viewport candidates, and a declarative
list of (property path, override) patches applied to the page environment.
"""

import json
import random
from dataclasses import dataclass
from enum import Enum
from typing import Any


class PatchKind(Enum):
    """How a patch's value is interpreted."""
    VALUE = "value"    # JSON value returned by the property getter
    SCRIPT = "script"  # JS expression; ``original`` is bound to the previous value


@dataclass(frozen=True)
class EnvironmentPatch:
    """Override for one property of the page environment."""

    path: str  # e.g. "navigator.webdriver", "Date.prototype.getTimezoneOffset"
    value: Any = None
    kind: PatchKind = PatchKind.VALUE

    @property
    def parent_path(self) -> str:
        parent, _, _ = self.path.rpartition(".")
        return "" if parent == "window" else parent.removeprefix("window.")

    @property
    def key(self) -> str:
        return self.path.rpartition(".")[2]

    def render_factory(self) -> str:
        """JS arrow function mapping the original value to the replacement."""
        if self.kind is PatchKind.SCRIPT:
            return f"(original) => ({self.value})"
        if self.value is None:
            return "(original) => undefined"
        return f"(original) => ({json.dumps(self.value)})"


@dataclass(frozen=True)
class Viewport:
    width: int
    height: int


VIEWPORTS = (
    Viewport(1920, 1080),
    Viewport(1366, 768),
    Viewport(1440, 900),
    Viewport(1536, 864),
    Viewport(1280, 720),
    Viewport(1600, 900),
    Viewport(1024, 768),
)

# Chromium switches that reveal or aid automation
STEALTH_ARGS = (
    "--no-sandbox",
    "--disable-dev-shm-usage",
    "--disable-blink-features=AutomationControlled",
    "--disable-extensions",
    "--disable-gpu",
    "--no-first-run",
    "--no-default-browser-check",
    "--disable-default-apps",
    "--disable-popup-blocking",
    "--disable-translate",
    "--disable-background-timer-throttling",
    "--disable-renderer-backgrounding",
    "--disable-backgrounding-occluded-windows",
    "--disable-client-side-phishing-detection",
    "--disable-sync",
    "--disable-features=TranslateUI,BlinkGenPropertyTrees",
    "--disable-ipc-flooding-protection",
    "--disable-hang-monitor",
    "--disable-prompt-on-repost",
    "--disable-domain-reliability",
    "--disable-component-extensions-with-background-pages",
    "--disable-background-networking",
    "--disable-breakpad",
    "--disable-component-update",
    "--disable-logging",
    "--disable-login-animations",
    "--disable-notifications",
    "--ignore-certificate-errors",
)

# Default switches the automation driver adds and a stealth session drops
SUPPRESSED_DEFAULT_ARGS = ("--enable-automation", "--enable-logging")

_PLUGINS = [
    {
        "name": "Chrome PDF Plugin",
        "filename": "internal-pdf-viewer",
        "description": "Portable Document Format",
        "length": 1,
    },
    {
        "name": "Chrome PDF Viewer",
        "filename": "mhjfbmdgcfjbbpaeojofohoefgiehjai",
        "description": "",
        "length": 1,
    },
]


def random_viewport(rng: random.Random | None = None) -> Viewport:
    """Pick one of the common desktop viewports."""
    return (rng or random).choice(VIEWPORTS)


def build_environment_patches(viewport: Viewport) -> tuple[EnvironmentPatch, ...]:
    """
    The fixed battery of environment overrides for a stealth session.

    Args:
        viewport: The session viewport; reported screen dimensions match it

    Returns:
        Patches in application order
    """
    return (
        EnvironmentPatch("navigator.webdriver", None),
        EnvironmentPatch("navigator.plugins", _PLUGINS),
        EnvironmentPatch("navigator.languages", ["en-US", "en"]),
        EnvironmentPatch(
            "window.chrome",
            "original || { runtime: {}, app: {}, loadTimes: function () {}, csi: function () {} }",
            PatchKind.SCRIPT,
        ),
        EnvironmentPatch(
            "navigator.permissions.query",
            "function (parameters) { return parameters && parameters.name === 'notifications'"
            " ? Promise.resolve({ state: Notification.permission })"
            " : original.call(navigator.permissions, parameters); }",
            PatchKind.SCRIPT,
        ),
        EnvironmentPatch("screen.width", viewport.width),
        EnvironmentPatch("screen.height", viewport.height),
        EnvironmentPatch("screen.availWidth", viewport.width),
        EnvironmentPatch("screen.availHeight", viewport.height),
        EnvironmentPatch(
            "Date.prototype.getTimezoneOffset",
            "function () { return -original.call(this); }",
            PatchKind.SCRIPT,
        ),
        EnvironmentPatch(
            "navigator.getBattery",
            "function () { return Promise.resolve({ charging: true, chargingTime: 0,"
            " dischargingTime: Infinity, level: 1 }); }",
            PatchKind.SCRIPT,
        ),
        EnvironmentPatch(
            "navigator.connection",
            {"downlink": 10, "effectiveType": "4g", "rtt": 50, "saveData": False},
        ),
        EnvironmentPatch("navigator.hardwareConcurrency", 4),
        EnvironmentPatch("navigator.deviceMemory", 8),
    )


def render_patch_script(patches: tuple[EnvironmentPatch, ...] | list[EnvironmentPatch]) -> str:
    """
    Render patches as one JS statement block.

    Each patch is applied independently; a patch whose parent is missing
    in this browser is skipped.
    """
    lines = [
        "const __applyPatch = (parentPath, key, factory) => {",
        "  try {",
        "    const parent = parentPath ? parentPath.split('.').reduce((o, k) => o[k], window) : window;",
        "    const replacement = factory(parent[key]);",
        "    Object.defineProperty(parent, key, { get: () => replacement, configurable: true });",
        "  } catch (e) {}",
        "};",
    ]
    for patch in patches:
        lines.append(
            f"__applyPatch({json.dumps(patch.parent_path)}, {json.dumps(patch.key)}, "
            f"{patch.render_factory()});"
        )
    return "\n".join(lines)
