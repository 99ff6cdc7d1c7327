"""Stealth module - browser fingerprints, evasion patches and proxy rotation."""

from .user_agents import UserAgentRotator
from .proxy_pool import ProxyConfig, ProxyManager
from .evasion import EnvironmentPatch, Viewport

__all__ = ["UserAgentRotator", "ProxyConfig", "ProxyManager", "EnvironmentPatch", "Viewport"]
