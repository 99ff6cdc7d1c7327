"""
Configuration module for the Stealth Scraper.

Uses Pydantic Settings for type-safe configuration with environment variable support.
Components receive these objects through their constructors; nothing reads a
module-level instance.
"""

from pathlib import Path
from typing import Literal
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RateLimitConfig(BaseSettings):
    """Sliding-window rate limiting configuration."""

    model_config = SettingsConfigDict(env_prefix="SCRAPER_RATE_")

    max_requests: int = Field(default=10, ge=1, description="Maximum requests per window and identifier")
    window_seconds: float = Field(default=60.0, gt=0, description="Length of the rolling window (seconds)")
    wait_buffer_seconds: float = Field(default=1.0, description="Safety buffer added to computed waits")


class ProxySettings(BaseSettings):
    """Proxy rotation configuration."""

    model_config = SettingsConfigDict(env_prefix="SCRAPER_PROXY_")

    enabled: bool = Field(default=False, description="Rotate through configured proxies")
    proxy_file: Path | None = Field(default=None, description="Path to proxy list file")
    rotation_strategy: Literal["round_robin", "random"] = Field(
        default="round_robin",
        description="Proxy rotation strategy"
    )
    health_check_url: str = Field(default="https://httpbin.org/ip", description="URL probed by health checks")
    health_check_timeout: float = Field(default=10.0, description="Health check timeout in seconds")


class BrowserConfig(BaseSettings):
    """Browser session and human-behavior timing configuration."""

    model_config = SettingsConfigDict(env_prefix="SCRAPER_BROWSER_")

    headless: bool = Field(default=False, description="Run browser headless outside production")
    navigation_timeout: int = Field(default=30000, description="Page load timeout in milliseconds")

    # Navigation timing
    settle_delay_min: int = Field(default=2000, description="Minimum post-load settle delay (ms)")
    settle_delay_max: int = Field(default=4000, description="Maximum post-load settle delay (ms)")
    captcha_pause: int = Field(default=5000, description="Grace pause after a CAPTCHA is observed (ms)")

    # Human behavior
    mouse_moves: int = Field(default=3, description="Synthetic pointer moves per simulation")
    human_pause_min: int = Field(default=500, description="Minimum pause after simulated behavior (ms)")
    human_pause_max: int = Field(default=1500, description="Maximum pause after simulated behavior (ms)")

    # Scrolling
    scroll_step_min: int = Field(default=50, description="Minimum scroll step (px)")
    scroll_step_max: int = Field(default=200, description="Maximum scroll step (px)")
    scroll_interval_min: int = Field(default=100, description="Minimum interval between steps (ms)")
    scroll_interval_max: int = Field(default=300, description="Maximum interval between steps (ms)")
    scroll_overshoot_max: int = Field(default=100, description="Maximum scroll-back correction (px)")
    max_scroll_steps: int = Field(default=1000, description="Upper bound on steps for ever-growing pages")


class StorageConfig(BaseSettings):
    """Image download and export storage configuration."""

    model_config = SettingsConfigDict(env_prefix="SCRAPER_STORAGE_")

    download_dir: Path = Field(default=Path("downloads"), description="Downloaded image directory")
    export_dir: Path = Field(default=Path("storage/exports"), description="Export files directory")
    download_workers: int = Field(default=4, description="Concurrent image downloads")
    download_timeout: float = Field(default=30.0, description="Image request timeout in seconds")


class ScraperConfig(BaseSettings):
    """Main scraper configuration aggregating all sub-configs."""

    model_config = SettingsConfigDict(
        env_prefix="SCRAPER_",
        env_nested_delimiter="__",
    )

    # Sub-configurations
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    proxy: ProxySettings = Field(default_factory=ProxySettings)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)

    # Execution context; headless mode is forced in production
    environment: Literal["development", "production"] = Field(
        default="development",
        description="Execution context"
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level"
    )

    @property
    def is_production(self) -> bool:
        """Whether the scraper runs in a production context."""
        return self.environment == "production"

    def ensure_directories(self) -> None:
        """Create necessary storage directories if they don't exist."""
        self.storage.download_dir.mkdir(parents=True, exist_ok=True)
        self.storage.export_dir.mkdir(parents=True, exist_ok=True)
