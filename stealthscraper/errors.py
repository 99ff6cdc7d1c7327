"""Exception hierarchy for the scrape pipeline."""

from typing import Any, Dict, Optional


class ScraperError(Exception):
    """Base class for scrape pipeline errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code or "SCRAPER_ERROR"
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Structured error body: {"error", "details"}."""
        body: Dict[str, Any] = {"error": self.message, "code": self.error_code}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(ScraperError):
    """The scrape request is malformed (e.g. not an absolute http(s) URL)."""

    def __init__(self, field: str, value: Any, reason: str):
        super().__init__(
            message=f"Validation failed for field '{field}': {reason}",
            error_code="VALIDATION_ERROR",
            details={"field": field, "value": value, "reason": reason},
        )


class SessionInitError(ScraperError):
    """The browser automation backend could not start a session."""

    def __init__(self, reason: str):
        super().__init__(
            message=f"Failed to initialize browser session: {reason}",
            error_code="SESSION_INIT_ERROR",
            details={"reason": reason},
        )


class NavigationError(ScraperError):
    """The page could not be loaded."""

    def __init__(self, url: str, reason: str):
        super().__init__(
            message=f"Navigation to {url} failed: {reason}",
            error_code="NAVIGATION_ERROR",
            details={"url": url, "reason": reason},
        )


class ExtractionFieldError(ScraperError):
    """A single field extractor failed. Recovered inside the engine."""

    def __init__(self, field: str, reason: str):
        super().__init__(
            message=f"Extraction of '{field}' failed: {reason}",
            error_code="EXTRACTION_FIELD_ERROR",
            details={"field": field, "reason": reason},
        )


class ImageFetchError(ScraperError):
    """A single image could not be fetched or stored. Recovered per item."""

    def __init__(self, src: str, reason: str):
        super().__init__(
            message=f"Image download failed for {src}: {reason}",
            error_code="IMAGE_FETCH_ERROR",
            details={"src": src, "reason": reason},
        )
