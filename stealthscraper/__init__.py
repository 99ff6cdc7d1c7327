"""
Stealth Scraper - Browser-driven page extraction with anti-bot evasion.

This package provides:
- Stealth browser sessions (evasion switches, fingerprint patches, CAPTCHA observation)
- Human behavior simulation and lazy-load scrolling
- Structured content extraction from the rendered DOM
- Resilient image downloading
- Sliding-window rate limiting and proxy rotation
"""

__version__ = "1.0.0"
__author__ = "Scrape_U"
