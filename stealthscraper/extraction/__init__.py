"""Extraction module - DOM to ExtractedContent."""

from .engine import ContentExtractionEngine, DomSnapshot
from .links import classify_link, image_format
from .contact import extract_contact_info

__all__ = ["ContentExtractionEngine", "DomSnapshot", "classify_link", "image_format", "extract_contact_info"]
