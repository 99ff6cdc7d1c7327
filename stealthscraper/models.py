"""
Data models for scrape requests and extracted content.

All models are immutable pydantic models. JSON output uses camelCase aliases
(``textContent``, ``captchaDetected``); both spellings are accepted on input.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel


class _Model(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


# --- Request ---

class ScrapeOptions(_Model):
    """Extraction toggles and behavior knobs for one scrape."""

    extract_text: bool = True
    extract_images: bool = True
    extract_links: bool = True
    bypass_anti_bot: bool = True
    use_proxy: bool = False
    wait_time: int = Field(default=1000, ge=0, description="Extra wait before extraction (ms)")
    scroll_to_bottom: bool = False
    human_behavior: bool = False
    stealth_mode: bool = False
    proxy_url: Optional[str] = None

    @property
    def stealth_enabled(self) -> bool:
        """Evasion configuration applies when either flag is set."""
        return self.bypass_anti_bot or self.stealth_mode


class ScrapeRequest(_Model):
    """A validated scrape request."""

    url: str
    options: ScrapeOptions = Field(default_factory=ScrapeOptions, alias="config")

    @field_validator("url")
    @classmethod
    def _absolute_http_url(cls, value: str) -> str:
        value = value.strip()
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            raise ValueError("must be an absolute http(s) URL")
        return value


# --- Content blocks ---

class Heading(_Model):
    level: int = Field(ge=1, le=6)
    text: str
    id: Optional[str] = None


class ListBlock(_Model):
    type: Literal["ordered", "unordered"]
    items: List[str] = Field(default_factory=list)


class Table(_Model):
    headers: List[str] = Field(default_factory=list)
    rows: List[List[str]] = Field(default_factory=list)
    caption: Optional[str] = None


class FormField(_Model):
    name: Optional[str] = None
    type: str = "text"
    label: Optional[str] = None
    placeholder: Optional[str] = None
    required: bool = False
    options: Optional[List[str]] = None


class Form(_Model):
    action: Optional[str] = None
    method: Optional[str] = None
    fields: List[FormField] = Field(default_factory=list)


class ImageRecord(_Model):
    """An image referenced by the page, optionally materialized locally."""

    src: str
    alt: str = ""
    title: Optional[str] = None
    width: Optional[str] = None
    height: Optional[str] = None
    format: Optional[str] = None
    size: Optional[int] = None
    downloaded: bool = False
    local_path: Optional[str] = None


LinkType = Literal["internal", "external", "email", "phone", "file"]


class LinkRecord(_Model):
    href: str
    text: str = ""
    title: Optional[str] = None
    type: LinkType
    domain: Optional[str] = None


class Metadata(_Model):
    charset: Optional[str] = None
    viewport: Optional[str] = None
    robots: Optional[str] = None
    canonical: Optional[str] = None
    open_graph: Dict[str, str] = Field(default_factory=dict)
    twitter_card: Dict[str, str] = Field(default_factory=dict)
    json_ld: List[Any] = Field(default_factory=list)


class ContactInfo(_Model):
    """Deduplicated contact details found in the rendered text."""

    emails: frozenset[str] = frozenset()
    phones: frozenset[str] = frozenset()
    addresses: frozenset[str] = frozenset()

    @field_serializer("emails", "phones", "addresses")
    def _sorted(self, values: frozenset[str]) -> List[str]:
        return sorted(values)


# --- Extraction report ---

class FieldFailure(_Model):
    field: str
    error: str


class ExtractionReport(_Model):
    """Field extractors that failed and were degraded to empty values."""

    degraded: List[FieldFailure] = Field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return not self.degraded

    @property
    def degraded_fields(self) -> List[str]:
        return [failure.field for failure in self.degraded]


# --- Aggregate ---

class ExtractedContent(_Model):
    """Everything extracted from one page, returned as a single value."""

    url: str
    title: str = ""
    description: Optional[str] = None
    keywords: List[str] = Field(default_factory=list)
    author: Optional[str] = None
    publish_date: Optional[str] = None
    language: str = "en"
    text_content: str = ""
    cleaned_text: str = ""
    headings: List[Heading] = Field(default_factory=list)
    paragraphs: List[str] = Field(default_factory=list)
    lists: List[ListBlock] = Field(default_factory=list)
    tables: List[Table] = Field(default_factory=list)
    forms: List[Form] = Field(default_factory=list)
    images: List[ImageRecord] = Field(default_factory=list)
    links: List[LinkRecord] = Field(default_factory=list)
    metadata: Metadata = Field(default_factory=Metadata)
    structured_data: List[Any] = Field(default_factory=list)
    social_media: Dict[str, str] = Field(default_factory=dict)
    contact_info: ContactInfo = Field(default_factory=ContactInfo)
    downloaded_images: Optional[List[str]] = None
    captcha_detected: bool = False
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    extraction_report: ExtractionReport = Field(default_factory=ExtractionReport)

    def to_json(self, indent: int | None = 2) -> str:
        """Serialize with camelCase keys."""
        return self.model_dump_json(by_alias=True, indent=indent)
