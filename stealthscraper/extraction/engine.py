"""
Content Extraction Engine

Turns the live DOM of an active session into an ExtractedContent value.

The DOM is read with one batched script (location, title, language, serialized
document and rendered text) and parsed locally with BeautifulSoup. Every field
extractor then runs in isolation: a failure degrades that field to its empty value
and is recorded in the ExtractionReport, and ``extract_all`` itself never raises.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, TypeVar

from bs4 import BeautifulSoup, Comment, Tag

from stealthscraper.errors import ExtractionFieldError
from stealthscraper.extraction.contact import extract_contact_info
from stealthscraper.extraction.links import classify_link, image_format, resolve_url
from stealthscraper.extraction.metadata import (
    extract_keywords,
    extract_metadata,
    extract_social_media,
    meta_content,
)
from stealthscraper.extraction.structured import extract_structured_data
from stealthscraper.models import (
    ContactInfo,
    ExtractedContent,
    ExtractionReport,
    FieldFailure,
    Form,
    FormField,
    Heading,
    ImageRecord,
    LinkRecord,
    ListBlock,
    Metadata,
    ScrapeOptions,
    Table,
)
from stealthscraper.pipeline.cleaner import TextCleaner
from stealthscraper.session import ScrapeSession


logger = logging.getLogger(__name__)

T = TypeVar("T")

SNAPSHOT_SCRIPT = """
const root = document.documentElement;
return {
  url: window.location.href,
  title: document.title || '',
  lang: root ? (root.getAttribute('lang') || '') : '',
  html: root ? root.outerHTML : '',
  text: document.body ? document.body.innerText : ''
};
"""

MIN_PARAGRAPH_LENGTH = 10

_HEADING_TAGS = re.compile(r"^h[1-6]$")

_NON_RENDERED_TAGS = frozenset({"script", "style", "noscript", "template"})


@dataclass
class DomSnapshot:
    """Everything read from the browser in one round trip."""

    url: str = ""
    title: str = ""
    lang: str = ""
    html: str = ""
    text: str = ""

    @classmethod
    def from_script_result(cls, result: Any) -> "DomSnapshot":
        if not isinstance(result, dict):
            raise TypeError(f"Unexpected snapshot result: {type(result).__name__}")
        return cls(**{key: str(result.get(key) or "") for key in ("url", "title", "lang", "html", "text")})


class ContentExtractionEngine:
    """
    Extracts the structured content model from a session's current page.

    Example:
        engine = ContentExtractionEngine()
        content = await engine.extract_all(session, "https://example.com")
        if not content.extraction_report.is_complete:
            print(content.extraction_report.degraded_fields)
    """

    def __init__(self, cleaner: TextCleaner | None = None, parser: str = "lxml"):
        """
        Initialize the engine.

        Args:
            cleaner: Text normalizer for element text and cleaned_text
            parser: BeautifulSoup tree builder
        """
        self._cleaner = cleaner or TextCleaner()
        self._parser = parser

    async def snapshot(self, session: ScrapeSession) -> DomSnapshot:
        """Read the current document from the browser."""
        result = await session.browser.execute_script(SNAPSHOT_SCRIPT)
        return DomSnapshot.from_script_result(result)

    async def extract_all(
        self,
        session: ScrapeSession,
        base_url: str,
        options: ScrapeOptions | None = None,
    ) -> ExtractedContent:
        """
        Extract every field from the session's current page.

        Args:
            session: Active session, already navigated
            base_url: URL used to resolve and classify links and images
            options: Extraction toggles (session options if None)

        Returns:
            The assembled ExtractedContent; failed fields are empty and reported
        """
        options = options or session.options
        failures: List[FieldFailure] = []

        try:
            snapshot = await self.snapshot(session)
        except Exception as e:
            failures.append(self._record_failure("snapshot", e))
            snapshot = DomSnapshot()

        return self.extract_from_snapshot(snapshot, base_url, options, failures)

    def extract_from_snapshot(
        self,
        snapshot: DomSnapshot,
        base_url: str,
        options: ScrapeOptions | None = None,
        failures: List[FieldFailure] | None = None,
    ) -> ExtractedContent:
        """Run all field extractors over an already-read snapshot."""
        options = options or ScrapeOptions()
        failures = failures if failures is not None else []

        def isolated(field: str, extractor: Callable[[], T], default: T) -> T:
            try:
                return extractor()
            except Exception as e:
                failures.append(self._record_failure(field, e))
                return default

        soup = isolated(
            "document",
            lambda: BeautifulSoup(snapshot.html, self._parser),
            BeautifulSoup("", self._parser),
        )

        metadata = isolated("metadata", lambda: extract_metadata(soup), Metadata())
        text_content = isolated("text_content", lambda: self._text_content(snapshot, soup), "")

        fields: Dict[str, Any] = {
            "url": snapshot.url or base_url,
            "title": isolated("title", lambda: self._title(snapshot, soup), ""),
            "description": isolated(
                "description",
                lambda: metadata.open_graph.get("og:description") or meta_content(soup, "description"),
                None,
            ),
            "keywords": isolated("keywords", lambda: extract_keywords(soup), []),
            "author": isolated(
                "author",
                lambda: metadata.open_graph.get("og:author") or meta_content(soup, "author"),
                None,
            ),
            "publish_date": isolated(
                "publish_date",
                lambda: metadata.open_graph.get("og:published_time")
                or meta_content(soup, "article:published_time"),
                None,
            ),
            "language": isolated("language", lambda: self._language(snapshot, soup), "en"),
            "headings": isolated("headings", lambda: self.extract_headings(soup), []),
            "lists": isolated("lists", lambda: self.extract_lists(soup), []),
            "tables": isolated("tables", lambda: self.extract_tables(soup), []),
            "forms": isolated("forms", lambda: self.extract_forms(soup), []),
            "metadata": metadata,
            "structured_data": isolated("structured_data", lambda: extract_structured_data(soup), []),
            "social_media": isolated("social_media", lambda: extract_social_media(soup), {}),
            "contact_info": isolated("contact_info", lambda: extract_contact_info(text_content), ContactInfo()),
        }

        if options.extract_text:
            fields["text_content"] = text_content
            fields["cleaned_text"] = isolated("cleaned_text", lambda: self._cleaner.clean_text(text_content), "")
            fields["paragraphs"] = isolated("paragraphs", lambda: self.extract_paragraphs(soup), [])

        if options.extract_images:
            fields["images"] = isolated("images", lambda: self.extract_images(soup, base_url), [])

        if options.extract_links:
            fields["links"] = isolated("links", lambda: self.extract_links(soup, base_url), [])

        try:
            return ExtractedContent(**fields, extraction_report=ExtractionReport(degraded=failures))
        except Exception as e:
            failures.append(self._record_failure("content", e))
            return ExtractedContent(
                url=fields["url"],
                extraction_report=ExtractionReport(degraded=failures),
            )

    @staticmethod
    def _record_failure(field: str, error: Exception) -> FieldFailure:
        failure = ExtractionFieldError(field, f"{type(error).__name__}: {error}")
        logger.warning(failure.message)
        return FieldFailure(field=field, error=failure.details["reason"])

    # --- Page-level fields ---

    def _text(self, element: Tag) -> str:
        return self._cleaner.clean_text(element.get_text(" "))

    def _title(self, snapshot: DomSnapshot, soup: BeautifulSoup) -> str:
        if snapshot.title:
            return snapshot.title.strip()
        return self._text(soup.title) if soup.title else ""

    @staticmethod
    def _language(snapshot: DomSnapshot, soup: BeautifulSoup) -> str:
        if snapshot.lang:
            return snapshot.lang
        html_tag = soup.find("html")
        lang = html_tag.get("lang") if html_tag else None
        return lang or "en"

    @staticmethod
    def _text_content(snapshot: DomSnapshot, soup: BeautifulSoup) -> str:
        """Rendered body text; falls back to the parsed body when the browser gave none."""
        if snapshot.text:
            return snapshot.text
        body = soup.body
        if body is None:
            return ""
        parts = [
            text.strip()
            for text in body.find_all(string=True)
            if not isinstance(text, Comment)
            and text.parent.name not in _NON_RENDERED_TAGS
            and text.strip()
        ]
        return "\n".join(parts)

    # --- Content blocks ---

    def extract_headings(self, soup: BeautifulSoup) -> List[Heading]:
        """h1-h6 in document order."""
        headings = []
        for element in soup.find_all(_HEADING_TAGS):
            text = self._text(element)
            if text:
                headings.append(
                    Heading(level=int(element.name[1]), text=text, id=element.get("id") or None)
                )
        return headings

    def extract_paragraphs(self, soup: BeautifulSoup) -> List[str]:
        paragraphs = []
        for element in soup.find_all("p"):
            text = self._text(element)
            if len(text) > MIN_PARAGRAPH_LENGTH:
                paragraphs.append(text)
        return paragraphs

    def extract_lists(self, soup: BeautifulSoup) -> List[ListBlock]:
        """Ordered lists first, then unordered ones; empty lists are dropped."""
        lists = []
        for tag_name, list_type in (("ol", "ordered"), ("ul", "unordered")):
            for element in soup.find_all(tag_name):
                items = [text for text in (self._text(li) for li in element.find_all("li")) if text]
                if items:
                    lists.append(ListBlock(type=list_type, items=items))
        return lists

    def extract_tables(self, soup: BeautifulSoup) -> List[Table]:
        """Caption, header cells and data rows; tables without data rows are dropped."""
        tables = []
        for element in soup.find_all("table"):
            caption_tag = element.find("caption")
            caption = self._text(caption_tag) if caption_tag else None

            header_cells = element.select("thead th")
            if not header_cells:
                first_row = element.find("tr")
                header_cells = first_row.find_all("th") if first_row else []
            headers = [self._text(cell) for cell in header_cells]

            rows = []
            for row in element.find_all("tr"):
                cells = row.find_all(["td", "th"])
                if not cells or all(cell.name == "th" for cell in cells):
                    continue
                rows.append([self._text(cell) for cell in cells])

            if rows:
                tables.append(Table(headers=headers, rows=rows, caption=caption or None))
        return tables

    def _field_label(self, soup: BeautifulSoup, element: Tag) -> Optional[str]:
        element_id = element.get("id")
        if element_id:
            label = soup.find("label", attrs={"for": element_id})
            if label is not None:
                return self._text(label) or None
        wrapping = element.find_parent("label")
        if wrapping is not None:
            return self._text(wrapping) or None
        return None

    def extract_forms(self, soup: BeautifulSoup) -> List[Form]:
        forms = []
        for form in soup.find_all("form"):
            fields = []
            for element in form.find_all(["input", "textarea", "select"]):
                if element.name == "input":
                    field_type = (element.get("type") or "text").lower()
                else:
                    field_type = element.name

                options = None
                if element.name == "select":
                    options = [text for text in (self._text(o) for o in element.find_all("option")) if text]

                fields.append(
                    FormField(
                        name=element.get("name") or None,
                        type=field_type,
                        label=self._field_label(soup, element),
                        placeholder=element.get("placeholder") or None,
                        required=element.has_attr("required"),
                        options=options,
                    )
                )

            forms.append(
                Form(
                    action=form.get("action") or None,
                    method=form.get("method") or None,
                    fields=fields,
                )
            )
        return forms

    def extract_images(self, soup: BeautifulSoup, base_url: str) -> List[ImageRecord]:
        """Every <img> with a fetchable source, resolved to an absolute URL."""
        images = []
        for img in soup.find_all("img"):
            src = (img.get("src") or img.get("data-src") or "").strip()
            if not src or src.startswith("data:"):
                continue

            absolute = resolve_url(src, base_url)
            images.append(
                ImageRecord(
                    src=absolute,
                    alt=img.get("alt") or "",
                    title=img.get("title") or None,
                    width=img.get("width") or None,
                    height=img.get("height") or None,
                    format=image_format(absolute),
                )
            )
        return images

    def extract_links(self, soup: BeautifulSoup, base_url: str) -> List[LinkRecord]:
        links = []
        for anchor in soup.find_all("a", href=True):
            href = anchor["href"].strip()
            if not href:
                continue

            link_type, domain = classify_link(href, base_url)
            links.append(
                LinkRecord(
                    href=resolve_url(href, base_url),
                    text=self._text(anchor),
                    title=anchor.get("title") or None,
                    type=link_type,
                    domain=domain,
                )
            )
        return links
