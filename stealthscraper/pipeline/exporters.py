"""
Result Exporters Module

Export extracted page content to JSON, JSON Lines, a CSV summary, or plain text.
"""

import csv
import io
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import List

import aiofiles

from stealthscraper.models import ExtractedContent


class BaseExporter(ABC):
    """Abstract base class for result exporters."""

    extension: str = ""

    def __init__(self, export_dir: Path | str = "storage/exports"):
        """
        Initialize the exporter.

        Args:
            export_dir: Directory exported files are written to
        """
        self._export_dir = Path(export_dir)

    @abstractmethod
    def render(self, results: List[ExtractedContent]) -> str:
        """
        Render results to the target format.

        Args:
            results: Extracted content to export

        Returns:
            The file body
        """

    async def export(
        self,
        results: List[ExtractedContent],
        filename: str | None = None,
    ) -> str:
        """
        Write results to a file in the export directory.

        Args:
            results: Extracted content to export
            filename: Optional filename (auto-generated if None)

        Returns:
            Path to the exported file
        """
        if not results:
            raise ValueError("No data to export")

        export_dir = self._ensure_export_dir()
        filepath = export_dir / (filename or self._generate_filename())

        async with aiofiles.open(filepath, "w", encoding="utf-8", newline="") as f:
            await f.write(self.render(results))

        return str(filepath)

    def _ensure_export_dir(self) -> Path:
        """Ensure export directory exists."""
        self._export_dir.mkdir(parents=True, exist_ok=True)
        return self._export_dir

    def _generate_filename(self) -> str:
        """Generate a timestamped filename."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return f"scraped_data_{timestamp}.{self.extension}"


class JSONExporter(BaseExporter):
    """
    Export results as JSON with camelCase keys.

    Features:
    - Pretty-printed output
    - JSON Lines option for many results

    Example:
        exporter = JSONExporter(export_dir="storage/exports")
        filepath = await exporter.export([content])
    """

    def __init__(
        self,
        export_dir: Path | str = "storage/exports",
        pretty: bool = True,
        jsonl: bool = False,
    ):
        """
        Initialize JSON exporter.

        Args:
            export_dir: Directory exported files are written to
            pretty: Pretty-print JSON (ignored if jsonl=True)
            jsonl: Export as JSON Lines (one object per line)
        """
        super().__init__(export_dir)
        self._pretty = pretty
        self._jsonl = jsonl
        self.extension = "jsonl" if jsonl else "json"

    def render(self, results: List[ExtractedContent]) -> str:
        if self._jsonl:
            return "".join(result.to_json(indent=None) + "\n" for result in results)

        indent = 2 if self._pretty else None
        if len(results) == 1:
            return results[0].to_json(indent=indent)

        separator = ",\n" if indent else ","
        return "[" + separator.join(result.to_json(indent=indent) for result in results) + "]"


class CSVExporter(BaseExporter):
    """
    Export a Field/Value summary per result.

    Example:
        exporter = CSVExporter()
        filepath = await exporter.export([content])
    """

    extension = "csv"

    def __init__(self, export_dir: Path | str = "storage/exports", delimiter: str = ","):
        super().__init__(export_dir)
        self._delimiter = delimiter

    @staticmethod
    def summary_rows(content: ExtractedContent) -> List[List[str]]:
        return [
            ["URL", content.url],
            ["Title", content.title],
            ["Description", content.description or ""],
            ["Author", content.author or ""],
            ["Language", content.language or ""],
            ["Text Length", str(len(content.text_content))],
            ["Images Count", str(len(content.images))],
            ["Links Count", str(len(content.links))],
            ["Headings Count", str(len(content.headings))],
            ["Tables Count", str(len(content.tables))],
            ["Forms Count", str(len(content.forms))],
        ]

    def render(self, results: List[ExtractedContent]) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer, delimiter=self._delimiter, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writerow(["Field", "Value"])
        for content in results:
            writer.writerows(self.summary_rows(content))
        return buffer.getvalue()


class TextExporter(BaseExporter):
    """Export the cleaned text of each result, separated by blank lines."""

    extension = "txt"

    def render(self, results: List[ExtractedContent]) -> str:
        return "\n\n".join(content.cleaned_text for content in results)


# Factory function
def create_exporter(
    format: str = "json",
    **kwargs,
) -> BaseExporter:
    """
    Create an exporter for the specified format.

    Args:
        format: "json", "jsonl", "csv", or "txt"
        **kwargs: Additional arguments for the specific exporter

    Returns:
        Configured exporter instance
    """
    exporters = {
        "json": lambda: JSONExporter(jsonl=False, **kwargs),
        "jsonl": lambda: JSONExporter(jsonl=True, **kwargs),
        "csv": lambda: CSVExporter(**kwargs),
        "txt": lambda: TextExporter(**kwargs),
    }

    if format not in exporters:
        raise ValueError(f"Unknown format: {format}. Use: {list(exporters.keys())}")

    return exporters[format]()
