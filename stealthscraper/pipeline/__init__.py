"""Pipeline module - text cleaning and result export."""

from .cleaner import TextCleaner
from .exporters import CSVExporter, JSONExporter, TextExporter, create_exporter

__all__ = [
    "TextCleaner",
    "JSONExporter",
    "CSVExporter",
    "TextExporter",
    "create_exporter",
]
