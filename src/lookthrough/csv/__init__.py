"""CSV import/export utilities."""

from lookthrough.csv.importer import HoldingsCsvReader
from lookthrough.csv.exporter import ExposureCsvExporter
from lookthrough.csv.template import HoldingsCsvTemplateGenerator

__all__ = [
    "HoldingsCsvReader",
    "ExposureCsvExporter",
    "HoldingsCsvTemplateGenerator",
]
