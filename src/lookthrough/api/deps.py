"""Dependency injection for FastAPI."""

from fastapi import Depends

from lookthrough.app_context import AppContext, get_app_context
from lookthrough.services import ConversionTable, ExposureService, ReferenceDataService
from lookthrough.csv import ExposureCsvExporter, HoldingsCsvReader, HoldingsCsvTemplateGenerator


def get_context() -> AppContext:
    """Provide the process-wide AppContext (overridden in tests)."""
    return get_app_context()


def get_exposure_service(context: AppContext = Depends(get_context)) -> ExposureService:
    """Provide ExposureService instance."""
    return context.exposure


def get_reference_data_service(context: AppContext = Depends(get_context)) -> ReferenceDataService:
    """Provide ReferenceDataService instance."""
    return context.reference_data


def get_conversion_table(context: AppContext = Depends(get_context)) -> ConversionTable:
    """Provide the static ConversionTable."""
    return context.conversions


def get_csv_reader(context: AppContext = Depends(get_context)) -> HoldingsCsvReader:
    """Provide HoldingsCsvReader instance."""
    return context.csv_reader


def get_csv_exporter(context: AppContext = Depends(get_context)) -> ExposureCsvExporter:
    """Provide ExposureCsvExporter instance."""
    return context.csv_exporter


def get_csv_template_generator(context: AppContext = Depends(get_context)) -> HoldingsCsvTemplateGenerator:
    """Provide HoldingsCsvTemplateGenerator instance."""
    return context.csv_template
