"""View models for service outputs."""

from lookthrough.domain.views.exposure import (
    ResolvedExposure,
    ResolutionResult,
    ExposureGroup,
    ExposureSource,
    StockOverlap,
    ExposureReport,
    ConcentrationCheck,
    ImportSummary,
)

__all__ = [
    "ResolvedExposure",
    "ResolutionResult",
    "ExposureGroup",
    "ExposureSource",
    "StockOverlap",
    "ExposureReport",
    "ConcentrationCheck",
    "ImportSummary",
]
