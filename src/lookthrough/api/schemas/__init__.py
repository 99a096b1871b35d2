"""Pydantic schemas for API request/response."""

from lookthrough.api.schemas.exposure import (
    HoldingRequest,
    AnalyzeRequest,
    ResolveRequest,
    ConcentrationRequest,
    ResolvedExposureResponse,
    ResolveResponse,
    ExposureGroupResponse,
    ExposureSourceResponse,
    StockOverlapResponse,
    ExposureReportResponse,
    ConcentrationResponse,
    ImportSummaryResponse,
    CsvAnalyzeResponse,
)
from lookthrough.api.schemas.reference import (
    FundConstituentResponse,
    FundCompositionResponse,
    SecurityClassificationResponse,
    PrewarmRequest,
    PrewarmResponse,
    ConversionTargetResponse,
    ConversionRuleResponse,
    InvalidateResponse,
)

__all__ = [
    "HoldingRequest",
    "AnalyzeRequest",
    "ResolveRequest",
    "ConcentrationRequest",
    "ResolvedExposureResponse",
    "ResolveResponse",
    "ExposureGroupResponse",
    "ExposureSourceResponse",
    "StockOverlapResponse",
    "ExposureReportResponse",
    "ConcentrationResponse",
    "ImportSummaryResponse",
    "CsvAnalyzeResponse",
    "FundConstituentResponse",
    "FundCompositionResponse",
    "SecurityClassificationResponse",
    "PrewarmRequest",
    "PrewarmResponse",
    "ConversionTargetResponse",
    "ConversionRuleResponse",
    "InvalidateResponse",
]
