"""Pydantic schemas for exposure endpoints."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from lookthrough.domain.models import AssetClass, GroupBy, HoldingType, Resolution, SourceTag


class HoldingRequest(BaseModel):
    """Request schema for one raw holding."""

    id: Optional[str] = None
    account_id: Optional[str] = None
    account_name: Optional[str] = None
    type: HoldingType
    ticker: Optional[str] = None
    name: str = ""
    quantity: Decimal = Decimal("0")
    last_price: Decimal = Decimal("0")
    market_value: Optional[Decimal] = None
    sector: Optional[str] = None
    industry: Optional[str] = None
    is_manual_entry: bool = False


class AnalyzeRequest(BaseModel):
    """Request schema for a full exposure report."""

    holdings: list[HoldingRequest]
    dimensions: list[GroupBy] = Field(default_factory=lambda: list(GroupBy))
    identity_merges: dict[str, str] = Field(
        default_factory=dict,
        description="Alias ticker -> canonical ticker, e.g. {\"GOOG\": \"GOOGL\"}",
    )


class ResolveRequest(BaseModel):
    """Request schema for a flat exposure list."""

    holdings: list[HoldingRequest]


class ConcentrationRequest(AnalyzeRequest):
    """Request schema for a what-if concentration check."""

    symbol: str
    additional_value: Decimal = Field(ge=0)


class ResolvedExposureResponse(BaseModel):
    """Response schema for one resolved exposure."""

    stock_symbol: Optional[str] = None
    account_id: str
    dollar_value: Decimal
    sector: Optional[str] = None
    industry: Optional[str] = None
    asset_class: AssetClass
    holding_id: str
    resolution: Resolution
    name: Optional[str] = None
    source_symbol: Optional[str] = None
    via_symbol: Optional[str] = None
    source_tag: Optional[SourceTag] = None


class ResolveResponse(BaseModel):
    """Response schema for a flat exposure list."""

    exposures: list[ResolvedExposureResponse]
    total_input_value: Decimal
    total_resolved_value: Decimal
    partial: bool
    retryable: bool
    stale_symbols: list[str]
    unavailable_symbols: list[str]


class ExposureGroupResponse(BaseModel):
    """Response schema for one aggregated bucket."""

    group_key: str
    total_value: Decimal
    share_percent: Decimal


class ExposureSourceResponse(BaseModel):
    """Response schema for one path a stock is held through."""

    via: Optional[str] = None
    account_id: str
    value: Decimal


class StockOverlapResponse(BaseModel):
    """Response schema for a per-stock roll-up."""

    symbol: str
    name: Optional[str] = None
    sector: Optional[str] = None
    direct_value: Decimal
    fund_value: Decimal
    total_value: Decimal
    share_percent: Decimal
    sources: list[ExposureSourceResponse]


class ExposureReportResponse(BaseModel):
    """Response schema for a full exposure report."""

    total_value: Decimal
    exposures: list[ResolvedExposureResponse]
    groups: dict[str, list[ExposureGroupResponse]]
    overlaps: list[StockOverlapResponse]
    partial: bool
    retryable: bool
    stale_symbols: list[str]
    unavailable_symbols: list[str]
    calculated_at: Optional[datetime] = None


class ConcentrationResponse(BaseModel):
    """Response schema for a concentration check."""

    symbol: str
    current_percent: Decimal
    new_percent: Decimal
    exceeds_10_percent: bool
    exceeds_20_percent: bool


class ImportSummaryResponse(BaseModel):
    """Response schema for CSV row errors."""

    imported_count: int
    error_count: int
    errors: list[str]


class CsvAnalyzeResponse(BaseModel):
    """Response schema for an exposure report built from an uploaded CSV."""

    report: ExposureReportResponse
    import_summary: ImportSummaryResponse
