"""Pydantic schemas for reference data endpoints."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from lookthrough.domain.models import RecordKind, SourceTag


class FundConstituentResponse(BaseModel):
    """Response schema for one fund constituent."""

    symbol: str
    name: Optional[str] = None
    weight_percent: Decimal
    shares: Optional[Decimal] = None
    sector: Optional[str] = None


class FundCompositionResponse(BaseModel):
    """Response schema for a cached fund composition."""

    symbol: str
    name: Optional[str] = None
    holdings: list[FundConstituentResponse]
    total_weight_percent: Decimal
    fetched_at: Optional[datetime] = None
    source_tag: SourceTag


class SecurityClassificationResponse(BaseModel):
    """Response schema for a cached security classification."""

    symbol: str
    name: Optional[str] = None
    sector: str
    industry: str
    official_site: Optional[str] = None
    country: Optional[str] = None
    asset_type: Optional[str] = None
    fetched_at: Optional[datetime] = None
    source_tag: SourceTag


class PrewarmRequest(BaseModel):
    """Request schema for background cache warming."""

    kind: RecordKind = RecordKind.SECURITY_CLASSIFICATION
    symbols: list[str] = Field(default_factory=list)
    fund_symbol: Optional[str] = Field(
        None, description="Warm classifications for every constituent of this fund"
    )


class PrewarmResponse(BaseModel):
    """Response schema for a queued prewarm."""

    kind: RecordKind
    queued: bool
    symbols: list[str]


class ConversionTargetResponse(BaseModel):
    symbol: str
    weight_percent: Decimal
    notes: Optional[str] = None


class ConversionRuleResponse(BaseModel):
    """Response schema for one static conversion rule."""

    source_symbol: str
    name: Optional[str] = None
    description: Optional[str] = None
    targets: list[ConversionTargetResponse]


class InvalidateResponse(BaseModel):
    kind: RecordKind
    symbol: str
    removed: bool
