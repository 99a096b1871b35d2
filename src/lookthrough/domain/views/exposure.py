"""View models for resolution and aggregation outputs."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from lookthrough.domain.models.enums import AssetClass, Resolution, SourceTag


@dataclass(frozen=True)
class ResolvedExposure:
    """
    Stock-level slice of a holding. Produced per resolution pass, never persisted.

    stock_symbol is None for cash and for value that could not be attributed
    to any security.
    """

    stock_symbol: Optional[str]
    account_id: str
    dollar_value: Decimal
    sector: Optional[str]
    asset_class: AssetClass
    holding_id: str
    resolution: Resolution
    name: Optional[str] = None
    industry: Optional[str] = None
    source_symbol: Optional[str] = None  # fund the value was held through
    via_symbol: Optional[str] = None  # ETF-equivalent a conversion rule routed through
    source_tag: Optional[SourceTag] = None  # tag of the composition used


@dataclass
class ResolutionResult:
    """Flat exposure list plus data-quality flags for one resolution run."""

    exposures: list[ResolvedExposure] = field(default_factory=list)
    total_input_value: Decimal = field(default_factory=lambda: Decimal("0"))
    stale_symbols: list[str] = field(default_factory=list)
    unavailable_symbols: list[str] = field(default_factory=list)
    rate_limited: bool = False
    deadline_exceeded: bool = False

    @property
    def total_resolved_value(self) -> Decimal:
        return sum((e.dollar_value for e in self.exposures), Decimal("0"))

    @property
    def partial(self) -> bool:
        """True when any composition came from degraded data."""
        return bool(self.stale_symbols or self.unavailable_symbols)

    @property
    def retryable(self) -> bool:
        """True when a later run may resolve more (provider budget or deadline hit)."""
        return self.rate_limited or self.deadline_exceeded


@dataclass
class ExposureGroup:
    """One bucket of an aggregated view."""

    group_key: str
    total_value: Decimal
    share_percent: Decimal


@dataclass
class ExposureSource:
    """One path by which a stock is held."""

    via: Optional[str]  # fund symbol, None for a direct holding
    account_id: str
    value: Decimal


@dataclass
class StockOverlap:
    """Per-stock roll-up showing overlap across funds and accounts."""

    symbol: str
    name: Optional[str]
    sector: Optional[str]
    direct_value: Decimal = field(default_factory=lambda: Decimal("0"))
    fund_value: Decimal = field(default_factory=lambda: Decimal("0"))
    share_percent: Decimal = field(default_factory=lambda: Decimal("0"))
    sources: list[ExposureSource] = field(default_factory=list)

    @property
    def total_value(self) -> Decimal:
        return self.direct_value + self.fund_value

    @property
    def is_overlapping(self) -> bool:
        """Held through more than one path."""
        return len(self.sources) > 1


@dataclass
class ExposureReport:
    """Everything the presentation layer needs for the exposure screens."""

    total_value: Decimal
    exposures: list[ResolvedExposure] = field(default_factory=list)
    groups: dict[str, list[ExposureGroup]] = field(default_factory=dict)
    overlaps: list[StockOverlap] = field(default_factory=list)
    partial: bool = False
    retryable: bool = False
    stale_symbols: list[str] = field(default_factory=list)
    unavailable_symbols: list[str] = field(default_factory=list)
    calculated_at: Optional[datetime] = None


@dataclass
class ConcentrationCheck:
    """Result of a what-if concentration check for one symbol."""

    symbol: str
    current_percent: Decimal
    new_percent: Decimal
    exceeds_10_percent: bool
    exceeds_20_percent: bool


@dataclass
class ImportSummary:
    """Summary of a holdings CSV import."""

    imported_count: int = 0
    error_count: int = 0
    errors: list[str] = field(default_factory=list)
