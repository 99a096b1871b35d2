"""Exposure service: resolution + aggregation facade used by the API and CLI."""

import logging
from decimal import Decimal
from typing import Iterable, Optional

from lookthrough.core.exceptions import ValidationError
from lookthrough.core.timezone import now_utc
from lookthrough.domain.models import GroupBy, Holding
from lookthrough.domain.views import (
    ConcentrationCheck,
    ExposureReport,
    ResolutionResult,
    StockOverlap,
)
from lookthrough.services.exposure_aggregator import ExposureAggregator, normalize_merges, share_percent
from lookthrough.services.look_through_resolver import LookThroughResolver

logger = logging.getLogger(__name__)

CONCENTRATION_WARNING_PERCENT = Decimal("10")
CONCENTRATION_ALERT_PERCENT = Decimal("20")


class ExposureService:
    """
    Service for look-through exposure reports.

    Runs the resolver over a holdings list and rolls the result up along
    the requested dimensions.
    """

    def __init__(
        self,
        resolver: LookThroughResolver,
        aggregator: ExposureAggregator,
        batch_deadline_seconds: Optional[float] = None,
    ):
        self._resolver = resolver
        self._aggregator = aggregator
        self._deadline = batch_deadline_seconds

    def resolve(self, holdings: Iterable[Holding], deadline: Optional[float] = None) -> ResolutionResult:
        """Flat exposure list for holdings."""
        return self._resolver.resolve_all(holdings, deadline=deadline if deadline is not None else self._deadline)

    def analyze(
        self,
        holdings: Iterable[Holding],
        dimensions: Iterable[GroupBy] = tuple(GroupBy),
        identity_merges: Optional[dict[str, str]] = None,
        deadline: Optional[float] = None,
    ) -> ExposureReport:
        """
        Full exposure report: flat exposures, grouped views and per-stock overlap.

        Degraded reference data never fails the report; it is flagged via
        partial/retryable and the affected symbols are listed.
        """
        result = self.resolve(holdings, deadline=deadline)
        merges = normalize_merges(identity_merges)

        report = ExposureReport(
            total_value=result.total_input_value,
            exposures=result.exposures,
            groups=self._aggregator.group_all(result.exposures, dimensions, merges),
            overlaps=self._aggregator.stock_overlap(result.exposures, merges),
            partial=result.partial,
            retryable=result.retryable,
            stale_symbols=result.stale_symbols,
            unavailable_symbols=result.unavailable_symbols,
            calculated_at=now_utc(),
        )
        logger.info(
            "Exposure report: %d exposures, total %s, partial=%s",
            len(report.exposures),
            report.total_value,
            report.partial,
        )
        return report

    def top_exposures(self, report: ExposureReport, limit: int = 10) -> list[StockOverlap]:
        """Largest stock exposures of a report."""
        if limit < 1:
            raise ValidationError("limit must be at least 1")
        return report.overlaps[:limit]

    def concentration_risk(
        self,
        report: ExposureReport,
        symbol: str,
        additional_value: Decimal,
    ) -> ConcentrationCheck:
        """
        What-if check: portfolio share of symbol after buying additional_value more.

        Formula: (current + additional) / (total + additional) x 100
        """
        if additional_value < 0:
            raise ValidationError("Additional value must not be negative")
        key = (symbol or "").strip().upper()
        if not key:
            raise ValidationError("Symbol is required")

        current_value = next((o.total_value for o in report.overlaps if o.symbol == key), Decimal("0"))
        new_percent = share_percent(current_value + additional_value, report.total_value + additional_value)

        return ConcentrationCheck(
            symbol=key,
            current_percent=share_percent(current_value, report.total_value),
            new_percent=new_percent,
            exceeds_10_percent=new_percent > CONCENTRATION_WARNING_PERCENT,
            exceeds_20_percent=new_percent > CONCENTRATION_ALERT_PERCENT,
        )
