"""Exposure aggregator: rolls resolved exposures up into grouped views."""

from collections import defaultdict
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from lookthrough.domain.models import GroupBy, Resolution
from lookthrough.domain.views import (
    ExposureGroup,
    ExposureSource,
    ResolvedExposure,
    StockOverlap,
)

OTHER_LABEL = "Other"
UNKNOWN_SECTOR = "Unknown"
CASH_LABEL = "Cash"

ZERO = Decimal("0")
PERCENT_QUANT = Decimal("0.01")


def share_percent(value: Decimal, total: Decimal) -> Decimal:
    """value as a percentage of total, rounded to 2 places for display."""
    if total == ZERO:
        return ZERO.quantize(PERCENT_QUANT)
    return (value / total * Decimal("100")).quantize(PERCENT_QUANT, rounding=ROUND_HALF_UP)


def normalize_merges(identity_merges: Optional[dict[str, str]]) -> dict[str, str]:
    return {
        alias.strip().upper(): canonical.strip().upper()
        for alias, canonical in (identity_merges or {}).items()
        if alias and canonical
    }


class ExposureAggregator:
    """
    Group-by-key summation over resolved exposures.

    Totals are summed in Decimal without intermediate rounding, so the
    group totals of every dimension add up to the input total exactly.
    Only share_percent is rounded. Output order is by value descending,
    then key, independent of input order.
    """

    def group(
        self,
        exposures: Iterable[ResolvedExposure],
        by: GroupBy,
        identity_merges: Optional[dict[str, str]] = None,
    ) -> list[ExposureGroup]:
        merges = normalize_merges(identity_merges)
        totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
        grand_total = ZERO
        for exposure in exposures:
            totals[self._key(exposure, by, merges)] += exposure.dollar_value
            grand_total += exposure.dollar_value

        groups = [
            ExposureGroup(
                group_key=key,
                total_value=value,
                share_percent=share_percent(value, grand_total),
            )
            for key, value in totals.items()
        ]
        groups.sort(key=lambda g: (-g.total_value, g.group_key))
        return groups

    def group_all(
        self,
        exposures: Iterable[ResolvedExposure],
        dimensions: Iterable[GroupBy] = tuple(GroupBy),
        identity_merges: Optional[dict[str, str]] = None,
    ) -> dict[str, list[ExposureGroup]]:
        exposures = list(exposures)
        return {
            GroupBy(d).value: self.group(exposures, GroupBy(d), identity_merges)
            for d in dimensions
        }

    def stock_overlap(
        self,
        exposures: Iterable[ResolvedExposure],
        identity_merges: Optional[dict[str, str]] = None,
    ) -> list[StockOverlap]:
        """
        Per-stock totals split into direct and through-fund value, with the
        (fund, account) paths each stock is held through.
        """
        merges = normalize_merges(identity_merges)
        exposures = list(exposures)
        grand_total = sum((e.dollar_value for e in exposures), ZERO)

        overlaps: dict[str, StockOverlap] = {}
        paths: dict[str, dict[tuple[Optional[str], str], Decimal]] = defaultdict(
            lambda: defaultdict(lambda: ZERO)
        )
        for exposure in exposures:
            if exposure.stock_symbol is None:
                continue
            symbol = merges.get(exposure.stock_symbol, exposure.stock_symbol)
            overlap = overlaps.get(symbol)
            if overlap is None:
                overlap = StockOverlap(symbol=symbol, name=exposure.name, sector=exposure.sector)
                overlaps[symbol] = overlap
            overlap.name = overlap.name or exposure.name
            overlap.sector = overlap.sector or exposure.sector
            if exposure.resolution == Resolution.DIRECT:
                overlap.direct_value += exposure.dollar_value
                via = None
            else:
                overlap.fund_value += exposure.dollar_value
                via = exposure.source_symbol
            paths[symbol][(via, exposure.account_id)] += exposure.dollar_value

        for symbol, overlap in overlaps.items():
            overlap.share_percent = share_percent(overlap.total_value, grand_total)
            overlap.sources = sorted(
                (
                    ExposureSource(via=via, account_id=account_id, value=value)
                    for (via, account_id), value in paths[symbol].items()
                ),
                key=lambda s: (-s.value, s.via or "", s.account_id),
            )

        return sorted(overlaps.values(), key=lambda o: (-o.total_value, o.symbol))

    @staticmethod
    def _key(exposure: ResolvedExposure, by: GroupBy, merges: dict[str, str]) -> str:
        if by == GroupBy.STOCK_SYMBOL:
            if exposure.resolution == Resolution.CASH:
                return CASH_LABEL
            if exposure.stock_symbol is None:
                return OTHER_LABEL
            return merges.get(exposure.stock_symbol, exposure.stock_symbol)
        if by == GroupBy.SECTOR:
            if exposure.sector:
                return exposure.sector
            return OTHER_LABEL if exposure.stock_symbol is None else UNKNOWN_SECTOR
        if by == GroupBy.ASSET_CLASS:
            return exposure.asset_class.value
        return exposure.account_id
