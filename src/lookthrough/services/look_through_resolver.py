"""Look-through resolver: expands holdings into stock-level exposures."""

import logging
import time
from decimal import Decimal
from typing import Iterable, Optional

from lookthrough.domain.models import (
    AssetClass,
    CacheEntry,
    FundComposition,
    Holding,
    HoldingType,
    RecordKind,
    Resolution,
    SecurityClassification,
    SourceTag,
)
from lookthrough.domain.views import ResolutionResult, ResolvedExposure
from lookthrough.services.conversion_table import AssetClassTable, ConversionTable
from lookthrough.services.reference_data_service import ReferenceDataService

logger = logging.getLogger(__name__)

# Conversion rules unwrap one fund-of-funds level (rule -> ETF composition).
# Funds found inside a composition are never expanded further.
MAX_FUND_OF_FUNDS_DEPTH = 1

ZERO = Decimal("0")
HUNDRED = Decimal("100")

DOMESTIC_COUNTRIES = {"USA", "US", "UNITED STATES", "UNITED STATES OF AMERICA"}
FUND_ASSET_TYPES = {"ETF", "MUTUAL FUND", "CLOSED-END FUND"}


def allocate(value: Decimal, weights: list[Decimal]) -> tuple[list[Decimal], Decimal]:
    """
    Split value by percentage weights.

    Returns (parts, residual) with ``sum(parts) + residual == value``.
    Non-positive weights get nothing. Weights short of 100% leave a
    residual; weights above 100% are scaled down proportionally and the
    rounding difference goes to the largest part.
    """
    usable = [w if w > ZERO else ZERO for w in weights]
    total = sum(usable, ZERO)
    if total <= ZERO:
        return [ZERO] * len(weights), value

    if total <= HUNDRED:
        parts = [value * w / HUNDRED for w in usable]
        return parts, value - sum(parts, ZERO)

    parts = [value * w / total for w in usable]
    largest = max(range(len(parts)), key=lambda i: parts[i])
    parts[largest] += value - sum(parts, ZERO)
    return parts, ZERO


class LookThroughResolver:
    """
    Turns raw holdings into a flat list of ResolvedExposure.

    Every holding contributes its full market value: value that cannot be
    attributed to a security lands in an exposure with no stock symbol.
    Missing reference data never raises; malformed holdings do, before
    any lookup starts.
    """

    def __init__(
        self,
        reference_data: ReferenceDataService,
        conversions: ConversionTable,
        asset_classes: AssetClassTable,
        fetch_constituent_classifications: bool = False,
        prewarm_missing_classifications: bool = True,
        max_fund_of_funds_depth: int = MAX_FUND_OF_FUNDS_DEPTH,
    ):
        self._reference = reference_data
        self._conversions = conversions
        self._asset_classes = asset_classes
        self._fetch_constituents = fetch_constituent_classifications
        self._prewarm_missing = prewarm_missing_classifications
        self._max_depth = max_fund_of_funds_depth

    def resolve(self, holding: Holding) -> list[ResolvedExposure]:
        """Resolve a single holding."""
        return self.resolve_all([holding]).exposures

    def resolve_all(
        self,
        holdings: Iterable[Holding],
        deadline: Optional[float] = None,
    ) -> ResolutionResult:
        """
        Resolve holdings in order.

        Reference data is fetched up front in rate-limited batches;
        ``deadline`` (seconds) bounds the whole fetch phase.
        """
        holdings = list(holdings)
        for holding in holdings:
            holding.validate()

        result = ResolutionResult(
            total_input_value=sum((h.market_value for h in holdings), ZERO)
        )
        started_at = time.monotonic()

        def remaining() -> Optional[float]:
            if deadline is None:
                return None
            return max(0.0, deadline - (time.monotonic() - started_at))

        # Compositions for every fund (or conversion target) we need to open
        fund_symbols = self._composition_symbols(holdings)
        compositions: dict[str, CacheEntry[FundComposition]] = {}
        if fund_symbols:
            lookup = self._reference.get_compositions(fund_symbols, deadline=remaining())
            compositions = lookup.entries
            result.rate_limited |= lookup.rate_limited
            result.deadline_exceeded |= lookup.deadline_exceeded

        # Classifications for direct stocks go through the provider
        direct_symbols = [
            h.ticker for h in holdings
            if h.type == HoldingType.STOCK and h.ticker and not (h.is_manual_entry and h.sector)
        ]
        classifications: dict[str, CacheEntry[SecurityClassification]] = {}
        if direct_symbols:
            lookup = self._reference.get_classifications(direct_symbols, deadline=remaining())
            classifications.update(lookup.entries)
            result.rate_limited |= lookup.rate_limited
            result.deadline_exceeded |= lookup.deadline_exceeded

        self._load_constituent_classifications(compositions, classifications, remaining(), result)

        for holding in holdings:
            result.exposures.extend(self._expand(holding, compositions, classifications))

        for symbol in sorted(compositions):
            entry = compositions[symbol]
            if entry.source_tag == SourceTag.FALLBACK_STALE:
                result.stale_symbols.append(symbol)
            elif not entry.is_available:
                result.unavailable_symbols.append(symbol)

        if result.partial:
            logger.warning(
                "Resolution used degraded data (stale: %s, unavailable: %s)",
                ", ".join(result.stale_symbols) or "none",
                ", ".join(result.unavailable_symbols) or "none",
            )
        return result

    # Reference data gathering

    def _composition_symbols(self, holdings: list[Holding]) -> list[str]:
        symbols: list[str] = []
        for holding in holdings:
            if holding.type != HoldingType.FUND or not holding.ticker:
                continue
            rule = self._conversions.get(holding.ticker) if self._max_depth > 0 else None
            targets = [t.symbol for t in rule.targets] if rule else [holding.ticker]
            for symbol in targets:
                if symbol not in symbols:
                    symbols.append(symbol)
        return symbols

    def _load_constituent_classifications(
        self,
        compositions: dict[str, CacheEntry[FundComposition]],
        classifications: dict[str, CacheEntry[SecurityClassification]],
        deadline: Optional[float],
        result: ResolutionResult,
    ) -> None:
        constituents: list[str] = []
        seen: set[str] = set(classifications)
        for entry in compositions.values():
            if not entry.is_available:
                continue
            for constituent in entry.record.holdings:
                if constituent.symbol not in seen:
                    seen.add(constituent.symbol)
                    constituents.append(constituent.symbol)
        if not constituents:
            return

        if self._fetch_constituents:
            lookup = self._reference.get_classifications(constituents, deadline=deadline)
            classifications.update(lookup.entries)
            result.rate_limited |= lookup.rate_limited
            result.deadline_exceeded |= lookup.deadline_exceeded
            return

        missing = []
        for symbol in constituents:
            entry = self._reference.classifications.peek(symbol)
            if entry is not None:
                classifications[symbol] = entry
            else:
                missing.append(symbol)
        if missing and self._prewarm_missing:
            self._reference.prewarm(RecordKind.SECURITY_CLASSIFICATION, missing)

    # Expansion

    def _expand(
        self,
        holding: Holding,
        compositions: dict[str, CacheEntry[FundComposition]],
        classifications: dict[str, CacheEntry[SecurityClassification]],
    ) -> list[ResolvedExposure]:
        value = holding.market_value

        if holding.type == HoldingType.CASH:
            return [
                ResolvedExposure(
                    stock_symbol=None,
                    account_id=holding.account_id,
                    dollar_value=value,
                    sector="Cash",
                    asset_class=AssetClass.CASH,
                    holding_id=holding.id,
                    resolution=Resolution.CASH,
                    name=holding.name or "Cash",
                )
            ]

        if not holding.ticker:
            return [self._unresolved(holding, value, None, None)]

        if holding.type == HoldingType.STOCK:
            classification = self._classification(holding.ticker, classifications)
            sector = holding.sector if holding.is_manual_entry and holding.sector else None
            industry = holding.industry if holding.is_manual_entry and holding.industry else None
            return [
                ResolvedExposure(
                    stock_symbol=holding.ticker,
                    account_id=holding.account_id,
                    dollar_value=value,
                    sector=sector or (classification.sector if classification else None),
                    asset_class=self._asset_class(holding.ticker, None, classification),
                    holding_id=holding.id,
                    resolution=Resolution.DIRECT,
                    name=holding.name or (classification.name if classification else None),
                    industry=industry or (classification.industry if classification else None),
                )
            ]

        rule = self._conversions.get(holding.ticker) if self._max_depth > 0 else None
        if rule is None:
            return self._expand_fund(holding, holding.ticker, value, None, compositions, classifications)

        exposures: list[ResolvedExposure] = []
        parts, residual = allocate(value, [t.weight_percent for t in rule.targets])
        for target, part in zip(rule.targets, parts):
            exposures.extend(
                self._expand_fund(holding, target.symbol, part, target.symbol, compositions, classifications)
            )
        if residual:
            exposures.append(self._residual(holding, residual, holding.ticker, None, None))
        return exposures

    def _expand_fund(
        self,
        holding: Holding,
        fund_symbol: str,
        value: Decimal,
        via_symbol: Optional[str],
        compositions: dict[str, CacheEntry[FundComposition]],
        classifications: dict[str, CacheEntry[SecurityClassification]],
    ) -> list[ResolvedExposure]:
        entry = compositions.get(fund_symbol) or CacheEntry.unavailable(fund_symbol)
        if not entry.is_available or entry.record.is_empty:
            if via_symbol is not None:
                return [self._conversion_leaf(holding, fund_symbol, value, entry.source_tag)]
            return [self._unresolved(holding, value, fund_symbol, entry.source_tag)]

        composition = entry.record
        parts, residual = allocate(value, [c.weight_percent for c in composition.holdings])
        exposures: list[ResolvedExposure] = []
        for constituent, part in zip(composition.holdings, parts):
            if not part:
                continue
            classification = self._classification(constituent.symbol, classifications)
            nested = self._is_fund(constituent.symbol, classification)
            exposures.append(
                ResolvedExposure(
                    stock_symbol=constituent.symbol,
                    account_id=holding.account_id,
                    dollar_value=part,
                    sector=None if nested else self._sector(constituent.sector, classification),
                    asset_class=(
                        self._fund_asset_class(constituent.symbol)
                        if nested
                        else self._asset_class(constituent.symbol, fund_symbol, classification)
                    ),
                    holding_id=holding.id,
                    resolution=Resolution.NESTED_FUND if nested else Resolution.FUND,
                    name=constituent.name or (classification.name if classification else None),
                    industry=classification.industry if classification and not nested else None,
                    source_symbol=holding.ticker,
                    via_symbol=via_symbol,
                    source_tag=entry.source_tag,
                )
            )
        if residual:
            exposures.append(self._residual(holding, residual, fund_symbol, via_symbol, entry.source_tag))
        return exposures

    # Leaf builders

    def _conversion_leaf(
        self, holding: Holding, symbol: str, value: Decimal, source_tag: SourceTag
    ) -> ResolvedExposure:
        return ResolvedExposure(
            stock_symbol=symbol,
            account_id=holding.account_id,
            dollar_value=value,
            sector=None,
            asset_class=self._fund_asset_class(symbol),
            holding_id=holding.id,
            resolution=Resolution.CONVERSION_LEAF,
            name=symbol,
            source_symbol=holding.ticker,
            via_symbol=symbol,
            source_tag=source_tag,
        )

    def _unresolved(
        self,
        holding: Holding,
        value: Decimal,
        fund_symbol: Optional[str],
        source_tag: Optional[SourceTag],
    ) -> ResolvedExposure:
        return ResolvedExposure(
            stock_symbol=None,
            account_id=holding.account_id,
            dollar_value=value,
            sector=None,
            asset_class=self._fund_asset_class(fund_symbol),
            holding_id=holding.id,
            resolution=Resolution.UNRESOLVED,
            name=holding.name or fund_symbol,
            source_symbol=fund_symbol,
            source_tag=source_tag,
        )

    def _residual(
        self,
        holding: Holding,
        value: Decimal,
        fund_symbol: str,
        via_symbol: Optional[str],
        source_tag: Optional[SourceTag],
    ) -> ResolvedExposure:
        return ResolvedExposure(
            stock_symbol=None,
            account_id=holding.account_id,
            dollar_value=value,
            sector=None,
            asset_class=self._fund_asset_class(fund_symbol),
            holding_id=holding.id,
            resolution=Resolution.RESIDUAL,
            name=f"{fund_symbol} other holdings",
            source_symbol=holding.ticker,
            via_symbol=via_symbol,
            source_tag=source_tag,
        )

    # Classification helpers

    @staticmethod
    def _classification(
        symbol: str, classifications: dict[str, CacheEntry[SecurityClassification]]
    ) -> Optional[SecurityClassification]:
        entry = classifications.get(symbol)
        return entry.record if entry is not None and entry.is_available else None

    @staticmethod
    def _sector(
        constituent_sector: Optional[str], classification: Optional[SecurityClassification]
    ) -> Optional[str]:
        if classification and classification.sector and classification.sector != "Unknown":
            return classification.sector
        return constituent_sector

    def _is_fund(self, symbol: str, classification: Optional[SecurityClassification]) -> bool:
        if self._conversions.has_rule(symbol) or self._asset_classes.is_known_fund(symbol):
            return True
        return bool(
            classification
            and classification.asset_type
            and classification.asset_type.upper() in FUND_ASSET_TYPES
        )

    def _fund_asset_class(self, fund_symbol: Optional[str]) -> AssetClass:
        return self._asset_classes.for_fund(fund_symbol) or AssetClass.OTHER

    def _asset_class(
        self,
        symbol: str,
        parent_fund: Optional[str],
        classification: Optional[SecurityClassification],
    ) -> AssetClass:
        """Static security table, then the parent fund's class, then country, then U.S. Stocks."""
        static = self._asset_classes.for_security(symbol)
        if static is not None:
            return static
        parent = self._asset_classes.for_fund(parent_fund)
        if parent is not None:
            return parent
        if classification and classification.country:
            if classification.country.strip().upper() not in DOMESTIC_COUNTRIES:
                return AssetClass.INTERNATIONAL_STOCKS
        return AssetClass.US_STOCKS
