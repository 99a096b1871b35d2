"""Reference data (fund composition / classification cache) endpoints."""

from typing import Any

from fastapi import APIRouter, Depends, Query

from lookthrough.api.deps import get_conversion_table, get_reference_data_service
from lookthrough.api.schemas import (
    ConversionRuleResponse,
    ConversionTargetResponse,
    FundCompositionResponse,
    FundConstituentResponse,
    InvalidateResponse,
    PrewarmRequest,
    PrewarmResponse,
    SecurityClassificationResponse,
)
from lookthrough.core.exceptions import NotFoundError, ValidationError
from lookthrough.domain.models import RecordKind
from lookthrough.services import ConversionTable, ReferenceDataService

router = APIRouter(prefix="/reference", tags=["reference"])


@router.get("/funds/{symbol}", response_model=FundCompositionResponse)
def get_fund_composition(
    symbol: str,
    refresh: bool = Query(False, description="Bypass fresh cache entries and ask the provider"),
    cache_only: bool = Query(False, description="Never call the provider"),
    reference: ReferenceDataService = Depends(get_reference_data_service),
) -> FundCompositionResponse:
    """Get a fund's composition through the cache tiers."""
    if cache_only:
        entry = reference.compositions.peek(symbol)
    else:
        entry = reference.get_composition(symbol, force_refresh=refresh)
    if entry is None or not entry.is_available:
        raise NotFoundError("Fund composition", symbol.upper())

    composition = entry.record
    return FundCompositionResponse(
        symbol=composition.symbol,
        name=composition.name,
        holdings=[
            FundConstituentResponse(
                symbol=c.symbol,
                name=c.name,
                weight_percent=c.weight_percent,
                shares=c.shares,
                sector=c.sector,
            )
            for c in composition.holdings
        ],
        total_weight_percent=composition.total_weight_percent,
        fetched_at=entry.fetched_at,
        source_tag=entry.source_tag,
    )


@router.get("/classifications/{symbol}", response_model=SecurityClassificationResponse)
def get_classification(
    symbol: str,
    refresh: bool = Query(False, description="Bypass fresh cache entries and ask the provider"),
    cache_only: bool = Query(False, description="Never call the provider"),
    reference: ReferenceDataService = Depends(get_reference_data_service),
) -> SecurityClassificationResponse:
    """Get a security's sector/industry classification through the cache tiers."""
    if cache_only:
        entry = reference.classifications.peek(symbol)
    else:
        entry = reference.get_classification(symbol, force_refresh=refresh)
    if entry is None or not entry.is_available:
        raise NotFoundError("Security classification", symbol.upper())

    record = entry.record
    return SecurityClassificationResponse(
        symbol=record.symbol,
        name=record.name,
        sector=record.sector,
        industry=record.industry,
        official_site=record.official_site,
        country=record.country,
        asset_type=record.asset_type,
        fetched_at=entry.fetched_at,
        source_tag=entry.source_tag,
    )


@router.delete("/cache/{kind}/{symbol}", response_model=InvalidateResponse)
def invalidate_cache_entry(
    kind: RecordKind,
    symbol: str,
    reference: ReferenceDataService = Depends(get_reference_data_service),
) -> InvalidateResponse:
    """Explicit cache busting: drop a symbol from memory and persistent tiers."""
    removed = reference.orchestrator_for(kind).invalidate(symbol)
    return InvalidateResponse(kind=kind, symbol=symbol.upper(), removed=removed)


@router.post("/prewarm", response_model=PrewarmResponse, status_code=202)
def prewarm_cache(
    data: PrewarmRequest,
    reference: ReferenceDataService = Depends(get_reference_data_service),
) -> PrewarmResponse:
    """Queue a background fetch; returns immediately."""
    symbols = [s.strip().upper() for s in data.symbols if s.strip()]
    if data.fund_symbol:
        if data.kind != RecordKind.SECURITY_CLASSIFICATION:
            raise ValidationError("fund_symbol can only be used to warm classifications")
        entry = reference.get_composition(data.fund_symbol)
        if not entry.is_available:
            raise NotFoundError("Fund composition", data.fund_symbol.upper())
        symbols.extend(c.symbol for c in entry.record.holdings)
    if not symbols:
        raise ValidationError("No symbols to prewarm")

    symbols = list(dict.fromkeys(symbols))
    future = reference.prewarm(data.kind, symbols)
    return PrewarmResponse(kind=data.kind, queued=future is not None, symbols=symbols)


@router.get("/conversions", response_model=list[ConversionRuleResponse])
def list_conversion_rules(
    conversions: ConversionTable = Depends(get_conversion_table),
) -> list[ConversionRuleResponse]:
    """Static mutual fund -> ETF conversion rules."""
    return [
        ConversionRuleResponse(
            source_symbol=rule.source_symbol,
            name=rule.name,
            description=rule.description,
            targets=[
                ConversionTargetResponse(
                    symbol=t.symbol,
                    weight_percent=t.weight_percent,
                    notes=t.notes,
                )
                for t in rule.targets
            ],
        )
        for rule in conversions.rules()
    ]


@router.get("/cache/stats")
def cache_stats(
    reference: ReferenceDataService = Depends(get_reference_data_service),
) -> dict[str, Any]:
    """Hit/miss/fallback counters per reference data kind."""
    return reference.stats()
