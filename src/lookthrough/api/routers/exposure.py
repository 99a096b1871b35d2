"""Look-through exposure endpoints."""

import uuid
from typing import Literal

from fastapi import APIRouter, Depends, File, Query, UploadFile
from fastapi.responses import Response

from lookthrough.api.deps import (
    get_csv_exporter,
    get_csv_reader,
    get_csv_template_generator,
    get_exposure_service,
)
from lookthrough.api.schemas import (
    AnalyzeRequest,
    ConcentrationRequest,
    ConcentrationResponse,
    CsvAnalyzeResponse,
    ExposureGroupResponse,
    ExposureReportResponse,
    ExposureSourceResponse,
    HoldingRequest,
    ImportSummaryResponse,
    ResolvedExposureResponse,
    ResolveRequest,
    ResolveResponse,
    StockOverlapResponse,
)
from lookthrough.core.exceptions import ValidationError
from lookthrough.csv import ExposureCsvExporter, HoldingsCsvReader, HoldingsCsvTemplateGenerator
from lookthrough.domain.models import Holding
from lookthrough.domain.views import ExposureReport, ResolvedExposure, StockOverlap
from lookthrough.services import ExposureService

router = APIRouter(prefix="/exposure", tags=["exposure"])


def _to_holding(data: HoldingRequest) -> Holding:
    return Holding(
        id=data.id or str(uuid.uuid4()),
        account_id=data.account_id,
        account_name=data.account_name,
        type=data.type,
        ticker=data.ticker,
        name=data.name,
        quantity=data.quantity,
        last_price=data.last_price,
        market_value=data.market_value,
        sector=data.sector,
        industry=data.industry,
        is_manual_entry=data.is_manual_entry,
    )


def _exposure_to_response(exposure: ResolvedExposure) -> ResolvedExposureResponse:
    return ResolvedExposureResponse(
        stock_symbol=exposure.stock_symbol,
        account_id=exposure.account_id,
        dollar_value=exposure.dollar_value,
        sector=exposure.sector,
        industry=exposure.industry,
        asset_class=exposure.asset_class,
        holding_id=exposure.holding_id,
        resolution=exposure.resolution,
        name=exposure.name,
        source_symbol=exposure.source_symbol,
        via_symbol=exposure.via_symbol,
        source_tag=exposure.source_tag,
    )


def _overlap_to_response(overlap: StockOverlap) -> StockOverlapResponse:
    return StockOverlapResponse(
        symbol=overlap.symbol,
        name=overlap.name,
        sector=overlap.sector,
        direct_value=overlap.direct_value,
        fund_value=overlap.fund_value,
        total_value=overlap.total_value,
        share_percent=overlap.share_percent,
        sources=[
            ExposureSourceResponse(via=s.via, account_id=s.account_id, value=s.value)
            for s in overlap.sources
        ],
    )


def _report_to_response(report: ExposureReport) -> ExposureReportResponse:
    return ExposureReportResponse(
        total_value=report.total_value,
        exposures=[_exposure_to_response(e) for e in report.exposures],
        groups={
            dimension: [
                ExposureGroupResponse(
                    group_key=g.group_key,
                    total_value=g.total_value,
                    share_percent=g.share_percent,
                )
                for g in groups
            ]
            for dimension, groups in report.groups.items()
        },
        overlaps=[_overlap_to_response(o) for o in report.overlaps],
        partial=report.partial,
        retryable=report.retryable,
        stale_symbols=report.stale_symbols,
        unavailable_symbols=report.unavailable_symbols,
        calculated_at=report.calculated_at,
    )


def _analyze(service: ExposureService, data: AnalyzeRequest) -> ExposureReport:
    return service.analyze(
        [_to_holding(h) for h in data.holdings],
        dimensions=data.dimensions,
        identity_merges=data.identity_merges,
    )


@router.post("/analyze", response_model=ExposureReportResponse)
def analyze_exposure(
    data: AnalyzeRequest,
    service: ExposureService = Depends(get_exposure_service),
) -> ExposureReportResponse:
    """Resolve holdings through their funds and aggregate the result."""
    return _report_to_response(_analyze(service, data))


@router.post("/resolve", response_model=ResolveResponse)
def resolve_exposure(
    data: ResolveRequest,
    service: ExposureService = Depends(get_exposure_service),
) -> ResolveResponse:
    """Flat stock-level exposure list, without aggregation."""
    result = service.resolve([_to_holding(h) for h in data.holdings])
    return ResolveResponse(
        exposures=[_exposure_to_response(e) for e in result.exposures],
        total_input_value=result.total_input_value,
        total_resolved_value=result.total_resolved_value,
        partial=result.partial,
        retryable=result.retryable,
        stale_symbols=result.stale_symbols,
        unavailable_symbols=result.unavailable_symbols,
    )


@router.post("/top", response_model=list[StockOverlapResponse])
def top_exposures(
    data: AnalyzeRequest,
    limit: int = Query(10, ge=1, le=500),
    service: ExposureService = Depends(get_exposure_service),
) -> list[StockOverlapResponse]:
    """Largest stock-level exposures."""
    report = _analyze(service, data)
    return [_overlap_to_response(o) for o in service.top_exposures(report, limit)]


@router.post("/concentration", response_model=ConcentrationResponse)
def check_concentration(
    data: ConcentrationRequest,
    service: ExposureService = Depends(get_exposure_service),
) -> ConcentrationResponse:
    """Projected portfolio share of a symbol after an additional purchase."""
    report = _analyze(service, data)
    check = service.concentration_risk(report, data.symbol, data.additional_value)
    return ConcentrationResponse(
        symbol=check.symbol,
        current_percent=check.current_percent,
        new_percent=check.new_percent,
        exceeds_10_percent=check.exceeds_10_percent,
        exceeds_20_percent=check.exceeds_20_percent,
    )


@router.post("/analyze-csv", response_model=CsvAnalyzeResponse)
def analyze_csv(
    file: UploadFile = File(...),
    service: ExposureService = Depends(get_exposure_service),
    reader: HoldingsCsvReader = Depends(get_csv_reader),
) -> CsvAnalyzeResponse:
    """Exposure report for an uploaded holdings CSV. Bad rows are skipped and listed."""
    raw = file.file.read()
    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise ValidationError("CSV file must be UTF-8 encoded")

    holdings, summary = reader.read_text(text)
    report = service.analyze(holdings)
    return CsvAnalyzeResponse(
        report=_report_to_response(report),
        import_summary=ImportSummaryResponse(
            imported_count=summary.imported_count,
            error_count=summary.error_count,
            errors=summary.errors,
        ),
    )


@router.post("/export")
def export_exposure(
    data: AnalyzeRequest,
    view: Literal["groups", "overlaps"] = Query("groups"),
    service: ExposureService = Depends(get_exposure_service),
    exporter: ExposureCsvExporter = Depends(get_csv_exporter),
) -> Response:
    """Download grouped views or per-stock overlap as CSV."""
    report = _analyze(service, data)
    if view == "groups":
        csv_text = exporter.groups_to_csv(report)
    else:
        csv_text = exporter.overlaps_to_csv(report)
    return Response(
        content=csv_text,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="exposure_{view}.csv"'},
    )


@router.get("/template")
def download_template(
    generator: HoldingsCsvTemplateGenerator = Depends(get_csv_template_generator),
) -> Response:
    """Download a holdings CSV template."""
    return Response(
        content=generator.render(),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="holdings_template.csv"'},
    )
