"""PAINEL — Reporting API Routes."""

from typing import List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.analyzer.month_groups import group_datasets_by_month, group_date_range
from app.analyzer.pipeline import (
    PlatformReport,
    UnifiedReport,
    derive_filter_options,
    run_platform_report,
    run_unified_report,
)
from app.analyzer.unified_engine import build_unified_months
from app.core.errors import InvalidArgumentError, ReportNotFoundError
from app.core.logging import get_logger
from app.models.analysis_models import DateRange, FilterOptions, Filters, GroupBy
from app.models.normalized_models import NormalizedDataset, NormalizedMetric, Platform

logger = get_logger("api.reports")

router = APIRouter(prefix="/reports", tags=["Reports"])


class CamelRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Request / Response Models ──


class AggregateRequest(CamelRequest):
    """Request body for POST /reports/aggregate."""

    primary_rows: List[NormalizedMetric] = []
    secondary_rows: Optional[List[NormalizedMetric]] = None
    group_by: GroupBy = GroupBy.CAMPAIGN
    date_range: DateRange = DateRange()
    filters: Filters = Filters()
    merge_mode: bool = False


class FilterOptionsRequest(CamelRequest):
    rows: List[NormalizedMetric] = []
    filters: Filters = Filters()


class DatasetsRequest(CamelRequest):
    """Request body for the month-listing endpoints."""

    datasets: List[NormalizedDataset] = []


class UnifiedRequest(DatasetsRequest):
    """Request body for POST /reports/unified."""

    month_id: Optional[str] = None
    comparison_month_id: Optional[str] = None
    mode: str = "view"
    """One of: "view", "sum", "compare". Only used with a comparison month."""
    group_by: GroupBy = GroupBy.ACCOUNT


class MonthSummary(CamelRequest):
    id: str
    label: str
    month: int
    year: int
    has_google: bool
    has_meta: bool
    google_dataset_count: int
    meta_dataset_count: int


class GoogleMonthSummary(CamelRequest):
    id: str
    label: str
    year: int
    accounts: List[str]
    dataset_count: int
    row_count: int
    date_range: Optional[DateRange] = None


# ── Endpoints ──


@router.post("/aggregate", response_model=PlatformReport)
async def aggregate(request: AggregateRequest):
    """Aggregate one platform's rows, optionally merged with or compared to a second period."""
    try:
        return run_platform_report(
            primary_rows=request.primary_rows,
            secondary_rows=request.secondary_rows,
            group_by=request.group_by,
            date_range=request.date_range,
            filters=request.filters,
            merge_mode=request.merge_mode,
        )
    except InvalidArgumentError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.post("/filter-options", response_model=FilterOptions)
async def filter_options(request: FilterOptionsRequest):
    """Hierarchical filter choices for a row set."""
    return derive_filter_options(request.rows, request.filters)


@router.post("/months", response_model=List[MonthSummary])
async def list_months(request: DatasetsRequest):
    """Months available across both platforms, most recent first."""
    return [
        MonthSummary(
            id=m.id,
            label=m.label,
            month=m.month,
            year=m.year,
            has_google=m.has_google,
            has_meta=m.has_meta,
            google_dataset_count=len(m.google_datasets),
            meta_dataset_count=len(m.meta_datasets),
        )
        for m in build_unified_months(request.datasets)
    ]


@router.post("/google-months", response_model=List[GoogleMonthSummary])
async def list_google_months(request: DatasetsRequest):
    """Google per-account files grouped by month, with their real data span."""
    return [
        GoogleMonthSummary(
            id=g.id,
            label=g.label,
            year=g.year,
            accounts=g.accounts,
            dataset_count=len(g.datasets),
            row_count=len(g.all_rows),
            date_range=group_date_range(g),
        )
        for g in group_datasets_by_month(
            d for d in request.datasets if d.meta.platform is Platform.GOOGLE
        )
    ]


@router.post("/unified", response_model=UnifiedReport)
async def unified_report(request: UnifiedRequest):
    """Unified Meta + Google view for a month, optionally summed with or compared to another."""
    try:
        return run_unified_report(
            datasets=request.datasets,
            month_id=request.month_id,
            comparison_month_id=request.comparison_month_id,
            mode=request.mode,
            group_by=request.group_by,
        )
    except InvalidArgumentError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ReportNotFoundError as e:
        logger.error(f"Unified report failed: {e}")
        raise HTTPException(status_code=404, detail=str(e))
