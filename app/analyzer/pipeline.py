"""PAINEL — Report Pipeline Orchestrator.

Ties the engines together for the two reporting paths:
  single platform: rows → comparison engine → totals + entity counts
  unified:         datasets → months → unified / comparison view → totals

Also derives the hierarchical filter options offered to the user.
"""

from datetime import date
from typing import Any, Iterable, List, Optional, Sequence

from app.analyzer.aggregation_engine import passes_filters
from app.analyzer.arguments import ensure_date_range, ensure_filters
from app.analyzer.comparison_engine import aggregate_with_comparison
from app.analyzer.unified_engine import (
    build_unified_months,
    calculate_unified_totals,
    create_comparison_view,
    create_unified_view,
    merge_months,
)
from app.core.errors import InvalidArgumentError, ReportNotFoundError
from app.core.logging import get_logger
from app.models.analysis_models import (
    AggregateResult,
    AggregatedRow,
    AvailableMonth,
    CamelModel,
    DateRange,
    EntityCounts,
    FilterOptions,
    Filters,
    GroupBy,
    UnifiedTotals,
)
from app.models.normalized_models import NormalizedDataset, NormalizedMetric

logger = get_logger("analyzer.pipeline")

UNIFIED_MODES = {"view", "sum", "compare"}

# Filter hierarchy, parent first: (Filters field, NormalizedMetric field)
FILTER_LEVELS = (
    ("accounts", "account_name"),
    ("campaigns", "campaign_name"),
    ("ad_groups", "ad_group_name"),
    ("creatives", "creative_name"),
)


class PlatformReport(CamelModel):
    """Single-platform report: aggregation plus entity counts."""

    result: AggregateResult
    entity_counts: EntityCounts
    secondary_entity_counts: Optional[EntityCounts] = None


class UnifiedReport(CamelModel):
    """Cross-platform report for one month (optionally against another)."""

    month: AvailableMonth
    comparison_month: Optional[AvailableMonth] = None
    mode: str = "view"
    rows: List[AggregatedRow] = []
    totals: UnifiedTotals = UnifiedTotals()


def _distinct(values: Iterable[Optional[str]]) -> List[str]:
    return sorted({v for v in values if v})


def count_entities(
    rows: Iterable[NormalizedMetric],
    date_range: Optional[DateRange],
    filters: Filters,
) -> EntityCounts:
    """Distinct account/campaign/ad-group/creative names after filtering.

    An undated row sorts before any start bound, so it is dropped by a start
    and kept by an end-only window.
    """
    kept = []
    for row in rows:
        if date_range is not None:
            if date_range.start and row.date < date_range.start:
                continue
            if date_range.end and row.date > date_range.end:
                continue
        if passes_filters(row, filters):
            kept.append(row)
    return EntityCounts(
        accounts=len(_distinct(r.account_name for r in kept)),
        campaigns=len(_distinct(r.campaign_name for r in kept)),
        ad_groups=len(_distinct(r.ad_group_name for r in kept)),
        creatives=len(_distinct(r.creative_name for r in kept)),
    )


def derive_filter_options(rows: Sequence[NormalizedMetric], filters: Any) -> FilterOptions:
    """Options for each filter level.

    A level lists the values of the rows passing every selection. Once a
    level above it has a selection, it lists the values under those parent
    selections instead, so siblings of a chosen child stay on offer.
    """
    filters = ensure_filters(filters)
    rows = list(rows)
    selected = [r for r in rows if passes_filters(r, filters)]

    options = {}
    for depth, (level, attr) in enumerate(FILTER_LEVELS):
        parents = {name: getattr(filters, name) for name, _ in FILTER_LEVELS[:depth]}
        if any(parents.values()):
            parent_filters = Filters(**parents)
            pool = [r for r in rows if passes_filters(r, parent_filters)]
        else:
            pool = selected
        options[level] = _distinct(getattr(r, attr) for r in pool)
    return FilterOptions(**options)


def run_platform_report(
    primary_rows: Sequence[NormalizedMetric],
    secondary_rows: Optional[Sequence[NormalizedMetric]],
    group_by: Any,
    date_range: Any,
    filters: Any,
    merge_mode: bool = False,
) -> PlatformReport:
    """Aggregate one platform's rows and count the entities behind them."""
    date_range = ensure_date_range(date_range)
    filters = ensure_filters(filters)
    result = aggregate_with_comparison(
        primary_rows, secondary_rows, group_by, date_range, filters, merge_mode
    )

    secondary_counts = None
    if secondary_rows:
        secondary_counts = count_entities(
            secondary_rows, date_range if merge_mode else None, filters
        )

    return PlatformReport(
        result=result,
        entity_counts=count_entities(primary_rows, date_range, filters),
        secondary_entity_counts=secondary_counts,
    )


def _find_month(months: List[AvailableMonth], month_id: str) -> AvailableMonth:
    for month in months:
        if month.id == month_id:
            return month
    raise ReportNotFoundError(month_id)


def run_unified_report(
    datasets: Iterable[NormalizedDataset],
    month_id: Optional[str] = None,
    comparison_month_id: Optional[str] = None,
    mode: str = "view",
    group_by: Any = GroupBy.ACCOUNT,
    today: Optional[date] = None,
) -> UnifiedReport:
    """Build the unified report for ``month_id`` (default: most recent month).

    ``mode`` applies when a comparison month is given: ``"compare"`` builds
    the month-over-month view, ``"sum"`` adds both months' data together.
    """
    if mode not in UNIFIED_MODES:
        raise InvalidArgumentError(
            f"mode must be one of {sorted(UNIFIED_MODES)}", "mode"
        )

    months = build_unified_months(datasets, today)
    if not months:
        raise ReportNotFoundError(month_id or "latest")

    month_a = _find_month(months, month_id) if month_id else months[0]
    month_b = _find_month(months, comparison_month_id) if comparison_month_id else None

    if month_b is not None and mode == "compare":
        rows = create_comparison_view(month_a, month_b, group_by)
    elif month_b is not None and mode == "sum":
        rows = create_unified_view(merge_months(month_a, month_b), group_by)
    else:
        rows = create_unified_view(month_a, group_by)
        mode = "view"

    logger.info(
        f"Unified report {month_a.id} ({mode}): {len(rows)} rows",
        extra={"month_id": month_a.id, "bucket_count": len(rows)},
    )
    return UnifiedReport(
        month=month_a,
        comparison_month=month_b,
        mode=mode,
        rows=rows,
        totals=calculate_unified_totals(rows, month_a),
    )
