"""PAINEL — Comparison Engine.

Aggregates a primary and an optional secondary record set and either merges
them (metrics summed into one period) or compares them (primary numbers as
headline, secondary shown side by side with deltas).
"""

import time
from typing import Any, Iterable, Optional

from app.analyzer.aggregation_engine import aggregate_by_key
from app.analyzer.arguments import ensure_date_range, ensure_filters, ensure_group_by
from app.core.errors import InvalidArgumentError
from app.core.logging import get_logger
from app.core.metric_registry import (
    SUMMED_FIELDS,
    TOTAL_FIELDS,
    compute_cpa,
    compute_roas,
)
from app.models.analysis_models import (
    AggregateResult,
    AggregatedRow,
    ComparisonBreakdown,
    MetricTotals,
)
from app.models.normalized_models import NormalizedMetric

logger = get_logger("analyzer.comparison")


def to_totals(row: AggregatedRow) -> MetricTotals:
    return MetricTotals(**{field: getattr(row, field) for field in TOTAL_FIELDS})


def calculate_deltas(
    primary: MetricTotals, secondary: Optional[MetricTotals]
) -> Optional[MetricTotals]:
    """primary - secondary for every metric, ratios included."""
    if secondary is None:
        return None
    return MetricTotals(
        **{
            field: getattr(primary, field) - getattr(secondary, field)
            for field in TOTAL_FIELDS
        }
    )


def compute_totals(rows: Iterable[AggregatedRow]) -> MetricTotals:
    """Sum the additive metrics and recompute ROAS/CPA from the sums."""
    totals = MetricTotals()
    for row in rows:
        for field in SUMMED_FIELDS:
            setattr(totals, field, getattr(totals, field) + getattr(row, field))
    totals.roas = compute_roas(totals.revenue, totals.spend)
    totals.cpa = compute_cpa(totals.spend, totals.conversions)
    return totals


def _combine(
    primary: Optional[AggregatedRow],
    secondary: Optional[AggregatedRow],
    merge_mode: bool,
) -> AggregatedRow:
    base = primary if primary is not None else secondary
    combined = base.model_copy(deep=True)

    for field in SUMMED_FIELDS:
        p = getattr(primary, field) if primary is not None else 0.0
        s = getattr(secondary, field) if secondary is not None else 0.0
        setattr(combined, field, p + s if merge_mode else p)

    combined.roas = compute_roas(combined.revenue, combined.spend)
    combined.cpa = compute_cpa(combined.spend, combined.conversions)

    combined.breakdown = None
    if primary is not None:
        primary_totals = to_totals(primary)
        secondary_totals = to_totals(secondary) if secondary is not None else None
        combined.breakdown = ComparisonBreakdown(
            primary=primary_totals,
            secondary=secondary_totals,
            deltas=calculate_deltas(primary_totals, secondary_totals),
        )
    return combined


def aggregate_with_comparison(
    primary_rows: Iterable[NormalizedMetric],
    secondary_rows: Optional[Iterable[NormalizedMetric]],
    group_by: Any,
    date_range: Any,
    filters: Any,
    merge_mode: bool,
) -> AggregateResult:
    """Aggregate one or two periods into a single, spend-ordered row set.

    The primary set is always restricted to ``date_range``. The secondary set
    is restricted to it only when merging; in compare mode it stands on its
    own full period.
    """
    if not isinstance(merge_mode, bool):
        raise InvalidArgumentError("merge_mode must be a boolean", "merge_mode")
    group_by = ensure_group_by(group_by)
    date_range = ensure_date_range(date_range)
    filters = ensure_filters(filters)

    started = time.perf_counter()
    primary_grouped = aggregate_by_key(primary_rows, group_by, date_range, filters)
    secondary_grouped = (
        aggregate_by_key(
            secondary_rows, group_by, date_range if merge_mode else None, filters
        )
        if secondary_rows is not None
        else None
    )

    # Union of keys: primary order first, then secondary-only keys
    keys = list(primary_grouped)
    if secondary_grouped is not None:
        keys.extend(k for k in secondary_grouped if k not in primary_grouped)

    rows = [
        _combine(
            primary_grouped.get(key),
            secondary_grouped.get(key) if secondary_grouped is not None else None,
            merge_mode,
        )
        for key in keys
    ]
    rows.sort(key=lambda r: r.spend, reverse=True)

    totals = compute_totals(rows)

    secondary_totals: Optional[MetricTotals] = None
    totals_deltas: Optional[MetricTotals] = None
    if secondary_grouped and not merge_mode:
        secondary_totals = compute_totals(secondary_grouped.values())
        totals_deltas = calculate_deltas(totals, secondary_totals)

    logger.info(
        f"Aggregation by {group_by.value}: {len(rows)} rows "
        f"({'merge' if merge_mode else 'compare'} mode)",
        extra={
            "group_by": group_by.value,
            "bucket_count": len(rows),
            "duration_ms": round((time.perf_counter() - started) * 1000, 2),
        },
    )
    return AggregateResult(
        rows=rows,
        totals=totals,
        secondary_totals=secondary_totals,
        totals_deltas=totals_deltas,
    )
