"""PAINEL — Single-Platform Aggregation Engine.

Groups one record set by a dimension (account, campaign, ad group, creative
or date), applying an optional date window and independent per-dimension
filters, then derives ROAS/CPA, budgets and weekly/daily breakdowns per
bucket.
"""

from typing import Any, Iterable, Optional

from app.analyzer.arguments import ensure_date_range, ensure_filters, ensure_group_by
from app.analyzer.breakdown_engine import (
    calculate_daily_breakdown,
    calculate_weekly_breakdown,
)
from app.core.logging import get_logger
from app.core.metric_registry import (
    SUMMED_FIELDS,
    compute_cpa,
    compute_roas,
    round_half_up,
)
from app.models.analysis_models import AggregatedRow, DateRange, Filters, GroupBy
from app.models.normalized_models import NormalizedMetric, Platform

logger = get_logger("analyzer.aggregation")

# Bucket name used when a record lacks the grouped dimension
PLACEHOLDERS: dict[GroupBy, str] = {
    GroupBy.ACCOUNT: "Sem Conta",
    GroupBy.CAMPAIGN: "Sem Campanha",
    GroupBy.ADGROUP: "Sem Conjunto",
    GroupBy.CREATIVE: "Sem Anúncio",
    GroupBy.DATE: "Sem Data",
}


def dimension_value(row: NormalizedMetric, group_by: GroupBy) -> Optional[str]:
    """Value of the dimension selected by ``group_by`` (None/empty if missing)."""
    if group_by is GroupBy.ACCOUNT:
        return row.account_name
    if group_by is GroupBy.CAMPAIGN:
        return row.campaign_name
    if group_by is GroupBy.ADGROUP:
        return row.ad_group_name
    if group_by is GroupBy.CREATIVE:
        return row.creative_name
    return row.date


def in_date_range(value: str, date_range: Optional[DateRange]) -> bool:
    """Inclusive string comparison; ``None`` disables the check entirely."""
    if date_range is None:
        return True
    if not value:
        return False
    if date_range.start and value < date_range.start:
        return False
    if date_range.end and value > date_range.end:
        return False
    return True


def matches_filter(value: Optional[str], selected: frozenset[str]) -> bool:
    if not selected:
        return True
    if not value:
        return False
    return value in selected


def passes_filters(row: NormalizedMetric, filters: Filters) -> bool:
    return (
        matches_filter(row.account_name, filters.accounts)
        and matches_filter(row.campaign_name, filters.campaigns)
        and matches_filter(row.ad_group_name, filters.ad_groups)
        and matches_filter(row.creative_name, filters.creatives)
    )


def _new_bucket(key: str, row: NormalizedMetric, group_by: GroupBy) -> AggregatedRow:
    return AggregatedRow(
        id=key,
        name=key,
        platform=row.platform,
        campaign_budget=row.campaign_budget if group_by is GroupBy.CAMPAIGN else None,
        ad_group_budget=row.ad_group_budget if group_by is GroupBy.ADGROUP else None,
        date=(row.date or None) if group_by is GroupBy.DATE else None,
    )


def aggregate_by_key(
    rows: Iterable[NormalizedMetric],
    group_by: Any,
    date_range: Any,
    filters: Any,
) -> dict[str, AggregatedRow]:
    """Aggregate ``rows`` into buckets keyed by the ``group_by`` dimension.

    Args:
        rows: Normalized records of a single platform.
        group_by: A ``GroupBy`` or its string value.
        date_range: A ``DateRange`` (or mapping) to filter on, or ``None`` to
            skip date filtering altogether.
        filters: A ``Filters`` (or mapping); empty sets do not restrict.

    Returns:
        Buckets in first-seen order. Budgets are first-write-wins so that a
        budget repeated on every daily row is not counted twice.
    """
    group_by = ensure_group_by(group_by)
    date_range = ensure_date_range(date_range)
    filters = ensure_filters(filters)

    grouped: dict[str, AggregatedRow] = {}
    members: dict[str, list[NormalizedMetric]] = {}
    consumed = 0

    for row in rows:
        if not in_date_range(row.date, date_range):
            continue
        if not passes_filters(row, filters):
            continue

        key = dimension_value(row, group_by) or PLACEHOLDERS[group_by]
        bucket = grouped.get(key)
        if bucket is None:
            bucket = grouped[key] = _new_bucket(key, row, group_by)
            members[key] = []

        for field in SUMMED_FIELDS:
            setattr(bucket, field, getattr(bucket, field) + getattr(row, field))
        members[key].append(row)
        consumed += 1

        if group_by is GroupBy.CAMPAIGN and row.campaign_budget and not bucket.campaign_budget:
            bucket.campaign_budget = row.campaign_budget
        if group_by is GroupBy.ADGROUP and row.ad_group_budget and not bucket.ad_group_budget:
            bucket.ad_group_budget = row.ad_group_budget

    for key, bucket in grouped.items():
        bucket.roas = compute_roas(bucket.revenue, bucket.spend)
        bucket.cpa = compute_cpa(bucket.spend, bucket.conversions)
        bucket.weekly_data = calculate_weekly_breakdown(members[key])
        bucket.daily_data = calculate_daily_breakdown(members[key])
        _apply_budget_fallback(bucket, group_by)

    logger.debug(
        f"Aggregated {consumed} rows into {len(grouped)} {group_by.value} buckets",
        extra={"group_by": group_by.value, "row_count": consumed, "bucket_count": len(grouped)},
    )
    return grouped


def _apply_budget_fallback(bucket: AggregatedRow, group_by: GroupBy) -> None:
    """Estimate a daily budget for Meta buckets whose export omitted it."""
    if bucket.platform is not Platform.META or bucket.spend <= 0:
        return
    days = len(bucket.daily_data or []) or 1
    if group_by is GroupBy.CAMPAIGN and not bucket.campaign_budget:
        bucket.campaign_budget = round_half_up(bucket.spend / days)
    elif group_by is GroupBy.ADGROUP and not bucket.ad_group_budget:
        bucket.ad_group_budget = round_half_up(bucket.spend / days)
