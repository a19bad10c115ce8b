"""PAINEL — Unified Cross-Platform Engine.

Builds one reporting row set per month spanning Meta and Google, and a
month-over-month comparison between two such months.

Rows are ordered by name (Unicode collation, ignoring case and accents),
with the Meta row of a name immediately before its Google row, so the same
brand reads as a pair: Kia (Meta), Kia (Google), Suzuki (Meta), ...
"""

from datetime import date
from typing import Any, Iterable, List, Optional

from pyuca import Collator

from app.analyzer.aggregation_engine import dimension_value
from app.analyzer.arguments import ensure_group_by
from app.analyzer.breakdown_engine import calculate_weekly_breakdown
from app.core.errors import InvalidArgumentError
from app.core.logging import get_logger
from app.core.metric_registry import (
    CHANGE_FIELDS,
    SUMMED_FIELDS,
    compute_cpa,
    compute_roas,
    percent_change,
    round_half_up,
)
from app.core.months import (
    MONTH_ORDER,
    extract_month_from_filename,
    infer_year,
    month_identity,
    month_label,
    strip_accents,
)
from app.models.analysis_models import (
    AggregatedRow,
    AvailableMonth,
    GroupBy,
    SecondaryTotals,
    UnifiedTotals,
)
from app.models.normalized_models import NormalizedDataset, NormalizedMetric, Platform

logger = get_logger("analyzer.unified")

# Meta (daily) rows precede Google (weekly) rows of the same name
PLATFORM_ORDER: dict[Platform, int] = {Platform.META: 0, Platform.GOOGLE: 1}

_COLLATOR = Collator()


def collation_key(name: str) -> tuple[int, ...]:
    """UCA sort key at base strength: case and accents are folded first.

    Spaces and punctuation keep their collation weights, so ``"Camp A"`` <
    ``"Camp_A"`` < ``"Camp-B"`` < ``"Camp&C"`` < ``"Camp1"`` as in pt-BR.
    """
    return _COLLATOR.sort_key(strip_accents(name).casefold())


def unified_sort_key(row: AggregatedRow) -> tuple[tuple[int, ...], int]:
    return collation_key(row.name), PLATFORM_ORDER.get(row.platform, len(PLATFORM_ORDER))


def sort_unified_rows(rows: Iterable[AggregatedRow]) -> List[AggregatedRow]:
    """Name then platform; stable, so equal keys keep their input order."""
    return sorted(rows, key=unified_sort_key)


# ─────────────────────────────────────────────
# MONTHS
# ─────────────────────────────────────────────


def build_unified_months(
    datasets: Iterable[NormalizedDataset], today: Optional[date] = None
) -> List[AvailableMonth]:
    """Group datasets of both platforms by inferred month, most recent first."""
    months: dict[str, AvailableMonth] = {}

    for dataset in datasets:
        abbr = extract_month_from_filename(dataset.meta.display_name)
        if not abbr:
            continue

        year = infer_year(MONTH_ORDER[abbr], today)
        month_id = month_identity(abbr, year)
        entry = months.get(month_id)
        if entry is None:
            entry = months[month_id] = AvailableMonth(
                id=month_id,
                label=month_label(abbr, year),
                month=MONTH_ORDER[abbr],
                year=year,
            )

        if dataset.meta.platform is Platform.GOOGLE:
            entry.has_google = True
            entry.google_datasets.append(dataset)
        elif dataset.meta.platform is Platform.META:
            entry.has_meta = True
            entry.meta_datasets.append(dataset)

    return sorted(months.values(), key=lambda m: m.year * 100 + m.month, reverse=True)


def merge_months(month_a: AvailableMonth, month_b: AvailableMonth) -> AvailableMonth:
    """Month A with month B's datasets appended, for summing two periods."""
    return month_a.model_copy(
        update={
            "id": f"combined-{month_a.id}-{month_b.id}",
            "has_google": month_a.has_google or month_b.has_google,
            "has_meta": month_a.has_meta or month_b.has_meta,
            "google_datasets": [*month_a.google_datasets, *month_b.google_datasets],
            "meta_datasets": [*month_a.meta_datasets, *month_b.meta_datasets],
        }
    )


# ─────────────────────────────────────────────
# UNIFIED VIEW
# ─────────────────────────────────────────────


def _ensure_entity_group_by(group_by: Any) -> GroupBy:
    group_by = ensure_group_by(group_by)
    if group_by is GroupBy.DATE:
        raise InvalidArgumentError(
            "Unified views group by account, campaign, adgroup or creative", "group_by"
        )
    return group_by


def _sum_budgets(rows: List[NormalizedMetric]) -> tuple[Optional[float], Optional[float]]:
    """Sum one budget per distinct campaign / ad group name (last value wins)."""
    campaign_budgets: dict[str, float] = {}
    ad_group_budgets: dict[str, float] = {}
    for row in rows:
        if row.campaign_budget is not None and row.campaign_name:
            campaign_budgets[row.campaign_name] = row.campaign_budget
        if row.ad_group_budget is not None and row.ad_group_name:
            ad_group_budgets[row.ad_group_name] = row.ad_group_budget
    return (
        sum(campaign_budgets.values()) if campaign_budgets else None,
        sum(ad_group_budgets.values()) if ad_group_budgets else None,
    )


def _meta_budget_fallback(
    group_by: GroupBy,
    spend: float,
    days: int,
    campaign_budget: Optional[float],
    ad_group_budget: Optional[float],
) -> tuple[Optional[float], Optional[float]]:
    estimate = round_half_up(spend / days) if spend > 0 else None
    if group_by in (GroupBy.CAMPAIGN, GroupBy.ACCOUNT) and not campaign_budget:
        campaign_budget = ad_group_budget if ad_group_budget and ad_group_budget > 0 else estimate
    elif group_by is GroupBy.ADGROUP and not ad_group_budget:
        ad_group_budget = estimate
    return campaign_budget, ad_group_budget


def _platform_rows(
    datasets: List[NormalizedDataset], platform: Platform, group_by: GroupBy
) -> List[AggregatedRow]:
    grouped: dict[str, List[NormalizedMetric]] = {}
    for dataset in datasets:
        for row in dataset.rows:
            key = dimension_value(row, group_by)
            if not key:
                continue
            grouped.setdefault(key, []).append(row)

    result: List[AggregatedRow] = []
    for key, members in grouped.items():
        sums = {field: sum(getattr(r, field) for r in members) for field in SUMMED_FIELDS}
        campaign_budget, ad_group_budget = _sum_budgets(members)

        if platform is Platform.META:
            days = len({r.date for r in members if r.date}) or 1
            campaign_budget, ad_group_budget = _meta_budget_fallback(
                group_by, sums["spend"], days, campaign_budget, ad_group_budget
            )

        result.append(
            AggregatedRow(
                id=f"{platform.value}-{key}",
                name=key,
                platform=platform,
                **sums,
                roas=compute_roas(sums["revenue"], sums["spend"]),
                cpa=compute_cpa(sums["spend"], sums["conversions"]),
                campaign_budget=campaign_budget,
                ad_group_budget=ad_group_budget,
                weekly_data=calculate_weekly_breakdown(members),
            )
        )
    return result


def create_unified_view(month: AvailableMonth, group_by: Any = GroupBy.ACCOUNT) -> List[AggregatedRow]:
    """One row per (dimension value, platform) for ``month``."""
    group_by = _ensure_entity_group_by(group_by)
    rows = _platform_rows(month.meta_datasets, Platform.META, group_by)
    rows += _platform_rows(month.google_datasets, Platform.GOOGLE, group_by)

    logger.info(
        f"Unified view for {month.id} by {group_by.value}: {len(rows)} rows",
        extra={"month_id": month.id, "group_by": group_by.value, "bucket_count": len(rows)},
    )
    return sort_unified_rows(rows)


# ─────────────────────────────────────────────
# MONTH-OVER-MONTH COMPARISON
# ─────────────────────────────────────────────


def comparison_key(row: AggregatedRow) -> str:
    return f"{row.name}::{row.platform.value}"


def create_comparison_view(
    month_a: AvailableMonth,
    month_b: AvailableMonth,
    group_by: Any = GroupBy.ACCOUNT,
) -> List[AggregatedRow]:
    """Rows of month A annotated with month B values and % changes.

    A zero baseline yields a 0% change rather than infinity. Entities only in
    B are appended with zero A values and a -100% drop (CPA stays 0).
    """
    group_by = _ensure_entity_group_by(group_by)
    rows_a = create_unified_view(month_a, group_by)
    rows_b = create_unified_view(month_b, group_by)
    by_key_b = {comparison_key(row): row for row in rows_b}
    keys_a = {comparison_key(row) for row in rows_a}

    result: List[AggregatedRow] = []
    for row_a in rows_a:
        row_b = by_key_b.get(comparison_key(row_a))
        if row_b is None:
            result.append(row_a.model_copy(update={"has_comparison": False}))
            continue
        update: dict[str, Any] = {"has_comparison": True}
        for field in CHANGE_FIELDS:
            update[f"{field}_b"] = getattr(row_b, field)
            update[f"{field}_change"] = percent_change(getattr(row_a, field), getattr(row_b, field))
        result.append(row_a.model_copy(update=update))

    for row_b in rows_b:
        if comparison_key(row_b) in keys_a:
            continue
        update = {"id": f"{row_b.id}-only-b", "has_comparison": True}
        for field in CHANGE_FIELDS:
            update[field] = 0.0
            update[f"{field}_b"] = getattr(row_b, field)
            update[f"{field}_change"] = 0.0 if field == "cpa" else -100.0
        result.append(row_b.model_copy(update=update))

    matched = sum(1 for r in result if r.has_comparison)
    logger.info(
        f"Comparison {month_a.id} vs {month_b.id}: {len(result)} rows, {matched} with comparison",
        extra={"month_id": month_a.id, "group_by": group_by.value, "bucket_count": len(result)},
    )
    return sort_unified_rows(result)


# ─────────────────────────────────────────────
# TOTALS
# ─────────────────────────────────────────────


def calculate_unified_totals(
    rows: Iterable[AggregatedRow], month: Optional[AvailableMonth] = None
) -> UnifiedTotals:
    """Grand totals of a unified (or comparison) row set.

    Entity counts come from the month's raw rows, keyed ``name-platform``, when
    the month is given; otherwise only accounts are counted, by row name.
    """
    rows = list(rows)
    totals = UnifiedTotals()
    secondary = SecondaryTotals()
    has_secondary = False

    for row in rows:
        totals.spend += row.spend
        totals.conversions += row.conversions
        totals.clicks += row.clicks
        totals.impressions += row.impressions
        if row.has_comparison:
            has_secondary = True
            secondary.spend += row.spend_b or 0.0
            secondary.conversions += row.conversions_b or 0.0
            secondary.clicks += row.clicks_b or 0.0
            secondary.impressions += row.impressions_b or 0.0

    totals.cpa = compute_cpa(totals.spend, totals.conversions)

    if month is not None:
        accounts, campaigns, ad_groups, creatives = set(), set(), set(), set()
        for dataset in [*month.meta_datasets, *month.google_datasets]:
            for raw in dataset.rows:
                platform = raw.platform.value
                if raw.account_name:
                    accounts.add(f"{raw.account_name}-{platform}")
                if raw.campaign_name:
                    campaigns.add(f"{raw.campaign_name}-{platform}")
                if raw.ad_group_name:
                    ad_groups.add(f"{raw.ad_group_name}-{platform}")
                if raw.creative_name:
                    creatives.add(f"{raw.creative_name}-{platform}")
        totals.account_count = len(accounts)
        totals.campaign_count = len(campaigns)
        totals.ad_group_count = len(ad_groups)
        totals.creative_count = len(creatives)
    else:
        totals.account_count = len({row.name for row in rows})

    if has_secondary:
        secondary.cpa = compute_cpa(secondary.spend, secondary.conversions)
        totals.secondary_totals = secondary

    return totals
