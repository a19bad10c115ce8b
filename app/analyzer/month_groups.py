"""PAINEL — Month Grouping & Dataset Sorting.

Clusters per-account Google datasets into one logical month, and orders
datasets of either platform by the month encoded in their filename.
"""

import calendar
from datetime import date, timedelta
from typing import Iterable, List, Optional

from app.analyzer.breakdown_engine import parse_iso_date
from app.core.logging import get_logger
from app.core.months import (
    MONTH_ORDER,
    UNKNOWN_ACCOUNT,
    extract_account_from_filename,
    extract_month_from_filename,
    infer_year,
    month_identity,
    month_label,
    month_sort_value,
    month_value,
    resolve_today,
)
from app.models.analysis_models import DateRange, MonthGroup
from app.models.normalized_models import (
    DatasetMeta,
    DatasetSource,
    NormalizedDataset,
    NormalizedMetric,
    Platform,
)

logger = get_logger("analyzer.month_groups")


# ─────────────────────────────────────────────
# GOOGLE MONTH GROUPS
# ─────────────────────────────────────────────


def group_datasets_by_month(
    datasets: Iterable[NormalizedDataset], today: Optional[date] = None
) -> List[MonthGroup]:
    """One group per inferred month, most recent first.

    Datasets whose filename carries no month token are left out.
    """
    groups: dict[str, MonthGroup] = {}
    skipped = 0

    for dataset in datasets:
        file_name = dataset.meta.display_name
        abbr = extract_month_from_filename(file_name)
        if not abbr:
            skipped += 1
            logger.debug(f"No month token in '{file_name}', dataset left ungrouped")
            continue

        year = infer_year(MONTH_ORDER[abbr], today)
        group_id = month_identity(abbr, year)
        group = groups.get(group_id)
        if group is None:
            group = groups[group_id] = MonthGroup(
                id=group_id, month=abbr, year=year, label=month_label(abbr, year)
            )

        account = extract_account_from_filename(file_name)
        if account not in group.accounts:
            group.accounts.append(account)
        group.datasets.append(dataset)
        group.all_rows.extend(dataset.rows)

    ordered = sorted(
        groups.values(),
        key=lambda g: g.year * 100 + MONTH_ORDER[g.month],
        reverse=True,
    )
    for group in ordered:
        group.accounts.sort()

    logger.info(
        f"Grouped datasets into {len(ordered)} months ({skipped} without month)",
        extra={"bucket_count": len(ordered)},
    )
    return ordered


def most_recent_group(groups: List[MonthGroup]) -> Optional[MonthGroup]:
    """Groups are already sorted newest first."""
    return groups[0] if groups else None


def filter_rows_by_account(
    group: MonthGroup, account: Optional[str]
) -> List[NormalizedMetric]:
    """Rows of ``group`` whose account matches case-insensitively (all if None)."""
    if not account:
        return list(group.all_rows)
    wanted = account.lower()
    return [
        row
        for row in group.all_rows
        if row.account_name is not None and row.account_name.lower() == wanted
    ]


def unique_accounts(datasets: Iterable[NormalizedDataset]) -> List[str]:
    accounts = {
        extract_account_from_filename(d.meta.display_name) for d in datasets
    }
    accounts.discard(UNKNOWN_ACCOUNT)
    return sorted(accounts)


def create_virtual_dataset(
    group: MonthGroup, account: Optional[str] = None
) -> NormalizedDataset:
    """A single-dataset view of ``group``, optionally narrowed to one account."""
    first = group.datasets[0].meta if group.datasets else None
    return NormalizedDataset(
        meta=DatasetMeta(
            id=f"{group.id}-{account.lower()}" if account else group.id,
            platform=Platform.GOOGLE,
            label=f"{group.label} ({account})" if account else group.label,
            source=DatasetSource.STATIC,
            file_name=first.file_name if first else None,
            date_range=first.date_range if first else None,
        ),
        rows=filter_rows_by_account(group, account),
    )


def group_date_range(group: MonthGroup) -> Optional[DateRange]:
    """Actual span of a group's data.

    Google rows are dated by week start, so the last date is extended by six
    days to cover its whole week.
    """
    dates = sorted(
        d for d in (parse_iso_date(row.date) for row in group.all_rows) if d is not None
    )
    if not dates:
        return None
    return DateRange(
        start=dates[0].isoformat(),
        end=(dates[-1] + timedelta(days=6)).isoformat(),
    )


# ─────────────────────────────────────────────
# DATASET SORTING
# ─────────────────────────────────────────────


def sort_datasets_by_month(
    datasets: Iterable[NormalizedDataset], today: Optional[date] = None
) -> List[NormalizedDataset]:
    """Newest month first; datasets without month sink to the end."""
    return sorted(
        datasets,
        key=lambda d: month_sort_value(d.meta.display_name, today),
        reverse=True,
    )


def dataset_month_year(
    dataset: NormalizedDataset, today: Optional[date] = None
) -> Optional[tuple[int, int]]:
    """(month, year) of a dataset, or None if its filename has no month."""
    num = month_value(extract_month_from_filename(dataset.meta.display_name))
    if num == 0:
        return None
    return num, infer_year(num, today)


def most_recent_dataset(
    datasets: Iterable[NormalizedDataset], today: Optional[date] = None
) -> Optional[NormalizedDataset]:
    """Dataset of the current month, else the previous month, else the newest."""
    ordered = sort_datasets_by_month(datasets, today)
    if not ordered:
        return None

    ref = resolve_today(today)
    previous = (12, ref.year - 1) if ref.month == 1 else (ref.month - 1, ref.year)

    for target in ((ref.month, ref.year), previous):
        for dataset in ordered:
            if dataset_month_year(dataset, today) == target:
                return dataset
    return ordered[0]


def month_date_range(year: int, month: int) -> DateRange:
    """First and last calendar day of a month."""
    last_day = calendar.monthrange(year, month)[1]
    return DateRange(
        start=date(year, month, 1).isoformat(),
        end=date(year, month, last_day).isoformat(),
    )
