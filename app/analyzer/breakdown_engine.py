"""PAINEL — Weekly / Daily Breakdown Engine.

Buckets normalized records into calendar weeks (Monday start) or calendar
days. Meta rows are daily and get folded into their Monday; Google rows
already carry the week's Monday and land in their own bucket.
"""

from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional

from app.core.metric_registry import SUMMED_FIELDS
from app.models.analysis_models import DailyBreakdown, WeeklyBreakdown
from app.models.normalized_models import NormalizedMetric


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """Return the date for a well-formed YYYY-MM-DD string, else None."""
    if not value or len(value) != 10:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        return None


def week_start(day: date) -> date:
    """Monday of the week containing ``day``."""
    # date.weekday(): Monday=0 … Sunday=6, so Sunday goes back 6 days
    return day - timedelta(days=day.weekday())


def week_end(start: date) -> date:
    return start + timedelta(days=6)


def format_date_display(value: str) -> str:
    """YYYY-MM-DD -> DD/MM/YYYY."""
    year, month, day = value.split("-")
    return f"{day}/{month}/{year}"


def _add_metrics(bucket, row: NormalizedMetric) -> None:
    for field in SUMMED_FIELDS:
        setattr(bucket, field, getattr(bucket, field) + getattr(row, field))


def calculate_weekly_breakdown(rows: Iterable[NormalizedMetric]) -> List[WeeklyBreakdown]:
    """Per-week sums, most recent week first."""
    weeks: dict[str, WeeklyBreakdown] = {}

    for row in rows:
        day = parse_iso_date(row.date)
        if day is None:
            continue
        start = week_start(day)
        key = start.isoformat()
        if key not in weeks:
            weeks[key] = WeeklyBreakdown(
                week_start=key,
                week_range=f"{key} - {week_end(start).isoformat()}",
            )
        _add_metrics(weeks[key], row)

    return sorted(weeks.values(), key=lambda w: w.week_start, reverse=True)


def calculate_daily_breakdown(rows: Iterable[NormalizedMetric]) -> List[DailyBreakdown]:
    """Per-day sums, most recent day first."""
    days: dict[str, DailyBreakdown] = {}

    for row in rows:
        if parse_iso_date(row.date) is None:
            continue
        key = row.date
        if key not in days:
            days[key] = DailyBreakdown(date=key, date_display=format_date_display(key))
        _add_metrics(days[key], row)

    return sorted(days.values(), key=lambda d: d.date, reverse=True)
