"""PAINEL — Aggregation Parameter & Output Models."""

from enum import Enum
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.models.normalized_models import NormalizedDataset, NormalizedMetric, Platform


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ─────────────────────────────────────────────
# PARAMETERS
# ─────────────────────────────────────────────


class GroupBy(str, Enum):
    """Dimension that becomes the bucket key."""

    ACCOUNT = "account"
    CAMPAIGN = "campaign"
    ADGROUP = "adgroup"
    CREATIVE = "creative"
    DATE = "date"


class DateRange(CamelModel):
    """Inclusive ISO date window. An empty bound is unbounded on that side."""

    start: str = ""
    end: str = ""

    model_config = ConfigDict(frozen=True)


class Filters(CamelModel):
    """Independent per-dimension selections. Empty set = no restriction."""

    accounts: frozenset[str] = frozenset()
    campaigns: frozenset[str] = frozenset()
    ad_groups: frozenset[str] = frozenset()
    creatives: frozenset[str] = frozenset()

    model_config = ConfigDict(frozen=True)


# ─────────────────────────────────────────────
# OUTPUT — Aggregation
# ─────────────────────────────────────────────


class MetricTotals(CamelModel):
    spend: float = 0.0
    revenue: float = 0.0
    clicks: float = 0.0
    impressions: float = 0.0
    conversions: float = 0.0
    roas: float = 0.0
    cpa: float = 0.0


class WeeklyBreakdown(CamelModel):
    week_start: str
    week_range: str  # "2025-07-28 - 2025-08-03"
    spend: float = 0.0
    revenue: float = 0.0
    clicks: float = 0.0
    impressions: float = 0.0
    conversions: float = 0.0


class DailyBreakdown(CamelModel):
    date: str
    date_display: str  # "30/11/2025"
    spend: float = 0.0
    revenue: float = 0.0
    clicks: float = 0.0
    impressions: float = 0.0
    conversions: float = 0.0


class ComparisonBreakdown(CamelModel):
    """Side-by-side numbers of one bucket in primary/secondary aggregation."""

    primary: MetricTotals
    secondary: Optional[MetricTotals] = None
    deltas: Optional[MetricTotals] = None


class AggregatedRow(CamelModel):
    """One output bucket. Created fresh on every aggregation call."""

    id: str
    name: str
    platform: Platform
    spend: float = 0.0
    revenue: float = 0.0
    clicks: float = 0.0
    impressions: float = 0.0
    conversions: float = 0.0
    roas: float = 0.0
    cpa: float = 0.0
    campaign_budget: Optional[float] = None
    ad_group_budget: Optional[float] = None
    date: Optional[str] = None
    weekly_data: Optional[List[WeeklyBreakdown]] = None
    daily_data: Optional[List[DailyBreakdown]] = None
    breakdown: Optional[ComparisonBreakdown] = None
    # Month-over-month comparison (month B)
    spend_b: Optional[float] = None
    conversions_b: Optional[float] = None
    cpa_b: Optional[float] = None
    clicks_b: Optional[float] = None
    impressions_b: Optional[float] = None
    # Percentage changes A vs B
    spend_change: Optional[float] = None
    conversions_change: Optional[float] = None
    cpa_change: Optional[float] = None
    clicks_change: Optional[float] = None
    impressions_change: Optional[float] = None
    has_comparison: Optional[bool] = None


class AggregateResult(CamelModel):
    rows: List[AggregatedRow] = []
    totals: MetricTotals = MetricTotals()
    secondary_totals: Optional[MetricTotals] = None
    totals_deltas: Optional[MetricTotals] = None


# ─────────────────────────────────────────────
# OUTPUT — Month containers
# ─────────────────────────────────────────────


class MonthGroup(CamelModel):
    """Datasets of one platform inferred to belong to the same month."""

    id: str  # "ago-2025"
    month: str  # "ago"
    year: int
    label: str  # "Agosto 2025"
    accounts: List[str] = []
    datasets: List[NormalizedDataset] = []
    all_rows: List[NormalizedMetric] = []


class AvailableMonth(CamelModel):
    """One calendar month spanning both platforms."""

    id: str  # "nov-2025"
    label: str  # "Novembro 2025"
    month: int  # 1-12
    year: int
    has_google: bool = False
    has_meta: bool = False
    google_datasets: List[NormalizedDataset] = []
    meta_datasets: List[NormalizedDataset] = []


# ─────────────────────────────────────────────
# OUTPUT — Totals & counts
# ─────────────────────────────────────────────


class SecondaryTotals(CamelModel):
    spend: float = 0.0
    conversions: float = 0.0
    clicks: float = 0.0
    impressions: float = 0.0
    cpa: float = 0.0


class UnifiedTotals(CamelModel):
    spend: float = 0.0
    conversions: float = 0.0
    clicks: float = 0.0
    impressions: float = 0.0
    cpa: float = 0.0
    account_count: int = 0
    campaign_count: int = 0
    ad_group_count: int = 0
    creative_count: int = 0
    secondary_totals: Optional[SecondaryTotals] = None


class EntityCounts(CamelModel):
    accounts: int = 0
    campaigns: int = 0
    ad_groups: int = 0
    creatives: int = 0


class FilterOptions(CamelModel):
    accounts: List[str] = Field(default_factory=list)
    campaigns: List[str] = Field(default_factory=list)
    ad_groups: List[str] = Field(default_factory=list)
    creatives: List[str] = Field(default_factory=list)
