"""PAINEL — Normalized Metric Models (Universal Schema).

Every platform export (Meta daily, Google weekly multi-account) is coerced
into this format by the upstream parsers before any aggregation runs.
Field names are snake_case in Python and camelCase on the wire.
"""

from enum import Enum
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Platform(str, Enum):
    """Ad platform a record came from."""

    META = "meta"  # Daily granularity
    GOOGLE = "google"  # Weekly granularity, one file per account


class DatasetSource(str, Enum):
    STATIC = "static"
    UPLOAD = "upload"


class FrozenModel(BaseModel):
    """Immutable model with camelCase aliases for the exchange contract."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class NormalizedMetric(FrozenModel):
    """One ad-performance record.

    Numeric fields are finite and non-negative after parsing; records with no
    date and all-zero metrics are dropped upstream, so they are not re-checked
    here.
    """

    id: str = ""
    platform: Platform
    date: str = Field(default="", description="YYYY-MM-DD or empty if unknown")
    account_name: Optional[str] = None
    campaign_name: Optional[str] = None
    ad_group_name: Optional[str] = None
    creative_name: Optional[str] = None
    spend: float = 0.0
    revenue: float = 0.0
    clicks: float = 0.0
    impressions: float = 0.0
    conversions: float = 0.0
    campaign_budget: Optional[float] = None
    ad_group_budget: Optional[float] = None


class DateRangeMeta(FrozenModel):
    start: Optional[str] = None
    end: Optional[str] = None


class DatasetMeta(FrozenModel):
    """Descriptor of one ingested file."""

    id: str
    platform: Platform
    label: str
    source: DatasetSource = DatasetSource.STATIC
    file_name: Optional[str] = None
    date_range: Optional[DateRangeMeta] = None

    @property
    def display_name(self) -> str:
        """Name used for month inference: the file name, else the label."""
        return self.file_name or self.label


class NormalizedDataset(FrozenModel):
    """A parsed file: metadata plus its normalized rows."""

    meta: DatasetMeta
    rows: List[NormalizedMetric] = []
