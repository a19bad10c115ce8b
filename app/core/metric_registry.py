"""PAINEL — Unified Metric Registry.

Defines the canonical set of metrics carried by every normalized record and
how each one is combined across rows.
"""

import math
from enum import Enum
from typing import Dict


class MetricType(str, Enum):
    """How a metric is categorised."""

    VOLUME = "volume"  # Raw counts: impressions, clicks, conversions
    COST = "cost"  # Monetary: spend
    REVENUE = "revenue"  # Income: revenue
    DERIVED = "derived"  # Recomputed from sums: roas, cpa


# ─────────────────────────────────────────────
# METRICS — Canonical Registry
# ─────────────────────────────────────────────

METRICS: Dict[str, MetricType] = {
    "spend": MetricType.COST,
    "revenue": MetricType.REVENUE,
    "clicks": MetricType.VOLUME,
    "impressions": MetricType.VOLUME,
    "conversions": MetricType.VOLUME,
    "roas": MetricType.DERIVED,  # revenue / spend
    "cpa": MetricType.DERIVED,  # spend / conversions
}

# Derived metrics are never summed, always recomputed from the summed ones
SUMMED_FIELDS: tuple[str, ...] = tuple(
    name for name, kind in METRICS.items() if kind is not MetricType.DERIVED
)
DERIVED_FIELDS: tuple[str, ...] = tuple(
    name for name, kind in METRICS.items() if kind is MetricType.DERIVED
)
TOTAL_FIELDS: tuple[str, ...] = SUMMED_FIELDS + DERIVED_FIELDS

# Metrics reported side by side in the month-over-month view
CHANGE_FIELDS: tuple[str, ...] = ("spend", "conversions", "cpa", "clicks", "impressions")


# ─────────────────────────────────────────────
# HELPERS
# ─────────────────────────────────────────────


def compute_roas(revenue: float, spend: float) -> float:
    """Return on ad spend; 0 unless both revenue and spend are positive."""
    return revenue / spend if revenue > 0 and spend > 0 else 0.0


def compute_cpa(spend: float, conversions: float) -> float:
    """Cost per acquisition; 0 when there are no conversions."""
    return spend / conversions if conversions > 0 else 0.0


def percent_change(current: float, baseline: float) -> float:
    """(current - baseline) / baseline * 100, or 0 for a zero baseline."""
    return (current - baseline) / baseline * 100 if baseline > 0 else 0.0


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounded up (not to even)."""
    return math.floor(value + 0.5)
