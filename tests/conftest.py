from datetime import date
from itertools import count

import pytest

from app.models.normalized_models import (
    DatasetMeta,
    DateRangeMeta,
    NormalizedDataset,
    NormalizedMetric,
    Platform,
)

# Month inference is relative to "today"; tests pin it.
TODAY = date(2025, 12, 1)


@pytest.fixture()
def today():
    return TODAY


@pytest.fixture()
def make_row():
    """Factory for NormalizedMetric with sensible defaults."""
    ids = count(1)

    def _make(platform: str = "meta", **fields) -> NormalizedMetric:
        fields.setdefault("id", f"row-{next(ids)}")
        return NormalizedMetric(platform=Platform(platform), **fields)

    return _make


@pytest.fixture()
def make_dataset():
    """Factory for NormalizedDataset named after its file."""

    def _make(file_name: str, platform: str, rows=(), date_range=None) -> NormalizedDataset:
        return NormalizedDataset(
            meta=DatasetMeta(
                id=file_name,
                platform=Platform(platform),
                label=file_name,
                file_name=file_name,
                date_range=DateRangeMeta(**date_range) if date_range else None,
            ),
            rows=list(rows),
        )

    return _make
