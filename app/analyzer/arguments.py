"""PAINEL — Argument coercion for the aggregation entry points.

Accepts the model instances as well as their plain-dict / string forms, and
raises ``InvalidArgumentError`` for anything structurally wrong.
"""

from typing import Any, Mapping, Optional

from pydantic import ValidationError

from app.core.errors import InvalidArgumentError
from app.models.analysis_models import DateRange, Filters, GroupBy

FILTER_KEYS = {"accounts", "campaigns", "ad_groups", "adGroups", "creatives"}


def ensure_group_by(value: Any) -> GroupBy:
    if isinstance(value, GroupBy):
        return value
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgumentError("group_by must be a non-empty string", "group_by")
    try:
        return GroupBy(value.strip().lower())
    except ValueError:
        allowed = ", ".join(g.value for g in GroupBy)
        raise InvalidArgumentError(
            f"Unknown group_by '{value}' (expected one of: {allowed})", "group_by"
        ) from None


def ensure_filters(value: Any) -> Filters:
    if value is None:
        return Filters()
    if isinstance(value, Filters):
        return value
    if not isinstance(value, Mapping):
        raise InvalidArgumentError("filters must be a mapping of string sets", "filters")
    for key, selected in value.items():
        if key not in FILTER_KEYS:
            raise InvalidArgumentError(f"Unknown filter dimension '{key}'", "filters")
        if isinstance(selected, (str, bytes)) or not hasattr(selected, "__iter__"):
            raise InvalidArgumentError(
                f"filters['{key}'] must be a collection of strings", "filters"
            )
    try:
        return Filters.model_validate(dict(value))
    except ValidationError as e:
        raise InvalidArgumentError(f"Invalid filters: {e}", "filters") from e


def ensure_date_range(value: Any, allow_none: bool = True) -> Optional[DateRange]:
    if value is None:
        if allow_none:
            return None
        raise InvalidArgumentError("date_range is required", "date_range")
    if isinstance(value, DateRange):
        return value
    if not isinstance(value, Mapping):
        raise InvalidArgumentError("date_range must have start/end", "date_range")
    try:
        return DateRange.model_validate(
            {k: (v or "") for k, v in value.items()}
        )
    except ValidationError as e:
        raise InvalidArgumentError(f"Invalid date_range: {e}", "date_range") from e
