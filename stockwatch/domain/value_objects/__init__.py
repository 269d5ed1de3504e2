"""Domain value objects."""
from stockwatch.domain.value_objects.condition import (
    AllOf,
    AnyOf,
    Compare,
    Condition,
    Cross,
    Not,
    Ratio,
    Threshold,
    parse_condition,
)
from stockwatch.domain.value_objects.indicator_fields import (
    FIELD_MIN_CANDLES,
    INDICATOR_FIELDS,
    normalize_field,
    required_candles,
)
from stockwatch.domain.value_objects.timeframe import (
    TIMEFRAME_SECONDS,
    ensure_utc,
    timeframe_delta,
    timeframe_seconds,
    utc_now,
)

__all__ = [
    "AllOf",
    "AnyOf",
    "Compare",
    "Condition",
    "Cross",
    "Not",
    "Ratio",
    "Threshold",
    "parse_condition",
    "FIELD_MIN_CANDLES",
    "INDICATOR_FIELDS",
    "normalize_field",
    "required_candles",
    "TIMEFRAME_SECONDS",
    "ensure_utc",
    "timeframe_delta",
    "timeframe_seconds",
    "utc_now",
]
