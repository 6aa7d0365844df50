"""
Metric extraction service for the Funnel Metrics engine.

Narrows a schema-less raw record into a ChannelMetrics instance, the only
shape that travels past this module. Extraction never raises:

- Numeric fields: int/float values (bool excluded) and numeric strings such as
  "1,250" or "$42.10" are accepted. Anything else, including negative or
  non-finite numbers, becomes 0.0 so every derived rate stays in [0, inf).
- Label fields: strings are stripped; integers are rendered as text (numeric
  campaign ids); booleans become "true"/"false"; anything else is "".
- Derived fields: sum/product/difference of already-extracted numeric fields;
  a difference never goes below 0.
- Time dimensions: an integer-like hour (0-23) is used as is for hour_of_day;
  otherwise the value is parsed as a timestamp with pandas. Unusable values
  map to None and are counted as unknown by the aggregator.

Key Functions:
- normalize_record: Convert a stored document to a plain dict (boundary step)
- extract_metrics: RawRecord -> ChannelMetrics for one descriptor
"""

import math
from typing import Any, Dict, Mapping, Optional

import pandas as pd

from funnel_metrics.models.enums import TimeDimension
from funnel_metrics.models.schemas import ChannelMetrics
from funnel_metrics.services.channels import ChannelDescriptor, DerivedField


# =============================================================================
# Boundary Normalization
# =============================================================================


def normalize_record(document: Any) -> Dict[str, Any]:
    """
    Convert a stored document into a plain dict.

    Accepts mappings, pydantic models and objects exposing to_dict(). The
    result is a shallow copy, so the caller's document is never mutated.

    Raises:
        TypeError: If the document cannot be represented as a mapping.
    """
    if isinstance(document, Mapping):
        return dict(document)
    if hasattr(document, "model_dump"):
        return dict(document.model_dump())
    to_dict = getattr(document, "to_dict", None)
    if callable(to_dict):
        return dict(to_dict())
    raise TypeError(f"Cannot normalize record of type {type(document).__name__}")


# =============================================================================
# Field Coercion
# =============================================================================


def coerce_number(value: Any) -> float:
    """Coerce a raw value to a non-negative finite float, 0.0 when unusable."""
    if isinstance(value, bool) or value is None:
        return 0.0

    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        cleaned = value.strip().replace(",", "").replace("$", "")
        if not cleaned:
            return 0.0
        try:
            number = float(cleaned)
        except ValueError:
            return 0.0
    else:
        return 0.0

    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


def coerce_label(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, int):
        return str(value)
    # numeric ids often arrive as 12345.0 from JSON or BSON doubles
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return ""


def _parse_timestamp(value: Any) -> Optional[pd.Timestamp]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        # bare numbers are not treated as epochs
        return None
    try:
        parsed = pd.to_datetime(value, errors="coerce")
    except (TypeError, ValueError):
        return None
    if not isinstance(parsed, pd.Timestamp) or pd.isna(parsed):
        return None
    return parsed


def coerce_time_bucket(value: Any, dimension: TimeDimension) -> Optional[int]:
    """
    Map a raw time value to its bucket index.

    hour_of_day accepts an integer-like hour 0-23 (14, 14.0, "14" or "14.0")
    or any timestamp;
    day_of_week accepts a timestamp only (0=Monday ... 6=Sunday).
    """
    if dimension is TimeDimension.HOUR_OF_DAY and not isinstance(value, bool):
        hour: Optional[float] = None
        if isinstance(value, (int, float)):
            hour = float(value)
        elif isinstance(value, str):
            try:
                hour = float(value.strip())
            except ValueError:
                hour = None
        if hour is not None:
            if math.isfinite(hour) and hour.is_integer() and 0 <= hour < 24:
                return int(hour)
            return None

    parsed = _parse_timestamp(value)
    if parsed is None:
        return None
    if dimension is TimeDimension.HOUR_OF_DAY:
        return int(parsed.hour)
    return int(parsed.dayofweek)


def _derive(derived: DerivedField, counts: Mapping[str, float]) -> float:
    values = [counts.get(operand, 0.0) for operand in derived.operands]
    if derived.op == "product":
        result = 1.0
        for value in values:
            result *= value
        return result
    if derived.op == "difference":
        return max(0.0, values[0] - sum(values[1:]))
    return float(sum(values))


# =============================================================================
# Extraction
# =============================================================================


def extract_metrics(record: Mapping[str, Any], descriptor: ChannelDescriptor) -> ChannelMetrics:
    """
    Extract the canonical metrics for one record.

    Args:
        record: Plain raw record (see normalize_record). Not mutated.
        descriptor: Channel descriptor naming the fields to read.

    Returns:
        ChannelMetrics with every declared numeric, derived, label and time
        field present.
    """
    counts: Dict[str, float] = {
        name: coerce_number(record.get(raw_key))
        for name, raw_key in descriptor.numeric_fields.items()
    }
    for derived in descriptor.derived_fields:
        counts[derived.name] = _derive(derived, counts)

    labels = {
        name: coerce_label(record.get(raw_key))
        for name, raw_key in descriptor.label_fields.items()
    }

    times = {
        dimension: coerce_time_bucket(record.get(raw_key), dimension)
        for dimension, raw_key in descriptor.time_dimensions.items()
    }

    return ChannelMetrics(
        channel=descriptor.channel,
        counts=counts,
        labels=labels,
        times=times,
    )
