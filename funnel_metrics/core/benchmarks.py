"""
Per-channel benchmark and weight tables.

Each channel owns one benchmark table (rate name -> expected industry value)
and one weight table (rate name -> weight, summing to 1.0). The tables are
versioned, loaded once at process start, optionally merged with a JSON
overrides file, validated, and frozen with MappingProxyType so the channel
pipelines can read them concurrently without locking.

Rates are plain fractions (0.009 = 0.9% CTR); cost rates are in USD, CPM per
thousand impressions.

Overrides file format:
    {
        "ads": {
            "benchmarks": {"ctr": 0.012},
            "weights": {"ctr": 0.3, "cpc": 0.1, ...}
        }
    }

Benchmark overrides merge key by key. A weights override replaces the whole
weight table for that channel, since partial weights cannot keep the 1.0 sum.
"""

import json
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Union

from funnel_metrics.core.errors import ChannelConfigurationError
from funnel_metrics.models.enums import Channel


logger = logging.getLogger(__name__)

BENCHMARK_VERSION = "2024.1"

WEIGHT_SUM_TOLERANCE = 1e-6


# =============================================================================
# Default Tables
# Structure: { channel: { "benchmarks": {rate: value}, "weights": {rate: weight} } }
# A rate may carry a benchmark without a weight; it then feeds insights only.
# =============================================================================

DEFAULT_TABLES: Dict[str, Dict[str, Dict[str, float]]] = {
    Channel.ADS.value: {
        "benchmarks": {
            "ctr": 0.009,
            "cpc": 1.72,
            "roas": 4.0,
            "conversion_rate": 0.03,
            "frequency": 2.0,
            "cpm": 12.0,
            "negative_feedback_rate": 0.001,
        },
        "weights": {
            "ctr": 0.25,
            "cpc": 0.15,
            "roas": 0.25,
            "conversion_rate": 0.15,
            "frequency": 0.10,
            "cpm": 0.10,
        },
    },
    Channel.CTV.value: {
        "benchmarks": {
            "conversion_rate": 0.02,
            "frequency": 3.0,
            "view_rate": 0.5,
            "completion_rate": 0.7,
            "cpv": 0.03,
            "cpm": 25.0,
        },
        "weights": {
            "view_rate": 0.25,
            "completion_rate": 0.25,
            "conversion_rate": 0.20,
            "cpv": 0.15,
            "cpm": 0.10,
            "frequency": 0.05,
        },
    },
    Channel.EMAIL.value: {
        "benchmarks": {
            "click_rate": 0.03,
            "conversion_rate": 0.10,
            "open_rate": 0.21,
            "click_to_open_rate": 0.14,
            "bounce_rate": 0.01,
            "unsubscribe_rate": 0.002,
            "spam_rate": 0.001,
        },
        "weights": {
            "open_rate": 0.30,
            "click_rate": 0.30,
            "conversion_rate": 0.20,
            "bounce_rate": 0.10,
            "unsubscribe_rate": 0.10,
        },
    },
    Channel.SOCIAL.value: {
        "benchmarks": {
            "ctr": 0.01,
            "frequency": 2.5,
            "engagement_rate": 0.03,
            "video_completion_rate": 0.25,
            "share_rate": 0.01,
            "comment_rate": 0.005,
        },
        "weights": {
            "engagement_rate": 0.35,
            "ctr": 0.20,
            "video_completion_rate": 0.20,
            "share_rate": 0.10,
            "frequency": 0.10,
            "comment_rate": 0.05,
        },
    },
    Channel.EVENTS.value: {
        "benchmarks": {
            "attendance_rate": 0.70,
            "no_show_rate": 0.20,
            "fill_rate": 0.80,
        },
        "weights": {
            "attendance_rate": 0.50,
            "fill_rate": 0.30,
            "no_show_rate": 0.20,
        },
    },
    Channel.P2P.value: {
        "benchmarks": {
            "response_rate": 0.10,
            "opt_out_rate": 0.02,
            "undelivered_rate": 0.05,
            "connection_rate": 0.30,
            "drop_rate": 0.05,
        },
        "weights": {
            "response_rate": 0.40,
            "opt_out_rate": 0.20,
            "connection_rate": 0.20,
            "undelivered_rate": 0.10,
            "drop_rate": 0.10,
        },
    },
    Channel.CROSS_CHANNEL.value: {
        "benchmarks": {
            "ctr": 0.02,
            "roas": 4.0,
            "conversion_rate": 0.03,
            "engagement_rate": 0.50,
            "bounce_rate": 0.45,
            "cost_per_acquisition": 50.0,
            "average_order_value": 100.0,
        },
        "weights": {
            "roas": 0.25,
            "conversion_rate": 0.20,
            "engagement_rate": 0.15,
            "ctr": 0.10,
            "bounce_rate": 0.10,
            "cost_per_acquisition": 0.10,
            "average_order_value": 0.10,
        },
    },
}


@dataclass(frozen=True)
class BenchmarkTable:
    """
    Immutable benchmark and weight tables for one channel.

    Attributes:
        channel: Channel the tables belong to.
        version: Version tag of the defaults (suffixed with "+overrides" when
            an overrides file changed this channel).
        benchmarks: Read-only mapping of rate name to benchmark value.
        weights: Read-only mapping of rate name to score weight.
    """
    channel: Channel
    version: str
    benchmarks: Mapping[str, float]
    weights: Mapping[str, float]

    def benchmark(self, rate: str) -> float:
        try:
            return self.benchmarks[rate]
        except KeyError:
            raise ChannelConfigurationError(
                f"No benchmark configured for {self.channel.value}.{rate}"
            ) from None


def _coerce_table(channel: str, kind: str, table: Any) -> Dict[str, float]:
    if not isinstance(table, Mapping):
        raise ChannelConfigurationError(f"{channel}.{kind} must be an object")
    coerced: Dict[str, float] = {}
    for name, value in table.items():
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ChannelConfigurationError(f"{channel}.{kind}.{name} must be a number")
        coerced[str(name)] = float(value)
    return coerced


def validate_table(channel: str, benchmarks: Mapping[str, float], weights: Mapping[str, float]) -> None:
    """
    Validate one channel's benchmark and weight tables.

    Rules:
    - Every benchmark is a finite number > 0 (it is used as a divisor)
    - Every weight is >= 0 and names a rate that has a benchmark
    - Weights sum to 1.0 within WEIGHT_SUM_TOLERANCE

    Raises:
        ChannelConfigurationError: On the first violated rule.
    """
    if not benchmarks:
        raise ChannelConfigurationError(f"Benchmark table missing for channel {channel}")

    for name, value in benchmarks.items():
        if not math.isfinite(value) or value <= 0:
            raise ChannelConfigurationError(
                f"Benchmark {channel}.{name} must be a positive number, got {value}"
            )

    for name, weight in weights.items():
        if name not in benchmarks:
            raise ChannelConfigurationError(
                f"Weight {channel}.{name} has no matching benchmark"
            )
        if not math.isfinite(weight) or weight < 0:
            raise ChannelConfigurationError(
                f"Weight {channel}.{name} must be non-negative, got {weight}"
            )

    total = sum(weights.values())
    if abs(total - 1.0) > WEIGHT_SUM_TOLERANCE:
        raise ChannelConfigurationError(
            f"Weights for channel {channel} sum to {total:.6f}, expected 1.0"
        )


def read_overrides(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Read a benchmark overrides JSON file.

    Raises:
        ChannelConfigurationError: If the file is missing, unreadable, or not
            a JSON object.
    """
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, json.JSONDecodeError) as e:
        raise ChannelConfigurationError(f"Cannot read benchmark overrides {path}: {e}") from e

    if not isinstance(data, dict):
        raise ChannelConfigurationError(f"Benchmark overrides {path} must be a JSON object")
    return data


def load_benchmark_tables(
    overrides: Optional[Mapping[str, Any]] = None,
    defaults: Optional[Mapping[str, Mapping[str, Mapping[str, float]]]] = None,
) -> Dict[Channel, BenchmarkTable]:
    """
    Build the frozen benchmark tables for every channel.

    Args:
        overrides: Parsed overrides object (see module docstring).
        defaults: Table definitions to start from (default DEFAULT_TABLES).

    Returns:
        Dict mapping each Channel to its BenchmarkTable.

    Raises:
        ChannelConfigurationError: If an override names an unknown channel or
            any resulting table is invalid.
    """
    defaults = DEFAULT_TABLES if defaults is None else defaults
    overrides = overrides or {}

    known = {channel.value for channel in Channel}
    unknown = sorted(set(overrides) - known)
    if unknown:
        raise ChannelConfigurationError(f"Benchmark overrides for unknown channels: {unknown}")

    tables: Dict[Channel, BenchmarkTable] = {}
    for channel in Channel:
        base = defaults.get(channel.value)
        if base is None:
            raise ChannelConfigurationError(f"Benchmark table missing for channel {channel.value}")

        benchmarks = _coerce_table(channel.value, "benchmarks", base.get("benchmarks", {}))
        weights = _coerce_table(channel.value, "weights", base.get("weights", {}))
        version = BENCHMARK_VERSION

        override = overrides.get(channel.value)
        if override:
            if not isinstance(override, Mapping):
                raise ChannelConfigurationError(f"Overrides for {channel.value} must be an object")
            if "benchmarks" in override:
                benchmarks.update(_coerce_table(channel.value, "benchmarks", override["benchmarks"]))
            if "weights" in override:
                weights = _coerce_table(channel.value, "weights", override["weights"])
            version = f"{BENCHMARK_VERSION}+overrides"
            logger.info(f"Applied benchmark overrides for channel {channel.value}")

        validate_table(channel.value, benchmarks, weights)
        tables[channel] = BenchmarkTable(
            channel=channel,
            version=version,
            benchmarks=MappingProxyType(dict(benchmarks)),
            weights=MappingProxyType(dict(weights)),
        )

    return tables
