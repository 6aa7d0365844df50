"""
Aggregation service for the Funnel Metrics engine.

Folds a batch of extracted records into totals, breakdown buckets and time
histograms.

Aggregation Rules:
- totals: element-wise sum of every numeric field (raw and derived)
- derived_totals: rates recomputed from the summed totals (ratio of sums,
  never the mean of per-record rates)
- buckets: keyed by a breakdown extractor; a missing/empty key goes to the
  literal "unknown" bucket. Bucket order is first-seen order.
- bucket score/tier are derived only after every record has been folded in
- time histograms: fixed 24 (hour) or 7 (day) bins, built with numpy
  bincount; records without a usable time value are counted in `unknown`

Invariant: for every breakdown, the sum of bucket counts equals the number of
records aggregated.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np

from funnel_metrics.core.benchmarks import BenchmarkTable
from funnel_metrics.models.enums import TimeDimension
from funnel_metrics.models.schemas import AggregateBucket, Breakdown, ChannelMetrics, TimeHistogram
from funnel_metrics.services.channels import ChannelDescriptor
from funnel_metrics.services.rates import compute_rates
from funnel_metrics.services.scoring import score_rates, tier_for_score


logger = logging.getLogger(__name__)

UNKNOWN_KEY = "unknown"

KeyExtractor = Callable[[ChannelMetrics], Optional[str]]


@dataclass
class _Accumulator:
    key: str
    count: int = 0
    totals: Dict[str, float] = field(default_factory=dict)

    def fold(self, metrics: ChannelMetrics) -> None:
        self.count += 1
        for name, value in metrics.counts.items():
            self.totals[name] = self.totals.get(name, 0.0) + value


def label_key(label: str) -> KeyExtractor:
    """Key extractor reading one label field of ChannelMetrics."""
    def extract(metrics: ChannelMetrics) -> Optional[str]:
        return metrics.label(label)
    return extract


def sum_counts(entries: Sequence[ChannelMetrics], descriptor: ChannelDescriptor) -> Dict[str, float]:
    """Element-wise sum of every numeric field; all fields present even for no records."""
    totals = {name: 0.0 for name in descriptor.count_names}
    for metrics in entries:
        for name, value in metrics.counts.items():
            totals[name] = totals.get(name, 0.0) + value
    return totals


def aggregate(
    entries: Sequence[ChannelMetrics],
    key_fn: KeyExtractor,
    descriptor: ChannelDescriptor,
    table: BenchmarkTable,
    dimension: str,
) -> Breakdown:
    """
    Bucket records by a breakdown key.

    Args:
        entries: Extracted records in caller order.
        key_fn: Returns the bucket key for a record; None/"" means unknown.
        descriptor: Channel descriptor (field and rate definitions).
        table: Benchmark table used to score each finished bucket.
        dimension: Name of the breakdown dimension.

    Returns:
        Breakdown with buckets in first-seen key order.
    """
    accumulators: Dict[str, _Accumulator] = {}
    for metrics in entries:
        key = key_fn(metrics) or UNKNOWN_KEY
        accumulator = accumulators.get(key)
        if accumulator is None:
            accumulator = _Accumulator(key=key, totals={name: 0.0 for name in descriptor.count_names})
            accumulators[key] = accumulator
        accumulator.fold(metrics)

    buckets: Dict[str, AggregateBucket] = {}
    for key, accumulator in accumulators.items():
        derived = compute_rates(accumulator.totals, descriptor)
        score = score_rates(derived, descriptor, table)
        buckets[key] = AggregateBucket(
            key=key,
            count=accumulator.count,
            totals=accumulator.totals,
            derived_totals=derived.values,
            score=score,
            tier=tier_for_score(score),
        )

    logger.debug(f"Aggregated {len(entries)} {descriptor.channel.value} records into "
                 f"{len(buckets)} {dimension} buckets")
    return Breakdown(dimension=dimension, buckets=buckets)


def time_histogram(entries: Sequence[ChannelMetrics], dimension: TimeDimension) -> TimeHistogram:
    """Fixed-size record-count histogram for one time dimension."""
    size = dimension.size
    indices: List[int] = []
    unknown = 0
    for metrics in entries:
        bucket = metrics.times.get(dimension)
        if bucket is None or not 0 <= bucket < size:
            unknown += 1
        else:
            indices.append(bucket)

    bins = np.bincount(np.asarray(indices, dtype=np.int64), minlength=size)[:size]
    return TimeHistogram(dimension=dimension, bins=[int(count) for count in bins], unknown=unknown)


def top_performers(breakdown: Breakdown, limit: int) -> List[str]:
    """Bucket keys by score descending; ties keep first-seen order."""
    ranked = sorted(breakdown.buckets.values(), key=lambda bucket: -bucket.score)
    return [bucket.key for bucket in ranked[:limit]]
