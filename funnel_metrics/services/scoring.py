"""
Performance scoring and tiering service.

Combines a RateSet with the channel's benchmark and weight tables into one
integer score in [0, 100], and maps scores onto the four fixed tiers.

Component Scores:
- Higher is better: min(100, r / b * 100)
- Lower is better: min(100, b / r * 100) when r > 0, else 0
  (a zero cost or frequency means no delivery, not a perfect result)

Final Score:
- floor(sum(w * component) + 0.5), clamped to [0, 100]
- Rates with a benchmark but no weight are ignored here and only feed
  insights and benchmark comparisons.

Tier Thresholds (fixed, never parameterized per call):
- >= 90 Excellent, >= 75 Good, >= 50 Average, else Needs Improvement
"""

import math
from typing import Dict, Iterable, List, Tuple

from funnel_metrics.core.benchmarks import BenchmarkTable
from funnel_metrics.models.enums import PerformanceTier, RateDirection
from funnel_metrics.models.schemas import BenchmarkComparison, RateSet
from funnel_metrics.services.channels import ChannelDescriptor, RateSpec


TIER_THRESHOLDS: Tuple[Tuple[int, PerformanceTier], ...] = (
    (90, PerformanceTier.EXCELLENT),
    (75, PerformanceTier.GOOD),
    (50, PerformanceTier.AVERAGE),
)

TIER_ORDER: List[PerformanceTier] = [
    PerformanceTier.EXCELLENT,
    PerformanceTier.GOOD,
    PerformanceTier.AVERAGE,
    PerformanceTier.NEEDS_IMPROVEMENT,
]


def component_score(rate: float, benchmark: float, direction: RateDirection) -> float:
    if benchmark <= 0:
        return 0.0
    if direction is RateDirection.LOWER:
        if rate <= 0:
            return 0.0
        return min(100.0, benchmark / rate * 100.0)
    return min(100.0, max(0.0, rate / benchmark * 100.0))


def score_rates(rates: RateSet, descriptor: ChannelDescriptor, table: BenchmarkTable) -> int:
    """
    Compute the weighted 0-100 score for a RateSet.

    Raises:
        ChannelConfigurationError: If a weighted rate has no benchmark.
    """
    total = 0.0
    for spec in descriptor.rates:
        weight = table.weights.get(spec.name)
        if not weight:
            continue
        total += weight * component_score(rates.get(spec.name), table.benchmark(spec.name), spec.direction)

    return clamp_score(total)


def clamp_score(raw: float) -> int:
    if not math.isfinite(raw):
        return 0
    return max(0, min(100, int(math.floor(raw + 0.5))))


def tier_for_score(score: int) -> PerformanceTier:
    for threshold, tier in TIER_THRESHOLDS:
        if score >= threshold:
            return tier
    return PerformanceTier.NEEDS_IMPROVEMENT


def tier_distribution(scores: Iterable[int]) -> Dict[PerformanceTier, int]:
    """Count scores per tier; every tier is present, in best-to-worst order."""
    distribution = {tier: 0 for tier in TIER_ORDER}
    for score in scores:
        distribution[tier_for_score(score)] += 1
    return distribution


def is_favorable(value: float, benchmark: float, spec: RateSpec) -> bool:
    if spec.direction is RateDirection.LOWER:
        return 0 < value <= benchmark
    return value >= benchmark


def compare_to_benchmarks(
    rates: RateSet,
    descriptor: ChannelDescriptor,
    table: BenchmarkTable,
) -> Dict[str, BenchmarkComparison]:
    """Direction-aware comparison of every rate against its benchmark."""
    comparison: Dict[str, BenchmarkComparison] = {}
    for spec in descriptor.rates:
        value = rates.get(spec.name)
        benchmark = table.benchmark(spec.name)
        comparison[spec.name] = BenchmarkComparison(
            value=value,
            benchmark=benchmark,
            delta_pct=round((value - benchmark) / benchmark * 100.0, 2),
            is_favorable=is_favorable(value, benchmark, spec),
        )
    return comparison
