"""
Rule-based insight generation.

Compares a channel's derived totals against its benchmarks and emits an
ordered list of Insight statements.

Rules (m = insight margin, default 0.30):
- Higher is better: strength when r > b * (1 + m), improvement when r < b * (1 - m)
- Lower is better: strength when 0 < r < b * (1 - m), improvement when r > b * (1 + m)
- A value exactly at a margin boundary fires nothing; boundaries are compared
  with a relative tolerance so 0.91 sits on 0.70 * 1.3 rather than above it
- A zero lower-is-better rate means no delivery and is never a strength

Ordering:
1. Strengths, in the channel's rate order
2. Improvements, in the channel's rate order
3. Recommendations: one per improvement from the channel's fixed mapping;
   when no improvement fired, one "scale it" recommendation per strength

When no rule fires, exactly one neutral recommendation without evidence is
returned, so the list is never empty.
"""

import math
from typing import List

from funnel_metrics.core.benchmarks import BenchmarkTable
from funnel_metrics.models.enums import InsightKind, RateDirection
from funnel_metrics.models.schemas import Insight, InsightEvidence, RateSet
from funnel_metrics.services.channels import ChannelDescriptor, RateSpec


# Relative distance below which a rate counts as sitting on a margin boundary
TIE_TOLERANCE = 1e-9


def format_rate(value: float, spec: RateSpec) -> str:
    if spec.unit == "currency":
        return f"${value:,.2f}"
    if spec.unit == "ratio":
        return f"{value:.2f}"
    return f"{value * 100:.2f}%"


def _exceeds(value: float, threshold: float) -> bool:
    return value > threshold and not math.isclose(value, threshold, rel_tol=TIE_TOLERANCE)


def _falls_short(value: float, threshold: float) -> bool:
    return value < threshold and not math.isclose(value, threshold, rel_tol=TIE_TOLERANCE)


def _is_strength(value: float, benchmark: float, spec: RateSpec, margin: float) -> bool:
    if spec.direction is RateDirection.LOWER:
        return 0 < value and _falls_short(value, benchmark * (1 - margin))
    return _exceeds(value, benchmark * (1 + margin))


def _is_improvement(value: float, benchmark: float, spec: RateSpec, margin: float) -> bool:
    if spec.direction is RateDirection.LOWER:
        return _exceeds(value, benchmark * (1 + margin))
    return _falls_short(value, benchmark * (1 - margin))


def neutral_insight(margin: float) -> Insight:
    return Insight(
        kind=InsightKind.RECOMMENDATION,
        text=(
            "Performance is meeting expectations: every tracked metric is within "
            f"{margin * 100:.0f}% of its benchmark. Keep the current approach and monitor."
        ),
    )


def generate_insights(
    rates: RateSet,
    descriptor: ChannelDescriptor,
    table: BenchmarkTable,
    margin: float,
) -> List[Insight]:
    """
    Generate ordered insights for a channel's derived totals.

    Args:
        rates: Derived totals (ratio of sums) for the channel.
        descriptor: Channel descriptor; its rate order is the rule order.
        table: Benchmarks to compare against.
        margin: Fractional deviation required before a rule fires.

    Returns:
        Non-empty list of Insight.
    """
    strengths: List[Insight] = []
    improvements: List[Insight] = []
    recommendations: List[Insight] = []
    strength_specs: List[RateSpec] = []

    for spec in descriptor.rates:
        value = rates.get(spec.name)
        benchmark = table.benchmark(spec.name)
        evidence = InsightEvidence(metric=spec.name, value=value, benchmark=benchmark)
        shown = format_rate(value, spec)
        expected = format_rate(benchmark, spec)

        if _is_strength(value, benchmark, spec, margin):
            side = "below" if spec.direction is RateDirection.LOWER else "above"
            strengths.append(Insight(
                kind=InsightKind.STRENGTH,
                text=f"{spec.label} ({shown}) is well {side} the benchmark of {expected}.",
                evidence=evidence,
            ))
            strength_specs.append(spec)
        elif _is_improvement(value, benchmark, spec, margin):
            side = "above" if spec.direction is RateDirection.LOWER else "below"
            improvements.append(Insight(
                kind=InsightKind.IMPROVEMENT,
                text=f"{spec.label} ({shown}) is {side} the benchmark of {expected}.",
                evidence=evidence,
            ))
            recommendations.append(Insight(
                kind=InsightKind.RECOMMENDATION,
                text=descriptor.recommendations.get(
                    spec.name, f"Investigate the drivers of {spec.label.lower()}."
                ),
                evidence=evidence,
            ))

    if not improvements:
        for spec, strength in zip(strength_specs, strengths):
            recommendations.append(Insight(
                kind=InsightKind.RECOMMENDATION,
                text=f"Scale what is working: {spec.label} is outperforming its benchmark.",
                evidence=strength.evidence,
            ))

    insights = strengths + improvements + recommendations
    if not insights:
        return [neutral_insight(margin)]
    return insights
