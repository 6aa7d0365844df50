"""
Rate calculation for the Funnel Metrics engine.

Every rate is numerator / denominator (times the rate's multiplier) when the
denominator is positive, otherwise exactly 0.0. The same function serves a
single record's counts and a bucket's summed totals, which is how derived
totals stay ratio-of-sums.
"""

import math
from typing import Mapping

from funnel_metrics.models.schemas import RateSet
from funnel_metrics.services.channels import ChannelDescriptor


def safe_divide(numerator: float, denominator: float, multiplier: float = 1.0) -> float:
    if denominator <= 0 or not math.isfinite(denominator) or not math.isfinite(numerator):
        return 0.0
    result = numerator / denominator * multiplier
    if not math.isfinite(result) or result < 0:
        return 0.0
    return result


def compute_rates(counts: Mapping[str, float], descriptor: ChannelDescriptor) -> RateSet:
    """
    Derive the channel's rates from a counts mapping.

    Args:
        counts: Canonical numeric fields (ChannelMetrics.counts or totals).
        descriptor: Channel whose RateSpec list defines the ratios.

    Returns:
        RateSet with one value per rate, in the descriptor's rate order.
    """
    values = {
        spec.name: safe_divide(
            counts.get(spec.numerator, 0.0),
            counts.get(spec.denominator, 0.0),
            spec.multiplier,
        )
        for spec in descriptor.rates
    }
    return RateSet(channel=descriptor.channel, values=values)
