"""
Funnel Metrics Services Module

Business logic for the multi-channel metric normalization and scoring engine.
Every stage except dispatch is synchronous and side-effect free.

Services:
- channels: per-channel descriptors (fields, rates, breakdowns, dispatch fields)
- extraction: raw record -> ChannelMetrics
- rates: ChannelMetrics / totals -> RateSet (zero-denominator safe)
- scoring: weighted 0-100 score and tier thresholds
- aggregation: totals, breakdown buckets, time histograms
- insights: ordered strength/improvement/recommendation rules
- pipeline: generic ChannelPipeline chaining the stages above
- record_source: RecordSource protocol and in-memory implementation
- dispatch: concurrent per-channel fan-out with failure isolation
"""

# =============================================================================
# Channel Descriptors
# =============================================================================

from funnel_metrics.services.channels import (
    ChannelDescriptor,
    DerivedField,
    RateSpec,
    DESCRIPTORS,
    get_descriptor,
    build_field_map,
)

# =============================================================================
# Pipeline Stages
# =============================================================================

from funnel_metrics.services.extraction import (
    normalize_record,
    extract_metrics,
)

from funnel_metrics.services.rates import (
    safe_divide,
    compute_rates,
)

from funnel_metrics.services.scoring import (
    component_score,
    score_rates,
    tier_for_score,
    tier_distribution,
    compare_to_benchmarks,
)

from funnel_metrics.services.aggregation import (
    UNKNOWN_KEY,
    aggregate,
    label_key,
    sum_counts,
    time_histogram,
    top_performers,
)

from funnel_metrics.services.insights import (
    generate_insights,
    neutral_insight,
)

# =============================================================================
# Pipeline and Dispatch
# =============================================================================

from funnel_metrics.services.pipeline import (
    ChannelPipeline,
    build_pipelines,
)

from funnel_metrics.services.record_source import (
    RecordSource,
    InMemoryRecordSource,
)

from funnel_metrics.services.dispatch import (
    ConnectorDispatch,
    build_dispatch,
)


__all__ = [
    # Channels
    "ChannelDescriptor",
    "DerivedField",
    "RateSpec",
    "DESCRIPTORS",
    "get_descriptor",
    "build_field_map",
    # Extraction
    "normalize_record",
    "extract_metrics",
    # Rates
    "safe_divide",
    "compute_rates",
    # Scoring
    "component_score",
    "score_rates",
    "tier_for_score",
    "tier_distribution",
    "compare_to_benchmarks",
    # Aggregation
    "UNKNOWN_KEY",
    "aggregate",
    "label_key",
    "sum_counts",
    "time_histogram",
    "top_performers",
    # Insights
    "generate_insights",
    "neutral_insight",
    # Pipeline and dispatch
    "ChannelPipeline",
    "build_pipelines",
    "RecordSource",
    "InMemoryRecordSource",
    "ConnectorDispatch",
    "build_dispatch",
]
