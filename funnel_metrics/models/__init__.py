"""
Package initialization file for Funnel Metrics models.

Re-exports every enumeration and Pydantic schema so other modules can import
them from funnel_metrics.models directly:

    from funnel_metrics.models import Channel, ChannelResult, PerformanceTier
"""

# =============================================================================
# Enums
# =============================================================================

from funnel_metrics.models.enums import (
    Channel,
    PerformanceTier,
    RateDirection,
    InsightKind,
    TimeDimension,
    DispatchState,
)


# =============================================================================
# Schemas
# =============================================================================

from funnel_metrics.models.schemas import (
    # Per-record
    ChannelMetrics,
    RateSet,
    RecordSummary,
    # Aggregation
    AggregateBucket,
    Breakdown,
    TimeHistogram,
    # Scoring and insights
    BenchmarkComparison,
    PerformanceSummary,
    InsightEvidence,
    Insight,
    # Results
    ChannelResult,
    ChannelError,
    DispatchResult,
    # API
    MetricsQuery,
    ScoreRequest,
    ChannelInfo,
    BenchmarkTableResponse,
    EngineConfigResponse,
)


__all__ = [
    # Enums
    "Channel",
    "PerformanceTier",
    "RateDirection",
    "InsightKind",
    "TimeDimension",
    "DispatchState",
    # Per-record
    "ChannelMetrics",
    "RateSet",
    "RecordSummary",
    # Aggregation
    "AggregateBucket",
    "Breakdown",
    "TimeHistogram",
    # Scoring and insights
    "BenchmarkComparison",
    "PerformanceSummary",
    "InsightEvidence",
    "Insight",
    # Results
    "ChannelResult",
    "ChannelError",
    "DispatchResult",
    # API
    "MetricsQuery",
    "ScoreRequest",
    "ChannelInfo",
    "BenchmarkTableResponse",
    "EngineConfigResponse",
]
