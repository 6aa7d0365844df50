"""
Pydantic models for the Funnel Metrics engine and its API contracts.

The engine exchanges plain data: a raw record is narrowed to a ChannelMetrics
instance by the extractor and never travels further. Everything downstream of
extraction (rates, scores, buckets, insights, channel results) is described
here so the same objects can be serialized directly by the HTTP layer.

Model groups:
- Per-record: ChannelMetrics, RateSet, RecordSummary
- Aggregation: AggregateBucket, Breakdown, TimeHistogram
- Scoring and insights: BenchmarkComparison, PerformanceSummary, Insight
- Results: ChannelResult, ChannelError, DispatchResult
- API requests/responses: MetricsQuery, ScoreRequest, ChannelInfo,
  BenchmarkTableResponse

All models use Pydantic v2 syntax.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from funnel_metrics.models.enums import (
    Channel,
    DispatchState,
    InsightKind,
    PerformanceTier,
    TimeDimension,
)


# =============================================================================
# Per-record Models
# =============================================================================


class ChannelMetrics(BaseModel):
    """
    Canonical metrics extracted from one raw record for one channel.

    Every field declared by the channel descriptor is always present:
    numeric fields default to 0.0 and label fields to an empty string when the
    source key is absent, null, or of the wrong type.
    """
    model_config = ConfigDict(frozen=True)

    channel: Channel = Field(..., description="Channel the metrics belong to")
    counts: Dict[str, float] = Field(
        default_factory=dict,
        description="Numeric fields (impressions, clicks, spend, ...) keyed by canonical name"
    )
    labels: Dict[str, str] = Field(
        default_factory=dict,
        description="Categorical fields (platform, campaign, ...) keyed by canonical name"
    )
    times: Dict[TimeDimension, Optional[int]] = Field(
        default_factory=dict,
        description="Hour-of-day / day-of-week bucket index, None when unusable"
    )

    def count(self, name: str) -> float:
        return self.counts.get(name, 0.0)

    def label(self, name: str) -> str:
        return self.labels.get(name, "")


class RateSet(BaseModel):
    """
    Derived ratios for a ChannelMetrics instance or a set of summed totals.

    Each value is numerator / denominator (times an optional multiplier such as
    1000 for CPM) when the denominator is positive, otherwise exactly 0.0.
    Percent-style rates are plain fractions in [0, 1].
    """
    model_config = ConfigDict(frozen=True)

    channel: Channel
    values: Dict[str, float] = Field(default_factory=dict)

    def get(self, name: str) -> float:
        return self.values.get(name, 0.0)

    def all_zero(self) -> bool:
        return all(value == 0.0 for value in self.values.values())


class RecordSummary(BaseModel):
    """Scored view of one input record."""
    index: int = Field(..., ge=0, description="Position of the record in the input list")
    labels: Dict[str, str] = Field(default_factory=dict)
    metrics: Dict[str, float] = Field(default_factory=dict)
    rates: Dict[str, float] = Field(default_factory=dict)
    score: int = Field(..., ge=0, le=100)
    tier: PerformanceTier


# =============================================================================
# Aggregation Models
# =============================================================================


class AggregateBucket(BaseModel):
    """
    Accumulated metrics for one breakdown key.

    Rates, score and tier are derived only after every record has been folded
    into the bucket.
    """
    key: str
    count: int = Field(0, ge=0)
    totals: Dict[str, float] = Field(default_factory=dict)
    derived_totals: Dict[str, float] = Field(default_factory=dict)
    score: int = Field(0, ge=0, le=100)
    tier: PerformanceTier = PerformanceTier.NEEDS_IMPROVEMENT


class Breakdown(BaseModel):
    """
    Buckets for one breakdown dimension in first-seen key order.

    Records whose key is missing fall into the "unknown" bucket.
    """
    dimension: str
    buckets: Dict[str, AggregateBucket] = Field(default_factory=dict)

    @property
    def total_count(self) -> int:
        return sum(bucket.count for bucket in self.buckets.values())


class TimeHistogram(BaseModel):
    """
    Fixed-size record-count histogram (24 hours or 7 days).

    sum(bins) + unknown always equals the number of records aggregated.
    """
    dimension: TimeDimension
    bins: List[int] = Field(default_factory=list)
    unknown: int = Field(0, ge=0)


# =============================================================================
# Scoring and Insight Models
# =============================================================================


class BenchmarkComparison(BaseModel):
    """Direction-aware comparison of one derived rate against its benchmark."""
    value: float
    benchmark: float
    delta_pct: float = Field(..., description="(value - benchmark) / benchmark * 100")
    is_favorable: bool


class PerformanceSummary(BaseModel):
    """
    Channel-level performance.

    `score` is computed from the ratio-of-sums derived totals;
    `average_record_score` is the plain mean of per-record scores.
    """
    score: int = Field(0, ge=0, le=100)
    tier: PerformanceTier = PerformanceTier.NEEDS_IMPROVEMENT
    average_record_score: float = Field(0.0, ge=0.0, le=100.0)
    tier_distribution: Dict[PerformanceTier, int] = Field(default_factory=dict)
    benchmark: Dict[str, float] = Field(default_factory=dict)
    weights: Dict[str, float] = Field(default_factory=dict)
    benchmark_comparison: Dict[str, BenchmarkComparison] = Field(default_factory=dict)


class InsightEvidence(BaseModel):
    """The metric value and benchmark that triggered an insight."""
    metric: str
    value: float
    benchmark: float


class Insight(BaseModel):
    """
    A generated statement about channel performance.

    The neutral "meeting expectations" statement is a recommendation without
    evidence.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "kind": "improvement",
                "text": "CTR (0.45%) is below the benchmark of 0.90%.",
                "evidence": {"metric": "ctr", "value": 0.0045, "benchmark": 0.009}
            }
        }
    )

    kind: InsightKind
    text: str
    evidence: Optional[InsightEvidence] = None


# =============================================================================
# Result Models
# =============================================================================


class ChannelResult(BaseModel):
    """
    Complete output of one channel pipeline run.

    Contains no timestamps or other run-dependent values, so running the
    pipeline twice over the same records yields identical serialized output.
    """
    channel: Channel
    total: int = Field(0, ge=0)
    records: List[RecordSummary] = Field(default_factory=list)
    totals: Dict[str, float] = Field(default_factory=dict)
    derived_totals: Dict[str, float] = Field(default_factory=dict)
    breakdowns: Dict[str, Breakdown] = Field(default_factory=dict)
    time_histograms: Dict[TimeDimension, TimeHistogram] = Field(default_factory=dict)
    performance: PerformanceSummary = Field(default_factory=PerformanceSummary)
    insights: List[Insight] = Field(default_factory=list)
    top_performers: Dict[str, List[str]] = Field(default_factory=dict)


class ChannelError(BaseModel):
    """A channel that failed during dispatch."""
    channel: Channel
    error: str


class DispatchResult(BaseModel):
    """
    Merged result of a dispatch call.

    success is True only when no channel failed.
    """
    success: bool
    state: DispatchState
    metrics: Dict[Channel, ChannelResult] = Field(default_factory=dict)
    errors: List[ChannelError] = Field(default_factory=list)


# =============================================================================
# API Request/Response Models
# =============================================================================


class MetricsQuery(BaseModel):
    """
    Filter object produced by the caller (or the natural-language translator).

    When `channels` is omitted the channels are chosen from the filter fields.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "filters": {"Ad Platform": "facebook"},
                "channels": None
            }
        }
    )

    filters: Dict[str, Any] = Field(default_factory=dict)
    channels: Optional[List[Channel]] = None


class ScoreRequest(BaseModel):
    """Caller-supplied raw records to score for a single channel."""
    records: List[Dict[str, Any]] = Field(default_factory=list)


class ChannelInfo(BaseModel):
    """Public description of a channel pipeline."""
    channel: Channel
    rates: List[str]
    breakdowns: List[str]
    dispatch_fields: List[str]


class BenchmarkTableResponse(BaseModel):
    """Benchmark and weight tables in effect for one channel."""
    channel: Channel
    version: str
    benchmarks: Dict[str, float]
    weights: Dict[str, float]


class EngineConfigResponse(BaseModel):
    """Scoring configuration the running engine was built with."""
    insight_margin: float
    top_performers_limit: int
    benchmark_versions: Dict[Channel, str]
