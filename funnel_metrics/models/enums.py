"""
Enumeration definitions for the Funnel Metrics engine.

All enums inherit from both `str` and `Enum` so they serialize as plain strings
inside Pydantic models and JSON responses.

Enums:
- Channel: marketing/outreach medium handled by one pipeline
- PerformanceTier: qualitative bucket derived from a 0-100 score
- RateDirection: whether a rate improves as it rises or as it falls
- InsightKind: tag carried by every generated insight statement
- TimeDimension: fixed-size histogram dimensions
- DispatchState: terminal state of one dispatch call
"""

from enum import Enum


class Channel(str, Enum):
    """
    Marketing channels with an independent metric pipeline.

    Values are the keys used in dispatch results and API paths.
    """
    ADS = "ads"
    CTV = "ctv"
    EMAIL = "email"
    SOCIAL = "social"
    EVENTS = "events"
    P2P = "p2p"
    CROSS_CHANNEL = "cross_channel"


class PerformanceTier(str, Enum):
    """
    Qualitative performance tier for a score.

    Thresholds (fixed):
    - Excellent: score >= 90
    - Good: score >= 75
    - Average: score >= 50
    - Needs Improvement: anything lower
    """
    EXCELLENT = "Excellent"
    GOOD = "Good"
    AVERAGE = "Average"
    NEEDS_IMPROVEMENT = "Needs Improvement"


class RateDirection(str, Enum):
    """
    Direction in which a rate is considered better.

    - higher: CTR, ROAS, conversion, view/completion/attendance rates
    - lower: CPC, CPM, frequency, bounce/no-show/opt-out style rates
    """
    HIGHER = "higher"
    LOWER = "lower"


class InsightKind(str, Enum):
    """Tag for a generated insight statement."""
    STRENGTH = "strength"
    IMPROVEMENT = "improvement"
    RECOMMENDATION = "recommendation"


class TimeDimension(str, Enum):
    """
    Time-based breakdowns backed by fixed-size histograms.

    - hour_of_day: 24 bins (0-23)
    - day_of_week: 7 bins (0=Monday ... 6=Sunday)
    """
    HOUR_OF_DAY = "hour_of_day"
    DAY_OF_WEEK = "day_of_week"

    @property
    def size(self) -> int:
        return 24 if self is TimeDimension.HOUR_OF_DAY else 7


class DispatchState(str, Enum):
    """
    Terminal state of a dispatch call.

    Idle -> Dispatching -> (full_success | partial_success | all_failed) -> Done
    """
    FULL_SUCCESS = "full_success"
    PARTIAL_SUCCESS = "partial_success"
    ALL_FAILED = "all_failed"
