"""
Generic channel pipeline.

One ChannelPipeline per channel, parameterized by its ChannelDescriptor and
BenchmarkTable (constructor-injected, read-only). run() is synchronous and
side-effect free:

    records -> extract -> rates -> score/tier (per record)
            -> totals / derived totals -> breakdowns / histograms
            -> channel score -> insights -> ChannelResult

Empty input is not an error: it yields zeroed totals, no buckets and one
neutral insight.
"""

import logging
from typing import Any, Dict, Mapping, Optional, Sequence

from funnel_metrics.core.benchmarks import BenchmarkTable, load_benchmark_tables
from funnel_metrics.core.errors import ChannelConfigurationError
from funnel_metrics.models.enums import Channel
from funnel_metrics.models.schemas import (
    ChannelMetrics,
    ChannelResult,
    PerformanceSummary,
    RecordSummary,
)
from funnel_metrics.services.aggregation import (
    aggregate,
    label_key,
    sum_counts,
    time_histogram,
    top_performers,
)
from funnel_metrics.services.channels import DESCRIPTORS, ChannelDescriptor
from funnel_metrics.services.extraction import extract_metrics
from funnel_metrics.services.insights import generate_insights, neutral_insight
from funnel_metrics.services.rates import compute_rates
from funnel_metrics.services.scoring import (
    compare_to_benchmarks,
    score_rates,
    tier_distribution,
    tier_for_score,
)


logger = logging.getLogger(__name__)

DEFAULT_INSIGHT_MARGIN = 0.30
DEFAULT_TOP_PERFORMERS = 3


class ChannelPipeline:
    """
    Extraction, scoring, aggregation and insights for one channel.

    Raises:
        ChannelConfigurationError: At construction, if the benchmark table does
            not match the descriptor.
    """

    def __init__(
        self,
        descriptor: ChannelDescriptor,
        table: BenchmarkTable,
        insight_margin: float = DEFAULT_INSIGHT_MARGIN,
        top_performers_limit: int = DEFAULT_TOP_PERFORMERS,
    ):
        if not 0 < insight_margin < 1:
            raise ChannelConfigurationError(f"Insight margin must be in (0, 1), got {insight_margin}")
        descriptor.validate(table)
        self.descriptor = descriptor
        self.table = table
        self.insight_margin = insight_margin
        self.top_performers_limit = top_performers_limit

    @property
    def channel(self) -> Channel:
        return self.descriptor.channel

    def _summarize(self, index: int, metrics: ChannelMetrics) -> RecordSummary:
        rates = compute_rates(metrics.counts, self.descriptor)
        score = score_rates(rates, self.descriptor, self.table)
        return RecordSummary(
            index=index,
            labels=dict(metrics.labels),
            metrics=dict(metrics.counts),
            rates=dict(rates.values),
            score=score,
            tier=tier_for_score(score),
        )

    def run(self, records: Sequence[Mapping[str, Any]]) -> ChannelResult:
        """
        Run the full pipeline over already-fetched plain records.

        Args:
            records: Raw records in caller order; not mutated.

        Returns:
            ChannelResult for this channel.
        """
        descriptor = self.descriptor
        extracted = [extract_metrics(record, descriptor) for record in records]
        summaries = [self._summarize(index, metrics) for index, metrics in enumerate(extracted)]

        totals = sum_counts(extracted, descriptor)
        derived = compute_rates(totals, descriptor)
        score = score_rates(derived, descriptor, self.table)

        breakdowns = {
            dimension: aggregate(extracted, label_key(label), descriptor, self.table, dimension)
            for dimension, label in descriptor.breakdowns.items()
        }
        histograms = {
            dimension: time_histogram(extracted, dimension)
            for dimension in descriptor.time_dimensions
        }

        record_scores = [summary.score for summary in summaries]
        average = round(sum(record_scores) / len(record_scores), 2) if record_scores else 0.0

        performance = PerformanceSummary(
            score=score,
            tier=tier_for_score(score),
            average_record_score=average,
            tier_distribution=tier_distribution(record_scores),
            benchmark=dict(self.table.benchmarks),
            weights=dict(self.table.weights),
            benchmark_comparison=compare_to_benchmarks(derived, descriptor, self.table),
        )

        if extracted:
            insights = generate_insights(derived, descriptor, self.table, self.insight_margin)
        else:
            insights = [neutral_insight(self.insight_margin)]

        logger.debug(f"{descriptor.channel.value}: {len(extracted)} records, score {score}")

        return ChannelResult(
            channel=descriptor.channel,
            total=len(extracted),
            records=summaries,
            totals=totals,
            derived_totals=derived.values,
            breakdowns=breakdowns,
            time_histograms=histograms,
            performance=performance,
            insights=insights,
            top_performers={
                dimension: top_performers(breakdown, self.top_performers_limit)
                for dimension, breakdown in breakdowns.items()
            },
        )


def build_pipelines(
    tables: Optional[Mapping[Channel, BenchmarkTable]] = None,
    insight_margin: float = DEFAULT_INSIGHT_MARGIN,
    top_performers_limit: int = DEFAULT_TOP_PERFORMERS,
    descriptors: Optional[Mapping[Channel, ChannelDescriptor]] = None,
) -> Dict[Channel, ChannelPipeline]:
    """
    Build one pipeline per channel.

    Raises:
        ChannelConfigurationError: If any channel lacks a benchmark table or a
            table does not match its descriptor.
    """
    tables = load_benchmark_tables() if tables is None else tables
    descriptors = DESCRIPTORS if descriptors is None else descriptors

    pipelines: Dict[Channel, ChannelPipeline] = {}
    for channel, descriptor in descriptors.items():
        table = tables.get(channel)
        if table is None:
            raise ChannelConfigurationError(f"Benchmark table missing for channel {channel.value}")
        pipelines[channel] = ChannelPipeline(descriptor, table, insight_margin, top_performers_limit)

    logger.info(f"Built {len(pipelines)} channel pipelines")
    return pipelines
