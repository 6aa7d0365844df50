"""
Channel Pipeline Test Module

End-to-end runs of ChannelPipeline over raw records, covering the concrete
ad and event scenarios, empty input, idempotence and construction errors.
"""

import pytest

from funnel_metrics.core.benchmarks import load_benchmark_tables
from funnel_metrics.core.errors import ChannelConfigurationError
from funnel_metrics.models.enums import Channel, InsightKind, PerformanceTier, TimeDimension
from funnel_metrics.services.channels import ADS, DESCRIPTORS, EVENTS
from funnel_metrics.services.pipeline import ChannelPipeline, build_pipelines


# =============================================================================
# Concrete Scenarios
# =============================================================================


class TestAdsScenarios:

    def test_delivering_ad(self, ads_pipeline, ads_record):
        result = ads_pipeline.run([ads_record])
        record = result.records[0]

        assert result.total == 1
        assert record.rates["ctr"] == pytest.approx(0.02)
        assert record.rates["cpc"] == pytest.approx(2.5)
        assert record.rates["frequency"] == pytest.approx(2.0)
        assert 0 < record.score < 100
        assert result.performance.score == record.score

    def test_no_delivery(self, ads_pipeline, zero_ads_record):
        result = ads_pipeline.run([zero_ads_record])
        record = result.records[0]

        assert all(value == 0.0 for value in record.rates.values())
        assert record.score == 0
        assert record.tier == PerformanceTier.NEEDS_IMPROVEMENT
        assert result.performance.tier == PerformanceTier.NEEDS_IMPROVEMENT
        assert not any(insight.evidence is None for insight in result.insights)

    def test_average_record_gets_neutral_insight(self, ads_pipeline, benchmark_ads_record):
        result = ads_pipeline.run([benchmark_ads_record])

        assert len(result.insights) == 1
        assert result.insights[0].evidence is None

    def test_platform_breakdown(self, ads_pipeline, ads_record):
        instagram = dict(ads_record, **{"Ad Platform": "instagram"})
        result = ads_pipeline.run([ads_record, instagram])
        platforms = result.breakdowns["platform"].buckets

        assert platforms["facebook"].count == 1
        assert platforms["instagram"].count == 1
        for name in ADS.count_names:
            assert result.totals[name] == pytest.approx(
                result.records[0].metrics[name] + result.records[1].metrics[name]
            )


class TestEventScenario:

    def test_rsvps_without_attendance(self, events_pipeline, event_record):
        result = events_pipeline.run([event_record])
        record = result.records[0]

        assert record.rates["attendance_rate"] == 0.0
        assert record.rates["fill_rate"] == pytest.approx(0.5)
        # fill 0.5 / 0.8 -> 62.5 * 0.3
        assert record.score == 19
        assert record.tier == PerformanceTier.NEEDS_IMPROVEMENT

    def test_attendance_on_margin_is_neutral(self, events_pipeline):
        record = {"RSVPs": 100, "Attendees": 91, "Capacity": 125, "No Shows": 20}
        result = events_pipeline.run([record])

        assert result.derived_totals["attendance_rate"] == pytest.approx(0.91)
        assert len(result.insights) == 1
        assert result.insights[0].kind == InsightKind.RECOMMENDATION
        assert result.insights[0].evidence is None

    def test_organizer_and_virtual_breakdowns(self, events_pipeline, event_record):
        records = [
            dict(event_record, **{"Organizer": "Field Team", "Is Virtual": False}),
            dict(event_record, **{"Organizer": "Field Team", "Is Virtual": True}),
            dict(event_record, **{"Organizer": "Digital Team", "Is Virtual": True}),
            event_record,
        ]
        result = events_pipeline.run(records)

        organizers = result.breakdowns["organizer"].buckets
        assert list(organizers) == ["Field Team", "Digital Team", "unknown"]
        assert organizers["Field Team"].count == 2
        assert organizers["Digital Team"].count == 1

        venues = result.breakdowns["is_virtual"].buckets
        assert venues["true"].count == 2
        assert venues["false"].count == 1
        assert venues["unknown"].count == 1
        assert set(result.top_performers) == set(EVENTS.breakdowns)

    def test_day_of_week_histogram(self, events_pipeline, event_record):
        result = events_pipeline.run([event_record, {"RSVPs": 3}])
        histogram = result.time_histograms[TimeDimension.DAY_OF_WEEK]

        assert histogram.bins[0] == 1
        assert histogram.unknown == 1
        assert list(result.time_histograms) == [TimeDimension.DAY_OF_WEEK]


# =============================================================================
# Result Shape and Invariants
# =============================================================================


class TestChannelResult:

    def test_empty_input(self, ads_pipeline):
        result = ads_pipeline.run([])

        assert result.total == 0
        assert result.records == []
        assert all(value == 0.0 for value in result.totals.values())
        assert all(breakdown.buckets == {} for breakdown in result.breakdowns.values())
        assert result.performance.score == 0
        assert result.performance.average_record_score == 0.0
        assert len(result.insights) == 1
        assert result.insights[0].kind == InsightKind.RECOMMENDATION
        assert result.insights[0].evidence is None

    def test_idempotent(self, ads_pipeline, ads_record, zero_ads_record, benchmark_ads_record):
        records = [ads_record, zero_ads_record, benchmark_ads_record]

        first = ads_pipeline.run(records)
        second = ads_pipeline.run(records)

        assert first.model_dump_json() == second.model_dump_json()

    def test_input_records_not_mutated(self, ads_pipeline, ads_record):
        snapshot = dict(ads_record)
        ads_pipeline.run([ads_record])
        assert ads_record == snapshot

    def test_summary_fields(self, ads_pipeline, ads_record, zero_ads_record, benchmark_ads_record):
        result = ads_pipeline.run([ads_record, zero_ads_record, benchmark_ads_record])
        scores = [record.score for record in result.records]
        performance = result.performance

        assert [record.index for record in result.records] == [0, 1, 2]
        assert performance.average_record_score == pytest.approx(round(sum(scores) / 3, 2))
        assert sum(performance.tier_distribution.values()) == 3
        assert set(performance.benchmark_comparison) == set(ADS.rate_names)
        assert performance.weights["ctr"] == 0.25

    def test_top_performers(self, ads_pipeline, ads_record, zero_ads_record, benchmark_ads_record):
        result = ads_pipeline.run([zero_ads_record, ads_record, benchmark_ads_record])

        # facebook holds the delivering and the zero ad; instagram the benchmark ad
        assert result.top_performers["platform"] == ["instagram", "facebook"]
        assert set(result.top_performers) == set(ADS.breakdowns)

    @pytest.mark.parametrize("channel", list(DESCRIPTORS))
    def test_scores_in_range_for_odd_records(self, channel, pipelines):
        descriptor = DESCRIPTORS[channel]
        odd_records = [
            {},
            {key: 10 ** 9 for key in descriptor.numeric_fields.values()},
            {key: 1 for key in descriptor.numeric_fields.values()},
            {key: "junk" for key in descriptor.numeric_fields.values()},
        ]
        result = pipelines[channel].run(odd_records)

        for record in result.records:
            assert isinstance(record.score, int)
            assert 0 <= record.score <= 100
        for breakdown in result.breakdowns.values():
            assert breakdown.total_count == len(odd_records)
        assert result.insights


# =============================================================================
# Construction
# =============================================================================


class TestPipelineConstruction:

    def test_build_all_channels(self, benchmark_tables):
        pipelines = build_pipelines(benchmark_tables)
        assert list(pipelines) == list(Channel)

    def test_missing_table_is_fatal(self, benchmark_tables):
        tables = dict(benchmark_tables)
        del tables[Channel.CTV]

        with pytest.raises(ChannelConfigurationError, match="ctv"):
            build_pipelines(tables)

    def test_mismatched_table_is_fatal(self, benchmark_tables):
        with pytest.raises(ChannelConfigurationError):
            ChannelPipeline(EVENTS, benchmark_tables[Channel.ADS])

    def test_invalid_margin(self, benchmark_tables):
        with pytest.raises(ChannelConfigurationError):
            ChannelPipeline(ADS, benchmark_tables[Channel.ADS], insight_margin=0)

    def test_uses_configured_margin(self, ads_record):
        tables = load_benchmark_tables()
        wide = ChannelPipeline(ADS, tables[Channel.ADS], insight_margin=0.99)

        improvements = [i for i in wide.run([ads_record]).insights if i.kind == InsightKind.IMPROVEMENT]
        assert [i.evidence.metric for i in improvements] == ["cpm"]
