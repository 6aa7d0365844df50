"""
Metric Extraction Test Module

Covers zero-defaulting of absent/null/mistyped fields, derived fields,
label coercion, time bucket parsing and boundary normalization.
"""

from types import MappingProxyType

import pytest
from pydantic import BaseModel

from funnel_metrics.models.enums import Channel, TimeDimension
from funnel_metrics.services.channels import ADS, CTV, EMAIL, EVENTS, P2P, SOCIAL, DESCRIPTORS
from funnel_metrics.services.extraction import (
    coerce_label,
    coerce_number,
    coerce_time_bucket,
    extract_metrics,
    normalize_record,
)


# =============================================================================
# Field Coercion
# =============================================================================


class TestCoerceNumber:

    @pytest.mark.parametrize("value, expected", [
        (12, 12.0),
        (3.5, 3.5),
        ("1,250", 1250.0),
        ("$42.10", 42.10),
        (" 7 ", 7.0),
    ])
    def test_accepts_numbers_and_numeric_strings(self, value, expected):
        assert coerce_number(value) == pytest.approx(expected)

    @pytest.mark.parametrize("value", [
        None, True, False, "", "n/a", [], {}, float("nan"), float("inf"), -5,
    ])
    def test_unusable_values_default_to_zero(self, value):
        assert coerce_number(value) == 0.0


class TestCoerceLabel:

    def test_strings_are_stripped(self):
        assert coerce_label("  facebook ") == "facebook"

    def test_integer_ids_are_rendered(self):
        assert coerce_label(12345) == "12345"

    def test_integral_float_ids_are_rendered(self):
        assert coerce_label(12345.0) == "12345"
        assert coerce_label(0.0) == "0"

    def test_booleans(self):
        assert coerce_label(True) == "true"
        assert coerce_label(False) == "false"

    @pytest.mark.parametrize("value", [None, 1.5, float("nan"), float("inf"), ["a"], {"a": 1}])
    def test_other_types_default_to_empty(self, value):
        assert coerce_label(value) == ""


class TestCoerceTimeBucket:

    def test_integer_hour(self):
        assert coerce_time_bucket(14, TimeDimension.HOUR_OF_DAY) == 14
        assert coerce_time_bucket("7", TimeDimension.HOUR_OF_DAY) == 7

    def test_integral_float_hour(self):
        assert coerce_time_bucket(14.0, TimeDimension.HOUR_OF_DAY) == 14
        assert coerce_time_bucket("14.0", TimeDimension.HOUR_OF_DAY) == 14
        assert coerce_time_bucket(" 9.0 ", TimeDimension.HOUR_OF_DAY) == 9

    def test_out_of_range_hour_is_unknown(self):
        assert coerce_time_bucket(24, TimeDimension.HOUR_OF_DAY) is None
        assert coerce_time_bucket(3.5, TimeDimension.HOUR_OF_DAY) is None
        assert coerce_time_bucket("3.5", TimeDimension.HOUR_OF_DAY) is None
        assert coerce_time_bucket("24.0", TimeDimension.HOUR_OF_DAY) is None

    def test_timestamp_hour_and_day(self):
        # 2024-03-04 is a Monday
        assert coerce_time_bucket("2024-03-04T18:45:00", TimeDimension.HOUR_OF_DAY) == 18
        assert coerce_time_bucket("2024-03-04T18:45:00", TimeDimension.DAY_OF_WEEK) == 0
        assert coerce_time_bucket("2024-03-10", TimeDimension.DAY_OF_WEEK) == 6

    @pytest.mark.parametrize("value", [None, "", "not a date", True, 5])
    def test_unusable_day_values(self, value):
        assert coerce_time_bucket(value, TimeDimension.DAY_OF_WEEK) is None


# =============================================================================
# Extraction
# =============================================================================


class TestExtractMetrics:

    def test_ads_fields(self, ads_record):
        metrics = extract_metrics(ads_record, ADS)

        assert metrics.channel == Channel.ADS
        assert metrics.count("impressions") == 1000.0
        assert metrics.count("clicks") == 20.0
        assert metrics.count("spend") == 50.0
        assert metrics.count("revenue") == 150.0
        assert metrics.label("platform") == "facebook"
        assert metrics.label("ad_set") == "Lookalike 1%"

    @pytest.mark.parametrize("channel", list(DESCRIPTORS))
    def test_empty_record_declares_every_field(self, channel):
        descriptor = DESCRIPTORS[channel]
        metrics = extract_metrics({}, descriptor)

        assert set(metrics.counts) == set(descriptor.count_names)
        assert all(value == 0.0 for value in metrics.counts.values())
        assert set(metrics.labels) == set(descriptor.label_fields)
        assert all(value == "" for value in metrics.labels.values())
        assert set(metrics.times) == set(descriptor.time_dimensions)
        assert all(value is None for value in metrics.times.values())

    def test_null_and_mistyped_fields_default(self):
        record = {"Ad impressions": None, "Total clicks": "lots", "Ad Platform": 3.2}
        metrics = extract_metrics(record, ADS)

        assert metrics.count("impressions") == 0.0
        assert metrics.count("clicks") == 0.0
        assert metrics.label("platform") == ""

    def test_record_is_not_mutated(self, ads_record):
        snapshot = dict(ads_record)
        extract_metrics(ads_record, ADS)
        assert ads_record == snapshot

    def test_read_only_mapping_is_accepted(self, ads_record):
        metrics = extract_metrics(MappingProxyType(ads_record), ADS)
        assert metrics.count("clicks") == 20.0

    def test_ctv_derived_impressions_and_spend(self):
        record = {
            "Households": 2000,
            "Impressons per Household": 2.5,
            "Views": 3000,
            "Completed View": 2400,
            "Cost Per View": 0.02,
            "Hour of day": 21,
        }
        metrics = extract_metrics(record, CTV)

        assert metrics.count("impressions") == pytest.approx(5000.0)
        assert metrics.count("spend") == pytest.approx(48.0)
        assert metrics.times[TimeDimension.HOUR_OF_DAY] == 21

    def test_email_delivered_never_negative(self):
        metrics = extract_metrics({"Emails Sent": 10, "Bounced": 15}, EMAIL)
        assert metrics.count("delivered") == 0.0

    def test_social_engagements_sum(self):
        record = {"Reactions": 10, "Comments": 5, "Shares": 3, "Saves": 2}
        assert extract_metrics(record, SOCIAL).count("engagements") == 20.0

    def test_p2p_numeric_campaign_id_label(self):
        metrics = extract_metrics({"campaign_id": 991, "p2p_initial_messages": 10}, P2P)
        assert metrics.label("campaign_id") == "991"
        assert metrics.count("messages_sent") == 10.0

    def test_event_day_of_week(self, event_record):
        metrics = extract_metrics(event_record, EVENTS)
        assert metrics.times[TimeDimension.DAY_OF_WEEK] == 0
        assert metrics.count("rsvps") == 10.0


# =============================================================================
# Boundary Normalization
# =============================================================================


class _Document(BaseModel):
    name: str
    clicks: int


class _LegacyDocument:
    def to_dict(self):
        return {"name": "legacy", "clicks": 3}


class TestNormalizeRecord:

    def test_mapping_is_copied(self):
        source = {"clicks": 1}
        normalized = normalize_record(source)
        assert normalized == source
        assert normalized is not source

    def test_pydantic_model(self):
        assert normalize_record(_Document(name="a", clicks=2)) == {"name": "a", "clicks": 2}

    def test_object_with_to_dict(self):
        assert normalize_record(_LegacyDocument()) == {"name": "legacy", "clicks": 3}

    def test_unsupported_type_raises(self):
        with pytest.raises(TypeError):
            normalize_record(42)
