"""
Pytest Configuration and Shared Fixtures for Funnel Metrics Tests.

Provides:
- Async test execution with pytest-asyncio (registered through its entry point)
- Benchmark tables and channel pipelines built from the default configuration
- Raw record fixtures shaped like documents of the shared campaign collection
- A mixed multi-channel document set for dispatch and API tests
"""

from typing import Any, Dict, List

import pytest

from funnel_metrics.core.benchmarks import BenchmarkTable, load_benchmark_tables
from funnel_metrics.core.config import get_settings
from funnel_metrics.models.enums import Channel
from funnel_metrics.services.dispatch import ConnectorDispatch
from funnel_metrics.services.pipeline import ChannelPipeline, build_pipelines
from funnel_metrics.services.record_source import InMemoryRecordSource


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Ensure every test sees settings built from its own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# ============================================================
# ENGINE FIXTURES
# ============================================================

@pytest.fixture
def benchmark_tables() -> Dict[Channel, BenchmarkTable]:
    return load_benchmark_tables()


@pytest.fixture
def pipelines(benchmark_tables) -> Dict[Channel, ChannelPipeline]:
    return build_pipelines(benchmark_tables)


@pytest.fixture
def ads_pipeline(pipelines) -> ChannelPipeline:
    return pipelines[Channel.ADS]


@pytest.fixture
def events_pipeline(pipelines) -> ChannelPipeline:
    return pipelines[Channel.EVENTS]


# ============================================================
# RAW RECORD FIXTURES
# ============================================================

@pytest.fixture
def ads_record() -> Dict[str, Any]:
    """Ad with CTR 2%, CPC $2.50, frequency 2.0 and ROAS 3."""
    return {
        "Ad impressions": 1000,
        "Total clicks": 20,
        "Amount spent (USD)": 50,
        "Conversions": 2,
        "Ad Reach": 500,
        "Total revenue": 150,
        "Ad Platform": "facebook",
        "Campaign Name": "Spring Push",
        "Ad Set Name": "Lookalike 1%",
    }


@pytest.fixture
def zero_ads_record() -> Dict[str, Any]:
    """Ad that never delivered."""
    return {
        "Ad impressions": 0,
        "Total clicks": 0,
        "Amount spent (USD)": 0,
        "Ad Platform": "facebook",
    }


@pytest.fixture
def benchmark_ads_record() -> Dict[str, Any]:
    """Ad whose every rate sits within 30% of its benchmark."""
    return {
        "Ad impressions": 100000,
        "Total clicks": 900,
        "Amount spent (USD)": 1548,
        "Conversions": 27,
        "Ad Reach": 50000,
        "Total revenue": 6192,
        "Negative feedback from users: Hide all": 100,
        "Ad Platform": "instagram",
        "Campaign Name": "Always On",
    }


@pytest.fixture
def event_record() -> Dict[str, Any]:
    return {
        "Event ID": "evt-1",
        "Event Name": "Canvass Kickoff",
        "Event Type": "CANVASS",
        "Event Date": "2024-03-04T18:00:00",
        "RSVPs": 10,
        "Attendees": 0,
        "Capacity": 20,
        "State": "PA",
    }


@pytest.fixture
def mixed_documents(ads_record, benchmark_ads_record, event_record) -> List[Dict[str, Any]]:
    """Documents from several channels stored in one collection."""
    return [
        ads_record,
        benchmark_ads_record,
        event_record,
        {
            "Emails Sent": 5000,
            "Opened": 1100,
            "Clicked": 160,
            "Converted": 12,
            "Bounced": 40,
            "Unsubscribed": 6,
            "Campaign Name": "Spring Push",
            "Email Platform": "mailchimp",
            "Send Time": "2024-03-05T09:30:00",
        },
        {
            "Social Platform": "instagram",
            "Reach": 8000,
            "Social impressions": 12000,
            "Reactions": 300,
            "Comments": 40,
            "Shares": 25,
            "Saves": 15,
            "Link Clicks": 150,
            "Post Type": "reel",
            "Publish Time": "2024-03-06T12:15:00",
        },
    ]


@pytest.fixture
def record_source(mixed_documents) -> InMemoryRecordSource:
    return InMemoryRecordSource(mixed_documents)


@pytest.fixture
def dispatch(pipelines, record_source) -> ConnectorDispatch:
    return ConnectorDispatch(pipelines, record_source)
