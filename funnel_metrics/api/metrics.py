"""
FastAPI router module for channel metrics.

Thin HTTP surface over the metrics engine built at startup. The handlers do
no computation of their own; they resolve the channel, call the engine and
map configuration errors onto HTTP status codes.

Key Endpoints:
- GET /metrics/channels - Channels with their rates, breakdowns and dispatch fields
- GET /metrics/benchmarks/{channel} - Benchmark and weight tables in effect
- GET /metrics/config - Insight margin, top-N limit and benchmark versions
- POST /metrics/query - Dispatch a filter object to the relevant channels
- POST /metrics/{channel}/score - Score caller-supplied records for one channel

Error Mapping:
- Unknown channel in the path: 404
- Unknown channel in a query body: 422
- Per-channel pipeline failures are not HTTP errors; they are reported in
  DispatchResult.errors
"""

import logging
from typing import List

from fastapi import APIRouter, HTTPException

from funnel_metrics.core.dependencies import DispatchDep, SettingsDep
from funnel_metrics.core.errors import ChannelConfigurationError
from funnel_metrics.models.enums import Channel
from funnel_metrics.models.schemas import (
    BenchmarkTableResponse,
    ChannelInfo,
    ChannelResult,
    DispatchResult,
    EngineConfigResponse,
    MetricsQuery,
    ScoreRequest,
)
from funnel_metrics.services.dispatch import ConnectorDispatch
from funnel_metrics.services.extraction import normalize_record
from funnel_metrics.services.pipeline import ChannelPipeline


# =============================================================================
# Module Configuration
# =============================================================================

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/metrics", tags=["metrics"])


# =============================================================================
# Helper Functions
# =============================================================================


def _resolve_pipeline(dispatch: ConnectorDispatch, channel: str) -> ChannelPipeline:
    try:
        return dispatch.pipelines[Channel(channel)]
    except (ValueError, KeyError):
        raise HTTPException(status_code=404, detail=f"Unknown channel: {channel}") from None


# =============================================================================
# Endpoints
# =============================================================================


@router.get("/channels", response_model=List[ChannelInfo])
async def list_channels(dispatch: DispatchDep) -> List[ChannelInfo]:
    """List every channel the engine can score."""
    return [
        ChannelInfo(
            channel=channel,
            rates=list(pipeline.descriptor.rate_names),
            breakdowns=list(pipeline.descriptor.breakdowns),
            dispatch_fields=list(pipeline.descriptor.dispatch_fields),
        )
        for channel, pipeline in dispatch.pipelines.items()
    ]


@router.get("/benchmarks/{channel}", response_model=BenchmarkTableResponse)
async def get_benchmarks(channel: str, dispatch: DispatchDep) -> BenchmarkTableResponse:
    """
    Return the benchmark and weight tables a channel is scored against.

    Raises:
        HTTPException: 404 if the channel is unknown.
    """
    table = _resolve_pipeline(dispatch, channel).table
    return BenchmarkTableResponse(
        channel=table.channel,
        version=table.version,
        benchmarks=dict(table.benchmarks),
        weights=dict(table.weights),
    )


@router.get("/config", response_model=EngineConfigResponse)
async def get_engine_config(settings: SettingsDep, dispatch: DispatchDep) -> EngineConfigResponse:
    """Return the scoring configuration and the benchmark version of every channel."""
    return EngineConfigResponse(
        insight_margin=settings.insight_margin,
        top_performers_limit=settings.top_performers_limit,
        benchmark_versions={
            channel: pipeline.table.version for channel, pipeline in dispatch.pipelines.items()
        },
    )


@router.post("/query", response_model=DispatchResult)
async def query_metrics(query: MetricsQuery, dispatch: DispatchDep) -> DispatchResult:
    """
    Dispatch a filter object to the relevant channel pipelines.

    Channels are taken from query.channels when given, otherwise inferred
    from the filter fields (all channels when none is channel-specific).

    Raises:
        HTTPException: 422 if an explicitly requested channel is not available.
    """
    try:
        return await dispatch.dispatch(query.filters, query.channels)
    except ChannelConfigurationError as e:
        logger.warning(f"Rejected metrics query: {e}")
        raise HTTPException(status_code=422, detail=str(e)) from e


@router.post("/{channel}/score", response_model=ChannelResult)
async def score_records(channel: str, payload: ScoreRequest, dispatch: DispatchDep) -> ChannelResult:
    """
    Run one channel's pipeline over records supplied in the request body.

    Raises:
        HTTPException: 404 if the channel is unknown.
    """
    pipeline = _resolve_pipeline(dispatch, channel)
    records = [normalize_record(record) for record in payload.records]
    logger.info(f"Scoring {len(records)} {pipeline.channel.value} records")
    return pipeline.run(records)
