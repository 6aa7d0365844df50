"""
Connector dispatch: fan a query out to the relevant channel pipelines.

Channel Selection:
- An explicit channel list wins (unknown names raise ChannelConfigurationError)
- Otherwise the filter keys are looked up in the static field -> channel map
  built from every descriptor's dispatch_fields
- A query with no channel-specific field goes to every channel

Execution:
- Each selected channel fetches its records and runs its pipeline in its own
  task; all tasks are awaited together (scatter/gather, not fail-fast)
- A failing channel is logged and reported as a ChannelError; the others
  still return their ChannelResult
- No retries; those belong to the record source

Result States:
- full_success: no channel failed
- partial_success: some channels failed, at least one succeeded
- all_failed: every selected channel failed
"""

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from funnel_metrics.core.benchmarks import load_benchmark_tables, read_overrides
from funnel_metrics.core.config import Settings
from funnel_metrics.core.errors import ChannelConfigurationError, ChannelPipelineError
from funnel_metrics.models.enums import Channel, DispatchState
from funnel_metrics.models.schemas import ChannelError, ChannelResult, DispatchResult
from funnel_metrics.services.channels import build_field_map
from funnel_metrics.services.pipeline import ChannelPipeline, build_pipelines
from funnel_metrics.services.record_source import InMemoryRecordSource, RecordSource


logger = logging.getLogger(__name__)


class ConnectorDispatch:
    """
    Routes metric queries to channel pipelines and merges their results.

    Args:
        pipelines: One pipeline per available channel.
        source: Record source shared by all channels.

    Raises:
        ChannelConfigurationError: If two channels claim the same dispatch field.
    """

    def __init__(self, pipelines: Mapping[Channel, ChannelPipeline], source: RecordSource):
        self.pipelines = dict(pipelines)
        self.source = source
        self.field_map = build_field_map(pipeline.descriptor for pipeline in self.pipelines.values())

    def select_channels(
        self,
        filters: Mapping[str, Any],
        channels: Optional[Iterable[Any]] = None,
    ) -> List[Channel]:
        """
        Decide which channels a query goes to, in pipeline order.

        Raises:
            ChannelConfigurationError: If an explicit channel is unknown or
                has no pipeline.
        """
        if channels:
            selected = []
            for name in channels:
                try:
                    channel = Channel(name)
                except ValueError:
                    raise ChannelConfigurationError(f"Unknown channel: {name}") from None
                if channel not in self.pipelines:
                    raise ChannelConfigurationError(f"No pipeline configured for channel {channel.value}")
                if channel not in selected:
                    selected.append(channel)
            return [channel for channel in self.pipelines if channel in selected]

        matched = {self.field_map[key] for key in filters if key in self.field_map}
        if not matched:
            return list(self.pipelines)
        return [channel for channel in self.pipelines if channel in matched]

    async def _run_channel(self, channel: Channel, filters: Mapping[str, Any]) -> ChannelResult:
        pipeline = self.pipelines[channel]
        try:
            records = await self.source.fetch(pipeline.descriptor, filters)
            return pipeline.run(records)
        except Exception as e:
            logger.exception(f"Channel {channel.value} failed")
            raise ChannelPipelineError(channel.value, str(e)) from e

    async def dispatch(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        channels: Optional[Iterable[Any]] = None,
    ) -> DispatchResult:
        """
        Run every selected channel concurrently and merge the outcomes.

        Args:
            filters: Field -> filter value mapping (passed to the record source).
            channels: Optional explicit channel list.

        Returns:
            DispatchResult with per-channel results and errors.
        """
        filters = dict(filters or {})
        selected = self.select_channels(filters, channels)
        logger.info(f"Dispatching query to channels: {[c.value for c in selected]}")

        outcomes = await asyncio.gather(
            *(self._run_channel(channel, filters) for channel in selected),
            return_exceptions=True,
        )

        metrics: Dict[Channel, ChannelResult] = {}
        errors: List[ChannelError] = []
        for channel, outcome in zip(selected, outcomes):
            if isinstance(outcome, BaseException):
                cause = outcome.__cause__ or outcome
                errors.append(ChannelError(channel=channel, error=str(cause) or type(cause).__name__))
            else:
                metrics[channel] = outcome

        if not errors:
            state = DispatchState.FULL_SUCCESS
        elif metrics:
            state = DispatchState.PARTIAL_SUCCESS
        else:
            state = DispatchState.ALL_FAILED

        logger.info(f"Dispatch finished: {state.value} ({len(metrics)} ok, {len(errors)} failed)")
        return DispatchResult(success=not errors, state=state, metrics=metrics, errors=errors)


def build_dispatch(settings: Settings, source: Optional[RecordSource] = None) -> ConnectorDispatch:
    """
    Build the engine once from settings: benchmark tables (with optional
    overrides), one pipeline per channel, and the record source.

    Raises:
        ChannelConfigurationError: If the benchmark configuration is invalid.
    """
    overrides = read_overrides(settings.benchmarks_path) if settings.benchmarks_path else None
    tables = load_benchmark_tables(overrides)
    pipelines = build_pipelines(
        tables,
        insight_margin=settings.insight_margin,
        top_performers_limit=settings.top_performers_limit,
    )
    if source is None:
        if settings.records_path:
            source = InMemoryRecordSource.from_json_file(settings.records_path)
        else:
            source = InMemoryRecordSource()
    return ConnectorDispatch(pipelines, source)
