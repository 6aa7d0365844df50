"""
Core infrastructure package for the Funnel Metrics service.

Provides:
- Configuration management via pydantic-settings
- Versioned, frozen per-channel benchmark and weight tables
- The engine's exception types

FastAPI dependencies live in funnel_metrics.core.dependencies and are imported
from there directly, since they depend on the services package.

Usage Examples:
    from funnel_metrics.core import get_settings, load_benchmark_tables

    settings = get_settings()
    tables = load_benchmark_tables()
"""

# =============================================================================
# Re-exports from funnel_metrics.core.config
# =============================================================================
from funnel_metrics.core.config import Settings, get_settings

# =============================================================================
# Re-exports from funnel_metrics.core.errors
# =============================================================================
from funnel_metrics.core.errors import ChannelConfigurationError, ChannelPipelineError

# =============================================================================
# Re-exports from funnel_metrics.core.benchmarks
# =============================================================================
from funnel_metrics.core.benchmarks import (
    BENCHMARK_VERSION,
    DEFAULT_TABLES,
    BenchmarkTable,
    load_benchmark_tables,
    read_overrides,
    validate_table,
)

# =============================================================================
# Public API Definition
# =============================================================================

__all__ = [
    # Configuration management (from config.py)
    'Settings',
    'get_settings',
    # Errors (from errors.py)
    'ChannelConfigurationError',
    'ChannelPipelineError',
    # Benchmarks (from benchmarks.py)
    'BENCHMARK_VERSION',
    'DEFAULT_TABLES',
    'BenchmarkTable',
    'load_benchmark_tables',
    'read_overrides',
    'validate_table',
]
