"""
Settings and environment management module for the Funnel Metrics service.

This module provides centralized configuration management using pydantic-settings,
which automatically loads settings from environment variables and .env files.

Key Features:
- Environment variable validation and type coercion
- Sensible defaults for development
- Singleton pattern via @lru_cache for efficient access
- Optional file paths for benchmark overrides and a static record set

Environment Variables:
- APP_NAME: Display name of the API (default: Funnel Metrics API)
- LOG_LEVEL: Root logging level (default: INFO)
- INSIGHT_MARGIN: Benchmark deviation that makes an insight rule fire (default: 0.30)
- TOP_PERFORMERS_LIMIT: Number of bucket keys listed per breakdown (default: 3)
- BENCHMARKS_PATH: JSON file with per-channel benchmark/weight overrides
- RECORDS_PATH: JSON file with the documents served by the in-memory record source
- CORS_ORIGINS: Allowed browser origins

Usage:
    from funnel_metrics.core.config import get_settings

    settings = get_settings()
    margin = settings.insight_margin
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        app_name: Display name used by the FastAPI application.
        log_level: Logging level name passed to logging.basicConfig.
        insight_margin: Fractional deviation from benchmark required before a
            strength or improvement insight fires. Read once when the engine
            is built.
        top_performers_limit: How many bucket keys to list per breakdown in
            ChannelResult.top_performers.
        benchmarks_path: Optional JSON file with benchmark/weight overrides.
        records_path: Optional JSON file (list of documents) for the
            in-memory record source.
        cors_origins: Allowed CORS origins for the HTTP layer.
    """

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
        case_sensitive=False,
    )

    # =========================================================================
    # Application
    # =========================================================================

    app_name: str = 'Funnel Metrics API'
    log_level: str = 'INFO'

    # =========================================================================
    # Engine
    # =========================================================================

    # Deviation from benchmark that triggers an insight (0.30 = +/-30%)
    # Exactly-at-margin values never fire
    insight_margin: float = Field(default=0.30, gt=0.0, lt=1.0)

    top_performers_limit: int = Field(default=3, ge=1)

    # =========================================================================
    # Static inputs (loaded once at startup)
    # =========================================================================

    benchmarks_path: Optional[str] = None
    records_path: Optional[str] = None

    # =========================================================================
    # HTTP
    # =========================================================================

    cors_origins: List[str] = [
        'http://localhost:3000',
        'http://127.0.0.1:3000',
    ]


@lru_cache()
def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Returns:
        Settings: The cached settings instance.

    Raises:
        pydantic.ValidationError: If an environment variable has an invalid
            value (e.g. INSIGHT_MARGIN=2).

    Note:
        To refresh settings in tests, clear the cache:
        >>> get_settings.cache_clear()
    """
    return Settings()
