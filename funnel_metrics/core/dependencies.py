"""
FastAPI dependency injection module for the Funnel Metrics service.

The engine (benchmark tables, channel pipelines, record source and dispatch)
is built once in the application lifespan and stored on app.state. These
dependencies hand it to endpoint handlers, so tests can call handlers directly
with their own objects or use app.dependency_overrides.

Key Dependencies Provided:
- get_settings_dependency / SettingsDep: the cached Settings singleton
- get_dispatch / DispatchDep: the ConnectorDispatch built at startup

Usage Examples:
    @router.post("/query")
    async def query_metrics(query: MetricsQuery, dispatch: DispatchDep) -> DispatchResult:
        return await dispatch.dispatch(query.filters, query.channels)
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from funnel_metrics.core.config import Settings, get_settings
from funnel_metrics.services.dispatch import ConnectorDispatch


# =============================================================================
# Settings Dependency
# =============================================================================

def get_settings_dependency() -> Settings:
    """
    Return the Settings singleton instance.

    Thin wrapper around get_settings() so tests can replace it with
    app.dependency_overrides[get_settings_dependency].
    """
    return get_settings()


# =============================================================================
# Engine Dependency
# =============================================================================

def get_dispatch(request: Request) -> ConnectorDispatch:
    """
    Return the ConnectorDispatch built during application startup.

    Raises:
        HTTPException: 503 if the lifespan has not built the engine.
    """
    dispatch = getattr(request.app.state, "dispatch", None)
    if dispatch is None:
        raise HTTPException(status_code=503, detail="Metrics engine not initialized")
    return dispatch


# =============================================================================
# Type Aliases for Dependency Injection
# =============================================================================

# Usage: async def endpoint(settings: SettingsDep)
SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]

# Usage: async def endpoint(dispatch: DispatchDep)
DispatchDep = Annotated[ConnectorDispatch, Depends(get_dispatch)]
