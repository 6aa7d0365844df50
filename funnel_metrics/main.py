"""
FastAPI application entry point for the Funnel Metrics API.

Configures logging and CORS, builds the metrics engine once at startup
(benchmark tables, channel pipelines, record source, dispatch) and registers
the API routers.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from funnel_metrics import __version__
from funnel_metrics.api import api_router
from funnel_metrics.core.config import get_settings
from funnel_metrics.services.dispatch import build_dispatch

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for application startup and shutdown.

    On startup the engine is built from settings and stored on app.state.
    A configuration error aborts startup: the service must not score with a
    missing or invalid benchmark table.
    """
    logger.info(f"{settings.app_name} starting")
    app.state.dispatch = build_dispatch(settings)
    logger.info(f"Metrics engine ready with {len(app.state.dispatch.pipelines)} channels")

    yield

    logger.info(f"{settings.app_name} shutting down")
    app.state.dispatch = None


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=__version__,
    description=(
        "Multi-channel metric normalization and performance scoring. "
        "Scores ads, CTV, email, social, events, P2P and cross-channel records "
        "against per-channel benchmarks."
    ),
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring and load balancer probes.

    Returns:
        Dict with status 'healthy'
    """
    return {"status": "healthy"}


@app.get("/")
async def root():
    """
    Root endpoint providing API information.

    Returns:
        Dict with API name and version
    """
    return {
        "name": settings.app_name,
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


# Run with uvicorn when executed directly
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "funnel_metrics.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
