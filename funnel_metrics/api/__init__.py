"""
Funnel Metrics API package initialization.

This package contains FastAPI router modules:
- metrics: channel listing, benchmark tables, query dispatch and ad-hoc scoring
"""

from fastapi import APIRouter

from funnel_metrics.api.metrics import router as metrics_router

# Main API router
api_router = APIRouter()
api_router.include_router(metrics_router)

__all__ = [
    "api_router",
    "metrics_router",
]
