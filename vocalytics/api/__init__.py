"""
Vocalytics API package initialization.

This package contains FastAPI router modules:
- pipeline: Stateless normalize / score / run endpoints
- calls: Supplier sync (fetch, transcribe, score, persist)
- metrics: Campaign and agent aggregates from stored calls
"""

from fastapi import APIRouter

# Import router modules
from vocalytics.api.pipeline import router as pipeline_router
from vocalytics.api.calls import router as calls_router
from vocalytics.api.metrics import router as metrics_router

# Create main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(pipeline_router, prefix="/pipeline", tags=["pipeline"])
api_router.include_router(calls_router, prefix="/calls", tags=["calls"])
api_router.include_router(metrics_router, prefix="/metrics", tags=["metrics"])

# Export all routers for selective imports
__all__ = [
    "api_router",
    "pipeline_router",
    "calls_router",
    "metrics_router",
]
