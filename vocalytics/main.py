"""
FastAPI application entry point for the Vocalytics API.

This module configures CORS, registers the API routers and starts the ASGI
server. Routers:
- /pipeline: stateless normalize / score / run over caller-supplied data
- /calls: sync call logs from Ringba, transcribe through Deepgram, persist
- /metrics: campaign and agent aggregates recomputed from stored calls
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from vocalytics import __version__
from vocalytics.api import api_router
from vocalytics.core.database import init_db, close_db

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for FastAPI application startup and shutdown events.

    On startup the database pool is initialized; the stateless /pipeline
    endpoints keep working when the database is unreachable.
    """
    # Startup
    logger.info("Vocalytics API starting")
    try:
        await init_db()
        logger.info("Database connection pool initialized")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")

    yield

    # Shutdown
    logger.info("Vocalytics API shutting down")
    try:
        await close_db()
        logger.info("Database connection pool closed")
    except Exception as e:
        logger.error(f"Error closing database pool: {e}")


# Create FastAPI application
app = FastAPI(
    title="Vocalytics API",
    version=__version__,
    description=(
        "FastAPI backend for Vocalytics. Normalizes telephony call logs, "
        "merges them with transcripts, scores call quality and aggregates "
        "campaign and agent metrics."
    ),
    lifespan=lifespan,
)

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",  # Next.js dev server
        "http://127.0.0.1:3000",  # Alternative localhost
    ],
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
        "name": "Vocalytics API",
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


# Run with uvicorn when executed directly
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "vocalytics.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
