# src/connection_feed/main.py
"""Main entry point for the Connection feed service."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from sqlalchemy.exc import SQLAlchemyError

from connection_feed.api.v1 import feed_router, prayers_router, system_router
from connection_feed.core.settings import settings
from connection_feed.db.session import SessionLocal, create_tables
from connection_feed.services.content_store import get_snapshot_store
from connection_feed.services.snapshot_sync import SnapshotRefresher

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Connection Feed API",
    description="Feed assembly, hot ranking and prayer recommendations",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(feed_router, prefix="/api/v1")
app.include_router(prayers_router, prefix="/api/v1")
app.include_router(system_router, prefix="/api/v1")


@app.on_event("startup")
async def on_startup() -> None:
    if settings.debug:
        logger.info("Debug mode: creating tables on %s", settings.effective_database_url)
        create_tables()

    refresher = SnapshotRefresher(get_snapshot_store(), SessionLocal)
    try:
        loaded = refresher.refresh_once()
    except SQLAlchemyError as exc:
        logger.warning("Initial snapshot load failed; fallback feed starts empty: %s", exc)
    else:
        logger.info("Feed snapshot primed with %d posts", loaded)
    await refresher.start()
    app.state.snapshot_refresher = refresher


@app.on_event("shutdown")
async def on_shutdown() -> None:
    refresher: SnapshotRefresher | None = getattr(app.state, "snapshot_refresher", None)
    if refresher:
        await refresher.stop()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.DEBUG if settings.debug else logging.INFO)
    uvicorn.run("connection_feed.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
