# src/connection_feed/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import feed_router, prayers_router, system_router

__all__ = [
    "feed_router",
    "prayers_router",
    "system_router",
]
