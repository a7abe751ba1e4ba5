# src/connection_feed/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .feed import router as feed_router
from .prayers import router as prayers_router
from .system import router as system_router

__all__ = [
    "feed_router",
    "prayers_router",
    "system_router",
]
