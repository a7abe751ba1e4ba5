# src/connection_feed/schemas/__init__.py
"""
Pydantic schemas for API responses.

Field names are snake_case in Python and camelCase on the wire.
"""

from .feed import FeedResponse, PostOut, RankedPostOut, RankedFeedResponse
from .prayer import MatchResultOut, PrayerRequestOut, RecommendationsResponse

__all__ = [
    "FeedResponse", "PostOut", "RankedFeedResponse", "RankedPostOut",
    "MatchResultOut", "PrayerRequestOut", "RecommendationsResponse",
]
