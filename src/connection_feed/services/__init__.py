# src/connection_feed/services/__init__.py
"""Read-path services: feed assembly, hot-score ranking and prayer matching."""

from .content_store import InMemoryContentStore, PostRecord, SqlPostSource
from .errors import FeedError, InvalidCursorError, MalformedInputError, SourceUnavailableError
from .feed import FeedAssembler, FeedConfig, FeedPage
from .hot_score import HotScoreConfig, rank_by_hot_score
from .prayer_match import MatchResult, Priority, UserPrayerContext, recommend

__all__ = [
    "FeedAssembler",
    "FeedConfig",
    "FeedError",
    "FeedPage",
    "HotScoreConfig",
    "InMemoryContentStore",
    "InvalidCursorError",
    "MalformedInputError",
    "MatchResult",
    "PostRecord",
    "Priority",
    "SourceUnavailableError",
    "SqlPostSource",
    "UserPrayerContext",
    "rank_by_hot_score",
    "recommend",
]
