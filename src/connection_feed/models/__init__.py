# src/connection_feed/models/__init__.py
"""SQLAlchemy models mirroring the tables the feed core reads."""

from .block import UserBlock
from .post import Post, PostBookmark, PostLike
from .prayer import Prayer, PrayerRequest

__all__ = [
    "Post", "PostBookmark", "PostLike",
    "Prayer", "PrayerRequest",
    "UserBlock",
]
