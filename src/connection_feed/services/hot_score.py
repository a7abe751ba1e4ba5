"""Hot-score ranking for advice posts.

score = log10(max(1, likes + 2 * replies)) + (created_at - epoch) / 45000

Engagement counts logarithmically, so going from 1 to 10 is worth as much as
10 to 100. Every 45000 seconds (12.5 hours) of recency adds one point. Posts
with fewer than five likes plus replies are damped by up to 45% but never
zeroed out.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from operator import attrgetter
from typing import Any, Generic, TypeVar

from connection_feed.core.settings import Settings, settings

logger = logging.getLogger(__name__)

__all__ = [
    "HotScoreConfig",
    "ScoredPost",
    "hot_score",
    "rank_by_hot_score",
    "rank_with_scores",
]

T = TypeVar("T")

ZERO_ENGAGEMENT_CONFIDENCE = 0.1
REPLY_WEIGHT = 2


@dataclass(frozen=True, slots=True)
class HotScoreConfig:
    """Tunable constants for the hot score."""

    epoch: datetime = datetime(2024, 1, 1, tzinfo=UTC)
    decay_seconds: float = 45_000.0
    # Unconfirmed product constant; see DESIGN.md.
    confidence_threshold: int = 5

    @classmethod
    def from_settings(cls, source: Settings | None = None) -> HotScoreConfig:
        source = source or settings
        return cls(
            epoch=source.hot_score_epoch,
            decay_seconds=source.hot_score_decay_seconds,
            confidence_threshold=source.hot_score_confidence_threshold,
        )


@dataclass(frozen=True)
class ScoredPost(Generic[T]):
    """A ranked post together with its score."""

    post: T
    score: float


def _read(post: Any, *names: str) -> Any:
    for name in names:
        if isinstance(post, Mapping):
            value = post.get(name)
        else:
            value = getattr(post, name, None)
        if value is not None:
            return value
    return None


def _count(value: Any) -> int:
    try:
        return max(0, int(value or 0))
    except (TypeError, ValueError):
        return 0


def _created_at_seconds(value: Any, now: datetime) -> float:
    """Return the creation time in epoch seconds, or ``now`` if it cannot be read."""
    if isinstance(value, datetime):
        moment = value if value.tzinfo else value.replace(tzinfo=UTC)
        return moment.timestamp()
    if isinstance(value, int | float) and not isinstance(value, bool) and math.isfinite(value):
        return float(value)
    if isinstance(value, str):
        try:
            moment = datetime.fromisoformat(value.strip())
        except ValueError:
            logger.debug("Unparsable createdAt %r; scoring as now", value)
        else:
            if moment.tzinfo is None:
                moment = moment.replace(tzinfo=UTC)
            return moment.timestamp()
    return now.timestamp()


def hot_score(
    post: Any,
    now: datetime | None = None,
    config: HotScoreConfig | None = None,
) -> float:
    """Return the hot score of a single post.

    ``post`` may be a `PostRecord` (or any object with ``like_count`` /
    ``reply_count`` / ``created_at``) or a mapping using either the snake_case
    or camelCase field names. A missing or unparsable ``created_at`` is scored
    as ``now``.
    """
    config = config or HotScoreConfig()
    now = now or datetime.now(UTC)

    upvotes = _count(_read(post, "like_count", "likeCount"))
    replies = _count(
        _read(post, "reply_count", "replyCount")
        or _read(post, "comment_count", "commentCount")
    )
    created_seconds = _created_at_seconds(_read(post, "created_at", "createdAt"), now)

    engagement = max(1, upvotes + replies * REPLY_WEIGHT)
    engagement_score = math.log10(engagement)
    time_score = (created_seconds - config.epoch.timestamp()) / config.decay_seconds
    score = engagement_score + time_score

    total_engagement = upvotes + replies
    if total_engagement < config.confidence_threshold:
        if total_engagement > 0:
            confidence = min(1.0, total_engagement / config.confidence_threshold)
        else:
            confidence = ZERO_ENGAGEMENT_CONFIDENCE
        score *= 0.5 + confidence * 0.5

    return score


def rank_with_scores(
    posts: Iterable[T],
    now: datetime | None = None,
    config: HotScoreConfig | None = None,
) -> list[ScoredPost[T]]:
    """Score every post and return them highest score first.

    Equal scores keep their input order.
    """
    config = config or HotScoreConfig()
    now = now or datetime.now(UTC)
    scored = [ScoredPost(post=post, score=hot_score(post, now, config)) for post in posts]
    return sorted(scored, key=attrgetter("score"), reverse=True)


def rank_by_hot_score(
    posts: Iterable[T],
    now: datetime | None = None,
    config: HotScoreConfig | None = None,
) -> list[T]:
    """Reorder ``posts`` by descending hot score; a total reorder, not a filter."""
    return [item.post for item in rank_with_scores(posts, now, config)]
