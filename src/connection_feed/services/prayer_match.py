"""Prayer request matching.

Scores how well each prayer request in a pool fits one viewer's prayer
context and returns a capped list ordered by priority tier, then score.

Signals are additive and independently capped:

============================  ======  =========================================
Signal                        Points  Fires when
============================  ======  =========================================
Shared past experience        40      request topics overlap experienced topics
Ministry-area alignment       30      request topics hit a ministry category
Current-struggle solidarity   25      request topics overlap recent struggles
Geographic proximity          0-15    same city 1.0, state 0.7, country 0.4
Life-stage relevance          15      content mentions the viewer's life stage
Prayer-history affinity       0-20    category share of the viewer's history
============================  ======  =========================================

Urgent requests are then multiplied by 1.5 and forced to ``critical``;
requests with fewer than five prayers get a flat +10.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Collection, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from connection_feed.services.errors import MalformedInputError
from connection_feed.services.topics import (
    LIFE_STAGE_KEYWORDS,
    PRAYER_CATEGORIES,
    categorize_request,
    extract_topics,
    life_stage_matches,
)

logger = logging.getLogger(__name__)

__all__ = [
    "Demographic",
    "Location",
    "MatchResult",
    "PrayerHistory",
    "PrayerRequestRecord",
    "Priority",
    "RecentPrayer",
    "UserPrayerContext",
    "calculate_prayer_match",
    "recommend",
]

SHARED_EXPERIENCE_POINTS = 40
MINISTRY_POINTS = 30
CURRENT_STRUGGLE_POINTS = 25
LOCATION_POINTS = 15
LIFE_STAGE_POINTS = 15
HISTORY_POINTS = 20
URGENCY_MULTIPLIER = 1.5
UNDER_SERVED_PRAYER_COUNT = 5
UNDER_SERVED_BOOST = 10
RECENT_PRAYER_WINDOW = 10
MAX_SCORE = 100

URGENT_REASON = "Urgent prayer need"
UNDER_SERVED_REASON = "Needs more prayer support"
DEFAULT_REASON = "Join others in prayer"


class Priority(str, Enum):
    """Coarse bucket used as the primary sort key for matches."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Sort rank; lower ranks sort first."""
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    Priority.CRITICAL: 0,
    Priority.HIGH: 1,
    Priority.MEDIUM: 2,
    Priority.LOW: 3,
}


@dataclass(frozen=True, slots=True)
class Location:
    city: str | None = None
    state: str | None = None
    country: str | None = None


@dataclass(frozen=True, slots=True)
class Demographic:
    age_range: str | None = None
    life_stage: str | None = None
    family_status: str | None = None


@dataclass(frozen=True, slots=True)
class RecentPrayer:
    category: str
    date: datetime


@dataclass(frozen=True, slots=True)
class PrayerHistory:
    """Aggregate of the prayer requests a viewer has engaged with.

    ``recent_prayers`` is ordered newest first.
    """

    categories: Mapping[str, int] = field(default_factory=dict)
    total_prayers: int = 0
    recent_prayers: Sequence[RecentPrayer] = ()


@dataclass(frozen=True, slots=True)
class UserPrayerContext:
    """Transient per-call summary of one viewer's prayer activity."""

    experienced_topics: Sequence[str] = ()
    current_struggles: Sequence[str] = ()
    ministry_areas: Collection[str] = ()
    location: Location | None = None
    demographic: Demographic | None = None
    prayer_history: PrayerHistory = field(default_factory=PrayerHistory)


@dataclass(frozen=True, slots=True)
class PrayerRequestRecord:
    """A prayer request detached from any session."""

    id: int
    author_id: int
    content: str
    category: str | None = None
    is_urgent: bool = False
    prayer_count: int = 0
    author_location: Location | None = None
    created_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class MatchResult:
    prayer_request: PrayerRequestRecord
    match_score: int
    reasons: list[str]
    priority: Priority


def _request_topics(request: PrayerRequestRecord, *, include_category: bool) -> list[str]:
    text = request.content or ""
    if include_category and request.category:
        text = f"{text} {request.category}"
    return extract_topics(text)


def find_shared_experience(topics: Sequence[str], experienced: Iterable[str]) -> str | None:
    """Return the first experienced topic overlapping a request topic."""
    for raw in experienced:
        candidate = (raw or "").lower()
        if not candidate:
            continue
        if any(candidate in topic.lower() or topic.lower() in candidate for topic in topics):
            return raw
    return None


def match_ministry_area(topics: Sequence[str], ministry_areas: Collection[str]) -> str | None:
    """Return the first ministry category whose keywords appear in ``topics``."""
    areas = {area.lower() for area in ministry_areas if area}
    for category, keywords in PRAYER_CATEGORIES.items():
        if category not in areas:
            continue
        if any(keyword in topic.lower() for keyword in keywords for topic in topics):
            return category
    return None


def find_current_struggle(topics: Sequence[str], struggles: Iterable[str]) -> str | None:
    """Return the first current struggle contained in a request topic."""
    for raw in struggles:
        candidate = (raw or "").lower()
        if candidate and any(candidate in topic.lower() for topic in topics):
            return raw
    return None


def _same(left: str | None, right: str | None) -> bool:
    return bool(left and right and left.strip().lower() == right.strip().lower())


def location_factor(request_location: Location | None, user_location: Location | None) -> float:
    """Return 1.0 for the same city, 0.7 same state, 0.4 same country, else 0."""
    if request_location is None or user_location is None:
        return 0.0
    if _same(user_location.city, request_location.city):
        return 1.0
    if _same(user_location.state, request_location.state):
        return 0.7
    if _same(user_location.country, request_location.country):
        return 0.4
    return 0.0


def match_life_stage(content: str, demographic: Demographic | None) -> str | None:
    """Return the life stage whose keywords appear in ``content``."""
    if demographic is None or not demographic.life_stage:
        return None
    lowered = (content or "").lower()
    for stage, keywords in LIFE_STAGE_KEYWORDS.items():
        if life_stage_matches(demographic.life_stage, stage) and any(
            keyword in lowered for keyword in keywords
        ):
            return stage
    return None


def history_affinity(request: PrayerRequestRecord, history: PrayerHistory | None) -> float:
    """Return a 0..1 affinity from the viewer's category history.

    70% of the weight is the category's share of all prayers, 30% its share of
    the last ten.
    """
    if history is None or history.total_prayers <= 0:
        return 0.0
    category = categorize_request(request)
    share = history.categories.get(category, 0) / history.total_prayers
    recent = list(history.recent_prayers)[:RECENT_PRAYER_WINDOW]
    recent_share = sum(1 for prayer in recent if prayer.category == category) / RECENT_PRAYER_WINDOW
    return min(share * 0.7 + recent_share * 0.3, 1.0)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_prayer_match(
    request: PrayerRequestRecord,
    context: UserPrayerContext,
) -> MatchResult:
    """Score a single prayer request against a viewer's context.

    Missing optional data (location, demographic, category) contributes
    nothing instead of raising.
    """
    score = 0.0
    reasons: list[str] = []
    priority = Priority.LOW

    topics_with_category = _request_topics(request, include_category=True)

    shared = find_shared_experience(topics_with_category, context.experienced_topics)
    if shared:
        score += SHARED_EXPERIENCE_POINTS
        reasons.append(f"You've experienced similar challenges with {shared}")
        priority = Priority.HIGH

    ministry = match_ministry_area(topics_with_category, context.ministry_areas)
    if ministry:
        score += MINISTRY_POINTS
        reasons.append(f"Aligns with your {ministry} ministry")
        priority = Priority.HIGH

    struggle = find_current_struggle(
        _request_topics(request, include_category=False),
        context.current_struggles,
    )
    if struggle:
        score += CURRENT_STRUGGLE_POINTS
        reasons.append(f"You're also navigating {struggle}")
        if priority is not Priority.HIGH:
            priority = Priority.MEDIUM

    proximity = location_factor(request.author_location, context.location)
    if proximity > 0:
        score += proximity * LOCATION_POINTS
        reasons.append("From your local area" if proximity > 0.7 else "From your region")

    stage = match_life_stage(request.content, context.demographic)
    if stage:
        score += LIFE_STAGE_POINTS
        reasons.append(f"Relevant to {stage}")

    affinity = history_affinity(request, context.prayer_history)
    if affinity > 0:
        score += affinity * HISTORY_POINTS
        if affinity > 0.5:
            reasons.append("Category you often pray for")

    category = (request.category or "").strip().lower()
    if request.is_urgent or category == "critical":
        score *= URGENCY_MULTIPLIER
        priority = Priority.CRITICAL
        reasons.insert(0, URGENT_REASON)

    if (request.prayer_count or 0) < UNDER_SERVED_PRAYER_COUNT:
        score += UNDER_SERVED_BOOST
        reasons.append(UNDER_SERVED_REASON)

    if not reasons:
        reasons.append(DEFAULT_REASON)

    return MatchResult(
        prayer_request=request,
        match_score=max(0, min(_round_half_up(score), MAX_SCORE)),
        reasons=reasons,
        priority=priority,
    )


def recommend(
    context: UserPrayerContext,
    pool: Iterable[PrayerRequestRecord],
    limit: int = 10,
    *,
    exclude_ids: Collection[int] = (),
) -> list[MatchResult]:
    """Return the best matches for ``context`` from ``pool``.

    Results are ordered by priority tier (critical first) and then by score,
    descending; ties keep pool order. ``exclude_ids`` lets callers drop
    requests the viewer already prayed for.

    Raises:
        MalformedInputError: If ``context`` or ``pool`` is None.
    """
    if context is None:
        raise MalformedInputError("prayer context is required")
    if pool is None:
        raise MalformedInputError("prayer request pool is required")
    if limit <= 0:
        return []

    excluded = set(exclude_ids)
    matches = [
        calculate_prayer_match(request, context)
        for request in pool
        if request.id not in excluded
    ]
    matches.sort(key=lambda match: (match.priority.rank, -match.match_score))
    logger.debug("Scored %d prayer requests; returning %d", len(matches), min(limit, len(matches)))
    return matches[:limit]
