"""Builds a viewer's prayer context from their prayer history."""

from __future__ import annotations

from collections import Counter
from collections.abc import Collection, Iterable
from datetime import UTC, datetime, timedelta

from connection_feed.db.time import ensure_aware, utcnow
from connection_feed.models import Prayer, PrayerRequest
from connection_feed.services.prayer_match import (
    Demographic,
    Location,
    PrayerHistory,
    PrayerRequestRecord,
    RecentPrayer,
    UserPrayerContext,
)
from connection_feed.services.topics import categorize_request, extract_topics

__all__ = [
    "build_user_prayer_context",
    "latest_location",
    "merge_history",
    "to_prayer_record",
]


def to_prayer_record(row: PrayerRequest, prayed_at: Prayer | None = None) -> PrayerRequestRecord:
    """Convert an ORM row into a record.

    When ``prayed_at`` is given the record's ``created_at`` is the time the
    viewer prayed, which is what history recency should measure.
    """
    location = None
    if row.author_city or row.author_state or row.author_country:
        location = Location(
            city=row.author_city,
            state=row.author_state,
            country=row.author_country,
        )
    created_at = prayed_at.created_at if prayed_at is not None else row.created_at
    return PrayerRequestRecord(
        id=row.id,
        author_id=row.author_id,
        content=row.content,
        category=row.category,
        is_urgent=bool(row.is_urgent),
        prayer_count=row.prayer_count or 0,
        author_location=location,
        created_at=ensure_aware(created_at) if created_at else None,
    )


def _dedupe(values: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(values))


def _is_recent(record: PrayerRequestRecord, cutoff: datetime) -> bool:
    return record.created_at is not None and ensure_aware(record.created_at) > cutoff


def merge_history(
    own: Iterable[PrayerRequestRecord],
    prayed: Iterable[PrayerRequestRecord],
) -> list[PrayerRequestRecord]:
    """Combine written and prayed-for requests, one record per request id.

    A request the viewer both wrote and prayed for keeps its written record.
    """
    merged = {record.id: record for record in own}
    for record in prayed:
        merged.setdefault(record.id, record)
    return list(merged.values())


def latest_location(records: Iterable[PrayerRequestRecord]) -> Location | None:
    """Return the most recent author location among ``records``."""
    dated = sorted(
        (record for record in records if record.author_location is not None),
        key=lambda record: record.created_at or datetime.min.replace(tzinfo=UTC),
        reverse=True,
    )
    return dated[0].author_location if dated else None


def build_user_prayer_context(
    user_id: int,
    history: Iterable[PrayerRequestRecord],
    *,
    now: datetime | None = None,
    recent_days: int = 30,
    location: Location | None = None,
    demographic: Demographic | None = None,
    ministry_areas: Collection[str] = (),
) -> UserPrayerContext:
    """Derive a `UserPrayerContext` from the viewer's prayer history.

    Args:
        user_id: The viewer.
        history: Requests the viewer wrote or prayed for. Rows written by the
            viewer supply experienced topics (all time) and current struggles
            (within ``recent_days``); every row counts toward category stats.
        now: Reference time for recency; defaults to the current UTC time.
        recent_days: Size of the recency window in days.
        location: Viewer location; inferred from their own requests if None.
        demographic: Optional profile data for life-stage matching.
        ministry_areas: Taxonomy categories the viewer serves in.
    """
    now = now or utcnow()
    cutoff = ensure_aware(now) - timedelta(days=recent_days)
    rows = list(history)

    own = [record for record in rows if record.author_id == user_id]
    experienced = _dedupe(topic for record in own for topic in extract_topics(record.content))
    struggles = _dedupe(
        topic
        for record in own
        if _is_recent(record, cutoff)
        for topic in extract_topics(record.content)
    )

    categories: Counter[str] = Counter()
    recent: list[RecentPrayer] = []
    for record in rows:
        category = categorize_request(record)
        categories[category] += 1
        if _is_recent(record, cutoff):
            recent.append(RecentPrayer(category=category, date=ensure_aware(record.created_at)))
    recent.sort(key=lambda prayer: prayer.date, reverse=True)

    return UserPrayerContext(
        experienced_topics=tuple(experienced),
        current_struggles=tuple(struggles),
        ministry_areas=frozenset(area.strip().lower() for area in ministry_areas if area),
        location=location if location is not None else latest_location(own),
        demographic=demographic,
        prayer_history=PrayerHistory(
            categories=dict(categories),
            total_prayers=len(rows),
            recent_prayers=tuple(recent),
        ),
    )

