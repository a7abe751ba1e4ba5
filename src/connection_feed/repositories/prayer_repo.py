"""Data access helpers for prayer requests."""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from connection_feed.models import Prayer, PrayerRequest

__all__ = ["PrayerRepository"]


class PrayerRepository:
    """Thin wrapper around database access for prayer requests."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def list_active(self) -> list[PrayerRequest]:
        """Return every non-deleted prayer request, newest first."""
        result = self.session.execute(
            select(PrayerRequest)
            .where(PrayerRequest.deleted.is_(False))
            .order_by(PrayerRequest.id.desc())
        )
        return list(result.scalars())

    def list_by_author(self, author_id: int) -> list[PrayerRequest]:
        """Return the requests written by ``author_id``, newest first."""
        result = self.session.execute(
            select(PrayerRequest)
            .where(
                PrayerRequest.author_id == author_id,
                PrayerRequest.deleted.is_(False),
            )
            .order_by(PrayerRequest.created_at.desc())
        )
        return list(result.scalars())

    def list_prayed_for(self, user_id: int) -> list[tuple[PrayerRequest, Prayer]]:
        """Return the requests ``user_id`` prayed for with the prayer row, newest first."""
        result = self.session.execute(
            select(PrayerRequest, Prayer)
            .join(Prayer, Prayer.prayer_request_id == PrayerRequest.id)
            .where(Prayer.user_id == user_id)
            .order_by(Prayer.created_at.desc())
        )
        return [(request, prayer) for request, prayer in result.all()]
