"""Data access helpers for block relations."""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from connection_feed.models import UserBlock

__all__ = ["BlockRepository"]


class BlockRepository:
    """Read-only access to the ``user_block`` table."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def blocked_ids_for(self, blocker_id: int) -> frozenset[int]:
        """Return every user id blocked by ``blocker_id``."""
        result = self.session.execute(
            select(UserBlock.blocked_id).where(UserBlock.blocker_id == blocker_id)
        )
        return frozenset(result.scalars())

    def all_pairs(self) -> list[tuple[int, int]]:
        """Return every ``(blocker_id, blocked_id)`` pair."""
        result = self.session.execute(select(UserBlock.blocker_id, UserBlock.blocked_id))
        return [(blocker_id, blocked_id) for blocker_id, blocked_id in result.all()]
