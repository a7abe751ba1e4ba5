"""Data access helpers for working with posts."""
from __future__ import annotations

from collections.abc import Collection

from sqlalchemy import select
from sqlalchemy.orm import Session

from connection_feed.models import Post, PostBookmark, PostLike

__all__ = ["PostRepository"]


class PostRepository:
    """Thin wrapper around database access for post entities."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def exists(self, post_id: int) -> bool:
        """Return True if a post row with this id exists, soft-deleted or not.

        A cursor stays valid after its post is deleted; `list_page` still
        filters deleted rows out of the page itself.
        """
        result = self.session.execute(select(Post.id).where(Post.id == post_id).limit(1))
        return result.first() is not None

    def list_page(
        self,
        limit: int,
        *,
        before: int | None = None,
        exclude_author_ids: Collection[int] = (),
        community_id: int | None = None,
    ) -> list[Post]:
        """Return up to ``limit`` posts sorted by descending id.

        Args:
            limit: Maximum number of rows to return.
            before: Only return posts whose id is strictly lower.
            exclude_author_ids: Authors whose posts must not be returned.
            community_id: Restrict to a single community when given.
        """
        stmt = select(Post).where(Post.deleted.is_(False))
        if before is not None:
            stmt = stmt.where(Post.id < before)
        if exclude_author_ids:
            stmt = stmt.where(Post.author_id.not_in(list(exclude_author_ids)))
        if community_id is not None:
            stmt = stmt.where(Post.community_id == community_id)
        stmt = stmt.order_by(Post.id.desc()).limit(limit)
        return list(self.session.execute(stmt).scalars())

    def list_recent(self, limit: int) -> list[Post]:
        """Return the most recent posts, newest first."""
        return self.list_page(limit)

    def liked_post_ids(self, user_id: int, post_ids: Collection[int]) -> set[int]:
        """Return the subset of ``post_ids`` liked by ``user_id``."""
        if not post_ids:
            return set()
        result = self.session.execute(
            select(PostLike.post_id).where(
                PostLike.user_id == user_id,
                PostLike.post_id.in_(list(post_ids)),
            )
        )
        return set(result.scalars())

    def bookmarked_post_ids(self, user_id: int, post_ids: Collection[int]) -> set[int]:
        """Return the subset of ``post_ids`` bookmarked by ``user_id``."""
        if not post_ids:
            return set()
        result = self.session.execute(
            select(PostBookmark.post_id).where(
                PostBookmark.user_id == user_id,
                PostBookmark.post_id.in_(list(post_ids)),
            )
        )
        return set(result.scalars())

    def like_pairs(self, post_ids: Collection[int]) -> set[tuple[int, int]]:
        """Return every ``(user_id, post_id)`` like on ``post_ids``."""
        if not post_ids:
            return set()
        result = self.session.execute(
            select(PostLike.user_id, PostLike.post_id).where(PostLike.post_id.in_(list(post_ids)))
        )
        return {(user_id, post_id) for user_id, post_id in result.all()}

    def bookmark_pairs(self, post_ids: Collection[int]) -> set[tuple[int, int]]:
        """Return every ``(user_id, post_id)`` bookmark on ``post_ids``."""
        if not post_ids:
            return set()
        result = self.session.execute(
            select(PostBookmark.user_id, PostBookmark.post_id).where(
                PostBookmark.post_id.in_(list(post_ids))
            )
        )
        return {(user_id, post_id) for user_id, post_id in result.all()}
