"""Content sources consumed by the feed assembler.

Two interchangeable sources back the feed:

- a relational primary source (`SqlPostSource`) that can answer bounded,
  id-ordered page queries with author exclusion pushed down to the database;
- an in-process snapshot (`InMemoryContentStore`) that can only hand back a
  bounded newest-first window, leaving filtering and slicing to the caller.

Both speak in `PostRecord` values so switching paths never changes the shape
of what the assembler sees.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterable
from dataclasses import dataclass, replace
from datetime import datetime
from threading import Lock
from typing import Protocol, runtime_checkable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from connection_feed.db.time import ensure_aware
from connection_feed.models import Post
from connection_feed.repositories.block_repo import BlockRepository
from connection_feed.repositories.post_repo import PostRepository
from connection_feed.services.errors import SourceUnavailableError

logger = logging.getLogger(__name__)

__all__ = [
    "InMemoryContentStore",
    "PostRecord",
    "PrimaryPostSource",
    "SnapshotPostSource",
    "SourceUnavailableError",
    "SqlPostSource",
    "get_snapshot_store",
    "load_snapshot",
]


@dataclass(frozen=True, slots=True)
class PostRecord:
    """A post as seen by the feed, detached from any session."""

    id: int
    author_id: int
    content: str
    created_at: datetime | None = None
    like_count: int = 0
    reply_count: int = 0
    community_id: int | None = None
    anonymous_nickname: str | None = None
    is_liked: bool | None = None
    is_bookmarked: bool | None = None

    @classmethod
    def from_model(cls, post: Post) -> PostRecord:
        """Build a record from an ORM row."""
        return cls(
            id=post.id,
            author_id=post.author_id,
            content=post.content,
            created_at=ensure_aware(post.created_at) if post.created_at else None,
            like_count=post.like_count or 0,
            reply_count=post.reply_count or 0,
            community_id=post.community_id,
            anonymous_nickname=post.anonymous_nickname,
        )

    def with_viewer_flags(self, *, liked: bool, bookmarked: bool) -> PostRecord:
        """Return a copy annotated with the viewer's like/bookmark state."""
        return replace(self, is_liked=liked, is_bookmarked=bookmarked)


@runtime_checkable
class PrimaryPostSource(Protocol):
    """Ordered, bounded page queries against the relational store."""

    def blocked_ids_for(self, viewer_id: int) -> frozenset[int]:
        ...

    def cursor_exists(self, post_id: int) -> bool:
        ...

    def fetch_page(
        self,
        limit: int,
        *,
        before: int | None = None,
        exclude_author_ids: Collection[int] = (),
        community_id: int | None = None,
    ) -> list[PostRecord]:
        ...

    def viewer_flags(
        self,
        viewer_id: int,
        post_ids: Collection[int],
    ) -> tuple[set[int], set[int]]:
        ...


@runtime_checkable
class SnapshotPostSource(Protocol):
    """Bounded newest-first window over an in-process copy of the posts."""

    def blocked_ids_for(self, viewer_id: int) -> frozenset[int]:
        ...

    def recent_posts(self, window: int) -> list[PostRecord]:
        ...

    def viewer_flags(
        self,
        viewer_id: int,
        post_ids: Collection[int],
    ) -> tuple[set[int], set[int]]:
        ...


class SqlPostSource:
    """Primary source backed by SQLAlchemy repositories.

    Driver errors are wrapped in `SourceUnavailableError` so callers only need
    to handle one failure type.
    """

    def __init__(self, session: Session) -> None:
        self.posts = PostRepository(session)
        self.blocks = BlockRepository(session)

    def blocked_ids_for(self, viewer_id: int) -> frozenset[int]:
        try:
            return self.blocks.blocked_ids_for(viewer_id)
        except SQLAlchemyError as exc:
            raise SourceUnavailableError(f"block lookup failed: {exc}") from exc

    def cursor_exists(self, post_id: int) -> bool:
        try:
            return self.posts.exists(post_id)
        except SQLAlchemyError as exc:
            raise SourceUnavailableError(f"cursor lookup failed: {exc}") from exc

    def fetch_page(
        self,
        limit: int,
        *,
        before: int | None = None,
        exclude_author_ids: Collection[int] = (),
        community_id: int | None = None,
    ) -> list[PostRecord]:
        try:
            rows = self.posts.list_page(
                limit,
                before=before,
                exclude_author_ids=exclude_author_ids,
                community_id=community_id,
            )
        except SQLAlchemyError as exc:
            raise SourceUnavailableError(f"page query failed: {exc}") from exc
        return [PostRecord.from_model(row) for row in rows]

    def viewer_flags(
        self,
        viewer_id: int,
        post_ids: Collection[int],
    ) -> tuple[set[int], set[int]]:
        try:
            liked = self.posts.liked_post_ids(viewer_id, post_ids)
            bookmarked = self.posts.bookmarked_post_ids(viewer_id, post_ids)
        except SQLAlchemyError as exc:
            raise SourceUnavailableError(f"viewer flag lookup failed: {exc}") from exc
        return liked, bookmarked


class InMemoryContentStore:
    """Thread-safe in-process snapshot of posts and viewer relationships."""

    def __init__(self, posts: Iterable[PostRecord] = ()) -> None:
        self._lock = Lock()
        self._posts: dict[int, PostRecord] = {}
        self._deleted: set[int] = set()
        self._blocks: dict[int, set[int]] = {}
        self._likes: set[tuple[int, int]] = set()
        self._bookmarks: set[tuple[int, int]] = set()
        for post in posts:
            self._posts[post.id] = post

    def __len__(self) -> int:
        with self._lock:
            return len(self._posts) - len(self._deleted)

    def add_post(self, post: PostRecord) -> None:
        """Insert or replace a post."""
        with self._lock:
            self._posts[post.id] = post
            self._deleted.discard(post.id)

    def replace_snapshot(
        self,
        posts: Iterable[PostRecord],
        *,
        blocks: Iterable[tuple[int, int]] = (),
        likes: Iterable[tuple[int, int]] = (),
        bookmarks: Iterable[tuple[int, int]] = (),
    ) -> None:
        """Swap the whole snapshot, e.g. after reloading from the database.

        ``blocks`` holds ``(blocker_id, blocked_id)`` pairs; ``likes`` and
        ``bookmarks`` hold ``(user_id, post_id)`` pairs.
        """
        fresh = {post.id: post for post in posts}
        fresh_blocks: dict[int, set[int]] = {}
        for blocker_id, blocked_id in blocks:
            fresh_blocks.setdefault(blocker_id, set()).add(blocked_id)
        fresh_likes = set(likes)
        fresh_bookmarks = set(bookmarks)
        with self._lock:
            self._posts = fresh
            self._deleted = set()
            self._blocks = fresh_blocks
            self._likes = fresh_likes
            self._bookmarks = fresh_bookmarks
        logger.info(
            "Snapshot reloaded with %d posts and %d block pairs",
            len(fresh),
            sum(len(blocked) for blocked in fresh_blocks.values()),
        )

    def soft_delete(self, post_id: int) -> bool:
        """Hide a post from every read; returns False when it is unknown."""
        with self._lock:
            if post_id not in self._posts:
                return False
            self._deleted.add(post_id)
            return True

    def block(self, blocker_id: int, blocked_id: int) -> None:
        with self._lock:
            self._blocks.setdefault(blocker_id, set()).add(blocked_id)

    def unblock(self, blocker_id: int, blocked_id: int) -> None:
        with self._lock:
            self._blocks.get(blocker_id, set()).discard(blocked_id)

    def like(self, user_id: int, post_id: int) -> None:
        with self._lock:
            self._likes.add((user_id, post_id))

    def bookmark(self, user_id: int, post_id: int) -> None:
        with self._lock:
            self._bookmarks.add((user_id, post_id))

    def blocked_ids_for(self, viewer_id: int) -> frozenset[int]:
        with self._lock:
            return frozenset(self._blocks.get(viewer_id, ()))

    def recent_posts(self, window: int) -> list[PostRecord]:
        """Return at most ``window`` live posts, highest id first."""
        with self._lock:
            live = [post for post_id, post in self._posts.items() if post_id not in self._deleted]
        live.sort(key=lambda post: post.id, reverse=True)
        return live[: max(window, 0)]

    def viewer_flags(
        self,
        viewer_id: int,
        post_ids: Collection[int],
    ) -> tuple[set[int], set[int]]:
        with self._lock:
            liked = {post_id for post_id in post_ids if (viewer_id, post_id) in self._likes}
            bookmarked = {
                post_id for post_id in post_ids if (viewer_id, post_id) in self._bookmarks
            }
        return liked, bookmarked


def load_snapshot(session: Session, store: InMemoryContentStore, window: int) -> int:
    """Refill ``store`` from the database and return the number of posts loaded.

    Loads the ``window`` most recent live posts, every block pair, and the
    likes and bookmarks on the loaded posts.

    Raises:
        SQLAlchemyError: If the database cannot be read; ``store`` is left as is.
    """
    posts = PostRepository(session)
    records = [PostRecord.from_model(row) for row in posts.list_recent(window)]
    post_ids = [record.id for record in records]
    store.replace_snapshot(
        records,
        blocks=BlockRepository(session).all_pairs(),
        likes=posts.like_pairs(post_ids),
        bookmarks=posts.bookmark_pairs(post_ids),
    )
    return len(records)


_snapshot_store = InMemoryContentStore()


def get_snapshot_store() -> InMemoryContentStore:
    """Return the process-wide snapshot store."""
    return _snapshot_store
