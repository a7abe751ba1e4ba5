"""Cursor-paginated, newest-first feed assembly.

`FeedAssembler` serves a page in two explicit steps:

1. the primary (relational) source, when configured, queried by descending
   id with the viewer's blocked authors excluded and ``limit + 1`` rows
   requested;
2. the snapshot source, used when the primary is unconfigured, raises,
   returns nothing for a first page, or does not know the cursor (pages the
   snapshot served hand out snapshot ids). It is bounded to a window of the
   most recent posts and filtered and sliced in process.

The blocked-author set is resolved once per request and handed to whichever
path serves it. Only an invalid cursor is surfaced to callers; every other
fault degrades to the fallback or, at worst, an empty page.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field

from connection_feed.core.settings import Settings, settings
from connection_feed.services.content_store import (
    PostRecord,
    PrimaryPostSource,
    SnapshotPostSource,
)
from connection_feed.services.errors import InvalidCursorError, SourceUnavailableError

logger = logging.getLogger(__name__)

__all__ = [
    "FeedAssembler",
    "FeedConfig",
    "FeedPage",
    "decode_cursor",
    "encode_cursor",
    "parse_limit",
]

DEFAULT_FEED_LIMIT = 25
MAX_FEED_LIMIT = 50
MAX_FALLBACK_WINDOW = 500

_CURSOR_PATTERN = re.compile(r"\d+")
_LIMIT_PATTERN = re.compile(r"\s*([+-]?\d+)")


@dataclass(frozen=True, slots=True)
class FeedConfig:
    """Per-instance feed configuration.

    Attributes:
        use_primary: Whether the relational source should be consulted at all.
        default_limit: Page size used when the caller omits or garbles ``limit``.
        max_limit: Upper clamp for the page size.
        max_fallback_window: How many recent posts the snapshot path considers.
    """

    use_primary: bool = True
    default_limit: int = DEFAULT_FEED_LIMIT
    max_limit: int = MAX_FEED_LIMIT
    max_fallback_window: int = MAX_FALLBACK_WINDOW

    @classmethod
    def from_settings(cls, source: Settings | None = None) -> FeedConfig:
        """Build a config from application settings."""
        source = source or settings
        return cls(
            use_primary=source.feed_use_primary,
            default_limit=source.feed_default_limit,
            max_limit=source.feed_max_limit,
            max_fallback_window=source.feed_max_fallback_window,
        )


@dataclass(frozen=True, slots=True)
class FeedPage:
    """One page of the feed.

    ``next_cursor`` is set if and only if the page is full; a short page
    always means the end of the feed.
    """

    items: list[PostRecord] = field(default_factory=list)
    next_cursor: str | None = None
    has_more: bool = False
    source: str = "none"


def parse_limit(raw: object, config: FeedConfig | None = None) -> int:
    """Clamp a caller-supplied page size into ``[1, max_limit]``.

    Leading digits are read the way a browser's ``parseInt`` reads them, so
    "3.7" is 3 and "12abc" is 12. Missing or unparsable values fall back to
    the default instead of failing. Sequences (repeated query parameters) use
    their first element.
    """
    config = config or FeedConfig()
    if isinstance(raw, list | tuple):
        raw = raw[0] if raw else None
    if raw is None or isinstance(raw, bool):
        return config.default_limit
    match = _LIMIT_PATTERN.match(str(raw))
    if match is None:
        return config.default_limit
    return min(config.max_limit, max(1, int(match.group(1))))


def encode_cursor(post_id: int) -> str:
    """Return the cursor for a post: its id in decimal."""
    return str(post_id)


def decode_cursor(raw: str | None) -> int | None:
    """Return the post id named by ``raw``, or None when no cursor was sent.

    Raises:
        InvalidCursorError: If the cursor is not a decimal integer.
    """
    if raw is None:
        return None
    value = raw.strip()
    if not value:
        return None
    if not _CURSOR_PATTERN.fullmatch(value):
        raise InvalidCursorError(f"Invalid cursor: {raw!r}")
    return int(value)


def _page_from(
    items: Sequence[PostRecord],
    limit: int,
    *,
    has_more: bool,
    source: str,
) -> FeedPage:
    page_items = list(items[:limit])
    next_cursor = encode_cursor(page_items[-1].id) if len(page_items) == limit else None
    return FeedPage(items=page_items, next_cursor=next_cursor, has_more=has_more, source=source)


class FeedAssembler:
    """Produces newest-first feed pages with primary/snapshot degradation.

    The assembler holds no paging state; everything a caller needs to resume
    lives in the cursor string.
    """

    def __init__(
        self,
        snapshot: SnapshotPostSource,
        primary: PrimaryPostSource | None = None,
        config: FeedConfig | None = None,
    ) -> None:
        self.snapshot = snapshot
        self.config = config or FeedConfig.from_settings()
        self.primary = primary if self.config.use_primary else None

    def get_feed(
        self,
        viewer_id: int | None = None,
        cursor: str | None = None,
        limit: object = None,
        *,
        community_id: int | None = None,
    ) -> FeedPage:
        """Return one page of the feed for ``viewer_id``.

        Args:
            viewer_id: Viewer whose block list applies; None for anonymous reads.
            cursor: Cursor from the previous page, or None for the newest posts.
            limit: Requested page size; clamped and defaulted by `parse_limit`.
            community_id: Restrict the feed to a single community.

        Raises:
            InvalidCursorError: If ``cursor`` does not name a known post.
        """
        page_size = parse_limit(limit, self.config)
        before = decode_cursor(cursor)

        blocked: frozenset[int] | None = None
        if self.primary is not None:
            try:
                blocked = self._blocked_ids(self.primary, viewer_id)
                page = self._from_primary(
                    self.primary,
                    viewer_id,
                    before,
                    page_size,
                    blocked,
                    community_id=community_id,
                )
                if page is not None:
                    return page
                logger.debug("Primary feed source returned no rows; trying snapshot")
            except SourceUnavailableError as exc:
                logger.warning("Primary feed source unavailable, falling back: %s", exc)
            except Exception as exc:
                logger.warning(
                    "Primary feed source failed, falling back: %s",
                    exc,
                    exc_info=True,
                )

        try:
            if blocked is None:
                blocked = self._blocked_ids(self.snapshot, viewer_id)
            return self._from_snapshot(
                viewer_id,
                before,
                page_size,
                blocked,
                community_id=community_id,
            )
        except InvalidCursorError:
            raise
        except Exception:
            logger.error("Snapshot feed source failed; serving an empty page", exc_info=True)
            return FeedPage()

    @staticmethod
    def _blocked_ids(
        source: PrimaryPostSource | SnapshotPostSource,
        viewer_id: int | None,
    ) -> frozenset[int]:
        if viewer_id is None:
            return frozenset()
        return frozenset(source.blocked_ids_for(viewer_id))

    def _from_primary(
        self,
        primary: PrimaryPostSource,
        viewer_id: int | None,
        before: int | None,
        limit: int,
        blocked: frozenset[int],
        *,
        community_id: int | None,
    ) -> FeedPage | None:
        if before is not None and not primary.cursor_exists(before):
            # The snapshot scan decides whether the cursor is invalid.
            logger.debug("Cursor %s unknown to primary feed source; trying snapshot", before)
            return None

        rows = primary.fetch_page(
            limit + 1,
            before=before,
            exclude_author_ids=blocked,
            community_id=community_id,
        )
        if not rows and before is None:
            return None

        page = _page_from(rows, limit, has_more=len(rows) > limit, source="primary")
        return self._annotate(primary, viewer_id, page)

    def _from_snapshot(
        self,
        viewer_id: int | None,
        before: int | None,
        limit: int,
        blocked: frozenset[int],
        *,
        community_id: int | None,
    ) -> FeedPage:
        window = self.snapshot.recent_posts(self.config.max_fallback_window)
        visible = [
            post
            for post in window
            if post.author_id not in blocked
            and (community_id is None or post.community_id == community_id)
        ]

        start = 0
        if before is not None:
            for index, post in enumerate(visible):
                if post.id == before:
                    start = index + 1
                    break
            else:
                raise InvalidCursorError(f"Invalid cursor: {before}")

        remaining = visible[start:]
        page = _page_from(remaining, limit, has_more=len(remaining) > limit, source="snapshot")
        return self._annotate(self.snapshot, viewer_id, page)

    @staticmethod
    def _annotate(
        source: PrimaryPostSource | SnapshotPostSource,
        viewer_id: int | None,
        page: FeedPage,
    ) -> FeedPage:
        if viewer_id is None or not page.items:
            return page
        liked, bookmarked = source.viewer_flags(viewer_id, [post.id for post in page.items])
        items = [
            post.with_viewer_flags(liked=post.id in liked, bookmarked=post.id in bookmarked)
            for post in page.items
        ]
        return FeedPage(
            items=items,
            next_cursor=page.next_cursor,
            has_more=page.has_more,
            source=page.source,
        )
