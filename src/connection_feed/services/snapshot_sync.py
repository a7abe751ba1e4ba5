"""Background refresh of the in-process feed snapshot.

The snapshot is what the feed serves while the database is unreachable, so it
is loaded once at startup and then reloaded on a fixed interval. A failed
reload keeps the previous snapshot.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from connection_feed.core.settings import settings
from connection_feed.services.content_store import InMemoryContentStore, load_snapshot

logger = logging.getLogger(__name__)


class SnapshotRefresher:
    """Periodically reloads an `InMemoryContentStore` from the database."""

    def __init__(
        self,
        store: InMemoryContentStore,
        session_factory: Callable[[], Session],
        *,
        window: int | None = None,
        interval_seconds: float | None = None,
    ) -> None:
        """Initialize the refresher.

        Args:
            store: Snapshot store to refill.
            session_factory: Callable returning a new database session.
            window: Number of recent posts to keep; defaults to the fallback window.
            interval_seconds: Delay between reloads; 0 disables the background loop.
        """
        self.store = store
        self.session_factory = session_factory
        self.window = window if window is not None else settings.feed_max_fallback_window
        self.interval_seconds = (
            interval_seconds
            if interval_seconds is not None
            else settings.feed_snapshot_refresh_seconds
        )
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()

    def refresh_once(self) -> int:
        """Reload the snapshot now and return the number of posts loaded.

        Raises:
            SQLAlchemyError: If the database cannot be read.
        """
        with self.session_factory() as session:
            return load_snapshot(session, self.store, self.window)

    async def start(self) -> None:
        """Start the background reload loop, unless it is disabled."""
        if self.interval_seconds <= 0:
            return

        if self._task is None or self._task.done():
            self._stopping.clear()
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the background reload loop."""
        if self._task is None:
            return

        self._stopping.set()
        await self._task
        self._task = None

    async def _run(self) -> None:
        while not self._stopping.is_set():
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.interval_seconds)
            except TimeoutError:
                pass
            else:
                return

            try:
                await asyncio.to_thread(self.refresh_once)
            except SQLAlchemyError as exc:
                logger.warning("Snapshot refresh failed; keeping previous snapshot: %s", exc)
