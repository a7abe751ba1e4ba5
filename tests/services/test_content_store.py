"""Tests for the in-process snapshot store."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy.exc import OperationalError

from connection_feed.services.content_store import (
    InMemoryContentStore,
    PostRecord,
    PrimaryPostSource,
    SnapshotPostSource,
    SqlPostSource,
    get_snapshot_store,
    load_snapshot,
)
from connection_feed.services.snapshot_sync import SnapshotRefresher


def test_recent_posts_are_newest_first_and_bounded(make_record):
    store = InMemoryContentStore(make_record(post_id) for post_id in (3, 1, 5, 2, 4))

    assert [post.id for post in store.recent_posts(3)] == [5, 4, 3]
    assert store.recent_posts(0) == []


def test_soft_delete_hides_post(make_record):
    store = InMemoryContentStore([make_record(1), make_record(2)])

    assert store.soft_delete(2) is True
    assert store.soft_delete(99) is False
    assert [post.id for post in store.recent_posts(10)] == [1]
    assert len(store) == 1


def test_re_adding_restores_deleted_post(make_record):
    store = InMemoryContentStore([make_record(1)])
    store.soft_delete(1)

    store.add_post(make_record(1))

    assert len(store) == 1


def test_replace_snapshot_resets_everything(make_record):
    store = InMemoryContentStore([make_record(1)])
    store.soft_delete(1)
    store.block(1, 2)
    store.like(1, 1)

    store.replace_snapshot(
        [make_record(7), make_record(8)],
        blocks=[(3, 4), (3, 5)],
        likes=[(3, 8)],
        bookmarks=[(3, 7)],
    )

    assert [post.id for post in store.recent_posts(10)] == [8, 7]
    assert store.blocked_ids_for(1) == frozenset()
    assert store.blocked_ids_for(3) == frozenset({4, 5})
    assert store.viewer_flags(3, [7, 8]) == ({8}, {7})
    assert store.viewer_flags(1, [1]) == (set(), set())


def test_blocks_are_directional():
    store = InMemoryContentStore()
    store.block(1, 2)

    assert store.blocked_ids_for(1) == frozenset({2})
    assert store.blocked_ids_for(2) == frozenset()

    store.unblock(1, 2)
    assert store.blocked_ids_for(1) == frozenset()


def test_viewer_flags_only_cover_requested_posts():
    store = InMemoryContentStore()
    store.like(1, 10)
    store.like(1, 11)
    store.bookmark(1, 12)

    assert store.viewer_flags(1, [10, 12]) == ({10}, {12})
    assert store.viewer_flags(2, [10, 12]) == (set(), set())


def test_concurrent_writes(make_record):
    store = InMemoryContentStore()

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(lambda post_id: store.add_post(make_record(post_id)), range(1, 201)))

    assert len(store) == 200


def test_sources_satisfy_protocols(db_session):
    assert isinstance(InMemoryContentStore(), SnapshotPostSource)
    assert isinstance(SqlPostSource(db_session), PrimaryPostSource)


def test_record_from_model(create_post):
    row = create_post(author_id=3, content="hi", like_count=2, reply_count=1, community_id=4)

    record = PostRecord.from_model(row)

    assert record.id == row.id
    assert record.created_at is not None and record.created_at.tzinfo is not None
    assert (record.like_count, record.reply_count, record.community_id) == (2, 1, 4)
    assert record.is_liked is None


def test_shared_store_is_a_singleton():
    assert get_snapshot_store() is get_snapshot_store()


def test_load_snapshot_reads_recent_posts_and_relations(
    db_session,
    create_post,
    block_user,
    like_post,
):
    posts = [create_post(author_id=2) for _ in range(4)]
    create_post(deleted=True)
    block_user(1, 2)
    like_post(1, posts[-1].id)
    store = InMemoryContentStore()

    loaded = load_snapshot(db_session, store, window=3)

    assert loaded == 3
    assert [post.id for post in store.recent_posts(10)] == [post.id for post in reversed(posts[1:])]
    assert store.blocked_ids_for(1) == frozenset({2})
    assert store.viewer_flags(1, [posts[-1].id]) == ({posts[-1].id}, set())


def test_refresher_reloads_store(db_session, create_post):
    create_post()
    store = InMemoryContentStore()
    refresher = SnapshotRefresher(store, lambda: db_session, window=10, interval_seconds=0)

    assert refresher.refresh_once() == 1
    assert len(store) == 1


def test_failed_refresh_keeps_previous_snapshot(mocker, make_record):
    session = mocker.MagicMock()
    session.__enter__.return_value = session
    session.execute.side_effect = OperationalError("SELECT 1", {}, Exception("gone"))
    store = InMemoryContentStore([make_record(1)])
    refresher = SnapshotRefresher(store, lambda: session, window=10, interval_seconds=0)

    with pytest.raises(OperationalError):
        refresher.refresh_once()

    assert [post.id for post in store.recent_posts(10)] == [1]
