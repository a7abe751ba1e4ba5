# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from datetime import UTC, datetime, timedelta

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Keep app startup off the default file database and its background reload loop.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("FEED_SNAPSHOT_REFRESH_SECONDS", "0")

from connection_feed.api.v1.dependencies import get_snapshot_dep
from connection_feed.core.security import create_access_token
from connection_feed.core.settings import Settings
from connection_feed.db.session import Base
from connection_feed.db.session import get_db as app_get_session
from connection_feed.main import app as fastapi_app
from connection_feed.models import Post, PostLike, Prayer, PrayerRequest, UserBlock
from connection_feed.services.content_store import InMemoryContentStore, PostRecord

TEST_DB_URL = "sqlite://"

BASE_TIME = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    connection = engine.connect()
    transaction = connection.begin()
    SessionLocal = sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        if transaction.is_active:
            transaction.rollback()
        connection.close()

        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def snapshot_store() -> InMemoryContentStore:
    """Return an empty snapshot store private to the test."""
    return InMemoryContentStore()


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI,
    db_session: Session,
    snapshot_store: InMemoryContentStore,
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_snapshot_dep] = lambda: snapshot_store
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)
        app.dependency_overrides.pop(get_snapshot_dep, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Provide a Settings instance aligned with runtime configuration."""
    return Settings()


@pytest.fixture()
def auth_headers() -> Callable[[int], dict[str, str]]:
    """Return a helper building bearer headers for a user id."""

    def _headers(user_id: int) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user_id)}"}

    return _headers


@pytest.fixture()
def make_record() -> Callable[..., PostRecord]:
    """Return a helper building snapshot posts whose timestamp follows their id."""

    def _make(
        post_id: int,
        author_id: int = 1,
        *,
        community_id: int | None = None,
        like_count: int = 0,
        reply_count: int = 0,
        created_at: datetime | None = None,
    ) -> PostRecord:
        return PostRecord(
            id=post_id,
            author_id=author_id,
            content=f"post {post_id}",
            created_at=created_at or BASE_TIME + timedelta(minutes=post_id),
            like_count=like_count,
            reply_count=reply_count,
            community_id=community_id,
        )

    return _make


@pytest.fixture()
def create_post(db_session: Session) -> Callable[..., Post]:
    """Return a helper persisting a post row."""

    def _create(
        author_id: int = 1,
        content: str = "Test post content",
        *,
        community_id: int | None = None,
        like_count: int = 0,
        reply_count: int = 0,
        created_at: datetime | None = None,
        deleted: bool = False,
    ) -> Post:
        post = Post(
            author_id=author_id,
            content=content,
            community_id=community_id,
            like_count=like_count,
            reply_count=reply_count,
            created_at=created_at or BASE_TIME,
            deleted=deleted,
        )
        db_session.add(post)
        db_session.flush()
        db_session.refresh(post)
        return post

    return _create


@pytest.fixture()
def block_user(db_session: Session) -> Callable[[int, int], UserBlock]:
    def _block(blocker_id: int, blocked_id: int) -> UserBlock:
        block = UserBlock(blocker_id=blocker_id, blocked_id=blocked_id)
        db_session.add(block)
        db_session.flush()
        return block

    return _block


@pytest.fixture()
def like_post(db_session: Session) -> Callable[[int, int], PostLike]:
    def _like(user_id: int, post_id: int) -> PostLike:
        like = PostLike(user_id=user_id, post_id=post_id)
        db_session.add(like)
        db_session.flush()
        return like

    return _like


@pytest.fixture()
def create_prayer_request(db_session: Session) -> Callable[..., PrayerRequest]:
    """Return a helper persisting a prayer request row."""

    def _create(
        author_id: int,
        content: str,
        *,
        category: str | None = None,
        is_urgent: bool = False,
        prayer_count: int = 0,
        city: str | None = None,
        state: str | None = None,
        country: str | None = None,
        created_at: datetime | None = None,
        deleted: bool = False,
    ) -> PrayerRequest:
        request = PrayerRequest(
            author_id=author_id,
            content=content,
            category=category,
            is_urgent=is_urgent,
            prayer_count=prayer_count,
            author_city=city,
            author_state=state,
            author_country=country,
            created_at=created_at or datetime.now(UTC),
            deleted=deleted,
        )
        db_session.add(request)
        db_session.flush()
        db_session.refresh(request)
        return request

    return _create


@pytest.fixture()
def pray_for(db_session: Session) -> Callable[..., Prayer]:
    def _pray(user_id: int, request: PrayerRequest, created_at: datetime | None = None) -> Prayer:
        prayer = Prayer(
            user_id=user_id,
            prayer_request_id=request.id,
            created_at=created_at or datetime.now(UTC),
        )
        db_session.add(prayer)
        db_session.flush()
        return prayer

    return _pray
