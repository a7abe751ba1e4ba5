"""SQLAlchemy models for posts and viewer relationships."""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from connection_feed.db.session import Base
from connection_feed.db.time import utcnow


class Post(Base):
    """Primary feed unit produced by users.

    Posts are ordered strictly by ``id``; it is the only field used for
    pagination and cursor encoding.
    """

    __tablename__ = "post"
    __table_args__ = (
        Index("ix_post_author_id", "author_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    author_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    community_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    # Counters are maintained by the write path.
    like_count: Mapped[int] = mapped_column(default=0, nullable=False)
    reply_count: Mapped[int] = mapped_column(default=0, nullable=False)

    anonymous_nickname: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Soft delete; deleted rows are excluded from every read.
    deleted: Mapped[bool] = mapped_column(default=False, nullable=False)


class PostLike(Base):
    """Per-user like on a post."""

    __tablename__ = "post_like"

    post_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("post.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)


class PostBookmark(Base):
    """Per-user bookmark on a post."""

    __tablename__ = "post_bookmark"

    post_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("post.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
