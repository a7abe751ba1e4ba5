"""SQLAlchemy models for prayer requests and prayer interactions."""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from connection_feed.db.session import Base
from connection_feed.db.time import utcnow


class PrayerRequest(Base):
    """A request for prayer posted by a user."""

    __tablename__ = "prayer_request"
    __table_args__ = (
        Index("ix_prayer_request_author_id", "author_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    author_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    # Free text; inferred from the content when absent.
    category: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_urgent: Mapped[bool] = mapped_column(default=False, nullable=False)
    prayer_count: Mapped[int] = mapped_column(default=0, nullable=False)

    author_city: Mapped[str | None] = mapped_column(Text, nullable=True)
    author_state: Mapped[str | None] = mapped_column(Text, nullable=True)
    author_country: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    deleted: Mapped[bool] = mapped_column(default=False, nullable=False)


class Prayer(Base):
    """Records that a user prayed for a request."""

    __tablename__ = "prayer"

    prayer_request_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("prayer_request.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
