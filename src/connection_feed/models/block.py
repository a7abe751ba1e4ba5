"""Block relations between users."""

from sqlalchemy import BigInteger, Index
from sqlalchemy.orm import Mapped, mapped_column

from connection_feed.db.session import Base


class UserBlock(Base):
    """A ``(blocker_id, blocked_id)`` pair; read-only for the feed."""

    __tablename__ = "user_block"
    __table_args__ = (
        Index("ix_user_block_blocker_id", "blocker_id"),
    )

    blocker_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    blocked_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
