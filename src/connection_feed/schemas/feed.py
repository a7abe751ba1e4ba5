"""Feed-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema serialising field names as camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class PostOut(CamelModel):
    """Schema for a post returned in a feed page."""

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


class FeedResponse(CamelModel):
    """A page of the feed; ``next_cursor`` is null at the end of the feed."""

    items: list[PostOut] = Field(default_factory=list)
    next_cursor: str | None = None
    has_more: bool = False


class RankedPostOut(PostOut):
    """A post with its hot score attached."""

    hot_score: float


class RankedFeedResponse(CamelModel):
    """A feed page reordered by hot score."""

    items: list[RankedPostOut] = Field(default_factory=list)
    next_cursor: str | None = None
    has_more: bool = False
