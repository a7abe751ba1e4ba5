"""Prayer recommendation schemas."""

from pydantic import Field

from connection_feed.schemas.feed import CamelModel


class LocationOut(CamelModel):
    city: str | None = None
    state: str | None = None
    country: str | None = None


class PrayerRequestOut(CamelModel):
    """Schema for a prayer request inside a recommendation."""

    id: int
    author_id: int
    content: str
    category: str | None = None
    is_urgent: bool = False
    prayer_count: int = 0
    author_location: LocationOut | None = None


class MatchResultOut(CamelModel):
    """One recommended prayer request with its score and reasons."""

    prayer_request: PrayerRequestOut
    match_score: int = Field(..., ge=0, le=100)
    reasons: list[str]
    priority: str


class RecommendationsResponse(CamelModel):
    items: list[MatchResultOut] = Field(default_factory=list)
