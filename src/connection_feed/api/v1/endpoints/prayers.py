# src/connection_feed/api/v1/endpoints/prayers.py
"""Prayer recommendation endpoints."""

import logging

from fastapi import APIRouter, Query

from connection_feed.api.v1.dependencies import CurrentViewerDep, SessionDep
from connection_feed.core.settings import settings
from connection_feed.repositories.prayer_repo import PrayerRepository
from connection_feed.schemas.prayer import (
    LocationOut,
    MatchResultOut,
    PrayerRequestOut,
    RecommendationsResponse,
)
from connection_feed.services.prayer_context import (
    build_user_prayer_context,
    merge_history,
    to_prayer_record,
)
from connection_feed.services.prayer_match import Demographic, MatchResult, recommend

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/prayers", tags=["prayers"])


def _to_out(match: MatchResult) -> MatchResultOut:
    request = match.prayer_request
    location = request.author_location
    return MatchResultOut(
        prayer_request=PrayerRequestOut(
            id=request.id,
            author_id=request.author_id,
            content=request.content,
            category=request.category,
            is_urgent=request.is_urgent,
            prayer_count=request.prayer_count,
            author_location=(
                LocationOut(city=location.city, state=location.state, country=location.country)
                if location is not None
                else None
            ),
        ),
        match_score=match.match_score,
        reasons=list(match.reasons),
        priority=match.priority.value,
    )


@router.get("/recommendations", response_model=RecommendationsResponse)
def get_recommendations(
    db: SessionDep,
    viewer_id: CurrentViewerDep,
    limit: int = Query(
        settings.prayer_recommendation_limit,
        ge=1,
        le=50,
        description="Maximum number of recommendations",
    ),
    life_stage: str | None = Query(None, description="Viewer life stage, e.g. 'parent'"),
    ministry_areas: list[str] | None = Query(
        None,
        description="Prayer categories the viewer serves in",
    ),
) -> RecommendationsResponse:
    """Recommend prayer requests for the authenticated viewer.

    Requests the viewer wrote or already prayed for are left out of the pool.
    """
    repo = PrayerRepository(db)
    own = [to_prayer_record(row) for row in repo.list_by_author(viewer_id)]
    prayed = [to_prayer_record(row, prayer) for row, prayer in repo.list_prayed_for(viewer_id)]

    context = build_user_prayer_context(
        viewer_id,
        merge_history(own, prayed),
        recent_days=settings.prayer_recent_days,
        demographic=Demographic(life_stage=life_stage) if life_stage else None,
        ministry_areas=ministry_areas or (),
    )

    excluded = {record.id for record in own} | {record.id for record in prayed}
    pool = [to_prayer_record(row) for row in repo.list_active()]
    matches = recommend(context, pool, limit, exclude_ids=excluded)
    logger.debug("Recommended %d prayer requests for viewer %s", len(matches), viewer_id)
    return RecommendationsResponse(items=[_to_out(match) for match in matches])
