# src/connection_feed/api/v1/endpoints/feed.py
"""Feed endpoints: the newest-first feed and the hot-ranked advice feed."""

from fastapi import APIRouter, HTTPException, Query, status

from connection_feed.api.v1.dependencies import FeedAssemblerDep, OptionalViewerDep
from connection_feed.schemas.feed import (
    FeedResponse,
    PostOut,
    RankedFeedResponse,
    RankedPostOut,
)
from connection_feed.services.errors import InvalidCursorError
from connection_feed.services.feed import FeedPage
from connection_feed.services.hot_score import HotScoreConfig, rank_with_scores

router = APIRouter(prefix="/feed", tags=["feed"])


def _assemble(
    assembler: FeedAssemblerDep,
    viewer_id: int | None,
    cursor: str | None,
    limit: str | None,
    community_id: int | None = None,
) -> FeedPage:
    try:
        return assembler.get_feed(
            viewer_id,
            cursor,
            limit,
            community_id=community_id,
        )
    except InvalidCursorError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid cursor",
        ) from exc


@router.get("", response_model=FeedResponse)
def get_feed(
    assembler: FeedAssemblerDep,
    viewer_id: OptionalViewerDep,
    limit: str | None = Query(None, description="Page size (1-50, default 25)"),
    cursor: str | None = Query(None, description="nextCursor from the previous page"),
    community_id: int | None = Query(None, description="Restrict to one community"),
) -> FeedResponse:
    """Return one newest-first page of the feed.

    Args:
        assembler: Feed assembler bound to this request
        viewer_id: Viewer from the bearer token, if any
        limit: Requested page size; unparsable values use the default
        cursor: Opaque cursor returned by the previous page
        community_id: Optional community filter

    Returns:
        The page of posts and the cursor for the next page

    Raises:
        HTTPException: If the cursor does not name a known post
    """
    page = _assemble(assembler, viewer_id, cursor, limit, community_id)
    return FeedResponse(
        items=[PostOut.model_validate(post) for post in page.items],
        next_cursor=page.next_cursor,
        has_more=page.has_more,
    )


@router.get("/advice", response_model=RankedFeedResponse)
def get_advice_feed(
    assembler: FeedAssemblerDep,
    viewer_id: OptionalViewerDep,
    limit: str | None = Query(None, description="Page size (1-50, default 25)"),
    cursor: str | None = Query(None, description="nextCursor from the previous page"),
    community_id: int | None = Query(None, description="Restrict to one community"),
) -> RankedFeedResponse:
    """Return a feed page reordered by hot score.

    Paging still follows post ids, so ``nextCursor`` is the same as for the
    plain feed; only the order within the page changes.
    """
    page = _assemble(assembler, viewer_id, cursor, limit, community_id)
    ranked = rank_with_scores(page.items, config=HotScoreConfig.from_settings())
    return RankedFeedResponse(
        items=[
            RankedPostOut.model_validate(
                {**PostOut.model_validate(item.post).model_dump(), "hot_score": item.score}
            )
            for item in ranked
        ],
        next_cursor=page.next_cursor,
        has_more=page.has_more,
    )
