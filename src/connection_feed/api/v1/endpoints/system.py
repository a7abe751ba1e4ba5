"""System and transparency endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from connection_feed.core.settings import settings
from connection_feed.services.topics import PRAYER_CATEGORIES

router = APIRouter(prefix="/system", tags=["system", "transparency"])


@router.get("/config")
def get_public_config() -> dict[str, object]:
    """Return a sanitized snapshot of public runtime configuration.

    Excludes secrets and connection strings; suitable for transparency UIs.
    """
    return {
        "app": {
            "name": settings.app_name,
            "version": settings.app_version,
        },
        "feed": {
            "use_primary": settings.feed_use_primary,
            **settings.feed_limits,
        },
        "hot_score": {
            "epoch": settings.hot_score_epoch.isoformat(),
            "decay_seconds": settings.hot_score_decay_seconds,
            "confidence_threshold": settings.hot_score_confidence_threshold,
        },
        "prayer": {
            "recommendation_limit": settings.prayer_recommendation_limit,
            "recent_days": settings.prayer_recent_days,
            "categories": {name: list(words) for name, words in PRAYER_CATEGORIES.items()},
        },
    }
