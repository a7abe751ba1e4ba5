"""Shared API dependencies for viewer identity and feed wiring."""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from connection_feed.core.security import decode_viewer_id
from connection_feed.db.session import get_db
from connection_feed.services.content_store import (
    InMemoryContentStore,
    SqlPostSource,
    get_snapshot_store,
)
from connection_feed.services.feed import FeedAssembler, FeedConfig

logger = logging.getLogger(__name__)

# Anonymous reads are allowed, so a missing header is not an error here.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]
CredentialsDep = Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)]


def get_optional_viewer_id(credentials: CredentialsDep) -> int | None:
    """Return the viewer id from a bearer token, or None for anonymous reads.

    An unreadable token is treated as anonymous; the feed never fails on
    identity alone.
    """
    if credentials is None:
        return None
    try:
        return decode_viewer_id(credentials.credentials)
    except ValueError as exc:
        logger.debug("Ignoring unreadable bearer token: %s", exc)
        return None


def get_current_viewer_id(credentials: CredentialsDep) -> int:
    """Return the viewer id from a bearer token.

    Raises:
        HTTPException: If the token is missing or invalid
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    try:
        return decode_viewer_id(credentials.credentials)
    except ValueError as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        ) from err


def get_feed_config() -> FeedConfig:
    """Return the feed configuration for this process."""
    return FeedConfig.from_settings()


def get_snapshot_dep() -> InMemoryContentStore:
    """Return the shared in-process snapshot store."""
    return get_snapshot_store()


def get_feed_assembler(
    db: SessionDep,
    config: Annotated[FeedConfig, Depends(get_feed_config)],
    snapshot: Annotated[InMemoryContentStore, Depends(get_snapshot_dep)],
) -> FeedAssembler:
    """Build a feed assembler bound to this request's session."""
    primary = SqlPostSource(db) if config.use_primary else None
    return FeedAssembler(snapshot=snapshot, primary=primary, config=config)


# Type aliases for endpoint signatures
OptionalViewerDep = Annotated[int | None, Depends(get_optional_viewer_id)]
CurrentViewerDep = Annotated[int, Depends(get_current_viewer_id)]
FeedAssemblerDep = Annotated[FeedAssembler, Depends(get_feed_assembler)]
