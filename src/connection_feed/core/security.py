"""Bearer token helpers for identifying the viewer.

Tokens are issued by the authentication service; this module only needs to
read the viewer id back out of them (and mint tokens for local tooling).
"""
from __future__ import annotations

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from connection_feed.core.settings import settings


def create_access_token(user_id: int, expires_minutes: int = 60) -> str:
    """Create a JWT whose subject is the decimal user id."""
    expire = datetime.now(UTC) + timedelta(minutes=expires_minutes)
    encoded_jwt: str = jwt.encode(
        {"sub": str(user_id), "exp": expire},
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt


def decode_viewer_id(token: str) -> int:
    """Return the user id carried by ``token``.

    Raises:
        ValueError: If the token is invalid, expired, or has a non-numeric subject.
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as err:
        raise ValueError("Could not validate credentials") from err
    subject = payload.get("sub")
    if subject is None or not str(subject).isdigit():
        raise ValueError("Token subject is not a user id")
    return int(subject)
