"""Error taxonomy shared by the feed and recommendation services."""

from __future__ import annotations


class FeedError(RuntimeError):
    """Base exception raised for feed assembly failures."""


class InvalidCursorError(FeedError, ValueError):
    """Raised when a pagination cursor does not name a known post.

    This is the only feed failure surfaced to callers (HTTP 400).
    """


class SourceUnavailableError(FeedError):
    """Raised when a content source cannot serve a read.

    The feed assembler always recovers from this error by falling back.
    """


class MalformedInputError(ValueError):
    """Raised when a required input is missing at a service boundary."""
