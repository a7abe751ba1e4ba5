"""HTTP API for the feed service."""
