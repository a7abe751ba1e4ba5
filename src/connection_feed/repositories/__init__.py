"""Data access helpers for the feed core."""
