"""Core configuration for the feed service."""
