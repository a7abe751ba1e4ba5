"""Feed assembly and relevance ranking for The Connection community app."""

__version__ = "0.1.0"
