"""Semantic documentation indexing and retrieval server."""

__version__ = "1.0.0"
