"""
Vector Store Package

Provides the Qdrant-backed chunk store and the collection lifecycle manager.
"""

from .collection import CollectionManager
from .vector_store import VectorStore, create_qdrant_client

__all__ = [
    "CollectionManager",
    "VectorStore",
    "create_qdrant_client",
]
