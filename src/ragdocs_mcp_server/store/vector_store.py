"""
Vector Store

Qdrant-backed storage and similarity search for document chunks. All points
live in one collection; each point carries a ``DocumentChunk`` payload.

Every raw client failure is converted into the typed store errors of
``core.errors`` before it leaves this module.
"""

from __future__ import annotations

import uuid
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence, Tuple

from qdrant_client import AsyncQdrantClient, models

from ..config import Settings
from ..embeddings.models import DocumentChunk
from .errors import to_store_error


def create_qdrant_client(settings: Settings) -> AsyncQdrantClient:
    api_key = settings.qdrant_api_key.get_secret_value() if settings.qdrant_api_key else None
    return AsyncQdrantClient(
        url=settings.qdrant_url,
        api_key=api_key,
        timeout=int(settings.http_timeout),
    )


def _url_filter(urls: Sequence[str]) -> models.Filter:
    return models.Filter(
        must=[
            models.FieldCondition(
                key="url",
                match=models.MatchAny(any=list(urls)),
            )
        ]
    )


class VectorStore:
    """
    Thin typed wrapper around ``AsyncQdrantClient`` for one collection.
    """

    def __init__(
        self,
        client: AsyncQdrantClient,
        collection_name: str,
        endpoint: str,
    ) -> None:
        """
        Parameters
        ----------
        client : AsyncQdrantClient
            Shared client instance.
        collection_name : str
            Collection holding every chunk point.
        endpoint : str
            Store URL, quoted in connectivity error messages.
        """
        self._client = client
        self.collection_name = collection_name
        self.endpoint = endpoint

    async def upsert_chunks(
        self,
        chunks: Sequence[DocumentChunk],
        vectors: Sequence[List[float]],
    ) -> List[str]:
        """
        Store chunks as new points and wait until the write is durable.

        Point identifiers are random, so re-adding a source adds points next
        to any earlier ones instead of replacing them.

        Returns
        -------
        List[str]
            Identifiers of the written points.
        """
        if len(chunks) != len(vectors):
            raise ValueError("Chunk count does not match vector count.")
        if not chunks:
            return []

        points = [
            models.PointStruct(
                id=str(uuid.uuid4()),
                vector=list(vector),
                payload=chunk.to_payload(),
            )
            for chunk, vector in zip(chunks, vectors)
        ]

        try:
            await self._client.upsert(
                collection_name=self.collection_name,
                points=points,
                wait=True,
            )
        except Exception as exc:
            raise to_store_error(exc, "upsert", self.endpoint) from exc

        return [str(p.id) for p in points]

    async def search(
        self,
        vector: List[float],
        limit: int = 5,
        score_threshold: Optional[float] = None,
    ) -> List[Tuple[DocumentChunk, float]]:
        """
        Nearest-neighbour search, returning ranked (chunk, score) pairs.

        Points whose payload is not a ``DocumentChunk`` are skipped.
        """
        try:
            response = await self._client.query_points(
                collection_name=self.collection_name,
                query=vector,
                limit=limit,
                with_payload=True,
                score_threshold=score_threshold,
            )
        except Exception as exc:
            raise to_store_error(exc, "search", self.endpoint) from exc

        results: List[Tuple[DocumentChunk, float]] = []
        for point in response.points:
            chunk = DocumentChunk.from_payload(point.payload)
            if chunk is None:
                continue
            results.append((chunk, float(point.score)))
        return results

    async def scroll_payloads(self, page_size: int = 100) -> AsyncIterator[Dict[str, Any]]:
        """
        Yield every point payload, reading the collection page by page.

        Follows the store's continuation cursor and stops on a short page or
        when no cursor is returned.
        """
        offset = None
        while True:
            try:
                points, next_offset = await self._client.scroll(
                    collection_name=self.collection_name,
                    limit=page_size,
                    offset=offset,
                    with_payload=True,
                    with_vectors=False,
                )
            except Exception as exc:
                raise to_store_error(exc, "scroll", self.endpoint) from exc

            for point in points:
                yield point.payload or {}

            if len(points) < page_size or next_offset is None:
                break
            offset = next_offset

    async def count_by_urls(self, urls: Sequence[str]) -> int:
        try:
            result = await self._client.count(
                collection_name=self.collection_name,
                count_filter=_url_filter(urls),
                exact=True,
            )
        except Exception as exc:
            raise to_store_error(exc, "count", self.endpoint) from exc
        return result.count

    async def delete_by_urls(self, urls: Sequence[str]) -> None:
        """Remove every point whose payload `url` equals one of ``urls``."""
        try:
            await self._client.delete(
                collection_name=self.collection_name,
                points_selector=models.FilterSelector(filter=_url_filter(urls)),
                wait=True,
            )
        except Exception as exc:
            raise to_store_error(exc, "delete", self.endpoint) from exc

    async def close(self) -> None:
        await self._client.close()
