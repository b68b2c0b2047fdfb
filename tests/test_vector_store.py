from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import pytest
from qdrant_client import models

from ragdocs_mcp_server.core.errors import StoreAuthError, StoreConnectivityError
from ragdocs_mcp_server.embeddings.models import DocumentChunk
from ragdocs_mcp_server.store.vector_store import VectorStore


class StatusError(Exception):
    def __init__(self, status_code, message=""):
        super().__init__(message)
        self.status_code = status_code


CHUNK_PAYLOAD = {
    "_type": "DocumentChunk",
    "text": "Run the installer.",
    "url": "https://a.com/docs/install",
    "title": "Install",
    "timestamp": "2024-01-01T00:00:00+00:00",
}


@pytest.fixture
def client():
    return AsyncMock()


@pytest.fixture
def store(client):
    return VectorStore(client, "documentation", "http://qdrant.test:6333")


def url_filter_values(query_filter):
    [condition] = query_filter.must
    assert condition.key == "url"
    assert isinstance(condition.match, models.MatchAny)
    return condition.match.any


# ---------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------

@pytest.mark.asyncio
async def test_search_returns_only_document_chunks(store, client):
    client.query_points.return_value = SimpleNamespace(
        points=[
            SimpleNamespace(payload=CHUNK_PAYLOAD, score=0.9),
            SimpleNamespace(payload={"text": "foreign", "url": "x", "title": "y"}, score=0.8),
            SimpleNamespace(payload={**CHUNK_PAYLOAD, "_type": "Summary"}, score=0.7),
            SimpleNamespace(payload=None, score=0.6),
        ]
    )

    hits = await store.search([0.1, 0.2], limit=4, score_threshold=0.5)

    assert len(hits) == 1
    chunk, score = hits[0]
    assert isinstance(chunk, DocumentChunk)
    assert chunk.title == "Install"
    assert score == 0.9

    kwargs = client.query_points.await_args.kwargs
    assert kwargs["collection_name"] == "documentation"
    assert kwargs["query"] == [0.1, 0.2]
    assert kwargs["limit"] == 4
    assert kwargs["score_threshold"] == 0.5
    assert kwargs["with_payload"] is True


@pytest.mark.asyncio
async def test_search_failure_is_typed(store, client):
    client.query_points.side_effect = httpx.ConnectError("Connection refused")

    with pytest.raises(StoreConnectivityError, match="qdrant.test:6333"):
        await store.search([0.1, 0.2])


# ---------------------------------------------------------------------
# Count and delete
# ---------------------------------------------------------------------

@pytest.mark.asyncio
async def test_count_filters_on_url(store, client):
    client.count.return_value = SimpleNamespace(count=7)
    urls = ["https://a.com/docs/a", "notes.md"]

    assert await store.count_by_urls(urls) == 7

    kwargs = client.count.await_args.kwargs
    assert url_filter_values(kwargs["count_filter"]) == urls
    assert kwargs["exact"] is True


@pytest.mark.asyncio
async def test_delete_filters_on_url_and_waits(store, client):
    urls = ["https://a.com/docs/a", "https://a.com/docs/b"]

    await store.delete_by_urls(urls)

    kwargs = client.delete.await_args.kwargs
    assert kwargs["collection_name"] == "documentation"
    assert kwargs["wait"] is True
    selector = kwargs["points_selector"]
    assert isinstance(selector, models.FilterSelector)
    assert url_filter_values(selector.filter) == urls


@pytest.mark.asyncio
async def test_delete_failure_is_typed(store, client):
    client.delete.side_effect = StatusError(403, "Forbidden")

    with pytest.raises(StoreAuthError):
        await store.delete_by_urls(["https://a.com/docs/a"])


# ---------------------------------------------------------------------
# Upsert
# ---------------------------------------------------------------------

@pytest.mark.asyncio
async def test_upsert_rejects_mismatched_vectors(store, client):
    chunk = DocumentChunk.from_payload(CHUNK_PAYLOAD)

    with pytest.raises(ValueError):
        await store.upsert_chunks([chunk], [])

    client.upsert.assert_not_awaited()
