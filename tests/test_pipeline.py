"""
Ingestion Pipeline Tests

The vector store runs on a mocked qdrant client and the embedding provider is
an in-process fake, so these tests cover the pipeline's own behavior:
source resolution, chunking, batching, payload shape and failure handling.
"""

from pathlib import Path
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from ragdocs_mcp_server.config import Settings
from ragdocs_mcp_server.core.errors import (
    EmbeddingBackendError,
    IngestionError,
    LocalFileNotFoundError,
    PathTraversalError,
    StoreConnectivityError,
)
from ragdocs_mcp_server.embeddings.embedder import EmbeddingProvider
from ragdocs_mcp_server.fetch.renderer import PageRenderer
from ragdocs_mcp_server.ingest.pipeline import IngestionPipeline, is_url_source
from ragdocs_mcp_server.store.vector_store import VectorStore


class FakeProvider(EmbeddingProvider):
    name = "fake"
    default_model = "fake-embed"
    known_models = (("fake-embed", 4),)
    fallback_dimension = 4

    def __init__(self, fail_on=()):
        super().__init__()
        self.fail_on = set(fail_on)
        self.calls = []

    async def _request_embedding(self, text):
        self.calls.append(text)
        if text in self.fail_on:
            raise EmbeddingBackendError("fake backend unavailable")
        return [0.1, 0.2, 0.3, 0.4]


def make_pipeline(tmp_path, provider=None, renderer=None, transport=None, **overrides):
    settings = Settings(_env_file=None, workspace_root=tmp_path, **overrides)
    client = AsyncMock()
    store = VectorStore(client, settings.collection_name, settings.qdrant_url)
    renderer = renderer or AsyncMock(spec=PageRenderer)
    pipeline = IngestionPipeline(
        provider or FakeProvider(),
        store,
        renderer,
        settings,
        transport=transport,
    )
    return pipeline, client


def upserted_points(client):
    return [p for call in client.upsert.await_args_list for p in call.kwargs["points"]]


# ---------------------------------------------------------------------
# Local files
# ---------------------------------------------------------------------

@pytest.mark.asyncio
async def test_local_file_of_2500_chars_yields_three_points(tmp_path):
    (tmp_path / "guide.txt").write_text("abcd " * 500, encoding="utf-8")
    pipeline, client = make_pipeline(tmp_path)

    result = await pipeline.ingest("guide.txt")

    assert result.chunks_indexed == 3
    assert result.batches == 1

    points = upserted_points(client)
    assert len(points) == 3
    assert len({p.id for p in points}) == 3
    assert {p.payload["url"] for p in points} == {"guide.txt"}
    assert {p.payload["title"] for p in points} == {"guide.txt"}
    assert {p.payload["_type"] for p in points} == {"DocumentChunk"}
    assert len({p.payload["timestamp"] for p in points}) == 1
    assert client.upsert.await_args.kwargs["wait"] is True


@pytest.mark.asyncio
async def test_reingesting_adds_new_points(tmp_path):
    (tmp_path / "notes.txt").write_text("some short notes", encoding="utf-8")
    pipeline, client = make_pipeline(tmp_path)

    await pipeline.ingest("notes.txt")
    await pipeline.ingest("notes.txt")

    points = upserted_points(client)
    assert len(points) == 2
    assert points[0].id != points[1].id


@pytest.mark.asyncio
async def test_path_traversal_is_rejected_before_reading(tmp_path):
    workspace = tmp_path / "srv" / "app"
    workspace.mkdir(parents=True)
    provider = FakeProvider()
    pipeline, client = make_pipeline(workspace, provider=provider)

    with patch(
        "ragdocs_mcp_server.ingest.pipeline.read_local_text",
        new_callable=AsyncMock,
    ) as mock_read:
        with pytest.raises(PathTraversalError):
            await pipeline.ingest("../../etc/passwd")

    mock_read.assert_not_awaited()
    assert provider.calls == []
    client.upsert.assert_not_awaited()


@pytest.mark.asyncio
async def test_absolute_path_outside_workspace_is_rejected(tmp_path):
    pipeline, _ = make_pipeline(tmp_path / "ws")

    with pytest.raises(PathTraversalError):
        await pipeline.ingest(str(Path("/etc/hostname")))


@pytest.mark.asyncio
async def test_missing_local_file(tmp_path):
    pipeline, _ = make_pipeline(tmp_path)

    with pytest.raises(LocalFileNotFoundError):
        await pipeline.ingest("docs/missing.txt")


@pytest.mark.asyncio
async def test_empty_file_indexes_nothing(tmp_path):
    (tmp_path / "empty.txt").write_text("   \n", encoding="utf-8")
    pipeline, client = make_pipeline(tmp_path)

    result = await pipeline.ingest("empty.txt")

    assert result.chunks_indexed == 0
    assert result.batches == 0
    client.upsert.assert_not_awaited()


# ---------------------------------------------------------------------
# Batching
# ---------------------------------------------------------------------

FIVE_WORDS = " ".join(c * 10 for c in "abcde")


@pytest.mark.asyncio
async def test_chunks_are_upserted_in_batches(tmp_path):
    (tmp_path / "words.txt").write_text(FIVE_WORDS, encoding="utf-8")
    pipeline, client = make_pipeline(tmp_path, chunk_size=10, upsert_batch_size=2)

    result = await pipeline.ingest("words.txt")

    assert result.chunks_indexed == 5
    assert result.batches == 3
    assert [len(c.kwargs["points"]) for c in client.upsert.await_args_list] == [2, 2, 1]
    assert [p.payload["text"] for p in upserted_points(client)] == FIVE_WORDS.split()


@pytest.mark.asyncio
async def test_failed_batch_is_skipped(tmp_path):
    (tmp_path / "words.txt").write_text(FIVE_WORDS, encoding="utf-8")
    provider = FakeProvider(fail_on={"c" * 10})
    pipeline, client = make_pipeline(
        tmp_path, provider=provider, chunk_size=10, upsert_batch_size=2
    )

    result = await pipeline.ingest("words.txt")

    assert result.chunks_indexed == 3
    assert result.failed_batches == 1
    assert "fake backend unavailable" in result.last_error
    assert client.upsert.await_count == 2


@pytest.mark.asyncio
async def test_all_batches_failing_raises_typed_error(tmp_path):
    (tmp_path / "one.txt").write_text("only chunk", encoding="utf-8")
    provider = FakeProvider(fail_on={"only chunk"})
    pipeline, _ = make_pipeline(tmp_path, provider=provider)

    with pytest.raises(EmbeddingBackendError):
        await pipeline.ingest("one.txt")


@pytest.mark.asyncio
async def test_store_outage_stops_ingestion(tmp_path):
    (tmp_path / "words.txt").write_text(FIVE_WORDS, encoding="utf-8")
    pipeline, client = make_pipeline(tmp_path, chunk_size=10, upsert_batch_size=2)
    client.upsert.side_effect = httpx.ConnectError("Connection refused")

    with pytest.raises(StoreConnectivityError):
        await pipeline.ingest("words.txt")

    assert client.upsert.await_count == 1


# ---------------------------------------------------------------------
# URLs
# ---------------------------------------------------------------------

def test_sources_without_scheme_are_local():
    assert is_url_source("https://docs.example.com/guide")
    assert is_url_source("http://localhost:8000/")
    assert not is_url_source("docs.example.com/guide")
    assert not is_url_source("ftp://example.com/file.txt")


@pytest.mark.asyncio
async def test_html_page_is_rendered_and_extracted(tmp_path):
    renderer = AsyncMock(spec=PageRenderer)
    renderer.render.return_value = (
        "<html><head><title>Guide</title><script>var x = 1;</script></head>"
        "<body><nav>menu</nav><main>Install the package first.</main></body></html>"
    )
    pipeline, client = make_pipeline(tmp_path, renderer=renderer)

    result = await pipeline.ingest("https://docs.example.com/guide")

    renderer.render.assert_awaited_once_with("https://docs.example.com/guide")
    assert result.title == "Guide"
    [point] = upserted_points(client)
    assert point.payload["text"] == "Install the package first."
    assert point.payload["url"] == "https://docs.example.com/guide"


@pytest.mark.asyncio
async def test_plain_text_url_is_fetched_directly(tmp_path):
    def handler(request):
        return httpx.Response(
            200,
            text="plain text body",
            headers={"content-disposition": 'attachment; filename="manual.txt"'},
        )

    renderer = AsyncMock(spec=PageRenderer)
    pipeline, client = make_pipeline(
        tmp_path, renderer=renderer, transport=httpx.MockTransport(handler)
    )

    result = await pipeline.ingest("https://example.com/files/download.txt")

    renderer.render.assert_not_awaited()
    assert result.title == "manual.txt"
    assert upserted_points(client)[0].payload["text"] == "plain text body"


@pytest.mark.asyncio
async def test_unexpected_failure_is_wrapped(tmp_path):
    renderer = AsyncMock(spec=PageRenderer)
    renderer.render.side_effect = RuntimeError("browser crashed")
    pipeline, _ = make_pipeline(tmp_path, renderer=renderer)

    with pytest.raises(IngestionError, match="browser crashed"):
        await pipeline.ingest("https://docs.example.com/")
