import logging
from unittest.mock import AsyncMock

import pytest

from ragdocs_mcp_server.core.errors import (
    EmbeddingBackendError,
    LocalFileNotFoundError,
    StoreConnectivityError,
)
from ragdocs_mcp_server.ingest.pipeline import IngestionResult
from ragdocs_mcp_server.ingest.queue import ProcessingQueue


def ok(url, chunks=2):
    return IngestionResult(source=url, title=url, chunks_indexed=chunks, batches=1)


def scripted_ingest(script):
    """Build an ingest mock answering per URL: an exception, a list of them, or a chunk count."""
    attempts = {}

    async def ingest(url):
        step = script.get(url, 2)
        if isinstance(step, list):
            index = attempts.get(url, 0)
            attempts[url] = index + 1
            step = step[min(index, len(step) - 1)]
        if isinstance(step, BaseException):
            raise step
        return ok(url, step)

    return AsyncMock(side_effect=ingest)


# ---------------------------------------------------------------------
# Queue contents
# ---------------------------------------------------------------------

def test_enqueue_is_idempotent():
    queue = ProcessingQueue()

    assert queue.enqueue("https://a.com/1") is True
    assert queue.enqueue("https://a.com/1") is False
    assert queue.list() == ["https://a.com/1"]
    assert len(queue) == 1


def test_insertion_order_is_kept():
    queue = ProcessingQueue()

    added = queue.enqueue_many(["u3", "u1", "u2", "u1"])

    assert added == 3
    assert queue.list() == ["u3", "u1", "u2"]


def test_clear_reports_removed_count():
    queue = ProcessingQueue()
    queue.enqueue_many(["a", "b"])

    assert queue.clear() == 2
    assert queue.list() == []
    assert queue.clear() == 0


# ---------------------------------------------------------------------
# Draining
# ---------------------------------------------------------------------

@pytest.mark.asyncio
async def test_empty_drain_does_nothing():
    queue = ProcessingQueue()
    ingest = AsyncMock()

    report = await queue.drain(ingest)

    assert report.processed == 0
    assert report.failed == 0
    ingest.assert_not_awaited()


@pytest.mark.asyncio
async def test_one_failure_does_not_stop_the_drain():
    queue = ProcessingQueue()
    queue.enqueue_many(["u1", "u2", "u3", "u4"])
    ingest = scripted_ingest({"u2": EmbeddingBackendError("backend down")})
    progress = []

    report = await queue.drain(ingest, on_progress=progress.append)

    assert report.processed == 3
    assert report.failed == 1
    assert not report.aborted
    assert queue.list() == []
    assert [o.url for o in progress] == ["u1", "u2", "u3", "u4"]
    assert progress[1].error_kind == "embedding_backend_error"
    assert progress[1].error == "backend down"


@pytest.mark.asyncio
async def test_fatal_error_aborts_and_keeps_source_at_head():
    queue = ProcessingQueue()
    queue.enqueue_many(["u1", "u2", "u3"])
    ingest = scripted_ingest({"u2": StoreConnectivityError("store unreachable")})

    report = await queue.drain(ingest)

    assert report.aborted
    assert report.fatal_kind == "store_connectivity_error"
    assert report.processed == 1
    assert report.remaining == 2
    assert queue.list() == ["u2", "u3"]


@pytest.mark.asyncio
async def test_transient_failures_are_retried():
    queue = ProcessingQueue(max_retries=2, retry_delay=0)
    queue.enqueue("u1")
    ingest = scripted_ingest(
        {"u1": [EmbeddingBackendError("hiccup"), EmbeddingBackendError("hiccup"), 5]}
    )
    progress = []

    report = await queue.drain(ingest, on_progress=progress.append)

    assert report.processed == 1
    assert progress[0].attempts == 3
    assert progress[0].chunks == 5
    assert ingest.await_count == 3


@pytest.mark.asyncio
async def test_retries_are_bounded():
    queue = ProcessingQueue(max_retries=1, retry_delay=0)
    queue.enqueue("u1")
    ingest = scripted_ingest({"u1": EmbeddingBackendError("still down")})

    report = await queue.drain(ingest)

    assert report.failed == 1
    assert report.outcomes[0].attempts == 2
    assert ingest.await_count == 2


@pytest.mark.asyncio
async def test_validation_failures_are_not_retried():
    queue = ProcessingQueue(max_retries=3, retry_delay=0)
    queue.enqueue("missing.txt")
    ingest = scripted_ingest({"missing.txt": LocalFileNotFoundError("Local file not found")})

    report = await queue.drain(ingest)

    assert report.failed == 1
    assert report.outcomes[0].error_kind == "file_not_found"
    assert ingest.await_count == 1


@pytest.mark.asyncio
async def test_untyped_failures_become_ingestion_errors():
    queue = ProcessingQueue()
    queue.enqueue("u1")
    ingest = scripted_ingest({"u1": RuntimeError("surprise")})

    report = await queue.drain(ingest)

    assert report.outcomes[0].error_kind == "ingestion_error"
    assert report.outcomes[0].error == "surprise"


@pytest.mark.asyncio
async def test_each_retry_is_logged(caplog):
    queue = ProcessingQueue(max_retries=1, retry_delay=0)
    queue.enqueue("u1")
    ingest = scripted_ingest({"u1": [EmbeddingBackendError("hiccup"), 3]})

    with caplog.at_level(logging.WARNING, logger="ragdocs.queue"):
        report = await queue.drain(ingest)

    assert report.processed == 1
    assert "Attempt 1 for u1 failed (embedding_backend_error), retrying: hiccup" in caplog.text


@pytest.mark.asyncio
async def test_fatal_errors_are_not_retried():
    queue = ProcessingQueue(max_retries=3, retry_delay=0)
    queue.enqueue("u1")
    ingest = scripted_ingest({"u1": StoreConnectivityError("store unreachable")})

    report = await queue.drain(ingest)

    assert report.aborted
    assert ingest.await_count == 1
