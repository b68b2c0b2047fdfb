"""
Ingestion Pipeline

Turns a source (URL or local path) into stored, searchable chunks.

Workflow
--------
1. Resolve the source text (plain-text fetch, browser render, or local file).
2. Chunk it on word boundaries.
3. Embed each batch of chunks concurrently.
4. Upsert the batch as one durable store write before starting the next.

A failed batch is logged and skipped; batches already written stay written.
Fatal failures (store unreachable, bad credentials, dimension violations)
stop the ingestion at once.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

import httpx

from ..config import Settings
from ..core.errors import IngestionError, RagDocsError, is_fatal
from ..embeddings.chunker import chunk_text
from ..embeddings.embedder import EmbeddingProvider
from ..embeddings.models import DocumentChunk
from ..fetch.content import (
    ExtractedContent,
    extract_html_content,
    fetch_plain_text,
    is_plain_text_url,
)
from ..fetch.local_files import read_local_text, resolve_workspace_path
from ..fetch.renderer import PageRenderer
from ..store.vector_store import VectorStore

logger = logging.getLogger("ragdocs.ingest")

URL_SCHEMES: Tuple[str, ...] = ("http://", "https://")


def is_url_source(source: str) -> bool:
    """
    True when ``source`` starts with a supported URL scheme.

    Anything else, including malformed URLs without a scheme, is treated as a
    local path.
    """
    return source.startswith(URL_SCHEMES)


@dataclass
class IngestionResult:
    source: str
    title: str
    chunks_indexed: int
    batches: int
    failed_batches: int = 0
    last_error: Optional[str] = None


class IngestionPipeline:
    def __init__(
        self,
        provider: EmbeddingProvider,
        vector_store: VectorStore,
        renderer: PageRenderer,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._provider = provider
        self._store = vector_store
        self._renderer = renderer
        self._settings = settings
        self._transport = transport

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def ingest(self, source: str) -> IngestionResult:
        """
        Index one source and return how many chunks were stored.

        Raises
        ------
        RagDocsError
            Typed failures propagate unchanged; anything else is wrapped in
            ``IngestionError``.
        """
        try:
            content = await self.load(source)
            chunks = self.build_chunks(source, content)
            logger.info("Split %s into %d chunks.", source, len(chunks))
            return await self._index(source, content.title, chunks)
        except RagDocsError as exc:
            logger.error("Error processing source %s (%s): %s", source, exc.kind, exc.message)
            raise
        except Exception as exc:
            logger.exception("Generic error processing source %s", source)
            raise IngestionError(
                f"Failed to fetch or process source {source}: {exc}"
            ) from exc

    async def load(self, source: str) -> ExtractedContent:
        """Resolve a source to its title and raw text."""
        if is_url_source(source):
            if is_plain_text_url(source):
                logger.info("Fetching plain text URL: %s", source)
                return await fetch_plain_text(
                    source,
                    timeout=self._settings.http_timeout,
                    transport=self._transport,
                )

            logger.info("Rendering URL with headless browser: %s", source)
            html = await self._renderer.render(source)
            return extract_html_content(html, fallback_title=source)

        path = resolve_workspace_path(source, self._settings.resolved_workspace_root())
        logger.info("Reading local file: %s", path)
        text = await read_local_text(path)
        return ExtractedContent(title=path.name, text=text)

    def build_chunks(self, source: str, content: ExtractedContent) -> List[DocumentChunk]:
        timestamp = datetime.now(timezone.utc).isoformat()
        title = content.title or source
        return [
            DocumentChunk(text=text, url=source, title=title, timestamp=timestamp)
            for text in chunk_text(content.text, self._settings.chunk_size)
        ]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _embed_batch(self, batch: Sequence[DocumentChunk]) -> List[List[float]]:
        results = await asyncio.gather(
            *(self._provider.generate_embeddings(chunk.text) for chunk in batch),
            return_exceptions=True,
        )

        errors = [r for r in results if isinstance(r, BaseException)]
        if errors:
            for err in errors:
                if is_fatal(err) or not isinstance(err, Exception):
                    raise err
            raise errors[0]

        return list(results)

    async def _index(
        self,
        source: str,
        title: str,
        chunks: List[DocumentChunk],
    ) -> IngestionResult:
        batch_size = self._settings.upsert_batch_size
        result = IngestionResult(source=source, title=title, chunks_indexed=0, batches=0)
        last_error: Optional[RagDocsError] = None

        for start in range(0, len(chunks), batch_size):
            batch = chunks[start : start + batch_size]
            result.batches += 1

            try:
                vectors = await self._embed_batch(batch)
                await self._store.upsert_chunks(batch, vectors)
            except RagDocsError as exc:
                if is_fatal(exc):
                    raise
                last_error = exc
            except Exception as exc:
                last_error = IngestionError(f"Batch {result.batches} of {source} failed: {exc}")
                last_error.__cause__ = exc
            else:
                result.chunks_indexed += len(batch)
                continue

            result.failed_batches += 1
            result.last_error = last_error.message
            logger.error(
                "Batch %d of %s failed (%s): %s",
                result.batches,
                source,
                last_error.kind,
                last_error.message,
            )

        if last_error is not None and result.chunks_indexed == 0:
            raise last_error

        logger.info(
            "Indexed %d chunks from %s in %d batches (%d failed).",
            result.chunks_indexed,
            source,
            result.batches,
            result.failed_batches,
        )
        return result
