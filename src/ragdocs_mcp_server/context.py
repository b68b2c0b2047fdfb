"""
Tool Context

Wires every long-lived component together once, from a single ``Settings``
instance, and hands the result to the tool layer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .config import Settings
from .embeddings.embedder import EmbeddingProvider, create_embedding_provider
from .fetch.renderer import PageRenderer
from .ingest.catalog import SourceCatalog
from .ingest.pipeline import IngestionPipeline
from .ingest.queue import ProcessingQueue
from .store.collection import CollectionManager
from .store.vector_store import VectorStore, create_qdrant_client

logger = logging.getLogger("ragdocs.context")


@dataclass
class ToolContext:
    settings: Settings
    provider: EmbeddingProvider
    vector_store: VectorStore
    collections: CollectionManager
    pipeline: IngestionPipeline
    queue: ProcessingQueue
    catalog: SourceCatalog
    renderer: PageRenderer

    async def close(self) -> None:
        await self.renderer.close()
        await self.vector_store.close()


def build_tool_context(settings: Settings) -> ToolContext:
    """
    Construct all components.

    Raises
    ------
    ConfigurationError
        If the embedding provider cannot be initialised. No network activity
        happens before this point.
    """
    provider = create_embedding_provider(settings)
    logger.info(
        "Embedding provider: %s (model %s, vector size %d)",
        provider.name,
        provider.model,
        provider.get_vector_size(),
    )

    client = create_qdrant_client(settings)
    vector_store = VectorStore(client, settings.collection_name, settings.qdrant_url)
    renderer = PageRenderer(timeout_ms=settings.page_load_timeout_ms)

    return ToolContext(
        settings=settings,
        provider=provider,
        vector_store=vector_store,
        collections=CollectionManager(client, provider, settings),
        pipeline=IngestionPipeline(provider, vector_store, renderer, settings),
        queue=ProcessingQueue(
            max_retries=settings.queue_max_retries,
            retry_delay=settings.queue_retry_delay,
        ),
        catalog=SourceCatalog(vector_store, page_size=settings.scroll_page_size),
        renderer=renderer,
    )
