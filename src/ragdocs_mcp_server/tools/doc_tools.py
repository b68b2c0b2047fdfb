"""
Documentation Tool Layer

Tools that add, list, discover and remove indexed documentation sources.
Every tool that touches the store verifies the collection first.
"""

from __future__ import annotations

import logging
from typing import List

from ..api.models import ToolCallResponse
from ..context import ToolContext
from ..core.errors import InputValidationError
from ..fetch.content import discover_links
from ..ingest.pipeline import is_url_source

logger = logging.getLogger("ragdocs.tools")


async def tool_add_documentation(url: str, ctx: ToolContext) -> ToolCallResponse:
    await ctx.collections.ensure_collection()

    result = await ctx.pipeline.ingest(url)

    text = (
        f"Successfully added documentation from {url} "
        f"({result.chunks_indexed} chunks processed in {result.batches} batches)"
    )
    if result.failed_batches:
        text += (
            f"; {result.failed_batches} of {result.batches} batches failed: "
            f"{result.last_error}"
        )

    return ToolCallResponse.from_text(
        text,
        data={
            "url": url,
            "title": result.title,
            "chunks": result.chunks_indexed,
            "batches": result.batches,
            "failed_batches": result.failed_batches,
        },
    )


async def tool_list_sources(ctx: ToolContext) -> ToolCallResponse:
    await ctx.collections.ensure_collection()
    return ToolCallResponse.from_text(await ctx.catalog.list_sources())


async def tool_extract_urls(
    url: str,
    ctx: ToolContext,
    add_to_queue: bool = False,
) -> ToolCallResponse:
    """
    Render a page and collect the in-scope links on it, optionally queueing
    them for ``run_queue``.
    """
    if not is_url_source(url):
        raise InputValidationError(f"extract_urls requires an http(s) URL, got: {url}")

    html = await ctx.renderer.render(url)
    links = discover_links(url, html)
    logger.info("Found %d URLs on %s", len(links), url)

    if not links:
        return ToolCallResponse.from_text("No URLs found on this page.", data={"urls": []})

    if add_to_queue:
        added = ctx.queue.enqueue_many(links)
        return ToolCallResponse.from_text(
            f"Successfully added {added} URLs to the queue",
            data={"urls": links, "queued": added},
        )

    return ToolCallResponse.from_text("\n".join(links), data={"urls": links})


async def tool_remove_documentation(urls: List[str], ctx: ToolContext) -> ToolCallResponse:
    """
    Delete every point whose source is one of ``urls``.
    """
    await ctx.collections.ensure_collection()

    removed = await ctx.vector_store.count_by_urls(urls)
    await ctx.vector_store.delete_by_urls(urls)
    logger.info("Removed %d points for %d sources", removed, len(urls))

    listing = "\n".join(f"- {u}" for u in urls)
    return ToolCallResponse.from_text(
        f"Successfully removed documentation from {len(urls)} source(s) "
        f"({removed} chunks deleted):\n{listing}",
        data={"urls": urls, "deleted_points": removed},
    )
