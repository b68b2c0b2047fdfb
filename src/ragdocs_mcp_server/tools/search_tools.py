"""
Documentation Search Tool

This module implements the tool `search_documentation`, which performs
semantic search against the documentation collection.

Responsibilities
----------------
- Verify the collection before reading it
- Embed the query
- Run nearest-neighbour search
- Render ranked excerpts with their source metadata
"""

from __future__ import annotations

from typing import List

from ..api.models import ToolCallResponse, ToolSearchResult
from ..context import ToolContext

NO_RESULTS_MESSAGE = "No results found matching the query."


def format_search_results(results: List[ToolSearchResult]) -> str:
    blocks = [
        f"[{r.title}]({r.url})\nScore: {r.score:.3f}\nContent: {r.text}\n"
        for r in results
    ]
    return "\n---\n".join(blocks)


async def tool_search_documentation(
    query: str,
    ctx: ToolContext,
    limit: int = 5,
) -> ToolCallResponse:
    """
    Semantic search over indexed documentation.

    Parameters
    ----------
    query : str
        Natural-language query.

    ctx : ToolContext
        Active components.

    limit : int
        Maximum number of excerpts to return (1-20).
    """
    await ctx.collections.ensure_collection()

    query_vector = await ctx.provider.generate_embeddings(query)
    hits = await ctx.vector_store.search(
        query_vector,
        limit=limit,
        score_threshold=ctx.settings.search_score_threshold,
    )

    results = [
        ToolSearchResult(
            title=chunk.title,
            url=chunk.url,
            score=score,
            text=chunk.text,
        )
        for chunk, score in hits
    ]

    if not results:
        return ToolCallResponse.from_text(NO_RESULTS_MESSAGE, data={"results": []})

    return ToolCallResponse.from_text(
        format_search_results(results),
        data={"results": [r.model_dump() for r in results]},
    )
