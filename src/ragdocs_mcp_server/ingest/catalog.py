"""
Source Catalog

Rebuilds the list of indexed sources from stored chunk payloads and renders
it grouped by host.

Grouping
--------
- Top level: the URL's host name, or ``Local Files`` for local paths
- Second level: the first path segment (``/`` when there is none)

The second level only decides group membership. The rendered listing
flattens each host into one alphabetical, URL-deduplicated list numbered
``1.``, ``1.1.``, ``1.2.``, ``2.`` ...
"""

from __future__ import annotations

import logging
from typing import Dict, List, Tuple
from urllib.parse import urlparse

from ..embeddings.models import Source
from ..store.vector_store import VectorStore

logger = logging.getLogger("ragdocs.catalog")

LOCAL_FILES_GROUP = "Local Files"
NO_SOURCES_MESSAGE = "No documentation sources found."

GroupedSources = Dict[str, Dict[str, List[Source]]]


def source_group(url: str) -> Tuple[str, str]:
    """Return the (host, first path segment) grouping key for a source."""
    parsed = urlparse(url)
    if parsed.scheme and parsed.hostname:
        parts = [p for p in parsed.path.split("/") if p]
        return parsed.hostname, parts[0] if parts else "/"

    parts = [p for p in url.replace("\\", "/").split("/") if p and p != "."]
    return LOCAL_FILES_GROUP, parts[0] if len(parts) > 1 else "/"


def group_sources(sources: List[Source]) -> GroupedSources:
    grouped: GroupedSources = {}
    for source in sources:
        host, segment = source_group(source.url)
        grouped.setdefault(host, {}).setdefault(segment, []).append(source)
    return grouped


def format_grouped_sources(grouped: GroupedSources) -> str:
    blocks: List[str] = []

    for host_number, (host, segments) in enumerate(grouped.items(), start=1):
        lines = [f"{host_number}. {host}"]

        # Last title seen for a URL wins.
        unique: Dict[str, Source] = {}
        for sources in segments.values():
            for source in sources:
                unique[source.url] = source

        ordered = sorted(unique.values(), key=lambda s: s.title.casefold())
        for index, source in enumerate(ordered, start=1):
            lines.append(f"{host_number}.{index}. {source.title} ({source.url})")

        blocks.append("\n".join(lines))

    return "\n\n".join(blocks)


class SourceCatalog:
    def __init__(self, vector_store: VectorStore, page_size: int = 100) -> None:
        self._store = vector_store
        self._page_size = page_size

    async def collect_sources(self) -> List[Source]:
        """Scan every point and return the `{title, url}` pairs found."""
        sources: List[Source] = []
        skipped = 0

        async for payload in self._store.scroll_payloads(self._page_size):
            title = payload.get("title")
            url = payload.get("url")
            if not isinstance(title, str) or not isinstance(url, str) or not title or not url:
                skipped += 1
                continue
            sources.append(Source(title=title, url=url))

        if skipped:
            logger.debug("Skipped %d points without title/url payload", skipped)
        return sources

    async def list_sources(self) -> str:
        sources = await self.collect_sources()
        if not sources:
            return NO_SOURCES_MESSAGE
        return format_grouped_sources(group_sources(sources))
