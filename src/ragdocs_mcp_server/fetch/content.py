"""
Content Extraction

Turns fetched resources into (title, text) pairs and discovers links on
rendered pages.

Responsibilities
----------------
- Fetch plain-text resources directly over HTTP
- Strip non-content elements from rendered HTML and pick the main content
- Collect in-scope links for queueing
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple
from urllib.parse import urldefrag, urljoin, urlparse

import httpx
from bs4 import BeautifulSoup

from ..core.errors import FetchError

PLAIN_TEXT_EXTENSIONS: Tuple[str, ...] = (".txt", ".md", ".markdown", ".rst")

CONTENT_SELECTORS: Tuple[str, ...] = ("main", "article", ".content", ".documentation", "body")

_FILENAME_RE = re.compile(r'filename="?([^";]+)"?')
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class ExtractedContent:
    title: str
    text: str


def is_plain_text_url(url: str) -> bool:
    return urlparse(url).path.lower().endswith(PLAIN_TEXT_EXTENSIONS)


def title_from_disposition(disposition: Optional[str]) -> Optional[str]:
    """Return the filename from a Content-Disposition header, if any."""
    if not disposition or "filename=" not in disposition:
        return None
    match = _FILENAME_RE.search(disposition)
    return match.group(1).strip() if match else None


async def fetch_plain_text(
    url: str,
    timeout: float = 60.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ExtractedContent:
    """
    Download a plain-text resource.

    The title comes from the Content-Disposition filename when the server
    sends one, otherwise from the last path segment of the URL.
    """
    async with httpx.AsyncClient(
        timeout=timeout,
        follow_redirects=True,
        transport=transport,
    ) as client:
        try:
            response = await client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise FetchError(f"Failed to fetch {url}: {type(exc).__name__}: {exc}") from exc

    title = title_from_disposition(response.headers.get("content-disposition"))
    if title is None:
        title = urlparse(url).path.rstrip("/").split("/")[-1] or url

    return ExtractedContent(title=title, text=response.text)


def extract_html_content(html: str, fallback_title: str) -> ExtractedContent:
    """Pull the title and the best-effort main content out of rendered HTML."""
    soup = BeautifulSoup(html, "html.parser")

    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()

    title_tag = soup.find("title")
    title = title_tag.get_text(strip=True) if title_tag else ""

    container = None
    for selector in CONTENT_SELECTORS:
        container = soup.select_one(selector)
        if container is not None:
            break

    raw = container.get_text(" ") if container is not None else soup.get_text(" ")
    text = _WHITESPACE_RE.sub(" ", raw).strip()

    return ExtractedContent(title=title or fallback_title, text=text)


def discover_links(page_url: str, html: str) -> List[str]:
    """
    Return in-scope links found on a page, in first-seen order.

    A link is in scope when it shares the page's scheme and host and its path
    starts with the page's base path (its first two path segments).
    """
    base = urlparse(page_url)
    base_path = "/".join(base.path.split("/")[:3])

    soup = BeautifulSoup(html, "html.parser")
    seen = set()
    links: List[str] = []

    for anchor in soup.select("a[href]"):
        href, _ = urldefrag(urljoin(page_url, anchor["href"]))
        parsed = urlparse(href)
        if parsed.scheme != base.scheme or parsed.netloc != base.netloc:
            continue
        if not parsed.path.startswith(base_path):
            continue
        if href not in seen:
            seen.add(href)
            links.append(href)

    return links
