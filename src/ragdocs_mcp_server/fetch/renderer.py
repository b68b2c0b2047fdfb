"""
Headless browser rendering for pages that need JavaScript.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from playwright.async_api import Browser, Playwright, async_playwright

from ..core.errors import FetchError

logger = logging.getLogger("ragdocs.renderer")


class PageRenderer:
    """
    Lazily launched headless Chromium shared by all render calls.

    Each ``render`` call uses its own page, which is always closed after the
    HTML has been captured.
    """

    def __init__(self, timeout_ms: int = 60000) -> None:
        self._timeout_ms = timeout_ms
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._lock = asyncio.Lock()

    async def _ensure_browser(self) -> Browser:
        async with self._lock:
            if self._browser is None:
                logger.info("Launching headless browser")
                self._playwright = await async_playwright().start()
                try:
                    self._browser = await self._playwright.chromium.launch()
                except Exception:
                    await self._playwright.stop()
                    self._playwright = None
                    raise
            return self._browser

    async def render(self, url: str) -> str:
        """
        Return the rendered HTML of ``url``.

        Raises
        ------
        FetchError
            If the browser cannot be launched, or the page fails to load.
        """
        page = None
        try:
            browser = await self._ensure_browser()
            page = await browser.new_page()
            await page.goto(url, wait_until="networkidle", timeout=self._timeout_ms)
            return await page.content()
        except Exception as exc:
            raise FetchError(f"Failed to render {url}: {type(exc).__name__}: {exc}") from exc
        finally:
            if page is not None:
                await page.close()

    async def close(self) -> None:
        async with self._lock:
            if self._browser is not None:
                await self._browser.close()
                self._browser = None
            if self._playwright is not None:
                await self._playwright.stop()
                self._playwright = None
