"""Shared Playwright browser for the monitor process.

BrowserSession launches Chromium lazily on the first cycle and keeps it for
the whole process. Every cycle borrows one page through open_page(), which is
closed on every exit path; close() shuts the browser down once at exit.
"""

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncIterator

from playwright.async_api import async_playwright

from src.shutdowns.logging import get_logger

if TYPE_CHECKING:
    from playwright.async_api import Browser, Page, Playwright

logger = get_logger(__name__)

VIEWPORT = {"width": 900, "height": 900}
LAUNCH_ARGS = ["--no-sandbox", "--disable-setuid-sandbox"]


class BrowserSession:
    """Lazily created, reused Chromium instance with page-scoped access."""

    def __init__(
        self,
        *,
        headless: bool = True,
        user_agent: str | None = None,
        slow_mo_ms: int = 0,
    ) -> None:
        """Initialize BrowserSession.

        Args:
            headless: Run Chromium without a window.
            user_agent: User-Agent for every page context.
            slow_mo_ms: Delay between Playwright operations, for debugging.
        """
        self.headless = headless
        self.user_agent = user_agent
        self.slow_mo_ms = slow_mo_ms
        self._playwright: "Playwright | None" = None
        self._browser: "Browser | None" = None

    @property
    def is_open(self) -> bool:
        return self._browser is not None

    async def _ensure_browser(self) -> "Browser":
        if self._browser is not None and self._browser.is_connected():
            return self._browser

        if self._browser is not None:
            logger.warning("browser_disconnected", action="relaunch")
            await self.close()

        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=self.headless,
            args=LAUNCH_ARGS,
            slow_mo=self.slow_mo_ms,
        )
        logger.info("browser_launched", headless=self.headless)
        return self._browser

    @asynccontextmanager
    async def open_page(self) -> AsyncIterator["Page"]:
        """Yield a fresh page in its own context; both are closed afterwards."""
        browser = await self._ensure_browser()
        context = await browser.new_context(
            user_agent=self.user_agent, viewport=VIEWPORT
        )
        page = await context.new_page()
        logger.debug("page_opened")
        try:
            yield page
        finally:
            try:
                await page.close()
                await context.close()
            except Exception as e:
                logger.warning("page_close_failed", error=str(e))
            logger.debug("page_closed")

    async def close(self) -> None:
        """Close the browser and stop the Playwright driver. Safe to call twice."""
        browser, playwright = self._browser, self._playwright
        self._browser = None
        self._playwright = None

        if browser is not None:
            try:
                await browser.close()
            except Exception as e:
                logger.warning("browser_close_failed", error=str(e))
        if playwright is not None:
            await playwright.stop()
        if browser is not None:
            logger.info("browser_closed")
