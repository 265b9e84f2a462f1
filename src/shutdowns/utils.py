"""Shared browser helpers: resource blocking and the bounded-wait primitive."""

import asyncio
from typing import Awaitable, Callable

from playwright.async_api import Page, Route

from src.shutdowns.logging import get_logger

log = get_logger(__name__)

# Stylesheets stay enabled: modal, suggestion list and field visibility
# checks read computed styles.
BLOCKED_RESOURCE_TYPES: frozenset[str] = frozenset({"image", "font", "media"})


async def configure_page_for_scraping(page: Page, *, timeout_ms: int = 30000) -> None:
    """Set up a Playwright page for loading the shutdowns form.

    Blocks images, fonts and media, and applies default timeouts. The User-Agent
    comes from the browser context (see BrowserSession.open_page).

    Args:
        page: Playwright Page instance.
        timeout_ms: Default action and navigation timeout.
    """

    async def _block_resources(route: Route) -> None:
        if route.request.resource_type in BLOCKED_RESOURCE_TYPES:
            await route.abort()
        else:
            await route.fallback()

    await page.route("**/*", _block_resources)
    page.set_default_timeout(timeout_ms)
    page.set_default_navigation_timeout(timeout_ms)


async def await_condition(
    predicate: Callable[[], Awaitable[bool]],
    timeout: float,
    poll_interval: float = 0.1,
) -> bool:
    """Poll ``predicate`` until it returns truthy or ``timeout`` seconds pass.

    Exceptions raised by the predicate count as "not yet". Each predicate call
    is itself cut off at the remaining time (at least one poll interval), so a
    hung ``page.evaluate`` cannot hold the wait open. Never raises on timeout;
    callers decide whether a False result is soft or fatal.

    Returns:
        True if the condition held before the deadline, False on timeout.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + max(timeout, 0)
    while True:
        budget = max(deadline - loop.time(), poll_interval)
        try:
            if await asyncio.wait_for(predicate(), budget):
                return True
        except asyncio.TimeoutError:
            log.debug("condition_check_timed_out", budget=round(budget, 3))
        except Exception as e:
            log.debug("condition_check_failed", error=str(e), type=type(e).__name__)

        remaining = deadline - loop.time()
        if remaining <= 0:
            return False
        await asyncio.sleep(min(poll_interval, remaining))
