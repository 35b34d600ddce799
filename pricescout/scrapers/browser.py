# pricescout/scrapers/browser.py

"""Shared headless browser for storefronts that render with JavaScript."""

import asyncio
import logging
from typing import Any

from playwright.async_api import (
    Browser,
    Playwright,
    Route,
    async_playwright,
)
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from pricescout.config.settings import Settings

logger = logging.getLogger("pricescout.browser")

_LAUNCH_ARGS: list[str] = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--disable-gpu",
]


class BrowserManager:
    """One lazily launched Chromium reused by every rendered fetch.

    The browser outlives individual requests; each fetch gets its own
    isolated context which is closed afterwards.  Call :meth:`close`
    at process shutdown.
    """

    BLOCKED_RESOURCE_TYPES: frozenset[str] = frozenset(
        {"image", "font", "stylesheet", "media"}
    )

    def __init__(self) -> None:
        self.settings = Settings()
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        """True once the shared browser has been launched."""
        return self._browser is not None

    async def _ensure_browser(self) -> Browser:
        async with self._lock:
            if self._browser is None:
                logger.info("Launching shared headless Chromium")
                self._playwright = await async_playwright().start()
                try:
                    self._browser = await self._playwright.chromium.launch(
                        headless=True,
                        args=_LAUNCH_ARGS,
                    )
                except Exception:
                    logger.error(
                        "Chromium launch failed, stopping Playwright driver"
                    )
                    await self._playwright.stop()
                    self._playwright = None
                    raise
            return self._browser

    async def _block_heavy_resources(self, route: Route) -> None:
        if route.request.resource_type in self.BLOCKED_RESOURCE_TYPES:
            await route.abort()
        else:
            await route.continue_()

    async def fetch_rendered(
        self,
        url: str,
        wait_selector: str | None = None,
        timeout: float | None = None,
    ) -> str:
        """Navigate to *url* and return the fully rendered markup.

        Waiting for *wait_selector* is best-effort: a timeout there is
        logged and the page is captured as-is.
        """
        timeout_ms = int((timeout or self.settings.REQUEST_TIMEOUT) * 1000)
        browser = await self._ensure_browser()
        context: Any = await browser.new_context(
            user_agent=self.settings.USER_AGENT,
        )
        try:
            page = await context.new_page()
            await page.route("**/*", self._block_heavy_resources)
            await page.goto(
                url,
                wait_until="networkidle",
                timeout=timeout_ms,
            )
            if wait_selector:
                try:
                    await page.wait_for_selector(
                        wait_selector,
                        timeout=(
                            self.settings.RENDER_SELECTOR_TIMEOUT * 1000
                        ),
                    )
                except PlaywrightTimeoutError:
                    logger.warning(
                        "Container '%s' did not appear on %s",
                        wait_selector,
                        url,
                    )
            html: str = await page.content()
            return html
        finally:
            await context.close()

    async def close(self) -> None:
        """Shut down the shared browser and the Playwright driver."""
        if self._browser is not None:
            try:
                await self._browser.close()
            except Exception as exc:
                logger.warning("Browser close failed: %s", exc)
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None
