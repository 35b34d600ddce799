# tests/test_browser.py

"""Tests for the shared BrowserManager with a mocked Playwright driver."""

import unittest
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from pricescout.scrapers.browser import BrowserManager


def _fake_playwright(html: str = "<html>rendered</html>") -> dict[str, Any]:
    """Build a Playwright mock chain: driver -> browser -> context -> page."""
    page = MagicMock()
    page.route = AsyncMock()
    page.goto = AsyncMock()
    page.wait_for_selector = AsyncMock()
    page.content = AsyncMock(return_value=html)

    context = MagicMock()
    context.new_page = AsyncMock(return_value=page)
    context.close = AsyncMock()

    browser = MagicMock()
    browser.new_context = AsyncMock(return_value=context)
    browser.close = AsyncMock()

    driver = MagicMock()
    driver.chromium.launch = AsyncMock(return_value=browser)
    driver.stop = AsyncMock()

    starter = MagicMock()
    starter.start = AsyncMock(return_value=driver)
    return {
        "starter": starter,
        "driver": driver,
        "browser": browser,
        "context": context,
        "page": page,
    }


class TestBrowserManager(unittest.IsolatedAsyncioTestCase):
    """BrowserManager lifecycle and fetch behaviour."""

    def setUp(self) -> None:
        self.mocks = _fake_playwright()
        patcher = patch(
            "pricescout.scrapers.browser.async_playwright",
            return_value=self.mocks["starter"],
        )
        self.async_playwright = patcher.start()
        self.addCleanup(patcher.stop)
        self.manager = BrowserManager()

    async def test_browser_is_launched_lazily(self) -> None:
        self.assertFalse(self.manager.is_running)
        self.async_playwright.assert_not_called()
        await self.manager.fetch_rendered("https://www.walmart.com/search?q=x")
        self.assertTrue(self.manager.is_running)

    async def test_browser_is_shared_across_fetches(self) -> None:
        await self.manager.fetch_rendered("https://a.example/1")
        await self.manager.fetch_rendered("https://a.example/2")
        self.mocks["driver"].chromium.launch.assert_awaited_once()
        self.assertEqual(self.mocks["browser"].new_context.await_count, 2)
        self.assertEqual(self.mocks["context"].close.await_count, 2)

    async def test_returns_rendered_markup(self) -> None:
        html = await self.manager.fetch_rendered("https://a.example/1")
        self.assertEqual(html, "<html>rendered</html>")

    async def test_waits_for_network_idle_within_timeout(self) -> None:
        await self.manager.fetch_rendered("https://a.example/1", timeout=12)
        kwargs = self.mocks["page"].goto.call_args.kwargs
        self.assertEqual(kwargs["wait_until"], "networkidle")
        self.assertEqual(kwargs["timeout"], 12000)

    async def test_waits_for_container_selector(self) -> None:
        await self.manager.fetch_rendered(
            "https://a.example/1", wait_selector=".s-item"
        )
        self.assertEqual(
            self.mocks["page"].wait_for_selector.call_args.args[0], ".s-item"
        )

    async def test_selector_timeout_is_not_fatal(self) -> None:
        self.mocks["page"].wait_for_selector.side_effect = (
            PlaywrightTimeoutError("Timeout 10000ms exceeded")
        )
        html = await self.manager.fetch_rendered(
            "https://a.example/1", wait_selector=".missing"
        )
        self.assertEqual(html, "<html>rendered</html>")

    async def test_context_closed_when_navigation_fails(self) -> None:
        self.mocks["page"].goto.side_effect = RuntimeError("net::ERR")
        with self.assertRaises(RuntimeError):
            await self.manager.fetch_rendered("https://a.example/1")
        self.mocks["context"].close.assert_awaited_once()

    async def test_heavy_resources_are_aborted(self) -> None:
        for resource_type, aborted in (
            ("image", True),
            ("font", True),
            ("stylesheet", True),
            ("media", True),
            ("document", False),
            ("script", False),
        ):
            with self.subTest(resource_type=resource_type):
                route = MagicMock()
                route.request.resource_type = resource_type
                route.abort = AsyncMock()
                route.continue_ = AsyncMock()
                await self.manager._block_heavy_resources(route)
                self.assertEqual(route.abort.await_count, int(aborted))
                self.assertEqual(route.continue_.await_count, int(not aborted))

    async def test_close_releases_everything(self) -> None:
        await self.manager.fetch_rendered("https://a.example/1")
        await self.manager.close()
        self.mocks["browser"].close.assert_awaited_once()
        self.mocks["driver"].stop.assert_awaited_once()
        self.assertFalse(self.manager.is_running)

    async def test_failed_launch_stops_its_driver(self) -> None:
        self.mocks["driver"].chromium.launch.side_effect = RuntimeError(
            "Executable doesn't exist"
        )
        for _ in range(3):
            with self.assertRaises(RuntimeError):
                await self.manager.fetch_rendered("https://a.example/1")
        await self.manager.close()
        starts = self.mocks["starter"].start.await_count
        self.assertEqual(starts, 3)
        self.assertEqual(self.mocks["driver"].stop.await_count, starts)
        self.assertFalse(self.manager.is_running)

    async def test_close_without_launch_is_noop(self) -> None:
        await self.manager.close()
        self.mocks["browser"].close.assert_not_awaited()


if __name__ == "__main__":
    unittest.main()
