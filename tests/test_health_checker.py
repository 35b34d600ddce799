# tests/test_health_checker.py

"""Tests for the source connectivity health checker."""

import unittest
from unittest.mock import AsyncMock, MagicMock, patch

from pricescout.config.websites import SourceRegistry
from pricescout.models.source import SelectorMap, SourceDescriptor
from pricescout.scrapers.base_scraper import BaseScraper
from pricescout.scrapers.search_engine_extractor import SearchEngineExtractor
from pricescout.services.health_checker import HealthChecker, probe_source

_SELECTORS = SelectorMap(container=".c", name=".n", price=".p", link="a")


def _source(name: str, base_url: str) -> SourceDescriptor:
    return SourceDescriptor(
        name=name,
        base_url=base_url,
        search_url=f"{base_url}/s?q={{query}}",
        currency="USD",
        selectors=_SELECTORS,
    )


def _scraper(get: AsyncMock) -> BaseScraper:
    scraper = BaseScraper("health")
    session = MagicMock()
    session.get = get
    session.close = AsyncMock()
    scraper.session = session
    return scraper


class TestProbeSource(unittest.IsolatedAsyncioTestCase):
    """Classification of a single probe."""

    async def test_ok(self) -> None:
        get = AsyncMock(return_value=MagicMock(status_code=200))
        result = await probe_source(_scraper(get), "Shop", "https://s.example/")
        self.assertEqual(result.status, "ok")
        self.assertEqual(result.source_id, "Shop")
        self.assertEqual(get.await_args.kwargs["timeout"], 10)

    async def test_http_error_is_down(self) -> None:
        get = AsyncMock(return_value=MagicMock(status_code=503))
        result = await probe_source(_scraper(get), "Shop", "https://s.example/")
        self.assertEqual(result.status, "down")
        self.assertEqual(result.message, "HTTP 503")

    async def test_exception_is_down(self) -> None:
        get = AsyncMock(side_effect=ConnectionError("x" * 200))
        result = await probe_source(_scraper(get), "Shop", "https://s.example/")
        self.assertEqual(result.status, "down")
        self.assertEqual(len(result.message), 80)

    async def test_slow_response(self) -> None:
        get = AsyncMock(return_value=MagicMock(status_code=200))
        with patch("pricescout.services.health_checker.time") as clock:
            clock.monotonic.side_effect = [100.0, 106.0]
            result = await probe_source(
                _scraper(get), "Shop", "https://s.example/"
            )
        self.assertEqual(result.status, "slow")
        self.assertAlmostEqual(result.latency_ms, 6000.0)


class TestHealthChecker(unittest.IsolatedAsyncioTestCase):
    """Target selection and concurrent probing."""

    def setUp(self) -> None:
        self.registry = SourceRegistry(
            {
                "US": (
                    _source("Shop", "https://shop.example"),
                    _source("Mart", "https://mart.example"),
                ),
                "GB": (_source("Shop", "https://shop.example"),),
            }
        )

    def test_targets_are_unique_and_start_with_search_engine(self) -> None:
        checker = HealthChecker(self.registry, _scraper(AsyncMock()))
        self.assertEqual(
            checker.targets(),
            {
                "Google Search": SearchEngineExtractor.HOMEPAGE,
                "Shop": "https://shop.example/",
                "Mart": "https://mart.example/",
            },
        )

    async def test_check_all_probes_every_target_and_closes(self) -> None:
        async def get(url, **kwargs):
            if "mart" in url:
                raise ConnectionError("refused")
            return MagicMock(status_code=200)

        scraper = _scraper(AsyncMock(side_effect=get))
        session = scraper.session
        results = await HealthChecker(self.registry, scraper).check_all()

        by_name = {r.source_id: r.status for r in results}
        self.assertEqual(
            by_name, {"Google Search": "ok", "Shop": "ok", "Mart": "down"}
        )
        session.close.assert_awaited_once()


if __name__ == "__main__":
    unittest.main()
