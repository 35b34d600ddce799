# tests/test_search_engine_extractor.py

"""Tests for SearchEngineExtractor using mocked result pages."""

import unittest
import urllib.parse
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

from pricescout.errors import SearchEngineError
from pricescout.scrapers.rate_governor import RateGovernor
from pricescout.scrapers.search_engine_extractor import SearchEngineExtractor

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def _read(fixture_name: str) -> str:
    return (FIXTURES_DIR / fixture_name).read_text(encoding="utf-8")


def _make_mock_response(fixture_name: str) -> MagicMock:
    """Create a 200 mock response from a fixture HTML file."""
    mock_resp = MagicMock()
    mock_resp.status_code = 200
    mock_resp.text = _read(fixture_name)
    return mock_resp


def _query_params(url: str) -> dict[str, str]:
    parsed = urllib.parse.parse_qs(urllib.parse.urlparse(url).query)
    return {k: v[0] for k, v in parsed.items()}


class TestShoppingParsing(unittest.TestCase):
    """parse_shopping_results heuristics."""

    def setUp(self) -> None:
        self.extractor = SearchEngineExtractor()

    def test_known_containers(self) -> None:
        products = self.extractor.parse_shopping_results(
            _read("google_shopping.html"), "US"
        )
        self.assertEqual(len(products), 2)

        first = products[0]
        self.assertEqual(first.name, "Apple iPhone 16 128GB")
        self.assertEqual(first.price, "$799.00")
        self.assertEqual(first.link, "https://www.bestbuy.com/site/iphone-16")
        self.assertEqual(first.source, "bestbuy")
        self.assertEqual(first.seller, "Best Buy")
        self.assertEqual(first.rating, 4.6)
        self.assertEqual(first.currency, "USD")
        self.assertTrue(first.image_url and first.image_url.startswith("https://"))

    def test_aria_label_name_and_text_scan_price(self) -> None:
        products = self.extractor.parse_shopping_results(
            _read("google_shopping.html"), "DE"
        )
        second = products[1]
        self.assertEqual(second.name, "Apple iPhone 16 Plus 256GB")
        self.assertEqual(second.price, "€749,99")
        self.assertEqual(second.source, "walmart")
        self.assertEqual(second.currency, "EUR")

    def test_fragment_without_link_is_rejected(self) -> None:
        products = self.extractor.parse_shopping_results(
            _read("google_shopping.html"), "US"
        )
        self.assertNotIn(
            "Apple iPhone 16 Screen Protector", [p.name for p in products]
        )

    def test_generic_link_fallback(self) -> None:
        products = self.extractor.parse_shopping_results(
            _read("google_shopping_generic.html"), "US"
        )
        self.assertEqual(len(products), 1)
        only = products[0]
        self.assertEqual(only.name, "Apple iPhone 16 Pro Max 256GB Titanium")
        self.assertEqual(only.price, "Price available on site")
        self.assertEqual(only.availability, "Check website")
        self.assertEqual(only.source, "amazon")

    def test_blocked_page_detection(self) -> None:
        self.assertTrue(
            self.extractor.is_blocked(_read("google_unusual_traffic.html"))
        )
        self.assertFalse(
            self.extractor.is_blocked(_read("google_shopping.html"))
        )


class TestWebParsing(unittest.TestCase):
    """parse_web_results heuristics."""

    def setUp(self) -> None:
        self.extractor = SearchEngineExtractor()
        self.products = self.extractor.parse_web_results(
            _read("google_web.html"), "iphone 16", "US"
        )

    def test_only_priced_ecommerce_results(self) -> None:
        self.assertEqual(len(self.products), 2)

    def test_redirect_link_is_unwrapped(self) -> None:
        self.assertEqual(
            self.products[0].link, "https://www.amazon.com/dp/B0DGJ"
        )
        self.assertEqual(self.products[0].source, "amazon")

    def test_title_cleanup(self) -> None:
        self.assertEqual(self.products[0].name, "Apple iPhone 16 128GB")
        self.assertEqual(self.products[1].name, "Apple iPhone 16")

    def test_snippet_prices(self) -> None:
        self.assertEqual(self.products[0].price, "$829.00")
        self.assertEqual(self.products[1].price, "699,00 €")

    def test_country_currency_stamp(self) -> None:
        self.assertTrue(all(p.currency == "USD" for p in self.products))

    def test_is_ecommerce_result(self) -> None:
        self.assertTrue(
            self.extractor.is_ecommerce_result("x", "only €5", "https://a.b")
        )
        self.assertTrue(
            self.extractor.is_ecommerce_result(
                "x", "y", "https://www.etsy.com/listing/1"
            )
        )
        self.assertFalse(
            self.extractor.is_ecommerce_result(
                "Review", "A solid upgrade", "https://news.example/a"
            )
        )

    def test_title_falls_back_to_query(self) -> None:
        self.assertEqual(
            SearchEngineExtractor.product_name_from_title("", "iphone 16"),
            "iphone 16",
        )

    def test_web_query(self) -> None:
        query = SearchEngineExtractor.build_web_query("iphone 16", "GB")
        self.assertTrue(query.startswith('"iphone 16" price buy ('))
        self.assertIn("amazon.co.uk OR ebay.co.uk", query)


class TestExtract(unittest.IsolatedAsyncioTestCase):
    """End-to-end extract() with a mocked HTTP session."""

    def setUp(self) -> None:
        self.governor = RateGovernor()
        self.extractor = SearchEngineExtractor(self.governor)
        self.session = MagicMock()
        self.session.get = AsyncMock()
        self.extractor.session = self.session

    async def test_shopping_then_web_pass(self) -> None:
        self.session.get.side_effect = [
            _make_mock_response("google_shopping.html"),
            _make_mock_response("google_web.html"),
        ]
        products = await self.extractor.extract("iphone 16", "US", 4)

        self.assertEqual(len(products), 4)
        shop_params = _query_params(self.session.get.call_args_list[0].args[0])
        self.assertEqual(shop_params["tbm"], "shop")
        self.assertEqual(shop_params["gl"], "us")
        self.assertEqual(shop_params["hl"], "en")
        self.assertEqual(shop_params["num"], "3")
        web_params = _query_params(self.session.get.call_args_list[1].args[0])
        self.assertNotIn("tbm", web_params)
        self.assertEqual(web_params["num"], "2")
        self.assertTrue(web_params["q"].startswith('"iphone 16"'))

    async def test_one_rate_slot_per_call(self) -> None:
        self.session.get.side_effect = [
            _make_mock_response("google_shopping.html"),
            _make_mock_response("google_web.html"),
        ]
        await self.extractor.extract("iphone 16", "US", 4)
        self.assertEqual(self.governor.request_counts(), {"google": 1})

    async def test_filled_shopping_pass_skips_web(self) -> None:
        self.session.get.return_value = _make_mock_response(
            "google_shopping.html"
        )
        products = await self.extractor.extract("iphone 16", "US", 2)
        self.assertEqual(len(products), 2)
        self.assertEqual(self.session.get.await_count, 1)

    async def test_results_are_capped(self) -> None:
        self.session.get.side_effect = [
            _make_mock_response("google_shopping.html"),
            _make_mock_response("google_web.html"),
        ]
        products = await self.extractor.extract("iphone 16", "US", 3)
        self.assertEqual(len(products), 3)

    async def test_blocked_shopping_pass_is_not_fatal(self) -> None:
        self.session.get.side_effect = [
            _make_mock_response("google_unusual_traffic.html"),
            _make_mock_response("google_web.html"),
        ]
        products = await self.extractor.extract("iphone 16", "US", 5)
        self.assertEqual([p.source for p in products], ["amazon", "ebay"])

    async def test_failed_shopping_pass_is_not_fatal(self) -> None:
        self.session.get.side_effect = [
            ConnectionError("reset"),
            ConnectionError("reset"),
            _make_mock_response("google_web.html"),
        ]
        with patch.object(
            SearchEngineExtractor, "_fetch_cloudscraper", return_value=None
        ):
            products = await self.extractor.extract("iphone 16", "US", 5)
        self.assertEqual(len(products), 2)

    async def test_total_failure_raises(self) -> None:
        self.session.get.side_effect = ConnectionError("reset")
        with patch.object(
            SearchEngineExtractor, "_fetch_cloudscraper", return_value=None
        ):
            with self.assertRaises(SearchEngineError) as ctx:
                await self.extractor.extract("iphone 16", "US", 5)
        self.assertEqual(ctx.exception.code, "SEARCH_ENGINE_ERROR")


if __name__ == "__main__":
    unittest.main()
