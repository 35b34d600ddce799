# tests/test_request_validator.py

"""Tests for RequestValidator rejections and normalisation."""

import unittest

from pricescout.errors import (
    EmptyProductNameError,
    InvalidCountryError,
    InvalidPriceRangeError,
    InvalidRequestError,
    MalformedCountryCodeError,
    MaxResultsOutOfRangeError,
)
from pricescout.filters.request_validator import RequestValidator
from pricescout.models.search import PriceRange, SearchRequest


class TestRequestValidator(unittest.TestCase):
    """RequestValidator.validate behaviour."""

    def test_normalises_valid_request(self) -> None:
        request = RequestValidator.validate(
            SearchRequest("  iPhone 16 ", "us", 5)
        )
        self.assertEqual(request.product_name, "iPhone 16")
        self.assertEqual(request.country, "US")
        self.assertEqual(request.max_results, 5)

    def test_default_max_results(self) -> None:
        request = RequestValidator.validate(SearchRequest("iPhone", "GB"))
        self.assertEqual(request.max_results, 10)

    def test_empty_product_name(self) -> None:
        with self.assertRaises(EmptyProductNameError):
            RequestValidator.validate(SearchRequest("   ", "US"))

    def test_malformed_country_code(self) -> None:
        for code in ("USA", "U", "", "1A"):
            with self.subTest(code=code):
                with self.assertRaises(MalformedCountryCodeError):
                    RequestValidator.validate(SearchRequest("iPhone", code))

    def test_unmapped_country_is_invalid_country(self) -> None:
        with self.assertRaises(InvalidCountryError) as ctx:
            RequestValidator.validate(SearchRequest("iPhone", "ZZ"))
        self.assertEqual(ctx.exception.code, "INVALID_COUNTRY")

    def test_supported_country_without_storefronts_is_valid(self) -> None:
        request = RequestValidator.validate(SearchRequest("iPhone", "fr"))
        self.assertEqual(request.country, "FR")

    def test_max_results_bounds(self) -> None:
        for value in (0, 51, -3):
            with self.subTest(value=value):
                with self.assertRaises(MaxResultsOutOfRangeError):
                    RequestValidator.validate(
                        SearchRequest("iPhone", "US", value)
                    )
        for value in (1, 50):
            with self.subTest(value=value):
                RequestValidator.validate(
                    SearchRequest("iPhone", "US", value)
                )

    def test_max_results_must_be_int(self) -> None:
        with self.assertRaises(MaxResultsOutOfRangeError):
            RequestValidator.validate(
                SearchRequest("iPhone", "US", True)
            )

    def test_price_range_checks(self) -> None:
        with self.assertRaises(InvalidPriceRangeError):
            RequestValidator.validate(
                SearchRequest("iPhone", "US", 5, PriceRange(min=-1))
            )
        with self.assertRaises(InvalidPriceRangeError):
            RequestValidator.validate(
                SearchRequest("iPhone", "US", 5, PriceRange(100, 10))
            )

    def test_validation_errors_share_a_code(self) -> None:
        with self.assertRaises(InvalidRequestError) as ctx:
            RequestValidator.validate(SearchRequest("", "US"))
        self.assertEqual(ctx.exception.code, "INVALID_REQUEST")


if __name__ == "__main__":
    unittest.main()
