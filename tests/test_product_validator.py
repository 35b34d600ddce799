# tests/test_product_validator.py

"""Tests for ProductValidator mandatory-field checks."""

import unittest

from pricescout.filters.product_validator import ProductValidator
from pricescout.models.product import ProductCandidate


def _make(
    name: str = "Widget",
    price: str = "$10.00",
    link: str = "https://shop.example/widget",
) -> ProductCandidate:
    """Create a ProductCandidate with overridable mandatory fields."""
    return ProductCandidate(
        name=name,
        price=price,
        currency="USD",
        link=link,
        source="Shop",
    )


class TestProductValidator(unittest.TestCase):
    """ProductValidator.validate behaviour."""

    def test_valid_candidates_pass(self) -> None:
        valid, dropped = ProductValidator.validate([_make(), _make("B")])
        self.assertEqual(len(valid), 2)
        self.assertEqual(dropped, 0)

    def test_blank_name_dropped(self) -> None:
        valid, dropped = ProductValidator.validate([_make(name="  ")])
        self.assertEqual(valid, [])
        self.assertEqual(dropped, 1)

    def test_blank_price_dropped(self) -> None:
        valid, dropped = ProductValidator.validate([_make(price="")])
        self.assertEqual(valid, [])
        self.assertEqual(dropped, 1)

    def test_blank_link_dropped(self) -> None:
        valid, dropped = ProductValidator.validate([_make(link="")])
        self.assertEqual(valid, [])
        self.assertEqual(dropped, 1)

    def test_mixed(self) -> None:
        good = _make()
        valid, dropped = ProductValidator.validate(
            [good, _make(name=""), _make(link=" ")]
        )
        self.assertEqual(valid, [good])
        self.assertEqual(dropped, 2)


if __name__ == "__main__":
    unittest.main()
