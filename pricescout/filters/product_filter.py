# pricescout/filters/product_filter.py

"""Post-collection candidate filtering by price range."""

import logging

from pricescout.filters.normalizer import parse_price
from pricescout.models.product import ProductCandidate
from pricescout.models.search import PriceRange

logger = logging.getLogger("pricescout.filters")


class ProductFilter:
    """Filter candidates against the request's optional price range."""

    @staticmethod
    def filter_by_price_range(
        candidates: list[ProductCandidate],
        price_range: PriceRange | None,
    ) -> tuple[list[ProductCandidate], int]:
        """Drop candidates whose parsed price falls outside the range.

        A candidate whose price cannot be parsed is always kept.

        Returns the filtered list and the count of excluded candidates.
        """
        if price_range is None or price_range.is_open:
            return candidates, 0

        kept: list[ProductCandidate] = []
        excluded = 0
        for candidate in candidates:
            price = parse_price(candidate.price)
            if price is None:
                kept.append(candidate)
                continue
            if price_range.min is not None and price < price_range.min:
                excluded += 1
                continue
            if price_range.max is not None and price > price_range.max:
                excluded += 1
                continue
            kept.append(candidate)

        if excluded:
            logger.info(
                "Price range %s-%s excluded %d candidates",
                price_range.min,
                price_range.max,
                excluded,
            )
        return kept, excluded
