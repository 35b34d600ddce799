# pricescout/filters/request_validator.py

"""Search request validation and normalisation."""

import logging
import re

from pricescout.config.countries import is_supported_country
from pricescout.config.settings import Settings
from pricescout.errors import (
    EmptyProductNameError,
    InvalidCountryError,
    InvalidPriceRangeError,
    MalformedCountryCodeError,
    MaxResultsOutOfRangeError,
)
from pricescout.models.search import SearchRequest

logger = logging.getLogger("pricescout.filters")

_COUNTRY_CODE_RE = re.compile(r"^[A-Za-z]{2}$")


class RequestValidator:
    """Reject malformed requests before any network activity."""

    @staticmethod
    def validate(request: SearchRequest) -> SearchRequest:
        """Return a normalised copy of *request* or raise.

        Raises:
            EmptyProductNameError: blank product name.
            MalformedCountryCodeError: country is not two letters.
            InvalidCountryError: country is not in the supported set.
            MaxResultsOutOfRangeError: ``max_results`` outside 1-50.
            InvalidPriceRangeError: negative or inverted bounds.
        """
        name = (request.product_name or "").strip()
        if not name:
            raise EmptyProductNameError("Product name is required")

        country = (request.country or "").strip()
        if not _COUNTRY_CODE_RE.match(country):
            raise MalformedCountryCodeError(
                "Valid 2-letter country code is required"
            )
        country = country.upper()
        if not is_supported_country(country):
            raise InvalidCountryError(
                f"Country {country} is not supported"
            )

        max_results = request.max_results
        if (
            isinstance(max_results, bool)
            or not isinstance(max_results, int)
            or not (
                Settings.MIN_RESULTS_LIMIT
                <= max_results
                <= Settings.MAX_RESULTS_LIMIT
            )
        ):
            raise MaxResultsOutOfRangeError(
                f"max_results must be between "
                f"{Settings.MIN_RESULTS_LIMIT} and "
                f"{Settings.MAX_RESULTS_LIMIT}"
            )

        price_range = request.price_range
        if price_range is not None:
            bounds = [
                b for b in (price_range.min, price_range.max)
                if b is not None
            ]
            if any(b < 0 for b in bounds):
                raise InvalidPriceRangeError(
                    "Price bounds must not be negative"
                )
            if (
                price_range.min is not None
                and price_range.max is not None
                and price_range.min > price_range.max
            ):
                raise InvalidPriceRangeError(
                    "Minimum price exceeds maximum price"
                )

        return SearchRequest(
            product_name=name,
            country=country,
            max_results=max_results,
            price_range=price_range,
        )
