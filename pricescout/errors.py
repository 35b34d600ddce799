# pricescout/errors.py

"""Error taxonomy for the price aggregation engine.

Only request-validation failures and total-exhaustion failures
(:class:`InvalidCountryError`, :class:`NoResultsFoundError`) ever reach
the caller.  Everything else is raised at a component boundary, caught
by the orchestrator, logged, and downgraded to a skip or a degrade path.
"""


class PriceComparisonError(Exception):
    """Base class for every error raised by pricescout."""

    code: str = "PRICE_COMPARISON_ERROR"

    def __init__(
        self,
        message: str,
        source: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.source = source
        self.cause = cause

    def __str__(self) -> str:
        if self.source:
            return f"{self.message} [{self.source}]"
        return self.message


class InvalidRequestError(PriceComparisonError):
    """Malformed search request.  Local, never retried."""

    code = "INVALID_REQUEST"


class EmptyProductNameError(InvalidRequestError):
    """The product name is missing or blank."""


class MalformedCountryCodeError(InvalidRequestError):
    """The country code is not a 2-letter code."""


class MaxResultsOutOfRangeError(InvalidRequestError):
    """``max_results`` is outside the accepted bounds."""


class InvalidPriceRangeError(InvalidRequestError):
    """The price range is negative or inverted."""


class InvalidCountryError(PriceComparisonError):
    """Well-formed but unsupported country code."""

    code = "INVALID_COUNTRY"


class NoResultsFoundError(PriceComparisonError):
    """Every collection path finished without a single candidate."""

    code = "NO_RESULTS_FOUND"


class NetworkError(PriceComparisonError):
    """A single source could not be fetched."""

    code = "NETWORK_ERROR"


class SearchEngineError(PriceComparisonError):
    """Both search-engine sub-strategies failed."""

    code = "SEARCH_ENGINE_ERROR"


class ExternalCapabilityError(PriceComparisonError):
    """The generative relevance/enhancement/ranking call failed."""

    code = "AI_SERVICE_ERROR"
