# pricescout/models/search.py

"""Request and response envelopes for one aggregation run."""

from dataclasses import dataclass, field
from typing import Any

from pricescout.config.settings import Settings
from pricescout.models.product import ProductCandidate


@dataclass(frozen=True)
class PriceRange:
    """Optional inclusive price bounds; either side may be open."""

    min: float | None = None
    max: float | None = None

    @property
    def is_open(self) -> bool:
        """True when neither bound is set."""
        return self.min is None and self.max is None


@dataclass
class SearchRequest:
    """A single product search."""

    product_name: str
    country: str
    max_results: int = Settings.DEFAULT_MAX_RESULTS
    price_range: PriceRange | None = None


@dataclass
class Insights:
    """Price statistics and advice attached to a ranked result."""

    min_price: float
    max_price: float
    average_price: float
    best_value: ProductCandidate | None = None
    premium_option: ProductCandidate | None = None
    recommendations: list[str] = field(
        default_factory=lambda: list[str]()
    )
    warnings: list[str] = field(default_factory=lambda: list[str]())

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a JSON-ready dict."""
        return {
            "price_range": {
                "min": self.min_price,
                "max": self.max_price,
            },
            "average_price": round(self.average_price, 2),
            "best_value": (
                self.best_value.to_dict() if self.best_value else None
            ),
            "premium_option": (
                self.premium_option.to_dict()
                if self.premium_option
                else None
            ),
            "recommendations": list(self.recommendations),
            "warnings": list(self.warnings),
        }


@dataclass
class AggregationResult:
    """Final, ranked, insight-annotated response for one request."""

    query: str
    country: str
    products: list[ProductCandidate] = field(
        default_factory=lambda: list[ProductCandidate]()
    )
    search_time_ms: int = 0
    sources: list[str] = field(default_factory=lambda: list[str]())
    insights: Insights | None = None
    confidence: int | None = None
    errors: list[str] = field(default_factory=lambda: list[str]())

    @property
    def total_results(self) -> int:
        """Number of products in the final list."""
        return len(self.products)

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a JSON-ready dict."""
        return {
            "query": self.query,
            "country": self.country,
            "total_results": self.total_results,
            "search_time_ms": self.search_time_ms,
            "sources": list(self.sources),
            "confidence": self.confidence,
            "insights": (
                self.insights.to_dict() if self.insights else None
            ),
            "products": [p.to_dict() for p in self.products],
            "errors": list(self.errors),
        }
