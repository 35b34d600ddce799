# pricescout/ai/base.py

"""Contract for the external relevance / enhancement / ranking capability."""

from dataclasses import dataclass, field
from typing import Protocol

from pricescout.filters.normalizer import parse_price
from pricescout.models.product import ProductCandidate
from pricescout.models.search import Insights


@dataclass
class AnalysisPreferences:
    """User preferences forwarded to the ranking call."""

    prioritize_price: bool = True
    prioritize_rating: bool = False
    preferred_sellers: list[str] = field(default_factory=lambda: list[str]())
    avoid_sellers: list[str] = field(default_factory=lambda: list[str]())


@dataclass
class AnalysisReport:
    """Ranked candidates plus insights and a 0-100 confidence score."""

    ranked: list[ProductCandidate]
    insights: Insights
    confidence: int


class ProductAnalyst(Protocol):
    """A generative capability that judges, cleans and ranks candidates.

    Implementations raise
    :class:`~pricescout.errors.ExternalCapabilityError` when the call
    itself fails; callers own the degrade path.
    """

    async def filter_relevant(
        self,
        query: str,
        candidates: list[ProductCandidate],
    ) -> list[ProductCandidate]: ...

    async def enhance(
        self,
        candidates: list[ProductCandidate],
    ) -> list[ProductCandidate]: ...

    async def analyze(
        self,
        query: str,
        candidates: list[ProductCandidate],
        preferences: AnalysisPreferences,
    ) -> AnalysisReport: ...


def price_statistics(
    candidates: list[ProductCandidate],
) -> tuple[float, float, float]:
    """(min, max, average) over parseable prices; zeros when none parse."""
    prices = [
        value
        for value in (parse_price(c.price) for c in candidates)
        if value is not None
    ]
    if not prices:
        return 0.0, 0.0, 0.0
    return min(prices), max(prices), sum(prices) / len(prices)
