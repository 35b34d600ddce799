# pricescout/services/degrade_pipeline.py

"""Relevance, enhancement and ranking with an explicit degrade path.

Each stage is transform-or-pass-through: a failed call yields the
stage's input (or a local fallback ranking) and a recorded reason,
never an exception.
"""

import logging
from dataclasses import dataclass
from typing import Generic, TypeVar

from pricescout.ai.base import (
    AnalysisPreferences,
    AnalysisReport,
    ProductAnalyst,
    price_statistics,
)
from pricescout.filters.normalizer import parse_price
from pricescout.models.product import ProductCandidate
from pricescout.models.search import Insights

logger = logging.getLogger("pricescout.ai")

T = TypeVar("T")

FALLBACK_CONFIDENCE = 60
NO_PRICE_CONFIDENCE = 30


@dataclass
class StepOutcome(Generic[T]):
    """Value produced by one stage, and why it degraded if it did."""

    value: T
    degraded: bool = False
    reason: str | None = None


def fallback_ranking(candidates: list[ProductCandidate]) -> AnalysisReport:
    """Deterministic local ranking: cheapest parseable price first.

    Items whose price does not parse are not ranked but are appended
    after the ranked ones in their original order.
    """
    priced: list[tuple[float, int, ProductCandidate]] = []
    leftovers: list[ProductCandidate] = []
    for index, candidate in enumerate(candidates):
        value = parse_price(candidate.price)
        if value is None:
            leftovers.append(candidate)
        else:
            priced.append((value, index, candidate))
    priced.sort(key=lambda item: (item[0], item[1]))
    ranked = [c for _, _, c in priced]
    minimum, maximum, average = price_statistics(ranked)

    if ranked:
        insights = Insights(
            min_price=minimum,
            max_price=maximum,
            average_price=average,
            best_value=ranked[0],
            premium_option=ranked[-1],
            recommendations=["Products ranked by price (lowest first)"],
        )
        confidence = FALLBACK_CONFIDENCE
    else:
        insights = Insights(
            min_price=0.0,
            max_price=0.0,
            average_price=0.0,
            best_value=leftovers[0] if leftovers else None,
            premium_option=leftovers[0] if leftovers else None,
            recommendations=["No valid prices found for ranking"],
            warnings=["Unable to extract valid prices from products"],
        )
        confidence = NO_PRICE_CONFIDENCE
    return AnalysisReport(
        ranked=ranked + leftovers,
        insights=insights,
        confidence=confidence,
    )


class DegradePipeline:
    """filter -> enhance -> rank over an optional :class:`ProductAnalyst`.

    With no analyst configured every stage degrades immediately.
    """

    NO_ANALYST = "No product analyst configured"

    def __init__(self, analyst: ProductAnalyst | None = None) -> None:
        self.analyst = analyst

    async def filter_relevant(
        self,
        query: str,
        candidates: list[ProductCandidate],
    ) -> StepOutcome[list[ProductCandidate]]:
        """Drop off-topic candidates; keep all of them on any failure."""
        if self.analyst is None:
            return StepOutcome(candidates, True, self.NO_ANALYST)
        try:
            kept = await self.analyst.filter_relevant(query, candidates)
        except Exception as exc:
            logger.warning(
                "Relevance filter failed, keeping all candidates: %s", exc
            )
            return StepOutcome(
                candidates, True, f"Relevance filter failed: {exc}"
            )
        if candidates and not kept:
            logger.warning(
                "Relevance filter rejected all %d candidates, "
                "keeping them unfiltered",
                len(candidates),
            )
            return StepOutcome(
                candidates,
                True,
                "Relevance filter rejected every candidate",
            )
        return StepOutcome(kept)

    async def enhance(
        self,
        candidates: list[ProductCandidate],
    ) -> StepOutcome[list[ProductCandidate]]:
        """Clean fields; keep the originals on failure or size mismatch."""
        if self.analyst is None:
            return StepOutcome(candidates, True, self.NO_ANALYST)
        try:
            enhanced = await self.analyst.enhance(candidates)
        except Exception as exc:
            logger.warning(
                "Enhancement failed, keeping original data: %s", exc
            )
            return StepOutcome(candidates, True, f"Enhancement failed: {exc}")
        if len(enhanced) != len(candidates):
            logger.warning(
                "Enhancement returned %d items for %d, ignoring",
                len(enhanced),
                len(candidates),
            )
            return StepOutcome(
                candidates, True, "Enhancement changed the candidate count"
            )
        return StepOutcome(enhanced)

    async def rank(
        self,
        query: str,
        candidates: list[ProductCandidate],
        preferences: AnalysisPreferences | None = None,
    ) -> StepOutcome[AnalysisReport]:
        """Rank with the analyst, or fall back to price-ascending order."""
        if self.analyst is None:
            return StepOutcome(
                fallback_ranking(candidates), True, self.NO_ANALYST
            )
        if not candidates:
            return StepOutcome(
                fallback_ranking(candidates), True, "Nothing to rank"
            )
        try:
            report = await self.analyst.analyze(
                query, candidates, preferences or AnalysisPreferences()
            )
        except Exception as exc:
            logger.warning("Ranking failed, using price order: %s", exc)
            return StepOutcome(
                fallback_ranking(candidates), True, f"Ranking failed: {exc}"
            )
        return StepOutcome(report)
