# pricescout/ai/gemini.py

"""Gemini-backed product analyst over the generateContent REST API."""

import json
import logging
import re
from typing import Any

import httpx

from pricescout.ai.base import (
    AnalysisPreferences,
    AnalysisReport,
    price_statistics,
)
from pricescout.config.settings import Settings
from pricescout.errors import ExternalCapabilityError
from pricescout.models.product import ProductCandidate
from pricescout.models.search import Insights

logger = logging.getLogger("pricescout.ai")

_INDEX_ARRAY_RE = re.compile(r"\[[\d,\s]*\]")
_JSON_ARRAY_RE = re.compile(r"\[[\s\S]*\]")
_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")

DEFAULT_CONFIDENCE = 70

RELEVANCE_PROMPT = """\
You are an expert e-commerce product matcher. Analyze if the following \
products match the user's search query.

Search Query: "{query}"

Products to analyze:
{products}
Instructions:
1. Determine if each product is relevant to the search query
2. Consider variations in naming, model numbers, colors, sizes
3. Exclude products that are clearly different categories or accessories \
unless specifically searched for
4. Be lenient with brand names and model variations
5. Consider context (e.g., "iPhone 16" should match "iPhone 16 Pro" but \
not "iPhone 15")

Return ONLY a JSON array of indices (0-based) for products that match the \
query.
Example: [0, 2, 4] for products at positions 0, 2, and 4.

Response format: [numbers only]
"""

ENHANCE_PROMPT = """\
You are an e-commerce data enhancement specialist. Clean and standardize \
the following product data:

Products:
{products}
Instructions:
1. Clean and standardize product names (remove excess symbols, fix \
capitalization)
2. Normalize price format (extract numbers, handle currency symbols)
3. Standardize availability status
4. Extract meaningful features from product names
5. Improve seller information
6. Return the same structure with enhanced data

Return ONLY a JSON array of the enhanced products, in the same order.
"""

ANALYSIS_PROMPT = """\
You are an expert e-commerce price comparison analyst. Analyze and rank \
the following products based on the user's search query and preferences.

Original Search Query: "{query}"

User Preferences:
- Prioritize Price: {prioritize_price}
- Prioritize Rating: {prioritize_rating}
- Preferred Sellers: {preferred_sellers}
- Avoid Sellers: {avoid_sellers}

Products to analyze:
{products}
Instructions:
1. Rank products from best to worst value considering price, quality, \
and user preferences
2. Calculate price insights (min, max, average)
3. Identify the best value and premium options
4. Provide specific recommendations and warnings
5. Assign a confidence score (0-100) for your analysis

Return your analysis in this EXACT JSON format:
{{
  "rankedIndices": [array of product indices in ranked order, 0-based],
  "priceInsights": {{
    "minPrice": number,
    "maxPrice": number,
    "averagePrice": number,
    "bestValueIndex": number,
    "premiumOptionIndex": number
  }},
  "recommendations": [array of recommendation strings],
  "warnings": [array of warning strings],
  "confidence": number (0-100)
}}
"""


def _describe(index: int, c: ProductCandidate, detailed: bool = False) -> str:
    lines = [
        f"{index + 1}. Product: {c.name}",
        f"   Website: {c.source}",
        f"   Price: {c.price} {c.currency}",
    ]
    if detailed:
        lines += [
            f"   Rating: {c.rating if c.rating is not None else 'N/A'}",
            f"   Availability: {c.availability}",
            f"   Seller: {c.seller or 'N/A'}",
        ]
    lines.append(f"   Link: {c.link}")
    return "\n".join(lines) + "\n"


def _valid_index(value: Any, size: int) -> bool:
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and 0 <= value < size
    )


class GeminiAnalyst:
    """:class:`~pricescout.ai.base.ProductAnalyst` backed by Gemini.

    Transport and HTTP failures raise
    :class:`~pricescout.errors.ExternalCapabilityError`.  Unreadable
    relevance or enhancement replies hand back the input unchanged; an
    unreadable ranking raises so the caller can fall back.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = Settings()
        self.api_key = api_key or self.settings.GEMINI_API_KEY
        if not self.api_key:
            raise ValueError("Gemini API key is required")
        self.model = model or self.settings.GEMINI_MODEL
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.settings.GEMINI_TIMEOUT, connect=10.0)
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _generate(self, prompt: str) -> str:
        """Send *prompt* and return the first candidate's text."""
        url = self.settings.GEMINI_ENDPOINT.format(model=self.model)
        payload = {"contents": [{"parts": [{"text": prompt}]}]}
        try:
            response = await self.client.post(
                url, params={"key": self.api_key}, json=payload
            )
            response.raise_for_status()
            data = response.json()
            parts = data["candidates"][0]["content"]["parts"]
            return "".join(str(p.get("text", "")) for p in parts)
        except httpx.HTTPStatusError as e:
            raise ExternalCapabilityError(
                f"Gemini HTTP {e.response.status_code}",
                source="gemini",
                cause=e,
            ) from e
        except httpx.RequestError as e:
            raise ExternalCapabilityError(
                f"Gemini request failed: {e}", source="gemini", cause=e
            ) from e
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ExternalCapabilityError(
                "Gemini returned an unexpected payload",
                source="gemini",
                cause=e,
            ) from e

    # ── Relevance ────────────────────────────────────────

    async def filter_relevant(
        self,
        query: str,
        candidates: list[ProductCandidate],
    ) -> list[ProductCandidate]:
        """Keep the candidates the model judges on-topic for *query*."""
        if not candidates:
            return []
        prompt = RELEVANCE_PROMPT.format(
            query=query,
            products="".join(
                _describe(i, c) for i, c in enumerate(candidates)
            ),
        )
        text = await self._generate(prompt)
        indices = self._parse_indices(text)
        if indices is None:
            logger.warning(
                "Unreadable relevance reply, keeping all %d candidates",
                len(candidates),
            )
            return candidates
        kept = [
            candidates[i]
            for i in dict.fromkeys(indices)
            if _valid_index(i, len(candidates))
        ]
        logger.info(
            "Relevance kept %d of %d candidates", len(kept), len(candidates)
        )
        return kept

    @staticmethod
    def _parse_indices(text: str) -> list[int] | None:
        match = _INDEX_ARRAY_RE.search(text)
        if not match:
            return None
        try:
            parsed = json.loads(match.group())
        except json.JSONDecodeError:
            return None
        return [v for v in parsed if isinstance(v, int)]

    # ── Enhancement ──────────────────────────────────────

    async def enhance(
        self,
        candidates: list[ProductCandidate],
    ) -> list[ProductCandidate]:
        """Best-effort field cleanup; same length and order as the input."""
        if not candidates:
            return []
        prompt = ENHANCE_PROMPT.format(
            products="".join(
                f"{i + 1}. {json.dumps(c.to_dict(), indent=2)}\n"
                for i, c in enumerate(candidates)
            )
        )
        text = await self._generate(prompt)
        match = _JSON_ARRAY_RE.search(text)
        if not match:
            logger.warning("No JSON array in enhancement reply")
            return candidates
        try:
            enhanced = json.loads(match.group())
        except json.JSONDecodeError:
            logger.warning("Malformed JSON in enhancement reply")
            return candidates
        if not isinstance(enhanced, list) or len(enhanced) != len(candidates):
            logger.warning(
                "Enhancement returned %s items for %d candidates",
                len(enhanced) if isinstance(enhanced, list) else "no",
                len(candidates),
            )
            return candidates
        return [
            original.merged_with(update) if isinstance(update, dict) else original
            for original, update in zip(candidates, enhanced)
        ]

    # ── Ranking ──────────────────────────────────────────

    async def analyze(
        self,
        query: str,
        candidates: list[ProductCandidate],
        preferences: AnalysisPreferences,
    ) -> AnalysisReport:
        """Rank *candidates* and attach price insights.

        Raises:
            ExternalCapabilityError: the call failed or the reply held
                no usable ranking.
        """
        prompt = ANALYSIS_PROMPT.format(
            query=query,
            prioritize_price=str(preferences.prioritize_price).lower(),
            prioritize_rating=str(preferences.prioritize_rating).lower(),
            preferred_sellers=", ".join(preferences.preferred_sellers) or "None",
            avoid_sellers=", ".join(preferences.avoid_sellers) or "None",
            products="".join(
                _describe(i, c, detailed=True)
                for i, c in enumerate(candidates)
            ),
        )
        text = await self._generate(prompt)
        return self._parse_analysis(text, candidates)

    def _parse_analysis(
        self,
        text: str,
        candidates: list[ProductCandidate],
    ) -> AnalysisReport:
        match = _JSON_OBJECT_RE.search(text)
        if not match:
            raise ExternalCapabilityError(
                "No JSON found in ranking reply", source="gemini"
            )
        try:
            analysis = json.loads(match.group())
        except json.JSONDecodeError as e:
            raise ExternalCapabilityError(
                "Malformed JSON in ranking reply", source="gemini", cause=e
            ) from e
        if not isinstance(analysis, dict):
            raise ExternalCapabilityError(
                "Ranking reply is not an object", source="gemini"
            )

        raw_indices = analysis.get("rankedIndices")
        if not isinstance(raw_indices, list):
            raise ExternalCapabilityError(
                "Ranking reply has no rankedIndices", source="gemini"
            )
        order = list(
            dict.fromkeys(
                v for v in raw_indices if _valid_index(v, len(candidates))
            )
        )
        if not order:
            raise ExternalCapabilityError(
                "Ranking reply has no valid indices", source="gemini"
            )
        # Candidates the model left out stay available after the ranked ones
        order += [i for i in range(len(candidates)) if i not in order]
        ranked = [candidates[i] for i in order]

        price_insights = analysis.get("priceInsights")
        if not isinstance(price_insights, dict):
            price_insights = {}
        best = price_insights.get("bestValueIndex")
        premium = price_insights.get("premiumOptionIndex")
        minimum, maximum, average = price_statistics(candidates)

        insights = Insights(
            min_price=minimum,
            max_price=maximum,
            average_price=average,
            best_value=(
                candidates[best]
                if _valid_index(best, len(candidates))
                else ranked[0]
            ),
            premium_option=(
                candidates[premium]
                if _valid_index(premium, len(candidates))
                else ranked[-1]
            ),
            recommendations=self._strings(analysis.get("recommendations")),
            warnings=self._strings(analysis.get("warnings")),
        )
        return AnalysisReport(
            ranked=ranked,
            insights=insights,
            confidence=self._confidence(analysis.get("confidence")),
        )

    @staticmethod
    def _strings(value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        return [str(v) for v in value if str(v).strip()]

    @staticmethod
    def _confidence(value: Any) -> int:
        """Clamp to 0-100; a missing or zero score means the default."""
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return DEFAULT_CONFIDENCE
        return int(min(max(value or DEFAULT_CONFIDENCE, 0), 100))
