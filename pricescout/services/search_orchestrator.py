# pricescout/services/search_orchestrator.py

"""Orchestrates one price-comparison request across every source."""

import asyncio
import logging
import math
import time
from typing import Any

from pricescout.ai.base import AnalysisPreferences, ProductAnalyst
from pricescout.config.countries import SUPPORTED_COUNTRIES
from pricescout.config.settings import Settings
from pricescout.config.websites import SourceRegistry
from pricescout.errors import InvalidCountryError, NoResultsFoundError
from pricescout.filters.deduplicator import ProductDeduplicator
from pricescout.filters.product_filter import ProductFilter
from pricescout.filters.product_validator import ProductValidator
from pricescout.filters.request_validator import RequestValidator
from pricescout.models.product import ProductCandidate
from pricescout.models.search import AggregationResult, SearchRequest
from pricescout.models.source import SourceDescriptor
from pricescout.scrapers.rate_governor import RateGovernor
from pricescout.scrapers.search_engine_extractor import SearchEngineExtractor
from pricescout.scrapers.site_extractor import SiteExtractor
from pricescout.services.degrade_pipeline import DegradePipeline, StepOutcome

logger = logging.getLogger("pricescout.orchestrator")

SEARCH_ENGINE_SOURCES = ["Google Shopping", "Global E-commerce Sites"]
INTERNATIONAL_SOURCES = ["Amazon (International)", "eBay (International)"]


def _unique(names: list[str]) -> list[str]:
    return list(dict.fromkeys(names))


class SearchOrchestrator:
    """Coordinates source selection, extraction, cleaning and ranking.

    Strategy is chosen per request from the global search mode:
    search-engine first (with a direct-site supplement when it
    under-delivers, and a full direct-site fallback when it fails), or
    direct-site scraping only.
    """

    def __init__(
        self,
        registry: SourceRegistry | None = None,
        search_extractor: SearchEngineExtractor | None = None,
        site_extractor: SiteExtractor | None = None,
        analyst: ProductAnalyst | None = None,
        rate_governor: RateGovernor | None = None,
        use_search_engine: bool | None = None,
        low_result_threshold: int | None = None,
        max_concurrent: int | None = None,
        batch_pause: float | None = None,
    ) -> None:
        self.settings = Settings()
        self.registry = registry or SourceRegistry.from_json()
        self.rate_governor = rate_governor or RateGovernor(
            self.settings.DEFAULT_RATE_LIMIT_MS
        )
        self.search_extractor = search_extractor or SearchEngineExtractor(
            self.rate_governor
        )
        self.site_extractor = site_extractor or SiteExtractor(
            self.rate_governor
        )
        self.pipeline = DegradePipeline(analyst)
        self.use_search_engine = (
            self.settings.USE_SEARCH_ENGINE
            if use_search_engine is None
            else use_search_engine
        )
        self.low_result_threshold = (
            self.settings.LOW_RESULT_THRESHOLD
            if low_result_threshold is None
            else low_result_threshold
        )
        self.max_concurrent = (
            self.settings.MAX_CONCURRENT_REQUESTS
            if max_concurrent is None
            else max_concurrent
        )
        if self.max_concurrent <= 0:
            raise ValueError(
                f"max_concurrent must be positive, got {self.max_concurrent}"
            )
        self.batch_pause = (
            self.settings.BATCH_PAUSE if batch_pause is None else batch_pause
        )

    # ── Search mode ──────────────────────────────────────

    def set_search_mode(self, use_search_engine: bool) -> None:
        """Switch between search-engine and direct-site collection."""
        self.use_search_engine = use_search_engine
        logger.info("Search mode set to %s", self.search_mode)

    @property
    def search_mode(self) -> str:
        """Human-readable label for the current collection strategy."""
        if self.use_search_engine:
            return "Search Engine (Global)"
        return "Direct Scraping (Limited)"

    # ── Source resolution ────────────────────────────────

    def resolve_sources(self, country: str) -> list[SourceDescriptor]:
        """Configured storefronts for *country*, or the international set.

        Raises:
            InvalidCountryError: neither list has any storefront.
        """
        sources = self.registry.for_country(country)
        if not sources:
            logger.info(
                "No storefronts configured for %s, using international "
                "fallbacks",
                country,
            )
            sources = self.registry.international_fallback()
        if not sources:
            raise InvalidCountryError(
                f"No supported websites found for country: {country}"
            )
        return sources

    def get_supported_countries(self) -> list[dict[str, Any]]:
        """Every supported country with the sources used in this mode."""
        countries: list[dict[str, Any]] = []
        for code, name in SUPPORTED_COUNTRIES.items():
            if self.use_search_engine:
                sources = list(SEARCH_ENGINE_SOURCES)
            else:
                configured = self.registry.for_country(code)
                sources = (
                    [s.name for s in configured]
                    if configured
                    else list(INTERNATIONAL_SOURCES)
                )
            countries.append({"code": code, "name": name, "sources": sources})
        return countries

    def get_stats(self) -> dict[str, Any]:
        """Search mode, per-source request counters, coverage figures."""
        return {
            "search_mode": self.search_mode,
            "request_counts": self.rate_governor.request_counts(),
            "supported_countries": len(SUPPORTED_COUNTRIES),
            "configured_countries": len(self.registry.countries()),
            "configured_sources": sum(
                len(self.registry.for_country(c))
                for c in self.registry.countries()
            ),
        }

    # ── Collection paths ─────────────────────────────────

    async def _scrape_sources(
        self,
        sources: list[SourceDescriptor],
        request: SearchRequest,
        errors: list[str],
    ) -> tuple[list[ProductCandidate], list[str]]:
        """Scrape *sources* in batches of ``max_concurrent``.

        A failing source is logged, recorded in *errors* and skipped.
        Returns the candidates and the names of sources that yielded any.
        """
        per_source = math.ceil(
            request.max_results * self.settings.SITE_OVERSAMPLE
        )
        products: list[ProductCandidate] = []
        contributing: list[str] = []

        for start in range(0, len(sources), self.max_concurrent):
            batch = sources[start:start + self.max_concurrent]
            results = await asyncio.gather(
                *(
                    self.site_extractor.extract(
                        source, request.product_name, per_source
                    )
                    for source in batch
                ),
                return_exceptions=True,
            )
            for source, result in zip(batch, results):
                if isinstance(result, BaseException):
                    errors.append(f"{source.name}: {result}")
                    logger.warning(
                        "Failed to scrape %s: %s",
                        source.name,
                        result,
                        exc_info=result,
                    )
                    continue
                logger.info(
                    "Found %d products from %s", len(result), source.name
                )
                if result:
                    contributing.append(source.name)
                products.extend(result)

            if start + self.max_concurrent < len(sources):
                await asyncio.sleep(self.batch_pause)

        return products, contributing

    async def _direct_site_path(
        self,
        request: SearchRequest,
        errors: list[str],
    ) -> tuple[list[ProductCandidate], list[str]]:
        sources = self.resolve_sources(request.country)
        logger.info(
            "Direct scraping '%s' across %d storefronts in %s",
            request.product_name,
            len(sources),
            request.country,
        )
        return await self._scrape_sources(sources, request, errors)

    async def _search_engine_path(
        self,
        request: SearchRequest,
        errors: list[str],
    ) -> tuple[list[ProductCandidate], list[str]]:
        try:
            products = await self.search_extractor.extract(
                request.product_name,
                request.country,
                request.max_results * self.settings.SEARCH_ENGINE_OVERSAMPLE,
            )
        except Exception as exc:
            errors.append(f"Search engine: {exc}")
            logger.warning(
                "Search engine failed, falling back to direct scraping: %s",
                exc,
            )
            return await self._direct_site_path(request, errors)

        sources = _unique([p.source for p in products])
        logger.info(
            "Search engine found %d products from %d websites",
            len(products),
            len(sources),
        )
        if len(products) >= self.low_result_threshold:
            return products, sources

        logger.info(
            "Search engine returned few results, supplementing with "
            "direct scraping"
        )
        try:
            direct, direct_sources = await self._direct_site_path(
                request, errors
            )
        except Exception as exc:
            errors.append(f"Direct supplement: {exc}")
            logger.warning("Direct scraping supplement failed: %s", exc)
            return products, sources

        existing = {p.link for p in products}
        added = [p for p in direct if p.link not in existing]
        logger.info("Added %d products from direct scraping", len(added))
        return products + added, _unique(sources + direct_sources)

    # ── Entry point ──────────────────────────────────────

    @staticmethod
    def _note(outcome: StepOutcome[Any], errors: list[str]) -> None:
        if outcome.degraded and outcome.reason and outcome.reason not in errors:
            errors.append(outcome.reason)

    async def search(self, request: SearchRequest) -> AggregationResult:
        """Run one price comparison end to end.

        Raises:
            InvalidRequestError: the request is malformed.
            InvalidCountryError: the country is unsupported, or no
                storefront could be resolved for it.
            NoResultsFoundError: every collection path came back empty.
        """
        started = time.perf_counter()
        request = RequestValidator.validate(request)
        errors: list[str] = []
        logger.info(
            "Price comparison for '%s' in %s (%s)",
            request.product_name,
            request.country,
            self.search_mode,
        )

        if self.use_search_engine:
            collected, sources = await self._search_engine_path(
                request, errors
            )
        else:
            collected, sources = await self._direct_site_path(
                request, errors
            )

        if not collected:
            raise NoResultsFoundError(
                "No products found. Try adjusting your search terms "
                "or try again later."
            )

        unique, removed = ProductDeduplicator.deduplicate(collected)
        logger.info(
            "%d candidates after removing %d duplicates",
            len(unique),
            removed,
        )

        relevant = await self.pipeline.filter_relevant(
            request.product_name, unique
        )
        self._note(relevant, errors)
        enhanced = await self.pipeline.enhance(relevant.value)
        self._note(enhanced, errors)

        valid, _ = ProductValidator.validate(enhanced.value)
        filtered, _ = ProductFilter.filter_by_price_range(
            valid, request.price_range
        )

        ranking = await self.pipeline.rank(
            request.product_name, filtered, AnalysisPreferences()
        )
        self._note(ranking, errors)
        report = ranking.value

        result = AggregationResult(
            query=request.product_name,
            country=request.country,
            products=report.ranked[:request.max_results],
            search_time_ms=int((time.perf_counter() - started) * 1000),
            sources=sources,
            insights=report.insights,
            confidence=report.confidence,
            errors=errors,
        )
        logger.info(
            "Price comparison completed in %dms with %d products",
            result.search_time_ms,
            result.total_results,
        )
        return result

    async def close(self) -> None:
        """Release the HTTP sessions and the shared browser."""
        await self.search_extractor.close()
        await self.site_extractor.close()
