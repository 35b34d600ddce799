# pricescout/services/health_checker.py

"""Source connectivity health checker."""

import asyncio
import logging
import time
from dataclasses import dataclass

from pricescout.config.websites import SourceRegistry
from pricescout.scrapers.base_scraper import BaseScraper
from pricescout.scrapers.search_engine_extractor import SearchEngineExtractor

logger = logging.getLogger("pricescout.health")

_HEALTH_TIMEOUT = 10  # seconds per source
_SLOW_THRESHOLD_MS = 5000


@dataclass
class HealthResult:
    """Result of a single source health check."""

    source_id: str
    status: str  # "ok", "slow", "down"
    latency_ms: float
    message: str


async def probe_source(
    scraper: BaseScraper,
    source_id: str,
    url: str,
) -> HealthResult:
    """GET *url* once and classify the source as ok, slow or down."""
    start = time.monotonic()
    try:
        resp = await scraper.session.get(
            url,
            headers={**scraper.settings.DEFAULT_HEADERS, "Referer": url},
            timeout=_HEALTH_TIMEOUT,
        )
    except Exception as exc:
        return HealthResult(
            source_id=source_id,
            status="down",
            latency_ms=(time.monotonic() - start) * 1000,
            message=str(exc)[:80],
        )
    elapsed_ms = (time.monotonic() - start) * 1000

    if resp.status_code != 200:
        return HealthResult(
            source_id, "down", elapsed_ms, f"HTTP {resp.status_code}"
        )
    if elapsed_ms > _SLOW_THRESHOLD_MS:
        return HealthResult(source_id, "slow", elapsed_ms, "High latency")
    return HealthResult(source_id, "ok", elapsed_ms, "")


class HealthChecker:
    """Runs concurrent health probes against every configured source."""

    def __init__(
        self,
        registry: SourceRegistry | None = None,
        scraper: BaseScraper | None = None,
    ) -> None:
        self.registry = registry or SourceRegistry.from_json()
        self.scraper = scraper or BaseScraper("health")

    def targets(self) -> dict[str, str]:
        """Source name to probe URL, search engine first."""
        targets = {"Google Search": SearchEngineExtractor.HOMEPAGE}
        for country in self.registry.countries():
            for source in self.registry.for_country(country):
                targets.setdefault(source.name, f"{source.base_url}/")
        return targets

    async def check_all(self) -> list[HealthResult]:
        """Probe every source concurrently."""
        try:
            results: list[HealthResult] = list(
                await asyncio.gather(
                    *(
                        probe_source(self.scraper, name, url)
                        for name, url in self.targets().items()
                    )
                )
            )
        finally:
            await self.scraper.close()
        for r in results:
            logger.info(
                "Health check %s: %s (%.0fms) %s",
                r.source_id,
                r.status,
                r.latency_ms,
                r.message,
            )
        return results
