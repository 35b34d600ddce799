# pricescout/scrapers/base_scraper.py

"""Shared fetch transport for the site and search-engine extractors."""

import asyncio
import logging
import time
from typing import Any

import cloudscraper  # type: ignore[import-untyped]
from curl_cffi import requests as curl_requests

from pricescout.config.settings import Settings
from pricescout.errors import NetworkError
from pricescout.scrapers.rate_governor import RateGovernor


class BaseScraper:
    """Browser-impersonating fetch layer with per-source resilience.

    Every source key (a storefront name, or the search-engine provider)
    carries its own adaptive back-off and circuit breaker, so one
    misbehaving site never slows down or blocks the others.
    """

    # Cloudflare challenge page markers (checked before keyword scan)
    _CF_CHALLENGE_MARKERS: list[str] = [
        "challenges.cloudflare.com",
        "cdn-cgi/challenge-platform",
        "just a moment",
        "cf-turnstile",
        "cf_chl_opt",
    ]

    def __init__(
        self,
        scraper_name: str,
        rate_governor: RateGovernor | None = None,
    ) -> None:
        self.scraper_name = scraper_name
        self.logger = logging.getLogger(f"pricescout.{scraper_name}")
        self.settings = Settings()
        self.rate_governor = rate_governor or RateGovernor()
        self._session: Any = None
        self._request_timeout: int = self.settings.REQUEST_TIMEOUT
        self._delays: dict[str, float] = {}
        self._consecutive_failures: dict[str, int] = {}
        self._circuit_opened_at: dict[str, float] = {}

    @property
    def session(self) -> Any:
        """Lazily created ``curl_cffi`` async session."""
        if self._session is None:
            self._session = curl_requests.AsyncSession(
                impersonate=self.settings.IMPERSONATE_BROWSER
            )
        return self._session

    @session.setter
    def session(self, value: Any) -> None:
        self._session = value

    # ── Resilience state ─────────────────────────────────

    def _delay_for(self, key: str) -> float:
        return self._delays.get(key, self.settings.REQUEST_DELAY)

    def _escalate_delay(self, key: str) -> float:
        """Double the back-off for *key* up to the configured max."""
        max_delay = (
            self.settings.REQUEST_DELAY
            * self.settings.MAX_DELAY_MULTIPLIER
        )
        delay = min(self._delay_for(key) * 2, max_delay)
        self._delays[key] = delay
        self.logger.warning(
            "[%s] Rate-limited, delay escalated to %.1fs", key, delay
        )
        return delay

    def _check_circuit(self, key: str) -> bool:
        """Return True if the circuit breaker blocks requests for *key*.

        After CIRCUIT_BREAKER_COOLDOWN seconds the breaker half-opens,
        letting a single probe request through.
        """
        opened_at = self._circuit_opened_at.get(key)
        if opened_at is None:
            return False
        elapsed = time.time() - opened_at
        if elapsed >= self.settings.CIRCUIT_BREAKER_COOLDOWN:
            self.logger.info(
                "[%s] Circuit breaker half-open after %.0fs",
                key,
                elapsed,
            )
            del self._circuit_opened_at[key]
            return False
        return True

    def _record_success(self, key: str) -> None:
        """Reset failure counters after a successful fetch."""
        self._consecutive_failures.pop(key, None)
        self._circuit_opened_at.pop(key, None)
        self._delays.pop(key, None)

    def _record_failure(self, key: str) -> None:
        """Track a failed fetch and open the breaker at the threshold."""
        failures = self._consecutive_failures.get(key, 0) + 1
        self._consecutive_failures[key] = failures
        if failures >= self.settings.CIRCUIT_BREAKER_THRESHOLD:
            self._circuit_opened_at[key] = time.time()
            self.logger.error(
                "[%s] Circuit breaker opened after %d "
                "consecutive failures",
                key,
                failures,
            )

    def _validate_response(self, key: str, text: str) -> bool:
        """Check for Cloudflare challenge pages and CAPTCHA indicators."""
        if text.lstrip().startswith(("{", "[")):
            return True
        lower = text.lower()

        for marker in self._CF_CHALLENGE_MARKERS:
            if marker in lower:
                self.logger.warning(
                    "[%s] Cloudflare challenge detected "
                    "(marker: '%s')",
                    key,
                    marker,
                )
                return False

        # Skip the keyword scan on content-rich pages; result listings
        # routinely mention "captcha" in footer scripts
        has_body_content = "<body" in lower and len(text) > 5000
        if not has_body_content:
            for keyword in self.settings.CAPTCHA_KEYWORDS:
                if keyword in lower:
                    self.logger.warning(
                        "[%s] CAPTCHA keyword '%s' detected",
                        key,
                        keyword,
                    )
                    return False
        return True

    # ── Fetching ─────────────────────────────────────────

    async def _fetch_get(
        self,
        url: str,
        key: str,
        headers: dict[str, str],
        interval_ms: int | None = None,
    ) -> curl_requests.Response | None:
        """GET with retries, adaptive delay, and circuit breaker.

        The caller holds the slot for the first attempt; every retry
        takes a fresh slot from the rate governor.
        """
        if self._check_circuit(key):
            return None
        for attempt in range(self.settings.MAX_RETRIES):
            if attempt:
                await self.rate_governor.await_slot(key, interval_ms)
            try:
                resp = await self.session.get(
                    url,
                    headers=headers,
                    timeout=self._request_timeout,
                    allow_redirects=True,
                    max_redirects=self.settings.MAX_REDIRECTS,
                )
                if resp.status_code == 200:
                    if not self._validate_response(key, resp.text):
                        await asyncio.sleep(self._escalate_delay(key))
                        continue
                    self._record_success(key)
                    return resp
                self.logger.warning(
                    "[%s] HTTP %d on attempt %d",
                    key,
                    resp.status_code,
                    attempt + 1,
                )
                if resp.status_code in (429, 403):
                    await asyncio.sleep(self._escalate_delay(key))
            except Exception as exc:
                self.logger.warning(
                    "[%s] Request error on attempt %d: %s",
                    key,
                    attempt + 1,
                    exc,
                    exc_info=True,
                )
                await asyncio.sleep(
                    self._delay_for(key) * (attempt + 1)
                )
        self._record_failure(key)
        return None

    def _fetch_cloudscraper(
        self,
        url: str,
        headers: dict[str, str],
    ) -> str | None:
        """Blocking cloudscraper GET (JS challenge solver)."""
        _cs: Any = cloudscraper
        scraper: Any = _cs.create_scraper()
        resp: Any = scraper.get(
            url,
            headers=headers,
            timeout=self._request_timeout,
        )
        if resp.status_code == 200:
            return str(resp.text)
        self.logger.warning(
            "cloudscraper got HTTP %d for %s", resp.status_code, url
        )
        return None

    async def _get_page(
        self,
        url: str,
        key: str,
        referer: str,
        extra_headers: dict[str, str] | None = None,
        interval_ms: int | None = None,
    ) -> str:
        """Fetch page markup, falling back to cloudscraper on failure.

        *interval_ms* is the source's rate interval; retries and the
        fallback request are paced by it like any other request.

        Raises:
            NetworkError: the circuit is open or both transports failed.
        """
        if self._check_circuit(key):
            raise NetworkError(
                "Circuit breaker open, skipping fetch", source=key
            )
        headers: dict[str, str] = {
            **self.settings.DEFAULT_HEADERS,
            "Referer": referer,
            **(extra_headers or {}),
        }

        # Primary: curl_cffi (browser-impersonating TLS)
        resp = await self._fetch_get(url, key, headers, interval_ms)
        if resp is not None:
            return str(resp.text)

        self.logger.info(
            "[%s] curl_cffi exhausted, falling back to cloudscraper",
            key,
        )
        await self.rate_governor.await_slot(key, interval_ms)
        try:
            text = await asyncio.to_thread(
                self._fetch_cloudscraper, url, headers
            )
        except Exception as exc:
            self.logger.error(
                "[%s] cloudscraper fallback also failed: %s",
                key,
                exc,
                exc_info=True,
            )
            raise NetworkError(
                f"Failed to fetch {url}", source=key, cause=exc
            ) from exc
        if text is None:
            raise NetworkError(f"Failed to fetch {url}", source=key)
        return text

    async def close(self) -> None:
        """Release pooled connections."""
        if self._session is not None:
            await self._session.close()
            self._session = None
