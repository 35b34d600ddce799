# pricescout/scrapers/site_extractor.py

"""Selector-driven extraction from configured storefront search pages."""

from bs4 import BeautifulSoup, Tag

from pricescout.errors import NetworkError
from pricescout.filters.normalizer import (
    clean_price,
    clean_product_name,
    clean_text,
    normalize_rating,
    resolve_image,
    resolve_link,
)
from pricescout.models.product import ProductCandidate
from pricescout.models.source import SourceDescriptor
from pricescout.scrapers.base_scraper import BaseScraper
from pricescout.scrapers.browser import BrowserManager
from pricescout.scrapers.rate_governor import RateGovernor


class SiteExtractor(BaseScraper):
    """Scrape one storefront's search results using its selector map.

    Static storefronts are fetched over ``curl_cffi`` (with the
    cloudscraper fallback); storefronts flagged ``requires_rendering``
    go through the shared :class:`BrowserManager`.
    """

    def __init__(
        self,
        rate_governor: RateGovernor | None = None,
        browser: BrowserManager | None = None,
    ) -> None:
        super().__init__("sites", rate_governor)
        self.browser = browser or BrowserManager()

    async def extract(
        self,
        descriptor: SourceDescriptor,
        query: str,
        max_results: int,
    ) -> list[ProductCandidate]:
        """Fetch *descriptor*'s results page for *query* and parse it.

        Raises:
            NetworkError: the page could not be fetched or rendered.
        """
        url = descriptor.build_search_url(query)
        await self.rate_governor.await_slot(
            descriptor.key, descriptor.rate_limit_ms
        )
        self.logger.info("[%s] Fetching %s", descriptor.name, url)

        try:
            if descriptor.requires_rendering:
                html = await self.browser.fetch_rendered(
                    url,
                    wait_selector=descriptor.selectors.container,
                    timeout=self._request_timeout,
                )
            else:
                html = await self._get_page(
                    url,
                    descriptor.key,
                    referer=f"{descriptor.base_url}/",
                    interval_ms=descriptor.rate_limit_ms,
                )
        except NetworkError:
            raise
        except Exception as exc:
            raise NetworkError(
                f"Failed to scrape {descriptor.name}",
                source=descriptor.name,
                cause=exc,
            ) from exc

        products = self.parse_results(html, descriptor, max_results)
        self.logger.info(
            "[%s] Extracted %d candidates", descriptor.name, len(products)
        )
        return products

    def parse_results(
        self,
        html: str,
        descriptor: SourceDescriptor,
        max_results: int,
    ) -> list[ProductCandidate]:
        """Parse up to *max_results* candidates from result markup.

        Oversamples ``2 x max_results`` containers since some will be
        rejected for missing fields.
        """
        soup = BeautifulSoup(html, "lxml")
        cards = soup.select(
            descriptor.selectors.container, limit=max_results * 2
        )
        products: list[ProductCandidate] = []
        for index, card in enumerate(cards):
            try:
                product = self._parse_card(card, descriptor)
            except Exception as exc:
                self.logger.warning(
                    "[%s] Error parsing result %d: %s",
                    descriptor.name,
                    index,
                    exc,
                )
                continue
            if product is not None:
                products.append(product)
        return products[:max_results]

    def _parse_card(
        self,
        card: Tag,
        descriptor: SourceDescriptor,
    ) -> ProductCandidate | None:
        """Parse one container; ``None`` if a mandatory field is empty."""
        selectors = descriptor.selectors
        name = clean_product_name(self._select_text(card, selectors.name))
        price = clean_price(self._select_text(card, selectors.price))
        link = self._select_link(card, selectors.link, descriptor.base_url)
        if not name or not price or not link:
            return None

        return ProductCandidate(
            name=name,
            price=price,
            currency=descriptor.currency,
            link=link,
            source=descriptor.name,
            availability=(
                clean_text(self._select_text(card, selectors.availability))
                or "Unknown"
            ),
            rating=normalize_rating(
                self._select_text(card, selectors.rating)
            ),
            image_url=(
                self._select_image(card, selectors.image, descriptor.base_url)
                or None
            ),
            seller=clean_text(self._select_text(card, selectors.seller)) or None,
            shipping=(
                clean_text(self._select_text(card, selectors.shipping)) or None
            ),
        )

    @staticmethod
    def _select_text(card: Tag, selector: str) -> str:
        """Text of the first match, else its ``aria-label``; '' if unset."""
        if not selector:
            return ""
        element = card.select_one(selector)
        if element is None:
            return ""
        text = element.get_text(" ", strip=True)
        if text:
            return text
        return str(element.get("aria-label") or "")

    @staticmethod
    def _select_link(card: Tag, selector: str, base_url: str) -> str:
        element = card.select_one(selector)
        if element is None:
            return ""
        return resolve_link(str(element.get("href") or ""), base_url)

    @staticmethod
    def _select_image(card: Tag, selector: str, base_url: str) -> str:
        if not selector:
            return ""
        element = card.select_one(selector)
        if element is None:
            return ""
        src = (
            element.get("src")
            or element.get("data-src")
            or element.get("data-lazy-src")
            or ""
        )
        return resolve_image(str(src), base_url)

    async def close(self) -> None:
        """Release the HTTP session and the shared browser."""
        await super().close()
        await self.browser.close()
