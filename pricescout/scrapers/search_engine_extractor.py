# pricescout/scrapers/search_engine_extractor.py

"""Configuration-free extraction from search-engine result pages."""

import math
import urllib.parse
from functools import partial

from bs4 import BeautifulSoup, Tag

from pricescout.config.countries import (
    currency_for_country,
    popular_sites_for_country,
    search_engine_locale,
)
from pricescout.errors import SearchEngineError
from pricescout.filters.normalizer import (
    CURRENCY_PRICE_RE,
    clean_price,
    clean_text,
    extract_website_name,
    find_price_in_text,
    first_non_empty,
    looks_like_price,
    normalize_rating,
    normalize_url,
    unwrap_redirect_url,
)
from pricescout.models.product import ProductCandidate
from pricescout.scrapers.base_scraper import BaseScraper
from pricescout.scrapers.rate_governor import RateGovernor


class SearchEngineExtractor(BaseScraper):
    """Find priced listings through Google Shopping and web search.

    Page structure is located heuristically: each field is read through
    an ordered list of selectors and attribute fallbacks, first
    non-empty value wins.
    """

    BASE_URL = "https://www.google.com/search"
    HOMEPAGE = "https://www.google.com/"
    PROVIDER_KEY = "google"

    SHOPPING_CONTAINER_SELECTORS: list[str] = [
        ".sh-dgr__grid-result",
        ".sh-pr__product-results",
        ".sh-np__click-target",
        ".pla-unit",
        ".mnr-c",
        ".aw5Odc",
        ".sh-dlr__list-result",
        "[data-sh-pr]",
    ]
    NAME_SELECTORS: list[str] = [
        ".sh-np__product-title",
        ".PLla-pc",
        "h3",
        ".product-title",
        "[data-sh-p]",
        ".sh-dlr__list-result-title",
        ".a-size-base-plus",
        ".a-size-mini",
        ".translate-content",
        "h4",
        ".title",
        "[aria-label]",
    ]
    PRICE_SELECTORS: list[str] = [
        ".a30cke",
        ".g9WBQb",
        ".sh-pr__price",
        ".price",
        "[data-sh-p-price]",
        ".a-price-whole",
        ".a-offscreen",
        ".notranslate",
        ".currency",
        ".amount",
    ]
    PRICE_ATTRIBUTES: list[str] = ["data-sh-p-price", "data-price"]
    SELLER_SELECTORS: list[str] = [
        ".sh-np__seller-name",
        ".merchant-name",
        ".seller",
    ]
    RATING_SELECTOR = ".Rsc7Yb"

    GENERIC_LINK_SELECTOR = (
        'a[href*="amazon"], a[href*="ebay"], '
        'a[href*="walmart"], a[href*="shop"]'
    )
    GENERIC_PRICE_PLACEHOLDER = "Price available on site"

    WEB_RESULT_SELECTOR = ".g, .tF2Cxc"
    SNIPPET_SELECTOR = ".VwiC3b, .s, .st"

    BLOCK_MARKERS: list[str] = ["unusual traffic", "CAPTCHA", "blocked"]
    BUYING_KEYWORDS: list[str] = [
        "buy", "price", "shop", "store", "cart", "purchase", "order",
        "sale", "deal", "offer", "discount",
        "$", "€", "£", "¥", "₹",
    ]
    MARKETPLACE_DOMAINS: list[str] = [
        "amazon", "ebay", "walmart", "target", "bestbuy", "shop",
        "store", "market", "mall", "flipkart", "alibaba", "etsy",
    ]

    SHOPPING_MAX_NUM = 20
    WEB_MAX_NUM = 10

    def __init__(self, rate_governor: RateGovernor | None = None) -> None:
        super().__init__("search_engine", rate_governor)

    def _validate_response(self, key: str, text: str) -> bool:
        """Accept every 200 page; block detection happens per pass."""
        return True

    async def extract(
        self,
        query: str,
        country: str,
        max_results: int,
    ) -> list[ProductCandidate]:
        """Run the shopping pass, then the web pass if under-filled.

        Raises:
            SearchEngineError: every attempted pass failed outright.
        """
        await self.rate_governor.await_slot(
            self.PROVIDER_KEY, self.settings.SEARCH_ENGINE_INTERVAL_MS
        )
        self.logger.info(
            "Searching for '%s' in %s (budget %d)",
            query,
            country,
            max_results,
        )
        results: list[ProductCandidate] = []
        attempted = 0
        failures: list[str] = []

        attempted += 1
        try:
            shopping = await self._shopping_pass(
                query,
                country,
                math.ceil(max_results * self.settings.SHOPPING_SHARE),
            )
            results.extend(shopping)
            self.logger.info("Shopping pass: %d candidates", len(shopping))
        except Exception as exc:
            failures.append(f"shopping: {exc}")
            self.logger.warning(
                "Shopping pass failed: %s", exc, exc_info=True
            )

        if len(results) < max_results:
            attempted += 1
            try:
                web = await self._web_pass(
                    query, country, max_results - len(results)
                )
                results.extend(web)
                self.logger.info("Web pass: %d candidates", len(web))
            except Exception as exc:
                failures.append(f"web: {exc}")
                self.logger.warning(
                    "Web pass failed: %s", exc, exc_info=True
                )

        if len(failures) == attempted:
            raise SearchEngineError(
                "Search engine failed: " + "; ".join(failures),
                source=self.PROVIDER_KEY,
            )
        return results[:max_results]

    # ── Passes ───────────────────────────────────────────

    def _build_url(self, params: dict[str, str]) -> str:
        return f"{self.BASE_URL}?{urllib.parse.urlencode(params)}"

    async def _shopping_pass(
        self,
        query: str,
        country: str,
        budget: int,
    ) -> list[ProductCandidate]:
        engine_country, language = search_engine_locale(country)
        url = self._build_url(
            {
                "q": query,
                "tbm": "shop",
                "hl": language,
                "gl": engine_country,
                "num": str(min(budget, self.SHOPPING_MAX_NUM)),
            }
        )
        html = await self._get_page(
            url,
            self.PROVIDER_KEY,
            self.HOMEPAGE,
            interval_ms=self.settings.SEARCH_ENGINE_INTERVAL_MS,
        )
        if self.is_blocked(html):
            self.logger.warning(
                "Shopping results look blocked, skipping pass"
            )
            return []
        return self.parse_shopping_results(html, country)

    async def _web_pass(
        self,
        query: str,
        country: str,
        budget: int,
    ) -> list[ProductCandidate]:
        engine_country, language = search_engine_locale(country)
        url = self._build_url(
            {
                "q": self.build_web_query(query, country),
                "hl": language,
                "gl": engine_country,
                "num": str(min(budget, self.WEB_MAX_NUM)),
            }
        )
        html = await self._get_page(
            url,
            self.PROVIDER_KEY,
            self.HOMEPAGE,
            interval_ms=self.settings.SEARCH_ENGINE_INTERVAL_MS,
        )
        return self.parse_web_results(html, query, country)

    @staticmethod
    def build_web_query(query: str, country: str) -> str:
        """Quoted product name, buying intent, and a site OR-list."""
        sites = " OR ".join(popular_sites_for_country(country))
        return f'"{query}" price buy ({sites})'

    def is_blocked(self, html: str) -> bool:
        """True if the page signals automated-traffic blocking."""
        return any(marker in html for marker in self.BLOCK_MARKERS)

    # ── Shopping results ─────────────────────────────────

    def parse_shopping_results(
        self,
        html: str,
        country: str,
    ) -> list[ProductCandidate]:
        """Parse shopping result fragments into candidates."""
        soup = BeautifulSoup(html, "lxml")
        currency = currency_for_country(country)
        products: list[ProductCandidate] = []
        seen: set[int] = set()

        for selector in self.SHOPPING_CONTAINER_SELECTORS:
            for element in soup.select(selector):
                if id(element) in seen:
                    continue
                seen.add(id(element))
                try:
                    product = self._parse_shopping_fragment(
                        element, currency
                    )
                except Exception as exc:
                    self.logger.warning(
                        "Error parsing shopping result: %s", exc
                    )
                    continue
                if product is not None:
                    products.append(product)

        if not products:
            self.logger.info(
                "No shopping results found, trying generic link scan"
            )
            products = self._parse_generic_links(soup, currency)
        return products

    def _parse_shopping_fragment(
        self,
        element: Tag,
        currency: str,
    ) -> ProductCandidate | None:
        name = self._extract_name(element)
        price = self._extract_price(element)
        raw_link = self._extract_link(element)
        if not name or not price or not raw_link:
            return None
        link = self._absolute_link(raw_link)
        return ProductCandidate(
            name=clean_text(name),
            price=clean_price(price),
            currency=currency,
            link=link,
            source=extract_website_name(link),
            availability="Check website",
            rating=normalize_rating(
                self._select_text(element, self.RATING_SELECTOR)
            ),
            image_url=normalize_url(self._extract_image(element)),
            seller=clean_text(self._extract_seller(element)) or None,
        )

    def _parse_generic_links(
        self,
        soup: BeautifulSoup,
        currency: str,
    ) -> list[ProductCandidate]:
        """Low-confidence candidates from marketplace-looking anchors."""
        products: list[ProductCandidate] = []
        for anchor in soup.select(self.GENERIC_LINK_SELECTOR):
            text = anchor.get_text(" ", strip=True)
            href = str(anchor.get("href") or "")
            if not href or not (10 < len(text) < 200):
                continue
            link = self._absolute_link(href)
            products.append(
                ProductCandidate(
                    name=clean_text(text),
                    price=self.GENERIC_PRICE_PLACEHOLDER,
                    currency=currency,
                    link=link,
                    source=extract_website_name(link),
                    availability="Check website",
                )
            )
        return products

    # ── Field extraction attempts ────────────────────────

    @staticmethod
    def _select_text(element: Tag, selector: str) -> str:
        found = element.select_one(selector)
        return found.get_text(" ", strip=True) if found else ""

    def _name_from_selector(self, element: Tag, selector: str) -> str:
        text = self._select_text(element, selector)
        return text if len(text) > 3 else ""

    @staticmethod
    def _name_from_aria_label(element: Tag) -> str:
        label = str(element.get("aria-label") or "").strip()
        return label if len(label) > 3 else ""

    @staticmethod
    def _name_from_element_text(element: Tag) -> str:
        text = element.get_text(" ", strip=True)
        if 10 < len(text) < 300:
            return text[:100]
        return ""

    def _extract_name(self, element: Tag) -> str:
        attempts = [
            partial(self._name_from_selector, element, selector)
            for selector in self.NAME_SELECTORS
        ]
        attempts.append(partial(self._name_from_aria_label, element))
        attempts.append(partial(self._name_from_element_text, element))
        return first_non_empty(attempts)

    def _price_from_selector(self, element: Tag, selector: str) -> str:
        text = self._select_text(element, selector)
        return text if looks_like_price(text) else ""

    @staticmethod
    def _price_from_attribute(element: Tag, attribute: str) -> str:
        value = str(element.get(attribute) or "")
        return value if looks_like_price(value) else ""

    @staticmethod
    def _price_from_text_scan(element: Tag) -> str:
        match = CURRENCY_PRICE_RE.search(element.get_text(" "))
        return match.group() if match else ""

    def _extract_price(self, element: Tag) -> str:
        attempts = [
            partial(self._price_from_selector, element, selector)
            for selector in self.PRICE_SELECTORS
        ]
        attempts.extend(
            partial(self._price_from_attribute, element, attribute)
            for attribute in self.PRICE_ATTRIBUTES
        )
        attempts.append(partial(self._price_from_text_scan, element))
        return first_non_empty(attempts)

    @staticmethod
    def _extract_link(element: Tag) -> str:
        anchor = element if element.name == "a" else element.select_one("a[href]")
        return str(anchor.get("href") or "") if anchor else ""

    def _extract_seller(self, element: Tag) -> str:
        return first_non_empty(
            partial(self._select_text, element, selector)
            for selector in self.SELLER_SELECTORS
        )

    @staticmethod
    def _extract_image(element: Tag) -> str:
        img = element.select_one("img")
        if img is None:
            return ""
        return str(img.get("src") or img.get("data-src") or "")

    def _absolute_link(self, href: str) -> str:
        """Unwrap redirect links and make the result absolute."""
        unwrapped = unwrap_redirect_url(href)
        if unwrapped.startswith("/"):
            return urllib.parse.urljoin(self.HOMEPAGE, unwrapped)
        return normalize_url(unwrapped) or unwrapped

    # ── Web results ──────────────────────────────────────

    def is_ecommerce_result(
        self,
        title: str,
        snippet: str,
        link: str,
    ) -> bool:
        """Buying keyword or currency symbol in text, or marketplace link."""
        combined = f"{title} {snippet} {link}".lower()
        link_lower = link.lower()
        return any(k in combined for k in self.BUYING_KEYWORDS) or any(
            d in link_lower for d in self.MARKETPLACE_DOMAINS
        )

    @staticmethod
    def product_name_from_title(title: str, query: str) -> str:
        """Strip storefront suffixes and call-to-action prefixes."""
        cleaned = title
        for separator in (" - Amazon", " - eBay", " | "):
            index = cleaned.lower().find(separator.lower())
            if index > 0:
                cleaned = cleaned[:index]
        for prefix in ("Buy ", "Shop "):
            if cleaned.lower().startswith(prefix.lower()):
                cleaned = cleaned[len(prefix):]
        return clean_text(cleaned) or query

    def parse_web_results(
        self,
        html: str,
        query: str,
        country: str,
    ) -> list[ProductCandidate]:
        """Parse generic web results that quote a price in the snippet."""
        soup = BeautifulSoup(html, "lxml")
        currency = currency_for_country(country)
        products: list[ProductCandidate] = []

        for block in soup.select(self.WEB_RESULT_SELECTOR):
            try:
                title = self._select_text(block, "h3")
                anchor = block.select_one("a[href]")
                raw_link = str(anchor.get("href") or "") if anchor else ""
                snippet = " ".join(
                    el.get_text(" ", strip=True)
                    for el in block.select(self.SNIPPET_SELECTOR)
                )
                if not raw_link or not self.is_ecommerce_result(
                    title, snippet, raw_link
                ):
                    continue
                price = find_price_in_text(snippet)
                if not price:
                    continue
                link = self._absolute_link(raw_link)
                products.append(
                    ProductCandidate(
                        name=self.product_name_from_title(title, query),
                        price=clean_price(price),
                        currency=currency,
                        link=link,
                        source=extract_website_name(link),
                        availability="Check website",
                    )
                )
            except Exception as exc:
                self.logger.warning("Error parsing web result: %s", exc)
        return products
