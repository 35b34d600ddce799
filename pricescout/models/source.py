# pricescout/models/source.py

"""Source descriptor model for configured storefronts."""

import urllib.parse
from dataclasses import dataclass, replace
from typing import Any


@dataclass(frozen=True)
class SelectorMap:
    """CSS selectors locating each field inside a result container."""

    container: str
    name: str
    price: str
    link: str
    availability: str = ""
    rating: str = ""
    image: str = ""
    seller: str = ""
    shipping: str = ""


@dataclass(frozen=True)
class SourceDescriptor:
    """Immutable description of one scrapeable storefront."""

    name: str
    base_url: str
    search_url: str
    currency: str
    selectors: SelectorMap
    requires_rendering: bool = False
    rate_limit_ms: int | None = None

    @property
    def key(self) -> str:
        """Rate-limit and circuit-breaker key for this source."""
        return self.name

    def build_search_url(self, query: str) -> str:
        """Substitute the URL-escaped query into the search template."""
        return self.search_url.replace(
            "{query}", urllib.parse.quote(query, safe="")
        )

    def relabeled(self, name: str) -> "SourceDescriptor":
        """Return a copy under a different display name."""
        return replace(self, name=name)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SourceDescriptor":
        """Build a descriptor from one registry JSON entry."""
        raw_selectors: dict[str, str] = data["selectors"]
        rate_limit = data.get("rate_limit_ms")
        return cls(
            name=str(data["name"]),
            base_url=str(data["base_url"]).rstrip("/"),
            search_url=str(data["search_url"]),
            currency=str(data.get("currency", "USD")),
            selectors=SelectorMap(**raw_selectors),
            requires_rendering=bool(
                data.get("requires_rendering", False)
            ),
            rate_limit_ms=(
                int(rate_limit) if rate_limit is not None else None
            ),
        )
