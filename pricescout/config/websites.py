# pricescout/config/websites.py

"""Read-only registry of per-country storefront descriptors."""

import json
import logging
from pathlib import Path
from typing import Any

from pricescout.config.settings import Settings
from pricescout.models.source import SourceDescriptor

logger = logging.getLogger("pricescout.config")

_INTERNATIONAL_BRANDS = ("Amazon", "eBay")
_INTERNATIONAL_BASE_COUNTRY = "US"


class SourceRegistry:
    """Country code to ordered storefront list, loaded once at start-up."""

    def __init__(
        self,
        sources: dict[str, tuple[SourceDescriptor, ...]],
    ) -> None:
        self._sources = {
            code.upper(): tuple(entries)
            for code, entries in sources.items()
        }

    @classmethod
    def from_json(cls, path: Path | None = None) -> "SourceRegistry":
        """Load the registry from the JSON file shipped with the package."""
        registry_path = path or Settings.WEBSITES_PATH
        with open(registry_path, encoding="utf-8") as f:
            raw: dict[str, list[dict[str, Any]]] = json.load(f)
        sources = {
            code: tuple(
                SourceDescriptor.from_dict(entry) for entry in entries
            )
            for code, entries in raw.items()
        }
        logger.debug(
            "Loaded %d storefronts for %d countries from %s",
            sum(len(v) for v in sources.values()),
            len(sources),
            registry_path,
        )
        return cls(sources)

    def countries(self) -> list[str]:
        """Country codes with at least one configured storefront."""
        return sorted(c for c, v in self._sources.items() if v)

    def for_country(self, code: str) -> list[SourceDescriptor]:
        """Configured storefronts for *code*, in registry order."""
        return list(self._sources.get(code.upper(), ()))

    def international_fallback(self) -> list[SourceDescriptor]:
        """US Amazon/eBay storefronts relabeled as international."""
        return [
            site.relabeled(
                site.name.replace(
                    _INTERNATIONAL_BASE_COUNTRY, "International"
                )
            )
            for site in self.for_country(_INTERNATIONAL_BASE_COUNTRY)
            if any(brand in site.name for brand in _INTERNATIONAL_BRANDS)
        ]
