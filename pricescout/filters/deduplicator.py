# pricescout/filters/deduplicator.py

"""Candidate deduplication across overlapping sources."""

import logging

from pricescout.models.product import ProductCandidate

logger = logging.getLogger("pricescout.filters")


class ProductDeduplicator:
    """Collapse exact repeats of the same listing from the same source."""

    @staticmethod
    def dedupe_key(candidate: ProductCandidate) -> tuple[str, str, str]:
        """Equality key: lower-cased name, raw price, source name."""
        return (
            candidate.name.lower(),
            candidate.price,
            candidate.source,
        )

    @staticmethod
    def deduplicate(
        candidates: list[ProductCandidate],
    ) -> tuple[list[ProductCandidate], int]:
        """Remove repeated candidates, keeping the first occurrence.

        No fuzzy matching: two listings that merely share a name but
        differ in price or source are both kept.

        Returns the deduplicated list and the count of removed dupes.
        """
        if not candidates:
            return [], 0

        seen: set[tuple[str, str, str]] = set()
        kept: list[ProductCandidate] = []
        for candidate in candidates:
            key = ProductDeduplicator.dedupe_key(candidate)
            if key in seen:
                continue
            seen.add(key)
            kept.append(candidate)

        removed = len(candidates) - len(kept)
        if removed:
            logger.info(
                "Deduplication removed %d duplicate candidates",
                removed,
            )
        return kept, removed
