# pricescout/filters/product_validator.py

"""Candidate validation: drop records missing a mandatory field."""

import logging

from pricescout.models.product import ProductCandidate

logger = logging.getLogger("pricescout.filters")


class ProductValidator:
    """Validate candidates and drop those missing name, price or link."""

    @staticmethod
    def validate(
        candidates: list[ProductCandidate],
    ) -> tuple[list[ProductCandidate], int]:
        """Keep only candidates whose three mandatory fields are non-blank.

        Returns the valid candidates and the count of dropped items.
        """
        valid: list[ProductCandidate] = []
        dropped = 0

        for candidate in candidates:
            if not candidate.has_mandatory_fields():
                logger.debug(
                    "Dropped candidate missing a mandatory field "
                    "(source=%s, name=%r, price=%r, link=%r)",
                    candidate.source,
                    candidate.name,
                    candidate.price,
                    candidate.link,
                )
                dropped += 1
                continue
            valid.append(candidate)

        if dropped:
            logger.info(
                "Validation dropped %d invalid candidates",
                dropped,
            )

        return valid, dropped
