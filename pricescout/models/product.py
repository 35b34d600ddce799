# pricescout/models/product.py

"""Candidate record for inter-module data flow."""

from dataclasses import asdict, dataclass, field, fields
from datetime import datetime, timezone
from typing import Any


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ProductCandidate:
    """One extracted, not-yet-validated product listing.

    ``price`` stays the raw page text (currency-ambiguous); numeric
    interpretation happens downstream via
    :func:`pricescout.filters.normalizer.parse_price`.
    """

    name: str
    price: str
    currency: str
    link: str
    source: str
    availability: str = "Unknown"
    rating: float | None = None
    image_url: str | None = None
    seller: str | None = None
    shipping: str | None = None
    features: list[str] = field(default_factory=lambda: list[str]())
    condition: str | None = None
    extracted_at: datetime = field(default_factory=_utcnow)

    def has_mandatory_fields(self) -> bool:
        """True when name, price and link are all non-blank."""
        return bool(
            self.name.strip()
            and self.price.strip()
            and self.link.strip()
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a JSON-ready dict."""
        data = asdict(self)
        data["extracted_at"] = self.extracted_at.isoformat()
        return data

    def merged_with(self, updates: dict[str, Any]) -> "ProductCandidate":
        """Return a copy with *updates* applied over known fields.

        Unknown keys and values of the wrong shape are ignored, and the
        mandatory fields keep their original value when an update would
        blank them.
        """
        allowed = {f.name for f in fields(self)} - {"extracted_at"}
        current = {f.name: getattr(self, f.name) for f in fields(self)}
        for key, value in updates.items():
            if key not in allowed or value is None:
                continue
            if key in ("name", "price", "link", "currency", "source"):
                if isinstance(value, (str, int, float)) and str(value).strip():
                    current[key] = str(value).strip()
            elif key == "rating":
                if isinstance(value, (int, float)) and 0 <= value <= 5:
                    current[key] = float(value)
            elif key == "features":
                if isinstance(value, list):
                    current[key] = [str(v) for v in value if str(v).strip()]
            elif isinstance(value, str):
                current[key] = value.strip()
        return ProductCandidate(**current)
