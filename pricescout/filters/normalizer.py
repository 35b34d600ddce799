# pricescout/filters/normalizer.py

"""Text, price, URL and rating cleaning shared by both extractors."""

import re
import urllib.parse
from collections.abc import Callable, Iterable

_WHITESPACE_RE = re.compile(r"\s+")
_NAME_STRIP_RE = re.compile(r"[^\w\s\-().]")
_DIGIT_GAP_RE = re.compile(r"(\d)\s+(?=\d)")

_SCALED_RATING_RE = re.compile(
    r"(\d+(?:\.\d+)?)\s*(?:out\s+of|/)\s*(\d+(?:\.\d+)?)",
    re.IGNORECASE,
)
_DECIMAL_RE = re.compile(r"\d+(?:\.\d+)?")
_NUMBER_RUN_RE = re.compile(r"\d[\d.,']*")

# Currency symbol on either side of the amount
CURRENCY_PRICE_RE = re.compile(
    r"[$€£¥₹]\s?\d[\d,]*(?:\.\d{2})?|\d[\d,]*(?:\.\d{2})?\s*[$€£¥₹]"
)

# Tried in order against free text such as search snippets
SNIPPET_PRICE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\$\d[\d,]*(?:\.\d{2})?"),
    re.compile(r"€\d[\d,]*(?:\.\d{2})?"),
    re.compile(r"£\d[\d,]*(?:\.\d{2})?"),
    re.compile(r"¥\d[\d,]*"),
    re.compile(r"₹\d[\d,]*(?:\.\d{2})?"),
    re.compile(r"\d[\d,]*(?:\.\d{2})?\s*[$€£¥₹]"),
)

MAX_NAME_LENGTH = 200


def clean_text(text: str | None) -> str:
    """Collapse runs of whitespace and trim."""
    if not text:
        return ""
    return _WHITESPACE_RE.sub(" ", text).strip()


def clean_product_name(name: str | None) -> str:
    """Normalise a product name for display and comparison.

    Collapses whitespace, drops characters outside word, space, hyphen,
    parenthesis and period, and truncates to 200 characters.
    """
    collapsed = clean_text(name)
    stripped = clean_text(_NAME_STRIP_RE.sub("", collapsed))
    return stripped[:MAX_NAME_LENGTH]


def clean_price(price: str | None) -> str:
    """Collapse whitespace and rejoin digits split by rendering gaps."""
    return _DIGIT_GAP_RE.sub(r"\1", clean_text(price))


def looks_like_price(text: str | None) -> bool:
    """True if *text* holds an amount next to a currency symbol."""
    return bool(text and CURRENCY_PRICE_RE.search(text))


def find_price_in_text(
    text: str | None,
    patterns: Iterable[re.Pattern[str]] = SNIPPET_PRICE_PATTERNS,
) -> str | None:
    """Return the first price token matched by *patterns*, in order."""
    if not text:
        return None
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return match.group().strip()
    return None


def parse_price(text: str | None) -> float | None:
    """Parse the first amount in a raw price string.

    Handles ``1,299.00``, ``1.299,00``, ``12,99`` and ``1.299.000``
    style separators.  Returns ``None`` when no positive amount can be
    read, e.g. for placeholders such as ``"Price available on site"``.
    """
    if not text:
        return None
    match = _NUMBER_RUN_RE.search(text)
    if not match:
        return None
    token = match.group().replace("'", "").rstrip(".,")

    if "," in token and "." in token:
        if token.rfind(",") > token.rfind("."):
            token = token.replace(".", "").replace(",", ".")
        else:
            token = token.replace(",", "")
    elif "," in token:
        head, _, tail = token.rpartition(",")
        if token.count(",") == 1 and len(tail) == 2:
            token = f"{head}.{tail}"
        else:
            token = token.replace(",", "")
    elif token.count(".") > 1:
        token = token.replace(".", "")

    try:
        value = float(token)
    except ValueError:
        return None
    return value if value > 0 else None


def normalize_rating(text: str | None) -> float | None:
    """Map a rating string onto a 0-5 scale.

    ``"4.5 out of 5"`` and ``"9/10"`` are rescaled by their stated
    maximum.  A bare number above 5 is taken as a 10-point score.
    """
    if not text:
        return None
    scaled = _SCALED_RATING_RE.search(text)
    if scaled:
        value = float(scaled.group(1))
        scale = float(scaled.group(2))
        if scale > 0:
            return round(min(value / scale * 5, 5.0), 2)
    simple = _DECIMAL_RE.search(text)
    if simple:
        value = float(simple.group())
        if value > 5:
            value = value / 2
        return round(min(value, 5.0), 2)
    return None


def resolve_link(href: str | None, base_url: str) -> str:
    """Resolve a result link against the storefront's base URL."""
    href = (href or "").strip()
    if not href:
        return ""
    if href.startswith("http"):
        return href
    if href.startswith("//"):
        return f"https:{href}"
    if href.startswith("/"):
        return f"{base_url}{href}"
    return f"{base_url}/{href}"


def resolve_image(src: str | None, base_url: str | None = None) -> str:
    """Resolve an image ``src``; unknown relative forms pass through."""
    src = (src or "").strip()
    if not src:
        return ""
    if src.startswith("http"):
        return src
    if src.startswith("//"):
        return f"https:{src}"
    if src.startswith("/") and base_url:
        return f"{base_url}{src}"
    return src


def normalize_url(url: str | None) -> str | None:
    """Force an absolute ``https`` URL, or ``None`` for blanks."""
    url = (url or "").strip()
    if not url:
        return None
    if url.startswith("//"):
        return f"https:{url}"
    if not url.startswith("http"):
        return f"https://{url}"
    return url


def unwrap_redirect_url(url: str) -> str:
    """Decode a search-engine ``/url?q=<target>`` redirect wrapper."""
    if url.startswith("/url?"):
        params = urllib.parse.parse_qs(urllib.parse.urlparse(url).query)
        target = params.get("q") or params.get("url")
        if target and target[0]:
            return target[0]
    return url


def extract_website_name(url: str | None) -> str:
    """Short storefront label derived from a URL's host."""
    hostname = urllib.parse.urlparse(url or "").hostname
    if not hostname:
        return "Unknown Store"
    return (
        hostname.removeprefix("www.")
        .replace(".co.uk", "")
        .replace(".com", "")
    )


def first_non_empty(
    attempts: Iterable[Callable[[], str | None]],
) -> str:
    """Run extraction attempts in order; return the first non-empty value."""
    for attempt in attempts:
        value = attempt()
        if value and value.strip():
            return value.strip()
    return ""
