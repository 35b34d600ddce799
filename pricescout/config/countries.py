# pricescout/config/countries.py

"""Static per-country lookup tables."""

SUPPORTED_COUNTRIES: dict[str, str] = {
    "US": "United States",
    "IN": "India",
    "GB": "United Kingdom",
    "DE": "Germany",
    "CA": "Canada",
    "AU": "Australia",
    "JP": "Japan",
    "FR": "France",
    "IT": "Italy",
    "ES": "Spain",
    "NL": "Netherlands",
    "BE": "Belgium",
    "CH": "Switzerland",
    "AT": "Austria",
    "SE": "Sweden",
    "NO": "Norway",
    "DK": "Denmark",
    "FI": "Finland",
    "BR": "Brazil",
    "MX": "Mexico",
    "AR": "Argentina",
    "CN": "China",
    "KR": "South Korea",
    "SG": "Singapore",
    "MY": "Malaysia",
    "TH": "Thailand",
    "ID": "Indonesia",
    "PH": "Philippines",
    "VN": "Vietnam",
    "AE": "United Arab Emirates",
    "SA": "Saudi Arabia",
    "EG": "Egypt",
    "ZA": "South Africa",
    "NG": "Nigeria",
    "KE": "Kenya",
    "NZ": "New Zealand",
    "RU": "Russia",
    "PL": "Poland",
    "CZ": "Czech Republic",
    "HU": "Hungary",
    "RO": "Romania",
    "GR": "Greece",
    "PT": "Portugal",
    "IE": "Ireland",
    "IL": "Israel",
    "TR": "Turkey",
    "CL": "Chile",
    "CO": "Colombia",
    "PE": "Peru",
    "UY": "Uruguay",
    "EC": "Ecuador",
    "PY": "Paraguay",
    "BO": "Bolivia",
    "VE": "Venezuela",
}

# country -> (engine country code, interface language)
SEARCH_ENGINE_LOCALES: dict[str, tuple[str, str]] = {
    "US": ("us", "en"),
    "IN": ("in", "en"),
    "GB": ("uk", "en"),
    "DE": ("de", "de"),
    "FR": ("fr", "fr"),
    "CA": ("ca", "en"),
    "AU": ("au", "en"),
    "JP": ("jp", "ja"),
    "IT": ("it", "it"),
    "ES": ("es", "es"),
    "NL": ("nl", "nl"),
    "BR": ("br", "pt"),
}
_DEFAULT_LOCALE: tuple[str, str] = ("us", "en")

COUNTRY_CURRENCIES: dict[str, str] = {
    "US": "USD",
    "CA": "CAD",
    "GB": "GBP",
    "DE": "EUR",
    "FR": "EUR",
    "IT": "EUR",
    "ES": "EUR",
    "NL": "EUR",
    "IN": "INR",
    "JP": "JPY",
    "AU": "AUD",
    "BR": "BRL",
}
_DEFAULT_CURRENCY = "USD"

POPULAR_ECOMMERCE_SITES: dict[str, list[str]] = {
    "US": [
        "amazon.com", "ebay.com", "walmart.com", "target.com",
        "bestbuy.com",
    ],
    "IN": ["amazon.in", "flipkart.com", "snapdeal.com", "myntra.com"],
    "GB": ["amazon.co.uk", "ebay.co.uk", "argos.co.uk", "currys.co.uk"],
    "DE": ["amazon.de", "otto.de", "zalando.de", "mediamarkt.de"],
    "FR": ["amazon.fr", "cdiscount.com", "fnac.com", "darty.com"],
    "CA": ["amazon.ca", "bestbuy.ca", "canadiantire.ca"],
    "AU": ["amazon.com.au", "ebay.com.au", "jbhifi.com.au"],
    "JP": ["amazon.co.jp", "rakuten.co.jp", "yahoo.co.jp"],
}


def is_supported_country(code: str) -> bool:
    """Return True if *code* is in the supported country set."""
    return code.upper() in SUPPORTED_COUNTRIES


def country_name(code: str) -> str:
    """Human-readable country name, or the code itself."""
    return SUPPORTED_COUNTRIES.get(code.upper(), code)


def search_engine_locale(code: str) -> tuple[str, str]:
    """Return ``(engine_country, language)`` for a country code."""
    return SEARCH_ENGINE_LOCALES.get(code.upper(), _DEFAULT_LOCALE)


def currency_for_country(code: str) -> str:
    """Return the ISO currency code used in *code*'s storefronts."""
    return COUNTRY_CURRENCIES.get(code.upper(), _DEFAULT_CURRENCY)


def popular_sites_for_country(code: str) -> list[str]:
    """Return the popular e-commerce domains for a country."""
    return POPULAR_ECOMMERCE_SITES.get(
        code.upper(), POPULAR_ECOMMERCE_SITES["US"]
    )
