# pricescout/config/settings.py

"""Central configuration for the pricescout aggregation engine."""

import os
from pathlib import Path

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv

load_dotenv()


def _env_int(name: str, default: int) -> int:
    """Read a positive integer from the environment, else *default*."""
    raw = os.getenv(name, "").strip()
    if raw.isdigit() and int(raw) > 0:
        return int(raw)
    return default


class Settings:
    """Central configuration for the pricescout aggregation engine."""

    # --- Fetching ---
    REQUEST_TIMEOUT: int = 30           # Seconds before a fetch times out
    MAX_REDIRECTS: int = 5              # Redirect hops followed per fetch
    MAX_RETRIES: int = 2                # Transport attempts per fetch
    REQUEST_DELAY: float = 1.0          # Base back-off between attempts
    RENDER_SELECTOR_TIMEOUT: int = 10   # Seconds to wait for containers

    # --- Resilience ---
    CIRCUIT_BREAKER_THRESHOLD: int = 3  # Consecutive failures to trip
    CIRCUIT_BREAKER_COOLDOWN: float = 300.0
    MAX_DELAY_MULTIPLIER: int = 8       # Cap for adaptive back-off
    CAPTCHA_KEYWORDS: list[str] = [
        "captcha",
        "verify you are human",
        "unusual traffic",
        "automated requests",
    ]

    # --- Rate limiting ---
    DEFAULT_RATE_LIMIT_MS: int = 1000   # Per-source minimum interval
    SEARCH_ENGINE_INTERVAL_MS: int = 2000

    # --- Aggregation ---
    USE_SEARCH_ENGINE: bool = (
        os.getenv("PRICESCOUT_SEARCH_MODE", "search_engine").lower()
        != "direct"
    )
    SEARCH_ENGINE_OVERSAMPLE: int = 2   # x requested max_results
    SITE_OVERSAMPLE: float = 1.5        # x requested max_results, per site
    SHOPPING_SHARE: float = 0.7         # Share of budget for shopping pass
    LOW_RESULT_THRESHOLD: int = 3       # Below this, supplement directly
    MAX_CONCURRENT_REQUESTS: int = _env_int(
        "MAX_CONCURRENT_REQUESTS", 5
    )
    BATCH_PAUSE: float = 1.0            # Seconds between source batches

    # --- Request bounds ---
    DEFAULT_MAX_RESULTS: int = 10
    MIN_RESULTS_LIMIT: int = 1
    MAX_RESULTS_LIMIT: int = 50

    # --- Generative analyst ---
    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")
    GEMINI_ENDPOINT: str = (
        "https://generativelanguage.googleapis.com/v1beta/models/"
        "{model}:generateContent"
    )
    GEMINI_TIMEOUT: float = 60.0

    # --- Browser Impersonation ---
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "chrome"
    USER_AGENT: str = os.getenv(
        "PRICESCOUT_USER_AGENT",
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/131.0.0.0 Safari/537.36",
    )
    DEFAULT_HEADERS: dict[str, str] = {
        "Accept": (
            "text/html,application/xhtml+xml,"
            "application/xml;q=0.9,image/webp,*/*;q=0.8"
        ),
        "Accept-Language": "en-US,en;q=0.5",
        "Cache-Control": "max-age=0",
        "Sec-Fetch-Dest": "document",
        "Sec-Fetch-Mode": "navigate",
        "Sec-Fetch-Site": "none",
        "Upgrade-Insecure-Requests": "1",
    }

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    WEBSITES_PATH: Path = Path(__file__).resolve().parent / "websites.json"
    LOGS_DIR: Path = BASE_DIR / "logs"
