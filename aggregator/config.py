"""Centralized configuration for the AI news aggregator."""

import os
import logging

log = logging.getLogger("ainews.config")

# =========================
# HTTP
# =========================
USER_AGENT: str = os.getenv(
    "NEWS_USER_AGENT", "Mozilla/5.0 (compatible; AIToolsDirectoryBot/1.0; +news)"
)
FETCH_TIMEOUT: float = float(os.getenv("NEWS_FETCH_TIMEOUT", "15"))
REVALIDATE_SECONDS: int = int(os.getenv("NEWS_FEEDS_REVALIDATE", "900"))

# =========================
# Sources
# =========================
SOURCES_FILE: str = os.getenv("NEWS_SOURCES_FILE", "")
PER_SOURCE_MAX: int = int(os.getenv("NEWS_PER_SOURCE_MAX", "20"))

# =========================
# Media fallback
# =========================
MEDIA_FALLBACK_BUDGET: int = int(os.getenv("NEWS_MEDIA_FALLBACK_BUDGET", "4"))
MEDIA_FALLBACK_CONCURRENCY: int = int(os.getenv("NEWS_MEDIA_FALLBACK_CONCURRENCY", "4"))

# =========================
# Classification
# =========================
BOOST_WEIGHT: int = int(os.getenv("NEWS_BOOST_WEIGHT", "1"))

# =========================
# Query
# =========================
DEFAULT_LIMIT: int = int(os.getenv("NEWS_DEFAULT_LIMIT", "200"))
MAX_LIMIT: int = int(os.getenv("NEWS_MAX_LIMIT", "300"))

# =========================
# Cache / monitoring
# =========================
CACHE_TTL_SECONDS: float = float(os.getenv("NEWS_CACHE_TTL", "0"))
FAILURE_ALERT_THRESHOLD: int = int(os.getenv("NEWS_FAILURE_ALERT_THRESHOLD", "5"))


def validate_settings() -> None:
    """Check numeric settings. Call at startup."""
    if FETCH_TIMEOUT <= 0:
        raise EnvironmentError(f"NEWS_FETCH_TIMEOUT must be positive (got {FETCH_TIMEOUT})")
    if PER_SOURCE_MAX <= 0:
        log.warning("NEWS_PER_SOURCE_MAX=%d: sources will contribute nothing.", PER_SOURCE_MAX)
    if MEDIA_FALLBACK_BUDGET < 0:
        log.warning("NEWS_MEDIA_FALLBACK_BUDGET=%d is negative, treated as 0.", MEDIA_FALLBACK_BUDGET)
    if MEDIA_FALLBACK_CONCURRENCY <= 0:
        log.warning(
            "NEWS_MEDIA_FALLBACK_CONCURRENCY=%d is not positive, treated as 1.",
            MEDIA_FALLBACK_CONCURRENCY,
        )
    if DEFAULT_LIMIT > MAX_LIMIT:
        log.warning(
            "NEWS_DEFAULT_LIMIT=%d exceeds NEWS_MAX_LIMIT=%d, results are clamped.",
            DEFAULT_LIMIT, MAX_LIMIT,
        )
