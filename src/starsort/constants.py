from __future__ import annotations


class Limits:
    """Shared hard limits."""

    MAX_PAGE_SIZE = 100  # GitHub REST maximum for per_page
    MAX_DESCRIPTION_LENGTH = 300
    MAX_TOPICS = 10
    MIN_BATCH_SIZE = 50
    MAX_BATCH_SIZE = 200
    LARGE_COLLECTION_BATCH_CAP = 150


class CacheTTL:
    """Default cache lifetimes in seconds."""

    STARS = 60 * 60
    CATEGORIES = 24 * 60 * 60


class Defaults:
    """Pipeline defaults that are overridable through config."""

    PAGE_CONCURRENCY = 3
    PRIMARY_TIMEOUT_SECONDS = 60
    FALLBACK_TIMEOUT_SECONDS = 90
    COALESCE_GRACE_SECONDS = 60
    UNCATEGORIZED = "Uncategorized"
    FALLBACK_FACT = (
        "Software developers spend approximately 30-40% of their time "
        "reading and understanding code."
    )


def stars_cache_key(subject: str) -> str:
    return f"stars:{subject}"


def categories_cache_key(subject: str) -> str:
    return f"categories:{subject}"
