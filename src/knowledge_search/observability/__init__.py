"""Observability package."""

from knowledge_search.observability.metrics import (
    SEARCH_REQUESTS,
    SEARCH_LATENCY,
    CRAWL_DOCUMENTS,
    INDEX_BUILD_TIME,
    LOCAL_FILE_UPDATES,
    CACHE_PAGES,
    get_metrics,
)

__all__ = [
    "SEARCH_REQUESTS",
    "SEARCH_LATENCY",
    "CRAWL_DOCUMENTS",
    "INDEX_BUILD_TIME",
    "LOCAL_FILE_UPDATES",
    "CACHE_PAGES",
    "get_metrics",
]
