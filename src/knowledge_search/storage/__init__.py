"""Storage package."""

from knowledge_search.storage.index_store import IndexStore
from knowledge_search.storage.offline_cache import (
    CacheReport,
    OfflineCache,
    strip_media,
    url_hash,
)

__all__ = [
    "CacheReport",
    "IndexStore",
    "OfflineCache",
    "strip_media",
    "url_hash",
]
