"""Indexing package."""

from knowledge_search.indexing.manager import (
    CachePassResult,
    IndexBusyError,
    IndexManager,
    get_index_manager,
)

__all__ = [
    "CachePassResult",
    "IndexBusyError",
    "IndexManager",
    "get_index_manager",
]
