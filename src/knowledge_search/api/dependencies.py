"""Shared FastAPI dependencies."""

from knowledge_search.indexing import IndexManager, get_index_manager


def get_manager() -> IndexManager:
    """Dependency returning the process-wide index manager."""
    return get_index_manager()
