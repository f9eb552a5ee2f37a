"""Routes package."""

from knowledge_search.api.routes.health import router as health_router
from knowledge_search.api.routes.index import router as index_router
from knowledge_search.api.routes.search import router as search_router

__all__ = [
    "health_router",
    "index_router",
    "search_router",
]
