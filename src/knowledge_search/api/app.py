"""FastAPI application factory."""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from knowledge_search import __version__
from knowledge_search.api.routes import health_router, index_router, search_router
from knowledge_search.config import get_settings
from knowledge_search.indexing import get_index_manager

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    manager = get_index_manager()
    info = await manager.initialize()

    if info["total_pages"] == 0:
        logger.warning("index_empty", hint="Run 'knowledge-search build' to build the index")
    else:
        for source in info["sources"]:
            logger.info("source_loaded", source=source.name, pages=source.page_count)

    yield


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="knowledge-search",
        description="Search across crawled documentation sites and local notes",
        version=__version__,
        lifespan=lifespan,
    )

    origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routes
    app.include_router(search_router)
    app.include_router(index_router)
    app.include_router(health_router)

    @app.get("/")
    async def root():
        return {
            "name": "knowledge-search",
            "version": __version__,
            "docs": "/docs",
        }

    return app


# Create app instance for uvicorn
app = create_app()
