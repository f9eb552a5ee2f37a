"""Index status, rebuild, local file and offline cache routes."""

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException

from knowledge_search import __version__
from knowledge_search.api.dependencies import get_manager
from knowledge_search.api.schemas import (
    CacheRequestSchema,
    CacheResponseSchema,
    CacheStatusResponseSchema,
    LocalFileRequestSchema,
    LocalFileResponseSchema,
    MessageResponseSchema,
    SourcesResponseSchema,
    StatusResponseSchema,
)
from knowledge_search.indexing import IndexBusyError, IndexManager

logger = structlog.get_logger()

router = APIRouter(prefix="/api", tags=["index"])


def _ensure_idle(manager: IndexManager):
    if manager.is_busy:
        raise HTTPException(
            status_code=409,
            detail=f"{manager.busy_operation} is already running",
        )


async def _rebuild(manager: IndexManager):
    try:
        await manager.build_index()
    except Exception as e:
        logger.error("background_rebuild_failed", error=str(e))


@router.get("/status", response_model=StatusResponseSchema)
async def status(manager: IndexManager = Depends(get_manager)):
    """Index readiness and per-source summaries."""
    info = manager.get_index_info()
    return StatusResponseSchema(
        ready=manager.is_ready,
        version=__version__,
        busy=manager.busy_operation,
        **info,
    )


@router.get("/sources", response_model=SourcesResponseSchema)
async def sources(manager: IndexManager = Depends(get_manager)):
    summaries = manager.get_index_info()["sources"]
    return SourcesResponseSchema(sources=summaries, total=len(summaries))


@router.post("/rebuild-index", response_model=MessageResponseSchema)
async def rebuild_index(
    background_tasks: BackgroundTasks,
    manager: IndexManager = Depends(get_manager),
):
    """Start a full rebuild in the background."""
    _ensure_idle(manager)
    background_tasks.add_task(_rebuild, manager)
    return MessageResponseSchema(message="Index rebuild started in the background")


@router.post("/local-files/update", response_model=LocalFileResponseSchema)
async def update_local_file(
    request: LocalFileRequestSchema,
    manager: IndexManager = Depends(get_manager),
):
    """Re-index one local file."""
    try:
        success = await manager.update_local_file(request.path)
    except IndexBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return LocalFileResponseSchema(
        success=success, path=request.path, total_pages=len(manager.index.pages)
    )


@router.post("/local-files/remove", response_model=LocalFileResponseSchema)
async def remove_local_file(
    request: LocalFileRequestSchema,
    manager: IndexManager = Depends(get_manager),
):
    """Drop one local file from the index."""
    try:
        success = await manager.remove_local_file(request.path)
    except IndexBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return LocalFileResponseSchema(
        success=success, path=request.path, total_pages=len(manager.index.pages)
    )


@router.post("/cache", response_model=CacheResponseSchema)
async def cache_sources(
    request: CacheRequestSchema,
    manager: IndexManager = Depends(get_manager),
):
    """Crawl and cache ``cache_offline`` sources for offline reading."""
    try:
        result = await manager.cache_sources(request.source_ids)
    except IndexBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return CacheResponseSchema(**result.to_dict())


@router.get("/cache", response_model=CacheStatusResponseSchema)
async def cache_status(manager: IndexManager = Depends(get_manager)):
    summaries = manager.get_cache_status()
    return CacheStatusResponseSchema(sources=summaries, total=len(summaries))
