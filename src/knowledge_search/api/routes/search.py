"""Search API routes."""

import time

from fastapi import APIRouter, Depends, HTTPException

from knowledge_search.api.dependencies import get_manager
from knowledge_search.api.schemas import SearchRequestSchema, SearchResponseSchema
from knowledge_search.indexing import IndexManager

router = APIRouter(prefix="/api", tags=["search"])


@router.post("/search", response_model=SearchResponseSchema)
async def search(
    request: SearchRequestSchema,
    manager: IndexManager = Depends(get_manager),
):
    """
    Search the index.

    Returns at most ``limit`` results, highest score first.
    """
    if not manager.is_ready:
        raise HTTPException(
            status_code=503,
            detail="Index not ready. Run 'knowledge-search build' first.",
        )

    if not request.query.strip():
        return SearchResponseSchema(query="", results=[], count=0)

    start_time = time.perf_counter()
    results = manager.search(request.query, fuzzy=request.fuzzy)
    search_time_ms = (time.perf_counter() - start_time) * 1000

    top_results = results[: request.limit]
    return SearchResponseSchema(
        query=request.query,
        results=top_results,
        count=len(top_results),
        total_matches=len(results),
        search_time_ms=round(search_time_ms, 2),
        total_searched=len(manager.index.pages),
    )
