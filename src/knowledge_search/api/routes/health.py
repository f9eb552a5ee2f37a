"""Health and metrics API routes."""

import time

from fastapi import APIRouter, Depends, Response

from knowledge_search.api.dependencies import get_manager
from knowledge_search.api.schemas import HealthResponseSchema
from knowledge_search.indexing import IndexManager
from knowledge_search.observability import get_metrics

router = APIRouter(tags=["health"])

_started_at = time.monotonic()


@router.get("/health", response_model=HealthResponseSchema)
async def health_check(manager: IndexManager = Depends(get_manager)):
    """Liveness plus index readiness."""
    return HealthResponseSchema(
        status="ok",
        index_ready=manager.is_ready,
        uptime_seconds=round(time.monotonic() - _started_at, 1),
    )


@router.get("/metrics")
async def metrics():
    """Get Prometheus metrics."""
    data, content_type = get_metrics()
    return Response(content=data, media_type=content_type)
