"""API Pydantic schemas for request/response validation."""

from datetime import datetime

from pydantic import BaseModel, Field

from knowledge_search.models.document import SourceSummary
from knowledge_search.models.search import SearchResult


# ===== Search =====

class SearchRequestSchema(BaseModel):
    """Search request schema."""

    query: str = Field(default="", max_length=500)
    fuzzy: bool = True
    limit: int = Field(default=50, ge=1, le=50)


class SearchResponseSchema(BaseModel):
    """Search response schema."""

    query: str
    results: list[SearchResult]
    count: int
    total_matches: int = 0
    search_time_ms: float = 0.0
    total_searched: int = 0


# ===== Index =====

class StatusResponseSchema(BaseModel):
    """Index status."""

    ready: bool
    version: str
    busy: str | None = None
    total_pages: int
    last_updated: datetime | None = None
    sources: list[SourceSummary]


class SourcesResponseSchema(BaseModel):
    sources: list[SourceSummary]
    total: int


class MessageResponseSchema(BaseModel):
    message: str


class LocalFileRequestSchema(BaseModel):
    """Path of a local file to re-index or drop."""

    path: str = Field(..., min_length=1)


class LocalFileResponseSchema(BaseModel):
    success: bool
    path: str
    total_pages: int


# ===== Offline cache =====

class CacheRequestSchema(BaseModel):
    """Sources to cache; None selects every ``cache_offline`` source."""

    source_ids: list[str] | None = None


class CacheSourceReportSchema(BaseModel):
    source_id: str
    cached: int
    failed: int
    sizeMB: float


class CacheResponseSchema(BaseModel):
    rejected: bool
    message: str
    sources: list[CacheSourceReportSchema] = Field(default_factory=list)


class CacheStatusResponseSchema(BaseModel):
    sources: list[dict]
    total: int


# ===== Health =====

class HealthResponseSchema(BaseModel):
    """Health check response schema."""

    status: str
    index_ready: bool
    uptime_seconds: float
