"""Data models for sources, documents, and the persisted index."""

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

KnownSourceType = Literal["gitbook", "docusaurus", "markdown", "local"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SourceDescriptor(BaseModel):
    """A configured origin of documents (remote site, URL list, or local directory)."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    # Kept as a plain string so unknown types survive loading and are
    # rejected at dispatch time instead.
    type: str
    enabled: bool = False
    description: str = ""

    # gitbook
    index_url: str | None = None
    # docusaurus
    base_url: str | None = None
    pages: list[str] = Field(default_factory=list)
    # markdown
    urls: list[str] = Field(default_factory=list)
    cache_offline: bool = False

    # local
    path: str | None = None
    file_extensions: list[str] = Field(default_factory=lambda: [".md"])

    @property
    def is_local(self) -> bool:
        return self.type == "local"

    @property
    def extensions(self) -> list[str]:
        """Allowed file extensions, lowercased and dot-prefixed."""
        return [
            ext.lower() if ext.startswith(".") else f".{ext.lower()}"
            for ext in (self.file_extensions or [".md"])
        ]


class Document(BaseModel):
    """One indexed page or file with its searchable text."""

    source_id: str
    source_name: str
    url: str
    title: str
    page_name: str
    content: str
    indexed_at: datetime = Field(default_factory=utcnow)
    is_local: bool | None = None

    # Local files only
    file_path: str | None = None
    file_modified: float | None = None

    # Offline cache only
    cache_path: str | None = None
    cache_hash: str | None = None
    cached_at: datetime | None = None
    is_cached: bool = False


class SourceSummary(BaseModel):
    """Per-source entry in the index, with a derived page count."""

    id: str
    name: str
    type: str
    description: str = ""
    page_count: int = 0
    is_local: bool = False

    @classmethod
    def from_source(cls, source: SourceDescriptor) -> "SourceSummary":
        return cls(
            id=source.id,
            name=source.name,
            type=source.type,
            description=source.description,
            is_local=source.is_local,
        )


class Index(BaseModel):
    """The persisted aggregate of documents and source summaries."""

    pages: list[Document] = Field(default_factory=list)
    sources: list[SourceSummary] = Field(default_factory=list)
    last_updated: datetime | None = None
    total_pages: int = 0

    def recount(self) -> None:
        """Recompute every summary's page count and the total from ``pages``."""
        counts: dict[str, int] = {}
        for page in self.pages:
            counts[page.source_id] = counts.get(page.source_id, 0) + 1
        for summary in self.sources:
            summary.page_count = counts.get(summary.id, 0)
        self.total_pages = len(self.pages)

    def summary_for(self, source_id: str) -> SourceSummary | None:
        for summary in self.sources:
            if summary.id == source_id:
                return summary
        return None
