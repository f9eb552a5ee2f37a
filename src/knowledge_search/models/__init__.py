"""Models package."""

from knowledge_search.models.document import (
    Document,
    Index,
    SourceDescriptor,
    SourceSummary,
)
from knowledge_search.models.search import MatchType, SearchResult, Snippet

__all__ = [
    "Document",
    "Index",
    "MatchType",
    "SearchResult",
    "Snippet",
    "SourceDescriptor",
    "SourceSummary",
]
