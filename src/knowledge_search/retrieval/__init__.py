"""Retrieval package."""

from knowledge_search.retrieval.search import (
    SearchEngine,
    extract_snippet,
    get_search_engine,
    subsequence_similarity,
)

__all__ = [
    "SearchEngine",
    "extract_snippet",
    "get_search_engine",
    "subsequence_similarity",
]
