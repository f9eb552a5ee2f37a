"""Search result models with snippet descriptors."""

from typing import Literal

from pydantic import BaseModel

MatchType = Literal["exact_title", "title_contains", "page_name", "url", "content", "fuzzy"]


class Snippet(BaseModel):
    """A window of document content around the first match of the query."""

    text: str = ""
    highlight_start: int | None = None
    highlight_length: int = 0


class SearchResult(BaseModel):
    """A single scored document."""

    source_id: str
    source_name: str
    title: str
    page_name: str
    url: str
    is_local: bool = False
    file_path: str | None = None
    is_cached: bool = False
    cache_path: str | None = None
    score: int
    match_type: MatchType | None = None
    snippet: Snippet
