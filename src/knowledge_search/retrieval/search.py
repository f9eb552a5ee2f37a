"""Multi-signal relevance scoring over whole documents."""

import math
import re
from typing import Iterable

from knowledge_search.models.document import Document
from knowledge_search.models.search import MatchType, SearchResult, Snippet

SNIPPET_LENGTH = 150
ELLIPSIS = "..."


def subsequence_similarity(pattern: str, text: str) -> float:
    """
    Share of ``pattern`` characters found in order in ``text``.

    1.0 when ``text`` contains ``pattern`` verbatim; otherwise a greedy
    left-to-right scan counts matched characters. No length penalty.
    """
    if not pattern:
        return 0.0
    if pattern in text:
        return 1.0

    matches = 0
    for char in text:
        if matches == len(pattern):
            break
        if char == pattern[matches]:
            matches += 1
    return matches / len(pattern)


def extract_snippet(content: str, term: str, length: int = SNIPPET_LENGTH) -> Snippet:
    """
    Cut a window of about ``length`` characters around the first match.

    The highlight offset is relative to the returned text, including any
    leading ellipsis.
    """
    if not term:
        return Snippet()

    index = content.lower().find(term.lower())
    if index == -1:
        return Snippet()

    half = length // 2
    start = max(0, index - half)
    end = min(len(content), index + len(term) + half)

    prefix = ELLIPSIS if start > 0 else ""
    suffix = ELLIPSIS if end < len(content) else ""

    return Snippet(
        text=f"{prefix}{content[start:end]}{suffix}",
        highlight_start=index - start + len(prefix),
        highlight_length=len(term),
    )


class SearchEngine:
    """
    Scores documents against a free-text query.

    Signals are additive and case-insensitive:

    - exact title: +100, else title contains: +50
    - page name contains: +30
    - url contains: +20
    - content occurrences: +2 each
    - fuzzy fallback (score still 0): floor(10 * similarity) when similarity > 0.7
    - short title (< 50 chars) on any hit: +5

    The first signal that fires sets the match type.
    """

    EXACT_TITLE_SCORE = 100
    TITLE_CONTAINS_SCORE = 50
    PAGE_NAME_SCORE = 30
    URL_SCORE = 20
    CONTENT_OCCURRENCE_SCORE = 2
    FUZZY_THRESHOLD = 0.7
    FUZZY_WEIGHT = 10
    SHORT_TITLE_LENGTH = 50
    SHORT_TITLE_BOOST = 5

    def score(self, doc: Document, term: str, fuzzy: bool = True) -> tuple[int, MatchType | None]:
        """Score one document against an already trimmed, lowercased term."""
        title = doc.title.lower()
        page_name = doc.page_name.lower()
        url = doc.url.lower()

        score = 0
        match_type: MatchType | None = None

        if title == term:
            score += self.EXACT_TITLE_SCORE
            match_type = "exact_title"
        elif term in title:
            score += self.TITLE_CONTAINS_SCORE
            match_type = "title_contains"

        if term in page_name:
            score += self.PAGE_NAME_SCORE
            match_type = match_type or "page_name"

        if term in url:
            score += self.URL_SCORE
            match_type = match_type or "url"

        occurrences = len(re.findall(re.escape(term), doc.content, re.IGNORECASE))
        if occurrences:
            score += self.CONTENT_OCCURRENCE_SCORE * occurrences
            match_type = match_type or "content"

        if fuzzy and score == 0:
            similarity = subsequence_similarity(term, title) + subsequence_similarity(
                term, page_name
            )
            if similarity > self.FUZZY_THRESHOLD:
                score += math.floor(self.FUZZY_WEIGHT * similarity)
                match_type = "fuzzy"

        if score > 0 and len(title) < self.SHORT_TITLE_LENGTH:
            score += self.SHORT_TITLE_BOOST

        return score, match_type

    def search(
        self, documents: Iterable[Document], query: str, fuzzy: bool = True
    ) -> list[SearchResult]:
        """
        Rank documents by score, highest first.

        Ties keep the input order. Documents scoring zero are dropped.
        """
        term = query.strip().lower()
        if not term:
            return []

        results = []
        for doc in documents:
            score, match_type = self.score(doc, term, fuzzy=fuzzy)
            if score <= 0:
                continue
            results.append(
                SearchResult(
                    source_id=doc.source_id,
                    source_name=doc.source_name,
                    title=doc.title,
                    page_name=doc.page_name,
                    url=doc.url,
                    is_local=bool(doc.is_local),
                    file_path=doc.file_path,
                    is_cached=doc.is_cached,
                    cache_path=doc.cache_path,
                    score=score,
                    match_type=match_type,
                    snippet=extract_snippet(doc.content, term),
                )
            )

        # sorted() is stable, including with reverse=True
        return sorted(results, key=lambda r: r.score, reverse=True)


# Singleton instance
_engine: SearchEngine | None = None


def get_search_engine() -> SearchEngine:
    """Get the singleton search engine instance."""
    global _engine
    if _engine is None:
        _engine = SearchEngine()
    return _engine
