"""Shared behaviour for connectors that fetch remote pages."""

from abc import abstractmethod

import structlog

from knowledge_search.config import Settings, get_settings
from knowledge_search.ingestion.connectors.base import BaseConnector
from knowledge_search.ingestion.fetcher import HttpFetcher
from knowledge_search.ingestion.html import extract_page_name, extract_text, extract_title
from knowledge_search.ingestion.rate_limiter import JitterRateLimiter
from knowledge_search.models.document import Document, SourceDescriptor

logger = structlog.get_logger()


def normalize_url(url: str) -> str:
    """Trailing-slash-insensitive form used for prefix comparisons."""
    return url.rstrip("/")


class WebConnector(BaseConnector):
    """
    Base for online connectors.

    Fetches are sequential; every content fetch, successful or not, is
    followed by one jittered delay from the rate limiter.
    """

    def __init__(
        self,
        source: SourceDescriptor,
        fetcher: HttpFetcher,
        rate_limiter: JitterRateLimiter,
        settings: Settings | None = None,
    ):
        super().__init__(source)
        settings = settings or get_settings()
        self.fetcher = fetcher
        self.rate_limiter = rate_limiter
        self.max_content_chars = settings.max_content_chars
        self.min_content_chars = settings.min_content_chars
        self.max_discovered_links = settings.max_discovered_links

    @abstractmethod
    async def fetch_documents(self):
        pass

    async def _fetch(self, url: str, headers: dict | None = None) -> str | None:
        """Fetch a content page, then wait out the jittered delay."""
        try:
            text = await self.fetcher.fetch_text(url, headers=headers)
        finally:
            await self.rate_limiter.wait()
        if text is None:
            self.stats.failed += 1
        return text

    def _build_document(
        self, url: str, html: str, page_name: str | None = None, text: str | None = None
    ) -> Document:
        if text is None:
            text = extract_text(html)
        return Document(
            source_id=self.source_id,
            source_name=self.source_name,
            url=url,
            title=extract_title(html, url),
            page_name=page_name if page_name is not None else extract_page_name(url),
            content=text[: self.max_content_chars],
            is_local=False,
        )

    def _log_progress(self, done: int, total: int):
        logger.info(
            "crawl_progress",
            source_id=self.source_id,
            done=done,
            total=total,
            failed=self.stats.failed,
            skipped=self.stats.skipped,
        )
