"""Connector for raw markdown files listed by URL."""

import structlog

from knowledge_search.ingestion.connectors.web import WebConnector
from knowledge_search.ingestion.parser import get_parser
from knowledge_search.models.document import Document

logger = structlog.get_logger()

RAW_TEXT_HEADERS = {"Accept": "text/markdown,text/plain;q=0.9,*/*;q=0.5"}


class MarkdownUrlConnector(WebConnector):
    """
    Fetches each configured URL as raw markdown text.

    Code is dropped from the searchable content; titles come from the
    first ``# heading`` or, failing that, the file name.
    """

    source_type = "markdown"

    async def fetch_documents(self):
        urls = self.source.urls
        if not urls:
            logger.warning("no_urls_configured", source_id=self.source_id)
            return

        logger.info("crawling_markdown_urls", source_id=self.source_id, urls=len(urls))

        for i, url in enumerate(urls, 1):
            text = await self._fetch(url, headers=RAW_TEXT_HEADERS)
            self.stats.processed += 1
            if text is not None:
                yield self._markdown_document(url, text)
            if i % 10 == 0 or i == len(urls):
                self._log_progress(i, len(urls))

    def _markdown_document(self, url: str, text: str) -> Document:
        parser = get_parser()
        return Document(
            source_id=self.source_id,
            source_name=self.source_name,
            url=url,
            title=parser.extract_title(text) or parser.title_from_url(url),
            page_name=parser.title_from_url(url),
            content=parser.normalize(text)[: self.max_content_chars],
            is_local=False,
        )
