"""Connector for sites with an explicit, ordered page list."""

import structlog

from knowledge_search.ingestion.connectors.web import WebConnector, normalize_url

logger = structlog.get_logger()


class DocusaurusConnector(WebConnector):
    """Fetches ``{base_url}/{slug}`` for every configured slug, in order."""

    source_type = "docusaurus"

    async def fetch_documents(self):
        if not self.source.base_url:
            logger.warning("source_missing_base_url", source_id=self.source_id)
            return

        pages = self.source.pages
        if not pages:
            logger.warning("no_pages_configured", source_id=self.source_id)
            return

        logger.info("crawling_page_list", source_id=self.source_id, pages=len(pages))
        base = normalize_url(self.source.base_url)

        for i, slug in enumerate(pages, 1):
            url = f"{base}/{slug.lstrip('/')}"
            html = await self._fetch(url)
            self.stats.processed += 1
            if html is not None:
                page_name = slug.strip("/").replace("-", " ")
                yield self._build_document(url, html, page_name=page_name)
            if i % 10 == 0 or i == len(pages):
                self._log_progress(i, len(pages))
