"""GitBook connector: sitemap discovery with link-harvest fallback."""

from urllib.parse import urldefrag, urljoin

import structlog

from knowledge_search.ingestion.connectors.web import WebConnector, normalize_url
from knowledge_search.ingestion.html import extract_links, extract_text
from knowledge_search.ingestion.sitemap import parse_sitemap
from knowledge_search.models.document import Document

logger = structlog.get_logger()

# GitBook renders client-side; headers of a top-level document navigation
# get the server-rendered page instead of the empty application shell.
SERVER_RENDER_HEADERS = {
    "Accept": "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Upgrade-Insecure-Requests": "1",
    "Cache-Control": "no-cache",
}

SITEMAP_HEADERS = {"Accept": "application/xml,text/xml;q=0.9,*/*;q=0.5"}

SKIPPED_LINK_PREFIXES = ("#", "mailto:", "javascript:", "tel:")


class GitBookConnector(WebConnector):
    """
    Connector for GitBook-hosted documentation.

    URLs come from ``{index_url}/sitemap.xml`` (following a sitemap index
    one level down). Without a usable sitemap, internal links on the index
    page are harvested instead, capped at ``max_discovered_links``.
    """

    source_type = "gitbook"

    @property
    def index_url(self) -> str:
        return self.source.index_url or ""

    async def fetch_documents(self):
        if not self.index_url:
            logger.warning("source_missing_index_url", source_id=self.source_id)
            return

        logger.info("crawling_gitbook", source_id=self.source_id, index_url=self.index_url)

        urls = await self.read_sitemap()
        if urls:
            logger.info("sitemap_urls_found", source_id=self.source_id, count=len(urls))
        else:
            index_html = await self._fetch(self.index_url, headers=SERVER_RENDER_HEADERS)
            if index_html is None:
                logger.error("index_page_unavailable", source_id=self.source_id, url=self.index_url)
                return

            urls = self.harvest_links(index_html)
            logger.info("internal_links_found", source_id=self.source_id, count=len(urls))

            if not urls:
                logger.warning("no_internal_links_indexing_index_page", source_id=self.source_id)
                self.stats.processed += 1
                doc = self._page_document(self.index_url, index_html)
                if doc is not None:
                    yield doc
                return

        for i, url in enumerate(urls, 1):
            html = await self._fetch(url, headers=SERVER_RENDER_HEADERS)
            self.stats.processed += 1
            if html is not None:
                doc = self._page_document(url, html)
                if doc is not None:
                    yield doc
            if i % 10 == 0 or i == len(urls):
                self._log_progress(i, len(urls))

    async def read_sitemap(self) -> list[str]:
        """
        Collect in-prefix page URLs from the source's sitemap.

        Child sitemaps of a sitemap index are fetched without the crawl
        delay. Returns an empty list when no usable sitemap exists.
        """
        sitemap_url = f"{normalize_url(self.index_url)}/sitemap.xml"
        xml_text = await self.fetcher.fetch_text(sitemap_url, headers=SITEMAP_HEADERS)
        if xml_text is None:
            return []

        entries = parse_sitemap(xml_text)
        if entries is None:
            logger.info("sitemap_unparsable", source_id=self.source_id, url=sitemap_url)
            return []

        locations = list(entries.pages)
        for child_url in entries.sitemaps:
            child_xml = await self.fetcher.fetch_text(child_url, headers=SITEMAP_HEADERS)
            if child_xml is None:
                continue
            child = parse_sitemap(child_xml)
            if child is None:
                logger.info("sitemap_unparsable", source_id=self.source_id, url=child_url)
                continue
            locations.extend(child.pages)

        return self.filter_urls(locations)

    def filter_urls(self, urls: list[str]) -> list[str]:
        """Keep URLs under the index URL (but not the index URL itself), deduplicated."""
        base = normalize_url(self.index_url)
        kept = [
            url
            for url in urls
            if normalize_url(url).startswith(base) and normalize_url(url) != base
        ]
        return list(dict.fromkeys(kept))

    def harvest_links(self, html: str) -> list[str]:
        """Resolve internal anchor targets on the index page."""
        links = []
        for href in extract_links(html):
            href = href.strip()
            if not href or href.startswith(SKIPPED_LINK_PREFIXES):
                continue
            try:
                full_url = urldefrag(urljoin(self.index_url, href)).url
            except ValueError:
                continue
            links.append(full_url)

        return self.filter_urls(links)[: self.max_discovered_links]

    def _page_document(self, url: str, html: str) -> Document | None:
        text = extract_text(html)
        if len(text) < self.min_content_chars:
            # Most likely an unrendered application shell
            self.stats.skipped += 1
            logger.debug("page_below_content_floor", url=url, length=len(text))
            return None
        return self._build_document(url, html, text=text)
