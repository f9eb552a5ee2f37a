"""Crawl orchestration across all configured sources."""

import time
from dataclasses import dataclass
from datetime import datetime, timezone

import structlog

from knowledge_search.config import Settings, get_settings
from knowledge_search.ingestion.connectors import CONNECTORS, BaseConnector, LocalFileIndexer
from knowledge_search.ingestion.fetcher import HttpFetcher
from knowledge_search.ingestion.rate_limiter import JitterRateLimiter
from knowledge_search.ingestion.registry import SourceRegistry
from knowledge_search.models.document import Document, Index, SourceDescriptor, SourceSummary
from knowledge_search.observability import CRAWL_DOCUMENTS, INDEX_BUILD_TIME
from knowledge_search.storage.index_store import IndexStore

logger = structlog.get_logger()


@dataclass
class IngestStats:
    """Statistics from crawling one source."""

    source_id: str
    source_type: str
    documents: int = 0
    processed: int = 0
    reused: int = 0
    skipped: int = 0
    failed: int = 0
    error: str | None = None
    duration_seconds: float = 0.0


def build_index(sources: list[SourceDescriptor], pages: list[Document]) -> Index:
    """Assemble a fresh Index with summaries derived from ``pages``."""
    for page in pages:
        if page.is_local is None:
            page.is_local = False

    index = Index(
        pages=pages,
        sources=[SourceSummary.from_source(s) for s in sources],
        last_updated=datetime.now(timezone.utc),
    )
    index.recount()
    return index


class CrawlOrchestrator:
    """
    Runs every enabled source through its connector and persists the result.

    Flow:
    1. Load enabled sources from the registry
    2. Online sources: dispatch by type to a connector
    3. Offline sources: LocalFileIndexer with mtime diffing
    4. Assemble a new Index and save it

    A failing source is logged and contributes nothing; the rest still run.
    """

    def __init__(
        self,
        registry: SourceRegistry,
        store: IndexStore,
        rate_limiter: JitterRateLimiter | None = None,
        transport=None,
        settings: Settings | None = None,
    ):
        self.settings = settings or get_settings()
        self.registry = registry
        self.store = store
        self.rate_limiter = rate_limiter or JitterRateLimiter(
            self.settings.crawl_delay_seconds,
            self.settings.jitter_min,
            self.settings.jitter_max,
        )
        self.transport = transport
        self.last_stats: list[IngestStats] = []

    def make_fetcher(self) -> HttpFetcher:
        return HttpFetcher(transport=self.transport, settings=self.settings)

    def connector_for(
        self, source: SourceDescriptor, fetcher: HttpFetcher
    ) -> BaseConnector | None:
        """Pick the connector class for an online source, or None for unknown types."""
        connector_cls = CONNECTORS.get(source.type)
        if connector_cls is None:
            logger.warning("unknown_source_type", source_id=source.id, type=source.type)
            return None
        return connector_cls(source, fetcher, self.rate_limiter, settings=self.settings)

    async def build_index(self, previous: Index | None = None) -> Index:
        """
        Crawl every enabled source and save a new index.

        Args:
            previous: The current index; its local documents are reused when
                their files have not changed

        Raises:
            ConfigError: if the source configuration cannot be loaded
        """
        start = time.perf_counter()
        sources = self.registry.load()
        previous_pages = previous.pages if previous else []
        all_pages: list[Document] = []
        self.last_stats = []

        logger.info(
            "build_started",
            online_sources=len(sources.online),
            offline_sources=len(sources.offline),
        )

        async with self.make_fetcher() as fetcher:
            for source in sources.online:
                connector = self.connector_for(source, fetcher)
                if connector is None:
                    self.last_stats.append(
                        IngestStats(source.id, source.type, error="unknown source type")
                    )
                    continue
                all_pages.extend(await self._run(connector))

        for source in sources.offline:
            if not source.path:
                logger.warning(
                    "local_source_missing_path",
                    source_id=source.id,
                    hint="Set 'path' to the directory to index in the source configuration",
                )
                self.last_stats.append(IngestStats(source.id, source.type, error="missing path"))
                continue
            root = self.registry.resolve_path(source.path)
            connector = LocalFileIndexer(source, root, previous=previous_pages)
            all_pages.extend(await self._run(connector))

        index = build_index(sources.all, all_pages)
        self.store.save(index)

        duration = time.perf_counter() - start
        INDEX_BUILD_TIME.observe(duration)
        logger.info(
            "build_complete",
            total_pages=index.total_pages,
            online=sum(1 for p in index.pages if not p.is_local),
            offline=sum(1 for p in index.pages if p.is_local),
            duration=f"{duration:.2f}s",
        )
        return index

    async def crawl_source(self, source: SourceDescriptor) -> list[Document]:
        """Crawl a single online source without touching the index."""
        async with self.make_fetcher() as fetcher:
            connector = self.connector_for(source, fetcher)
            if connector is None:
                return []
            return await self._run(connector)

    async def _run(self, connector: BaseConnector) -> list[Document]:
        stats = IngestStats(source_id=connector.source_id, source_type=connector.source.type)
        start = time.perf_counter()
        documents: list[Document] = []

        try:
            documents = await connector.collect()
        except Exception as e:
            stats.error = str(e)
            logger.error(
                "source_indexing_failed",
                source_id=connector.source_id,
                error=str(e),
            )

        stats.documents = len(documents)
        stats.processed = connector.stats.processed
        stats.reused = connector.stats.reused
        stats.skipped = connector.stats.skipped
        stats.failed = connector.stats.failed
        stats.duration_seconds = time.perf_counter() - start
        self.last_stats.append(stats)

        CRAWL_DOCUMENTS.labels(source_type=stats.source_type, status="indexed").inc(stats.documents)
        CRAWL_DOCUMENTS.labels(source_type=stats.source_type, status="failed").inc(stats.failed)
        logger.info("source_indexed", stats=stats.__dict__)
        return documents
