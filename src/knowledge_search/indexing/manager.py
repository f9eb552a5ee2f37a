"""Index management: the in-memory index and every operation on it."""

import os
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

import structlog

from knowledge_search.config import Settings, get_settings
from knowledge_search.ingestion.connectors import LocalFileIndexer
from knowledge_search.ingestion.fetcher import HttpFetcher
from knowledge_search.ingestion.pipeline import CrawlOrchestrator
from knowledge_search.ingestion.rate_limiter import JitterRateLimiter
from knowledge_search.ingestion.registry import SourceRegistry
from knowledge_search.models.document import Document, Index, SourceDescriptor, SourceSummary
from knowledge_search.models.search import SearchResult
from knowledge_search.observability import (
    CACHE_PAGES,
    LOCAL_FILE_UPDATES,
    SEARCH_LATENCY,
    SEARCH_REQUESTS,
)
from knowledge_search.retrieval.search import SearchEngine, get_search_engine
from knowledge_search.storage import CacheReport, IndexStore, OfflineCache

logger = structlog.get_logger()


class IndexBusyError(RuntimeError):
    """A mutating operation was started while another one is running."""


@dataclass
class CachePassResult:
    """Outcome of a cache pass over one or more sources."""

    rejected: bool = False
    message: str = ""
    reports: list[CacheReport] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "rejected": self.rejected,
            "message": self.message,
            "sources": [r.to_dict() for r in self.reports],
        }


class IndexManager:
    """
    Owns the in-memory index and exposes the operations on it.

    Single-writer contract: ``build_index``, ``cache_sources``,
    ``cache_source_pages``, ``update_local_file`` and ``remove_local_file``
    mark the manager busy; starting another while one is in flight raises
    IndexBusyError. Searches are read-only and always allowed.

    Incremental file operations scan the page list linearly, which is fine
    for a few thousand documents but is the first thing to index by
    ``file_path`` if the corpus grows much larger.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        registry: SourceRegistry | None = None,
        store: IndexStore | None = None,
        rate_limiter: JitterRateLimiter | None = None,
        transport=None,
        engine: SearchEngine | None = None,
    ):
        self.settings = settings or get_settings()
        self.registry = registry or SourceRegistry(settings=self.settings)
        self.store = store or IndexStore(settings=self.settings)
        self.rate_limiter = rate_limiter or JitterRateLimiter(
            self.settings.crawl_delay_seconds,
            self.settings.jitter_min,
            self.settings.jitter_max,
        )
        self.orchestrator = CrawlOrchestrator(
            self.registry,
            self.store,
            rate_limiter=self.rate_limiter,
            transport=transport,
            settings=self.settings,
        )
        self.fetcher = HttpFetcher(transport=transport, settings=self.settings)
        self.cache = OfflineCache(self.fetcher, self.rate_limiter, settings=self.settings)
        self.engine = engine or get_search_engine()

        self.index = Index()
        self._busy: str | None = None

    @property
    def busy_operation(self) -> str | None:
        return self._busy

    @property
    def is_busy(self) -> bool:
        return self._busy is not None

    @property
    def is_ready(self) -> bool:
        return len(self.index.pages) > 0

    @contextmanager
    def _exclusive(self, operation: str):
        if self._busy is not None:
            raise IndexBusyError(f"Cannot start {operation}: {self._busy} is already running")
        self._busy = operation
        try:
            yield
        finally:
            self._busy = None

    async def initialize(self) -> dict:
        """Load the persisted index (or start empty)."""
        self.settings.data_dir.mkdir(parents=True, exist_ok=True)
        self.index = self.store.load()
        info = self.get_index_info()
        logger.info(
            "index_initialized",
            total_pages=info["total_pages"],
            last_updated=info["last_updated"],
        )
        return info

    async def build_index(self) -> Index:
        """Crawl every enabled source and replace the index."""
        with self._exclusive("build_index"):
            self.index = await self.orchestrator.build_index(self.index)
            return self.index

    def search(self, query: str, fuzzy: bool = True, limit: int | None = None) -> list[SearchResult]:
        """Rank the indexed documents against a query."""
        start_time = time.perf_counter()
        try:
            results = self.engine.search(self.index.pages, query, fuzzy=fuzzy)
        except Exception:
            SEARCH_REQUESTS.labels(status="error").inc()
            raise

        latency = time.perf_counter() - start_time
        SEARCH_REQUESTS.labels(status="success").inc()
        SEARCH_LATENCY.observe(latency)
        logger.info(
            "search_complete",
            query=query,
            results_count=len(results),
            latency_ms=round(latency * 1000, 2),
        )
        return results[:limit] if limit is not None else results

    def get_index_info(self) -> dict:
        return {
            "total_pages": len(self.index.pages),
            "last_updated": self.index.last_updated,
            "sources": list(self.index.sources),
        }

    async def update_local_file(self, path: str | Path) -> bool:
        """
        Re-index one local file without a full rebuild.

        Returns:
            False if no offline source contains the path or the file cannot
            be indexed; True once the index has been updated and saved
        """
        with self._exclusive("update_local_file"):
            target = Path(os.path.abspath(path))
            owner = self._find_owner(target)
            if owner is None:
                logger.warning("no_source_for_file", path=str(target))
                LOCAL_FILE_UPDATES.labels(operation="update", status="no_source").inc()
                return False

            source, root = owner
            if target.suffix.lower() not in source.extensions:
                logger.info("file_extension_not_indexed", path=str(target), source_id=source.id)
                LOCAL_FILE_UPDATES.labels(operation="update", status="ignored").inc()
                return False

            indexer = LocalFileIndexer(source, root, previous=self.index.pages)
            doc = indexer.index_file(target)
            if doc is None:
                LOCAL_FILE_UPDATES.labels(operation="update", status="failed").inc()
                return False

            for i, page in enumerate(self.index.pages):
                if page.file_path == doc.file_path:
                    self.index.pages[i] = doc
                    action = "updated"
                    break
            else:
                self.index.pages.append(doc)
                action = "added"

            if self.index.summary_for(source.id) is None:
                self.index.sources.append(SourceSummary.from_source(source))
            self._commit()

            LOCAL_FILE_UPDATES.labels(operation="update", status=action).inc()
            logger.info("local_file_" + action, path=doc.file_path, source_id=source.id)
            return True

    async def remove_local_file(self, path: str | Path) -> bool:
        """
        Drop one local file's document from the index.

        Returns:
            False (and leaves the index untouched) if no document has this path
        """
        with self._exclusive("remove_local_file"):
            key = str(Path(os.path.abspath(path)))
            for i, page in enumerate(self.index.pages):
                if page.file_path == key:
                    removed = self.index.pages.pop(i)
                    break
            else:
                logger.info("local_file_not_indexed", path=key)
                LOCAL_FILE_UPDATES.labels(operation="remove", status="not_found").inc()
                return False

            self._commit()
            LOCAL_FILE_UPDATES.labels(operation="remove", status="removed").inc()
            logger.info("local_file_removed", path=key, source_id=removed.source_id)
            return True

    async def cache_source_pages(
        self, source: SourceDescriptor, documents: list[Document]
    ) -> CacheReport:
        """Cache already-crawled documents of one source (index left unchanged)."""
        with self._exclusive("cache_source_pages"):
            async with self.fetcher:
                report = await self.cache.cache_source_pages(source, documents)
            self._count_cache(report)
            return report

    async def cache_sources(self, source_ids: list[str] | None = None) -> CachePassResult:
        """
        Crawl and cache every selected ``cache_offline`` source.

        Each cached source's documents in the index are replaced by the
        freshly crawled, cache-annotated ones. Requests covering more than
        ``max_cache_sources`` sources are rejected without doing any work.
        """
        with self._exclusive("cache_sources"):
            sources = self.registry.load()
            candidates = [
                s
                for s in sources.online
                if s.cache_offline and (source_ids is None or s.id in source_ids)
            ]

            if source_ids is not None:
                missing = sorted(set(source_ids) - {s.id for s in candidates})
                if missing:
                    logger.warning("sources_not_cacheable", source_ids=missing)

            rejection = self.cache.check_request(candidates)
            if rejection:
                logger.warning("cache_request_rejected", sources=len(candidates))
                return CachePassResult(rejected=True, message=rejection)

            if not candidates:
                return CachePassResult(message="No enabled sources are marked cache_offline")

            result = CachePassResult()
            async with self.fetcher:
                for source in candidates:
                    documents = await self.orchestrator.crawl_source(source)
                    report = await self.cache.cache_source_pages(source, documents)
                    self._count_cache(report)
                    result.reports.append(report)

                    self.index.pages = [
                        p for p in self.index.pages if p.source_id != source.id
                    ] + report.documents
                    if self.index.summary_for(source.id) is None:
                        self.index.sources.append(SourceSummary.from_source(source))

            self._commit()
            result.message = f"Cached {sum(r.cached for r in result.reports)} pages"
            return result

    def get_cache_status(self) -> list[dict]:
        return self.cache.status()

    def _find_owner(self, target: Path) -> tuple[SourceDescriptor, Path] | None:
        for source in self.registry.load().offline:
            if not source.path:
                continue
            root = Path(os.path.abspath(self.registry.resolve_path(source.path)))
            if target.is_relative_to(root):
                return source, root
        return None

    def _commit(self):
        self.index.recount()
        self.index.last_updated = datetime.now(timezone.utc)
        self.store.save(self.index)

    def _count_cache(self, report: CacheReport):
        CACHE_PAGES.labels(status="cached").inc(report.cached)
        CACHE_PAGES.labels(status="failed").inc(report.failed)


# Singleton
_manager: IndexManager | None = None


def get_index_manager() -> IndexManager:
    """Get the singleton index manager."""
    global _manager
    if _manager is None:
        _manager = IndexManager()
    return _manager
