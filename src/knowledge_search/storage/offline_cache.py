"""Offline HTML snapshots of remote pages, addressed by URL hash."""

import hashlib
import json
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

import structlog
from bs4 import BeautifulSoup

from knowledge_search.config import Settings, get_settings
from knowledge_search.ingestion.fetcher import HttpFetcher
from knowledge_search.ingestion.rate_limiter import JitterRateLimiter
from knowledge_search.models.document import Document, SourceDescriptor

logger = structlog.get_logger()

METADATA_FILENAME = "metadata.json"
MEDIA_SELECTORS = "img, picture, video, audio, source, track, svg, iframe, embed, object"
LAZY_ATTRIBUTE_PATTERN = re.compile(r"^(loading|srcset|data-src.*|data-lazy.*)$")


@dataclass
class CacheReport:
    """Outcome of caching one source."""

    source_id: str
    cached: int = 0
    failed: int = 0
    size_bytes: int = 0
    documents: list[Document] = field(default_factory=list, repr=False)

    @property
    def size_mb(self) -> float:
        return round(self.size_bytes / (1024 * 1024), 2)

    def to_dict(self) -> dict:
        return {
            "source_id": self.source_id,
            "cached": self.cached,
            "failed": self.failed,
            "sizeMB": self.size_mb,
        }


def url_hash(url: str) -> str:
    return hashlib.sha256(url.encode("utf-8")).hexdigest()


def strip_media(html: str) -> str:
    """Remove heavy media elements and lazy-load attributes from a page."""
    soup = BeautifulSoup(html, "html.parser")
    for element in soup.select(MEDIA_SELECTORS):
        element.decompose()
    for tag in soup.find_all(True):
        for attr in [a for a in tag.attrs if LAZY_ATTRIBUTE_PATTERN.match(a)]:
            del tag.attrs[attr]
    return str(soup)


class OfflineCache:
    """
    Stores stripped HTML for sources flagged ``cache_offline``.

    Layout: ``{cache_dir}/{source_id}/{sha256(url)}.html`` plus one
    ``metadata.json`` per source.
    """

    def __init__(
        self,
        fetcher: HttpFetcher,
        rate_limiter: JitterRateLimiter,
        cache_dir: Path | None = None,
        max_sources: int | None = None,
        settings: Settings | None = None,
    ):
        settings = settings or get_settings()
        self.fetcher = fetcher
        self.rate_limiter = rate_limiter
        self.cache_dir = Path(cache_dir or settings.cache_dir)
        self.max_sources = max_sources or settings.max_cache_sources

    def check_request(self, sources: list[SourceDescriptor]) -> str | None:
        """Return a rejection message if the request covers too many sources."""
        if len(sources) > self.max_sources:
            return (
                f"Refusing to cache {len(sources)} sources at once; "
                f"the limit is {self.max_sources}. Select fewer sources."
            )
        return None

    def source_dir(self, source_id: str) -> Path:
        return self.cache_dir / source_id

    async def cache_source_pages(
        self, source: SourceDescriptor, documents: list[Document]
    ) -> CacheReport:
        """
        Fetch, strip and store every document of one source.

        Failed fetches are counted and skipped. The returned report carries
        copies of the documents with their cache fields filled in.
        """
        target_dir = self.source_dir(source.id)
        target_dir.mkdir(parents=True, exist_ok=True)
        report = CacheReport(source_id=source.id)

        logger.info("caching_source", source_id=source.id, pages=len(documents))

        for i, doc in enumerate(documents, 1):
            try:
                html = await self.fetcher.fetch_text(doc.url)
            finally:
                await self.rate_limiter.wait()

            if html is None:
                report.failed += 1
                report.documents.append(doc)
                continue

            digest = url_hash(doc.url)
            cache_path = target_dir / f"{digest}.html"
            try:
                cache_path.write_text(strip_media(html), encoding="utf-8")
            except OSError as e:
                logger.error("cache_write_failed", url=doc.url, error=str(e))
                report.failed += 1
                report.documents.append(doc)
                continue

            report.cached += 1
            report.size_bytes += cache_path.stat().st_size
            report.documents.append(
                doc.model_copy(
                    update={
                        "cache_path": str(cache_path),
                        "cache_hash": digest,
                        "cached_at": datetime.now(timezone.utc),
                        "is_cached": True,
                    }
                )
            )

            if i % 10 == 0:
                logger.info("cache_progress", source_id=source.id, done=i, total=len(documents))

        self._write_metadata(source, report, total=len(documents))
        logger.info(
            "source_cached",
            source_id=source.id,
            cached=report.cached,
            failed=report.failed,
            size_mb=report.size_mb,
        )
        return report

    def _write_metadata(self, source: SourceDescriptor, report: CacheReport, total: int):
        metadata = {
            "source_id": source.id,
            "source_name": source.name,
            "total_pages": total,
            "cached_pages": report.cached,
            "failed_pages": report.failed,
            "total_size_bytes": report.size_bytes,
            "size_mb": report.size_mb,
            "cached_at": datetime.now(timezone.utc).isoformat(),
        }
        path = self.source_dir(source.id) / METADATA_FILENAME
        path.write_text(json.dumps(metadata, indent=2), encoding="utf-8")

    def status(self) -> list[dict]:
        """Read the metadata summary of every cached source."""
        if not self.cache_dir.is_dir():
            return []

        summaries = []
        for source_dir in sorted(p for p in self.cache_dir.iterdir() if p.is_dir()):
            try:
                summaries.append(
                    json.loads((source_dir / METADATA_FILENAME).read_text(encoding="utf-8"))
                )
            except (OSError, ValueError) as e:
                logger.warning("cache_metadata_unreadable", path=str(source_dir), error=str(e))
        return summaries
