import json

import pytest

from knowledge_search.ingestion.fetcher import HttpFetcher
from knowledge_search.models.document import SourceDescriptor
from knowledge_search.storage import OfflineCache, strip_media, url_hash

PAGE = (
    '<html><body><h1>Guide</h1><img src="a.png"><picture><source srcset="b.webp"></picture>'
    '<p loading="lazy" data-src="x" class="text">Readable text</p>'
    '<video src="v.mp4"></video><svg><path d="M0"/></svg></body></html>'
)


@pytest.fixture()
def cache(settings, site, rate_limiter) -> OfflineCache:
    fetcher = HttpFetcher(transport=site.transport, settings=settings)
    return OfflineCache(fetcher, rate_limiter, settings=settings)


@pytest.fixture()
def source() -> SourceDescriptor:
    return SourceDescriptor(
        id="guide", name="Guide", type="gitbook", cache_offline=True, enabled=True
    )


def test_strip_media() -> None:
    stripped = strip_media(PAGE)
    for removed in ("<img", "<picture", "<video", "<svg", "loading=", "data-src", "srcset"):
        assert removed not in stripped
    assert "Readable text" in stripped
    assert 'class="text"' in stripped


@pytest.mark.asyncio
async def test_cache_source_pages(cache, source, settings, site, sleep, doc_factory) -> None:
    good = doc_factory(source_id="guide", url="https://example.com/guide")
    bad = doc_factory(source_id="guide", url="https://example.com/gone")
    site.routes[good.url] = PAGE

    report = await cache.cache_source_pages(source, [good, bad])

    assert (report.cached, report.failed) == (1, 1)
    assert len(sleep.delays) == 2

    cached_doc, failed_doc = report.documents
    assert cached_doc.is_cached is True
    assert cached_doc.cache_hash == url_hash(good.url)
    assert cached_doc.cache_path == str(settings.cache_dir / "guide" / f"{url_hash(good.url)}.html")
    assert cached_doc.cached_at is not None
    assert failed_doc is bad
    # Input documents are left untouched
    assert good.is_cached is False

    metadata = json.loads((settings.cache_dir / "guide" / "metadata.json").read_text())
    assert metadata["source_id"] == "guide"
    assert metadata["total_pages"] == 2
    assert metadata["cached_pages"] == 1
    assert metadata["failed_pages"] == 1
    assert metadata["total_size_bytes"] == report.size_bytes > 0

    assert cache.status() == [metadata]
    assert report.to_dict()["sizeMB"] == report.size_mb


def test_cap_on_sources(cache) -> None:
    sources = [
        SourceDescriptor(id=f"s{i}", name=f"S{i}", type="gitbook", cache_offline=True)
        for i in range(6)
    ]
    assert cache.check_request(sources[:5]) is None
    message = cache.check_request(sources)
    assert message is not None
    assert "5" in message


def test_status_without_cache_dir(cache) -> None:
    assert cache.status() == []
