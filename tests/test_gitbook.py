import pytest

from knowledge_search.ingestion.connectors import GitBookConnector
from knowledge_search.ingestion.fetcher import HttpFetcher
from knowledge_search.ingestion.html import extract_page_name, extract_text, extract_title
from knowledge_search.models.document import SourceDescriptor

BOOK = "https://docs.example.com/book"


def sitemap(*urls: str) -> str:
    entries = "".join(f"<url><loc>{u}</loc></url>" for u in urls)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f'<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{entries}</urlset>'
    )


def sitemap_index(*urls: str) -> str:
    entries = "".join(f"<sitemap><loc>{u}</loc></sitemap>" for u in urls)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f'<sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{entries}</sitemapindex>'
    )


def anchors(*hrefs: str) -> str:
    links = "".join(f'<a href="{h}">link</a>' for h in hrefs)
    return f"<html><body><h1>Book</h1><div>{links}</div></body></html>"


@pytest.fixture()
def make_connector(settings, site, rate_limiter):
    def _make(index_url: str = BOOK) -> GitBookConnector:
        source = SourceDescriptor(
            id="book", name="The Book", type="gitbook", index_url=index_url, enabled=True
        )
        fetcher = HttpFetcher(transport=site.transport, settings=settings)
        return GitBookConnector(source, fetcher, rate_limiter, settings=settings)

    return _make


@pytest.mark.asyncio
async def test_sitemap_urls_are_filtered_to_the_book(make_connector, site, sleep, page_factory):
    site.routes.update(
        {
            f"{BOOK}/sitemap.xml": sitemap(
                BOOK,
                f"{BOOK}/intro",
                f"{BOOK}/setup",
                f"{BOOK}/intro",
                "https://other.example.com/book/intro",
            ),
            f"{BOOK}/intro": page_factory("Intro", "an introduction to the material"),
            f"{BOOK}/setup": page_factory("Setup", "how to install everything needed"),
        }
    )
    connector = make_connector()

    docs = await connector.collect()

    assert [d.url for d in docs] == [f"{BOOK}/intro", f"{BOOK}/setup"]
    assert [d.title for d in docs] == ["Intro", "Setup"]
    assert docs[0].page_name == "intro"
    assert "navigation links" not in docs[0].content
    assert "tracking" not in docs[0].content
    assert "an introduction to the material" in docs[0].content
    # The sitemap request itself is not followed by a delay
    assert len(sleep.delays) == 2
    assert all(0.8 <= d <= 1.2 for d in sleep.delays)


@pytest.mark.asyncio
async def test_sitemap_index_is_followed_one_level(make_connector, site, sleep, page_factory):
    site.routes.update(
        {
            f"{BOOK}/sitemap.xml": sitemap_index(f"{BOOK}/sitemap-pages.xml"),
            f"{BOOK}/sitemap-pages.xml": sitemap(f"{BOOK}/chapter-one"),
            f"{BOOK}/chapter-one": page_factory("Chapter One", "the first chapter of the book"),
        }
    )
    docs = await make_connector().collect()

    assert [d.page_name for d in docs] == ["chapter one"]
    assert len(sleep.delays) == 1


@pytest.mark.asyncio
async def test_falls_back_to_harvesting_index_links(make_connector, site, sleep, page_factory):
    site.routes.update(
        {
            BOOK: anchors(
                "/book/a",
                "/book/a#details",
                "#top",
                "mailto:team@example.com",
                "javascript:void(0)",
                "https://other.example.com/book/a",
                "/book",
            ),
            f"{BOOK}/a": page_factory("Page A", "content of the first page"),
        }
    )
    connector = make_connector()

    docs = await connector.collect()

    assert [d.url for d in docs] == [f"{BOOK}/a"]
    assert f"{BOOK}/sitemap.xml" in site.requested_urls
    # Index page plus one content page
    assert len(sleep.delays) == 2


@pytest.mark.asyncio
async def test_unparsable_sitemap_falls_back(make_connector, site, page_factory):
    site.routes.update(
        {
            f"{BOOK}/sitemap.xml": "<html><body>Not a sitemap",
            BOOK: anchors("/book/a"),
            f"{BOOK}/a": page_factory("Page A", "content of the first page"),
        }
    )
    docs = await make_connector().collect()
    assert [d.url for d in docs] == [f"{BOOK}/a"]


@pytest.mark.asyncio
async def test_index_page_is_indexed_when_no_links(make_connector, site, page_factory):
    site.routes[BOOK] = page_factory("Single Page Book", "everything lives on this one page")
    docs = await make_connector().collect()

    assert len(docs) == 1
    assert docs[0].url == BOOK
    assert docs[0].title == "Single Page Book"


@pytest.mark.asyncio
async def test_unreachable_index_yields_nothing(make_connector, site):
    connector = make_connector()
    assert await connector.collect() == []
    assert connector.stats.failed == 1


def test_harvest_is_capped(make_connector):
    html = anchors(*[f"/book/p{i}" for i in range(60)])
    links = make_connector().harvest_links(html)

    assert len(links) == 50
    assert links[0] == f"{BOOK}/p0"
    assert links[-1] == f"{BOOK}/p49"


@pytest.mark.asyncio
async def test_content_floor_skips_application_shells(make_connector, site, page_factory):
    site.routes.update(
        {
            f"{BOOK}/sitemap.xml": sitemap(f"{BOOK}/shell", f"{BOOK}/real"),
            f"{BOOK}/shell": '<html><body><div id="app"></div></body></html>',
            f"{BOOK}/real": page_factory("Real", "rendered documentation text"),
        }
    )
    connector = make_connector()
    docs = await connector.collect()

    assert [d.title for d in docs] == ["Real"]
    assert connector.stats.skipped == 1


@pytest.mark.asyncio
async def test_failed_page_does_not_stop_the_crawl(make_connector, site, sleep, page_factory):
    site.routes.update(
        {
            f"{BOOK}/sitemap.xml": sitemap(f"{BOOK}/broken", f"{BOOK}/fine"),
            f"{BOOK}/broken": (500, "server error"),
            f"{BOOK}/fine": page_factory("Fine", "this page loads correctly"),
        }
    )
    connector = make_connector()
    docs = await connector.collect()

    assert [d.title for d in docs] == ["Fine"]
    assert connector.stats.failed == 1
    assert len(sleep.delays) == 2


@pytest.mark.asyncio
async def test_content_is_truncated(make_connector, site, settings, page_factory):
    site.routes.update(
        {
            f"{BOOK}/sitemap.xml": sitemap(f"{BOOK}/long"),
            f"{BOOK}/long": page_factory("Long", "word " * 5000),
        }
    )
    [doc] = await make_connector().collect()
    assert len(doc.content) == settings.max_content_chars


@pytest.mark.parametrize(
    "html,expected",
    [
        ("<html><head><title>Getting Started | Example Docs</title></head></html>", "Getting Started"),
        ("<html><head><title>Getting Started - Example Docs</title></head></html>", "Getting Started"),
        ("<html><head><title>A - B - Site</title></head></html>", "A - B"),
        ("<html><h1>Heading</h1><title>Other | Site</title></html>", "Heading"),
        ("<html><body></body></html>", "setup guide"),
    ],
)
def test_extract_title(html: str, expected: str) -> None:
    assert extract_title(html, f"{BOOK}/setup-guide") == expected


def test_extract_title_without_anything() -> None:
    assert extract_title("<html></html>", "https://docs.example.com/") == "Untitled"


def test_extract_text_strips_chrome() -> None:
    html = (
        "<html><body><header>Top</header><aside>Side</aside>"
        "<div class='sidebar'>Menu</div><main>Main   Text\n here</main>"
        "<footer>Bottom</footer><style>p {}</style></body></html>"
    )
    assert extract_text(html) == "main text here"


def test_extract_page_name() -> None:
    assert extract_page_name(f"{BOOK}/web_security-basics") == "web security basics"
    assert extract_page_name("https://docs.example.com/") == "index"


@pytest.mark.asyncio
async def test_malformed_sitemap_url_does_not_drop_the_source(make_connector, site, page_factory):
    site.routes.update(
        {
            f"{BOOK}/sitemap.xml": sitemap(f"{BOOK}/bad\tpage", f"{BOOK}/good"),
            f"{BOOK}/good": page_factory("Good", "this page is still indexed"),
        }
    )
    connector = make_connector()

    docs = await connector.collect()

    assert [d.url for d in docs] == [f"{BOOK}/good"]
    assert connector.stats.failed == 1
