import json
import random
from pathlib import Path

import httpx
import pytest

from knowledge_search.config import Settings
from knowledge_search.ingestion.rate_limiter import JitterRateLimiter
from knowledge_search.models.document import Document


class RecordingSleep:
    """Stands in for asyncio.sleep and remembers every requested delay."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class MockSite:
    """Serves canned responses by exact URL; anything else is a 404."""

    def __init__(self, routes: dict | None = None):
        self.routes = dict(routes or {})
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(str(request.url))
        if route is None:
            return httpx.Response(404, text="not found")
        if isinstance(route, Exception):
            raise route
        if isinstance(route, tuple):
            status, body = route
            return httpx.Response(status, text=body)
        return httpx.Response(200, text=route)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def requested_urls(self) -> list[str]:
        return [str(r.url) for r in self.requests]


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        data_dir=tmp_path / "data",
        cache_dir=tmp_path / "cache",
        sources_path=tmp_path / "sources.json",
        project_root=tmp_path,
        crawl_delay_seconds=1.0,
        min_content_chars=20,
        _env_file=None,
    )


@pytest.fixture()
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture()
def rate_limiter(sleep: RecordingSleep) -> JitterRateLimiter:
    return JitterRateLimiter(1.0, 0.8, 1.2, sleep=sleep, rng=random.Random(7))


@pytest.fixture()
def site() -> MockSite:
    return MockSite()


@pytest.fixture()
def write_sources(settings: Settings):
    def _write(online: list[dict] | None = None, offline: list[dict] | None = None) -> Path:
        settings.sources_path.write_text(
            json.dumps({"online_sources": online or [], "offline_sources": offline or []}),
            encoding="utf-8",
        )
        return settings.sources_path

    return _write


def make_doc(**overrides) -> Document:
    fields = {
        "source_id": "docs",
        "source_name": "Docs",
        "url": "https://example.com/page",
        "title": "Page",
        "page_name": "page",
        "content": "",
        "is_local": False,
    }
    fields.update(overrides)
    return Document(**fields)


def html_page(title: str, body: str) -> str:
    return (
        f"<html><head><title>{title} | Example Docs</title></head>"
        f"<body><nav>navigation links</nav><h1>{title}</h1><p>{body}</p>"
        "<script>var tracking = true;</script></body></html>"
    )


@pytest.fixture()
def doc_factory():
    return make_doc


@pytest.fixture()
def page_factory():
    return html_page
