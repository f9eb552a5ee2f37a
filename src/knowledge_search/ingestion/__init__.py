"""Ingestion package."""

from knowledge_search.ingestion.connectors import (
    CONNECTORS,
    BaseConnector,
    DocusaurusConnector,
    GitBookConnector,
    LocalFileIndexer,
    MarkdownUrlConnector,
)
from knowledge_search.ingestion.fetcher import HttpFetcher
from knowledge_search.ingestion.parser import MarkdownParser, get_parser
from knowledge_search.ingestion.pipeline import CrawlOrchestrator, IngestStats, build_index
from knowledge_search.ingestion.rate_limiter import JitterRateLimiter
from knowledge_search.ingestion.registry import ConfigError, SourceRegistry, SourceSet

__all__ = [
    "BaseConnector",
    "CONNECTORS",
    "ConfigError",
    "CrawlOrchestrator",
    "DocusaurusConnector",
    "GitBookConnector",
    "HttpFetcher",
    "IngestStats",
    "JitterRateLimiter",
    "LocalFileIndexer",
    "MarkdownParser",
    "MarkdownUrlConnector",
    "SourceRegistry",
    "SourceSet",
    "build_index",
    "get_parser",
]
