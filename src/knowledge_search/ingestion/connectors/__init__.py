"""Connectors package."""

from knowledge_search.ingestion.connectors.base import BaseConnector, ConnectorStats
from knowledge_search.ingestion.connectors.docusaurus import DocusaurusConnector
from knowledge_search.ingestion.connectors.gitbook import GitBookConnector
from knowledge_search.ingestion.connectors.local import LocalFileIndexer
from knowledge_search.ingestion.connectors.markdown_urls import MarkdownUrlConnector
from knowledge_search.ingestion.connectors.web import WebConnector

# Online source type -> connector class
CONNECTORS: dict[str, type[WebConnector]] = {
    GitBookConnector.source_type: GitBookConnector,
    DocusaurusConnector.source_type: DocusaurusConnector,
    MarkdownUrlConnector.source_type: MarkdownUrlConnector,
}

__all__ = [
    "BaseConnector",
    "CONNECTORS",
    "ConnectorStats",
    "DocusaurusConnector",
    "GitBookConnector",
    "LocalFileIndexer",
    "MarkdownUrlConnector",
    "WebConnector",
]
