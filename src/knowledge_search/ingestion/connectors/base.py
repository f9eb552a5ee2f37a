"""Abstract base connector interface for document sources."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import AsyncIterator

from knowledge_search.models.document import Document, SourceDescriptor


@dataclass
class ConnectorStats:
    """Per-run counters kept by a connector."""

    processed: int = 0
    indexed: int = 0
    reused: int = 0
    skipped: int = 0
    failed: int = 0


class BaseConnector(ABC):
    """Turns one source descriptor into normalized documents."""

    source_type: str = ""

    def __init__(self, source: SourceDescriptor):
        self.source = source
        self.stats = ConnectorStats()

    @property
    def source_id(self) -> str:
        return self.source.id

    @property
    def source_name(self) -> str:
        return self.source.name

    @abstractmethod
    async def fetch_documents(self) -> AsyncIterator[Document]:
        """
        Fetch documents from this source.

        Yields Document objects ready to be placed in the index.
        """
        pass

    async def collect(self) -> list[Document]:
        """Run the connector to completion and return its documents."""
        documents = []
        async for doc in self.fetch_documents():
            documents.append(doc)
            self.stats.indexed += 1
        return documents
