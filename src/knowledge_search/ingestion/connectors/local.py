"""Local directory indexer with modification-time change detection."""

import os
from pathlib import Path
from typing import Iterable

import structlog

from knowledge_search.ingestion.connectors.base import BaseConnector
from knowledge_search.ingestion.parser import get_parser
from knowledge_search.models.document import Document, SourceDescriptor

logger = structlog.get_logger()


class LocalFileIndexer(BaseConnector):
    """
    Indexes markdown/text files under a local directory.

    Files whose stored ``file_modified`` matches their current mtime are
    reused from ``previous`` without being read again. Local content is
    kept whole (no truncation).
    """

    source_type = "local"

    def __init__(
        self,
        source: SourceDescriptor,
        root: str | Path,
        previous: Iterable[Document] | None = None,
    ):
        super().__init__(source)
        self.root = Path(os.path.abspath(root))
        self.extensions = source.extensions
        self._previous = {
            doc.file_path: doc
            for doc in previous or []
            if doc.file_path and doc.source_id == source.id
        }

    async def fetch_documents(self):
        if not self.root.is_dir():
            logger.warning(
                "local_source_missing",
                source_id=self.source_id,
                path=str(self.root),
                hint="Create the directory or update 'path' in the source configuration",
            )
            return

        files = self.find_files()
        logger.info("local_files_found", source_id=self.source_id, count=len(files))

        for file_path in files:
            self.stats.processed += 1
            doc = self.index_file(file_path)
            if doc is not None:
                yield doc

        logger.info(
            "local_source_indexed",
            source_id=self.source_id,
            reused=self.stats.reused,
            failed=self.stats.failed,
        )

    def find_files(self) -> list[Path]:
        """
        Walk the root directory and return matching files in a stable order.

        Uses an explicit stack; a directory reached twice through symlinks
        is only visited once.
        """
        files: list[Path] = []
        stack = [self.root]
        visited: set[tuple[int, int]] = set()
        extensions = tuple(self.extensions)

        while stack:
            directory = stack.pop()
            try:
                info = directory.stat()
                key = (info.st_dev, info.st_ino)
                if key in visited:
                    logger.info("directory_already_visited", path=str(directory))
                    continue
                visited.add(key)
                with os.scandir(directory) as it:
                    entries = sorted(it, key=lambda e: e.name)
            except OSError as e:
                logger.error("directory_read_failed", path=str(directory), error=str(e))
                continue

            subdirs = []
            for entry in entries:
                try:
                    is_dir = entry.is_dir()
                    is_file = not is_dir and entry.is_file()
                except OSError:
                    continue

                if is_dir:
                    if entry.name.lower().endswith(extensions):
                        logger.info("directory_skipped", path=entry.path)
                        continue
                    subdirs.append(Path(entry.path))
                elif is_file and Path(entry.name).suffix.lower() in extensions:
                    files.append(Path(entry.path))

            # Reversed so subdirectories are popped in name order
            stack.extend(reversed(subdirs))

        return files

    def index_file(self, file_path: str | Path) -> Document | None:
        """
        Build the document for one file, reusing the previous one if unchanged.

        Returns:
            The document, or None if the file could not be read
        """
        path = Path(os.path.abspath(file_path))
        key = str(path)

        try:
            modified = path.stat().st_mtime
        except OSError as e:
            logger.error("file_stat_failed", path=key, error=str(e))
            self.stats.failed += 1
            return None

        existing = self._previous.get(key)
        if existing is not None and existing.file_modified == modified:
            self.stats.reused += 1
            return existing

        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.error("file_read_failed", path=key, error=str(e))
            self.stats.failed += 1
            return None

        try:
            relative = path.relative_to(self.root)
        except ValueError:
            relative = Path(path.name)

        return Document(
            source_id=self.source_id,
            source_name=self.source_name,
            url=path.as_uri(),
            title=get_parser().extract_title(content) or path.stem,
            page_name=relative.with_suffix("").as_posix(),
            content=content.lower(),
            is_local=True,
            file_path=key,
            file_modified=modified,
        )
