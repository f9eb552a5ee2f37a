"""JSON persistence for the index, with backup and a size sidecar."""

import json
import shutil
from datetime import datetime, timezone
from pathlib import Path

import structlog
from pydantic import ValidationError

from knowledge_search.config import Settings, get_settings
from knowledge_search.models.document import Index

logger = structlog.get_logger()


class IndexStore:
    """
    Reads and writes the persisted index.

    ``save`` copies the previous file to a backup path, overwrites the
    index, then writes a sidecar with size and page-count metadata. It is
    not transactional: a crash mid-overwrite leaves the backup as the last
    good copy.
    """

    def __init__(
        self,
        index_path: Path | None = None,
        backup_path: Path | None = None,
        metadata_path: Path | None = None,
        settings: Settings | None = None,
    ):
        settings = settings or get_settings()
        self.index_path = Path(index_path or settings.index_path)
        self.backup_path = Path(
            backup_path or self.index_path.with_name(self.index_path.name + ".bak")
        )
        self.metadata_path = Path(
            metadata_path or self.index_path.with_name(f"{self.index_path.stem}.meta.json")
        )

    def load(self) -> Index:
        """Load the index, or return an empty one if it is missing or corrupt."""
        try:
            raw = self.index_path.read_text(encoding="utf-8")
            index = Index.model_validate_json(raw)
        except FileNotFoundError:
            logger.info("no_existing_index", path=str(self.index_path))
            return Index()
        except (OSError, ValueError, ValidationError) as e:
            logger.warning("index_load_failed", path=str(self.index_path), error=str(e))
            return Index()

        logger.info("index_loaded", path=str(self.index_path), pages=len(index.pages))
        return index

    def save(self, index: Index) -> dict:
        """
        Persist the index and its sidecar.

        Returns:
            The sidecar metadata that was written
        """
        self.index_path.parent.mkdir(parents=True, exist_ok=True)

        if self.index_path.exists():
            try:
                shutil.copy2(self.index_path, self.backup_path)
            except OSError as e:
                logger.debug("index_backup_failed", error=str(e))

        data = index.model_dump_json(indent=2, exclude_none=True)
        self.index_path.write_text(data, encoding="utf-8")

        size_bytes = self.index_path.stat().st_size
        metadata = {
            "size_bytes": size_bytes,
            "size_kb": round(size_bytes / 1024, 2),
            "pages_count": len(index.pages),
            "last_saved": datetime.now(timezone.utc).isoformat(),
        }
        self.metadata_path.write_text(json.dumps(metadata, indent=2), encoding="utf-8")

        logger.info(
            "index_saved",
            path=str(self.index_path),
            pages=metadata["pages_count"],
            size_kb=metadata["size_kb"],
        )
        return metadata

    def read_metadata(self) -> dict | None:
        """Return the sidecar contents, if present and readable."""
        try:
            return json.loads(self.metadata_path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return None
