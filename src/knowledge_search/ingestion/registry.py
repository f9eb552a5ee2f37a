"""Source configuration loading and path resolution."""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path

import structlog
from pydantic import ValidationError

from knowledge_search.config import Settings, get_settings
from knowledge_search.models.document import SourceDescriptor

logger = structlog.get_logger()


class ConfigError(Exception):
    """The source configuration is missing or malformed."""


@dataclass
class SourceSet:
    """Enabled sources split into online and offline groups."""

    online: list[SourceDescriptor] = field(default_factory=list)
    offline: list[SourceDescriptor] = field(default_factory=list)

    @property
    def all(self) -> list[SourceDescriptor]:
        return [*self.online, *self.offline]

    def get(self, source_id: str) -> SourceDescriptor | None:
        for source in self.all:
            if source.id == source_id:
                return source
        return None


class SourceRegistry:
    """
    Loads source descriptors from the JSON configuration file.

    The file holds ``online_sources`` and ``offline_sources`` arrays; a
    legacy top-level ``sources`` array is read as online sources. Only
    entries with ``enabled: true`` are returned.
    """

    def __init__(
        self,
        sources_path: Path | None = None,
        project_root: Path | None = None,
        settings: Settings | None = None,
    ):
        settings = settings or get_settings()
        self.sources_path = Path(sources_path or settings.sources_path)
        self.project_root = Path(project_root or settings.project_root)

    def load(self) -> SourceSet:
        """
        Read and validate the configuration.

        Raises:
            ConfigError: if the file is missing, unreadable, or invalid
        """
        try:
            raw = self.sources_path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Cannot read source configuration {self.sources_path}: {e}") from e

        try:
            config = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {self.sources_path}: {e}") from e

        if not isinstance(config, dict):
            raise ConfigError(f"{self.sources_path} must contain a JSON object")

        online_raw = config.get("online_sources", config.get("sources", []))
        offline_raw = config.get("offline_sources", [])

        try:
            online = [SourceDescriptor.model_validate(entry) for entry in online_raw or []]
            offline = [SourceDescriptor.model_validate(entry) for entry in offline_raw or []]
        except (TypeError, ValidationError) as e:
            raise ConfigError(f"Invalid source entry in {self.sources_path}: {e}") from e

        sources = SourceSet(
            online=[s for s in online if s.enabled],
            offline=[s for s in offline if s.enabled],
        )
        logger.debug(
            "sources_loaded",
            online=len(sources.online),
            offline=len(sources.offline),
        )
        return sources

    def resolve_path(self, config_path: str) -> Path:
        """
        Resolve a source path from the configuration.

        ``./`` and ``../`` paths are taken relative to the project root;
        anything else is used as given (after ``~`` expansion).
        """
        if config_path.startswith(("./", "../")):
            return Path(os.path.abspath(self.project_root / config_path))
        return Path(os.path.expanduser(config_path))
