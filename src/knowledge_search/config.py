"""Configuration management using pydantic-settings."""

from pathlib import Path
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="KSEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Paths
    data_dir: Path = Path("data")
    index_filename: str = "index.json"
    sources_path: Path = Path("sources.json")
    project_root: Path = Path(".")
    cache_dir: Path = Path("data/cache")

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    debug: bool = False
    cors_origins: str = "*"

    # Crawling
    request_timeout_seconds: float = 15.0
    crawl_delay_seconds: float = 1.0
    jitter_min: float = 0.8
    jitter_max: float = 1.2
    max_discovered_links: int = 50
    max_content_chars: int = 10_000
    min_content_chars: int = 200
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) knowledge-search/0.1"
    )

    # Offline cache
    max_cache_sources: int = 5

    # Search
    max_search_results: int = 50

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        # Ensure the data directory exists
        self.data_dir.mkdir(parents=True, exist_ok=True)

    @property
    def index_path(self) -> Path:
        return self.data_dir / self.index_filename

    @property
    def backup_path(self) -> Path:
        return self.index_path.with_name(self.index_path.name + ".bak")

    @property
    def metadata_path(self) -> Path:
        return self.index_path.with_name(f"{self.index_path.stem}.meta.json")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
