"""Configuration data models."""

from dataclasses import dataclass
from pathlib import Path

DEFAULT_IGDB_BASE_URL = "https://api.igdb.com/v4"


@dataclass(frozen=True)
class AppConfig:
    """Application configuration settings."""
    storage_path: Path
    igdb_client_id: str = ""
    igdb_client_secret: str = ""
    igdb_base_url: str = DEFAULT_IGDB_BASE_URL
    search_debounce: float = 0.5  # Seconds of quiet input before a lookup
    search_limit: int = 10
    request_timeout: float = 10.0
    log_level: str = "INFO"

    @property
    def has_credentials(self) -> bool:
        return bool(self.igdb_client_id and self.igdb_client_secret)
