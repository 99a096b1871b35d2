"""Application settings and configuration."""

from pathlib import Path
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


def get_default_data_dir() -> Path:
    """Return the default data directory based on platform."""
    return Path.home() / "Documents" / "LookThrough Data"


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    app_name: str = "Look-Through Exposure Engine"
    app_version: str = "0.1.0"

    # Data directory (persistent cache and logs live here)
    data_dir: Optional[Path] = None

    # Persistent tier
    cache_backend: Literal["sqlite", "json"] = "sqlite"
    database_url: Optional[str] = None

    log_level: str = "INFO"
    log_to_file: bool = False

    # External data provider
    alpha_vantage_api_key: Optional[str] = None
    alpha_vantage_base_url: str = "https://www.alphavantage.co/query"
    provider_timeout_seconds: float = 10.0
    provider_calls_per_minute: int = 5
    provider_batch_size: int = 5
    batch_deadline_seconds: float = 90.0

    # Memory TTLs double as the persistent freshness window
    composition_ttl_seconds: int = 24 * 60 * 60
    classification_ttl_seconds: int = 7 * 24 * 60 * 60
    stale_retry_seconds: int = 300

    fetch_constituent_classifications: bool = False

    # Static tables (bundled JSON is used when unset)
    conversion_table_path: Optional[Path] = None
    asset_class_table_path: Optional[Path] = None

    def get_data_dir(self) -> Path:
        """Get the data directory, creating it if needed."""
        data_dir = self.data_dir or get_default_data_dir()
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    def get_database_url(self) -> str:
        """Get database URL, deriving from data_dir if not set."""
        if self.database_url:
            return self.database_url
        db_path = self.get_data_dir() / "reference_cache.db"
        return f"sqlite:///{db_path}"

    def get_json_cache_dir(self) -> Path:
        """Get the directory holding one JSON file per cached symbol."""
        cache_dir = self.get_data_dir() / "reference-cache"
        cache_dir.mkdir(parents=True, exist_ok=True)
        return cache_dir

    def get_log_dir(self) -> Path:
        """Get the directory for rotating log files."""
        log_dir = self.get_data_dir() / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)
        return log_dir


# Global settings instance (can be replaced at runtime)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the current settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Settings) -> None:
    """Set the global settings instance."""
    global _settings
    _settings = settings


def reset_settings() -> None:
    """Reset settings to force reload."""
    global _settings
    _settings = None
