"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # iTunes Search API
    itunes_search_url: str = Field(
        default="https://itunes.apple.com/search?term=%s&entity=musicArtist&limit=5",
        description="Artist search URL template, %s is replaced by the search term",
    )
    itunes_lookup_url: str = Field(
        default="https://itunes.apple.com/lookup?id=%s&entity=album",
        description="Album lookup URL template, %s is replaced by the artist ID",
    )
    itunes_timeout: float = Field(
        default=10.0, description="Timeout in seconds for a single iTunes request"
    )

    # Persistence
    enable_persistence: bool = Field(
        default=True, description="Store fetched artists and albums in the catalog database"
    )
    catalog_db_path: Path = Field(
        default=Path("catalog.db"), description="Path to SQLite catalog database"
    )

    @property
    def resolved_catalog_db_path(self) -> Path:
        """Get the catalog database path, handling empty env var case."""
        if not str(self.catalog_db_path) or str(self.catalog_db_path) == ".":
            return Path("catalog.db")
        return self.catalog_db_path

    # Application Configuration
    host: str = Field(default="0.0.0.0", description="Host to bind the server to")
    port: int = Field(default=8000, description="Port to run the server on")
    log_level: str = Field(default="INFO", description="Logging level")

    # PostHog Configuration
    enable_telemetry: bool = Field(default=True, description="Enable PostHog telemetry")
    posthog_api_key: str | None = Field(None, description="PostHog API key for telemetry")
    posthog_host: str = Field(default="https://us.i.posthog.com", description="PostHog host URL")

    # Sentry Configuration
    sentry_dsn: str | None = Field(None, description="Sentry DSN for error tracking")

    # Application Metadata
    app_name: str = Field(default="iTunes-Catalog-Proxy", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
