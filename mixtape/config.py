"""Configuration management for Mixtape."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="MIXTAPE_", extra="ignore"
    )

    # Database (update entries)
    database_url: str = "sqlite+aiosqlite:///./mixtape.db"

    # Redis (parsed podcast feeds)
    redis_url: str = "redis://localhost:6379/0"

    # Provider HTTP settings
    http_timeout_seconds: float = 15.0
    podcast_cors_proxy_url: str = Field(default="")

    # Pagination
    page_size_default: int = 20
    page_size_max: int = 50

    # Update polling
    update_page_size: int = 20
    update_max_pages: int = 10
    update_check_timeout_seconds: float = 60.0

    # CORS
    frontend_origin: str = "http://localhost:5173"

    # Logging
    log_level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR)$")

    # Environment
    env: str = Field(default="dev", pattern="^(dev|prod)$")


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get cached settings instance (singleton pattern)."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
