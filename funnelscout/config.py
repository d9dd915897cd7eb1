"""Application configuration using pydantic-settings."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from ``FUNNELSCOUT_*`` environment variables."""

    # GitHub API (repository documentation analysis)
    github_api_url: str = "https://api.github.com"
    github_token: Optional[str] = None
    repository_host: str = "github.com"

    # Timeouts in seconds
    navigation_timeout: int = 60
    sitemap_timeout: int = 10
    github_timeout: int = 15
    request_deadline: int = 120

    default_max_pages: int = 6

    model_config = SettingsConfigDict(
        env_prefix="FUNNELSCOUT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
