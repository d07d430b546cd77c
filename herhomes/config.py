"""
Application configuration using pydantic-settings.

Loads environment variables from .env file and provides typed access
to configuration values throughout the application.
"""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Upstream listings API
    listings_api_base_url: str = "https://her-homes-dev.onrender.com"
    request_timeout: float = 30.0

    # Listing search behaviour
    listings_default_limit: int = 34
    listings_cache_ttl_seconds: float = 60.0
    listings_cache_maxsize: int = 256

    # Application settings
    cors_origins: List[str] = ["*"]
    log_level: str = "INFO"
    debug: bool = False
    app_name: str = "Her Homes API"
    app_version: str = "0.1.0"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache ensures we only load settings once and reuse
    the same instance throughout the application lifecycle.
    """
    return Settings()
