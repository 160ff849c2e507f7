"""
Unified application settings.

Aggregates all configuration modules into a single Settings class.
Provides dependency injection factory for FastAPI.

Dependencies: All config modules
System role: Central configuration aggregator for the application
"""

from functools import lru_cache

from pydantic import Field

from docingest.configs.base import BaseSettings
from docingest.configs.ingestion import IngestionSettings
from docingest.configs.service import IngestionServiceSettings


class Settings(BaseSettings):
    """Unified application settings aggregating all config modules."""

    ingestion: IngestionSettings = Field(default_factory=IngestionSettings)
    service: IngestionServiceSettings = Field(default_factory=IngestionServiceSettings)


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns Settings instance, cached for dependency injection.
    Environment variables loaded once at startup.

    Returns:
        Settings: Application settings instance

    Usage:
        from docingest.configs import get_settings
        settings = get_settings()
    """
    return Settings()
