"""
Ingestion service connection settings.

Dependencies: pydantic, pydantic_settings
System role: HTTP client configuration for the remote ingestion API
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from docingest.configs.base import BaseSettings


class IngestionServiceSettings(BaseSettings):
    """Remote ingestion API configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="INGESTION_API_",
        case_sensitive=False,
        extra="ignore",
    )

    base_url: str = Field(
        default="http://localhost:8080/api/v1",
        description="Base URL of the ingestion API",
    )
    api_key: str | None = Field(
        default=None,
        description="Bearer token sent with every request",
    )
    timeout_seconds: float = Field(
        default=30.0,
        description="Per-request timeout",
    )
