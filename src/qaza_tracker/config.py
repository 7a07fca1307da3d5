"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    hijri_api_base_url: str | None = None
    hijri_api_key: str | None = None
    hijri_api_timeout_seconds: float = 5.0
    hijri_cache_ttl_seconds: int = 86_400
    calendar_chunk_size: int = 500
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
