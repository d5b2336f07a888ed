"""
Configuration and settings for the outfits backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    app_name: str = Field(default="Outfits Backend (FastAPI)")
    api_prefix: str = Field(default="/api")
    log_level: str = Field(default="INFO")

    # Database (MySQL or Postgres; any SQLAlchemy URL works)
    database_url: Optional[str] = Field(default=None)

    # S3-compatible storage
    s3_endpoint: Optional[str] = Field(default=None)
    s3_region: Optional[str] = Field(default=None)
    s3_bucket: str = Field(default="outfits")
    aws_access_key_id: Optional[str] = Field(default=None)
    aws_secret_access_key: Optional[str] = Field(default=None)
    upload_url_expires_in: int = Field(default=30, ge=1)

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)

    # Storage cleanup queue (Redis)
    redis_url: Optional[str] = Field(default=None)
    cleanup_queue_key: str = Field(default="outfits:storage-cleanup")
    cleanup_max_attempts: int = Field(default=5, ge=1)

    # Authentication
    session_cookie_names: list[str] = Field(
        default=[
            "__Secure-next-auth.session-token",
            "next-auth.session-token",
        ]
    )
    adapter_secret: Optional[str] = Field(default=None)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
