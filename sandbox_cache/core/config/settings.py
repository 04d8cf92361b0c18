"""
Application Settings

Configuration classes using Pydantic for validation.
"""

from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CacheSettings(BaseSettings):
    """Cache configuration settings."""

    sandbox: bool = Field(
        default=False,
        description="Replace every adapter with the isolated sandbox"
    )
    redis_url: str = Field(
        default="redis://localhost:6379",
        description="Redis connection URL"
    )
    disk_path: str = Field(
        default="./cache",
        description="Directory for disk-backed tables"
    )
    default_ttl_ms: Optional[int] = Field(
        default=None,
        description="TTL applied when a put gives none, in milliseconds"
    )

    model_config = SettingsConfigDict(
        env_prefix="CACHE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("redis_url")
    @classmethod
    def validate_redis_url(cls, v):
        """Validate Redis URL scheme."""
        if not v.startswith(("redis://", "rediss://", "unix://")):
            raise ValueError(f"Invalid Redis URL: {v}")
        return v

    @field_validator("default_ttl_ms")
    @classmethod
    def validate_default_ttl(cls, v):
        """Validate default TTL."""
        if v is not None and v <= 0:
            raise ValueError("default_ttl_ms must be positive")
        return v


class Settings(BaseSettings):
    """Main application settings."""

    app_name: str = Field(
        default="sandbox-cache",
        description="Application name"
    )
    app_version: str = Field(
        default="0.3.3",
        description="Application version"
    )
    env: str = Field(
        default="development",
        description="Environment"
    )
    debug: bool = Field(
        default=False,
        description="Debug mode"
    )

    cache: CacheSettings = Field(default_factory=CacheSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra fields from .env
    )

    def is_test(self) -> bool:
        """Check if running under tests."""
        return self.env == "test"

    def get_redis_url(self) -> str:
        """Get Redis URL."""
        return self.cache.redis_url
