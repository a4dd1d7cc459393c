"""
Configuration management for the Category API.
"""

from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings (environment variables or .env)."""

    category_backend_url: str = Field(
        default="http://localhost:3002/api/v1",
        description="Base URL of the categories REST backend"
    )
    category_backend_token: Optional[str] = Field(
        default=None,
        description="Bearer token for the categories backend"
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0"
    )
    category_cache_ttl: int = Field(
        default=24 * 60 * 60,
        ge=0,
        description="Category cache TTL in seconds"
    )
    category_cache_enabled: bool = Field(
        default=True
    )
    backend_timeout: float = Field(
        default=30.0,
        gt=0
    )
    backend_max_retries: int = Field(
        default=0,
        ge=0,
        description="Retries for 429/5xx and transport errors (0 = fail fast)"
    )
    log_level: str = Field(
        default="INFO"
    )

    class Config:
        env_file = ".env"
        case_sensitive = False


_settings = Settings()


def get_settings() -> Settings:
    """Get application settings."""
    return _settings
