"""
Configuration for the EAV store.

Uses pydantic-settings for environment variable loading. Every setting can
be overridden with an ``EAV_``-prefixed environment variable, e.g.
``EAV_DATABASE_PATH=/var/lib/eav/eav.db``.

Invariants:
    - All settings have sensible defaults for local development
    - foreign_keys must stay enabled in production; attribute removal
      relies on ON DELETE CASCADE
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """EAV store configuration loaded from environment."""

    # Storage
    database_path: str = Field(default="eav.db", description="SQLite database file (or :memory:)")
    busy_timeout_ms: int = Field(default=5000, description="SQLite busy timeout in milliseconds")
    wal_mode: bool = Field(default=True, description="Enable SQLite WAL journal mode")
    foreign_keys: bool = Field(default=True, description="Enforce foreign keys (required for cascades)")

    # Observability
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="text", description="Log format (json, text)")

    model_config = {"env_prefix": "EAV_"}


@lru_cache
def get_settings() -> Settings:
    """Get the process-wide settings, loaded once from the environment."""
    return Settings()
