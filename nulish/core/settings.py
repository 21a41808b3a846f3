"""Application settings loaded from environment variables."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_database_uri_from_env() -> str:
    """Build the database URI if DATABASE_URI is not set.

    With POSTGRES_HOST present the component variables
    (POSTGRES_USER/PASSWORD/HOST/PORT/DB) are assembled into a psycopg URI;
    otherwise a local SQLite file is used.
    """
    host = os.getenv("POSTGRES_HOST")
    if not host:
        return "sqlite+aiosqlite:///./nulish.db"
    user = os.getenv("POSTGRES_USER", "postgres")
    password = os.getenv("POSTGRES_PASSWORD", "postgres")
    port = os.getenv("POSTGRES_PORT", "5432")
    db = os.getenv("POSTGRES_DB", "nulish")
    return f"postgresql+psycopg://{user}:{password}@{host}:{port}/{db}"


class Settings(BaseSettings):
    """Runtime settings for the application."""

    # Optional direct URI override (env: DATABASE_URI)
    database_uri: str = Field(default_factory=_default_database_uri_from_env)
    # Local-first client: cache directory and the API it mirrors to
    data_dir: Path = Field(default=Path("~/.nulish").expanduser())
    remote_url: str = Field(default="")
    remote_timeout: float = Field(default=10.0)

    log_level: str = Field(default="INFO")
    service_name: str = Field(default="api")
    environment: str = Field(default="development")

    # Tag engine behaviour
    save_debounce_seconds: float = Field(default=1.0, ge=0)
    tag_case_sensitive: bool = Field(default=True)
    tag_fingerprint: Literal["names", "paths"] = Field(default="names")
    rebuild_tags_on_delete: bool = Field(default=False)
    # server side only; a seeded server is never empty, so clients could
    # no longer bootstrap their local notes into it
    seed_welcome_note: bool = Field(default=False)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Return application settings instance."""
    return Settings()


__all__ = ["Settings", "get_settings"]
