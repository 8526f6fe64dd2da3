"""
Configuration and settings for the quiz backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings, read from QUIZBOARD_* variables."""

    model_config = SettingsConfigDict(
        env_prefix="QUIZBOARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_prefix: str = Field(default="")

    # Document store
    store_backend: Literal["memory", "firestore", "sql"] = Field(default="memory")
    database_url: Optional[str] = Field(default=None)
    firestore_project_id: Optional[str] = Field(default=None)

    # Retry on transient store errors
    store_retry_attempts: int = Field(default=3, ge=1)
    store_retry_initial_wait: float = Field(default=0.1, ge=0)
    store_retry_max_wait: float = Field(default=2.0, ge=0)

    log_level: str = Field(default="INFO")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
