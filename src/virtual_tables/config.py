"""Adapter configuration using pydantic-settings."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Settings loaded from environment variables.

    All settings can be configured via:
    1. Environment variables prefixed with VTABLES_ (e.g., VTABLES_LOG_LEVEL=DEBUG)
    2. .env file in the working directory
    """

    model_config = SettingsConfigDict(
        env_prefix="VTABLES_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # Schema that receives the attached virtual tables
    database: str = "temp"

    # Value returned for numeric cells whose text does not parse
    coercion_sentinel: int = -1

    # Turn data source failures into empty results instead of query errors
    absorb_generate_errors: bool = False

    # Table spec files loaded by the shell at startup
    spec_paths: list[Path] = []

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
