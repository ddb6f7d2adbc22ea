"""
Configuration management using pydantic-settings.

Loads configuration from ASSET_CACHE_* environment variables and .env files.
Validates fields and provides typed access to settings.
"""

from __future__ import annotations

import re
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_SAFE_PREFIX = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")

# Leaves room for "_<uuid>_<extra>.asset" inside a 255-byte filename.
MAX_PREFIX_LENGTH = 200


class Settings(BaseSettings):
    """Asset cache settings loaded from environment variables.

    Optional:
        ASSET_CACHE_CACHE_DIR: Root directory for cached asset stores
        ASSET_CACHE_CACHE_FILENAME_PREFIX: Prefix of every store filename
        ASSET_CACHE_MAX_CACHE_SIZE_MB: Eviction target for purge()
        ASSET_CACHE_TOUCH_THRESHOLD_SECONDS: Minimum age before a touch rewrites mtime
        ASSET_CACHE_LOG_LEVEL: Logging level
        ASSET_CACHE_LOG_FILE: JSON Lines log file
    """

    model_config = SettingsConfigDict(
        env_prefix="ASSET_CACHE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Cache layout
    CACHE_DIR: Path = Field(default=Path(".cache/assets"), description="Cache directory")
    CACHE_FILENAME_PREFIX: str = Field(
        default="sl_cache", description="Prefix of every store filename"
    )

    # Eviction
    MAX_CACHE_SIZE_MB: int = Field(
        default=2048, gt=0, description="Cache size purge() evicts down to, in MiB"
    )
    TOUCH_THRESHOLD_SECONDS: int = Field(
        default=60 * 60,
        ge=0,
        description="Access times younger than this are not rewritten on touch",
    )

    # Logging
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    LOG_FILE: Path | None = Field(default=None, description="JSON Lines log file")

    @property
    def max_cache_size_bytes(self) -> int:
        """Eviction target in bytes."""
        return self.MAX_CACHE_SIZE_MB * 1024 * 1024

    @field_validator("CACHE_FILENAME_PREFIX")
    @classmethod
    def validate_filename_prefix(cls, v: str) -> str:
        """Validate that the prefix is usable inside a filename."""
        if not _SAFE_PREFIX.match(v):
            raise ValueError(
                "CACHE_FILENAME_PREFIX must start with a letter or digit and "
                "contain only letters, digits, '_', '.' or '-'"
            )
        if len(v) > MAX_PREFIX_LENGTH:
            raise ValueError(
                f"CACHE_FILENAME_PREFIX must be at most {MAX_PREFIX_LENGTH} characters"
            )
        return v

    def ensure_directories(self) -> None:
        """Create the cache directory if it doesn't exist."""
        self.CACHE_DIR.mkdir(parents=True, exist_ok=True)

    def redacted_display(self) -> dict[str, str | int | None]:
        """Return settings as display-ready values."""
        return {
            "CACHE_DIR": str(self.CACHE_DIR),
            "CACHE_FILENAME_PREFIX": self.CACHE_FILENAME_PREFIX,
            "MAX_CACHE_SIZE_MB": self.MAX_CACHE_SIZE_MB,
            "TOUCH_THRESHOLD_SECONDS": self.TOUCH_THRESHOLD_SECONDS,
            "LOG_LEVEL": self.LOG_LEVEL,
            "LOG_FILE": str(self.LOG_FILE) if self.LOG_FILE else None,
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton.

    Returns:
        Settings instance loaded from environment.

    Raises:
        ValidationError: If settings are invalid.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
