"""
Runtime configuration for artifactml.

Settings are read from ``ARTIFACTML_*`` environment variables (or a local
``.env`` file) and validated with Pydantic.
"""

from functools import lru_cache
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Library settings with automatic environment variable loading."""

    model_config = SettingsConfigDict(
        env_prefix="ARTIFACTML_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # === LOGGING ===
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None
    LOG_ROTATION_TYPE: str = "size"
    LOG_MAX_BYTES: int = 10 * 1024 * 1024
    LOG_BACKUP_COUNT: int = 5
    CONSOLE_LOG_LEVEL: str = "WARNING"

    # === SCORING ===
    # Worker threads used by ScoringModel.transform; 1 keeps scoring in the caller thread
    SCORING_N_JOBS: int = 1
    SCORING_BATCH_SIZE: int = 1024

    # === TRAINING ===
    DEFAULT_SEED: int = 42

    @field_validator("LOG_LEVEL", "CONSOLE_LOG_LEVEL")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {value}")
        return level

    @field_validator("SCORING_BATCH_SIZE")
    @classmethod
    def validate_batch_size(cls, value: int) -> int:
        if value < 1:
            raise ValueError("SCORING_BATCH_SIZE must be at least 1")
        return value


@lru_cache()
def get_settings() -> Settings:
    """
    Get library settings.
    Uses lru_cache to avoid re-reading the environment on every call.
    """
    return Settings()
