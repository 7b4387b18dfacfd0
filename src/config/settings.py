"""Application settings using Pydantic Settings.

Centralized configuration for the nomad tax planner core.

All settings can be overridden with NOMAD_-prefixed environment variables
or a .env file in the project root, e.g.:

    NOMAD_LEDGER_DB_PATH=/var/lib/nomad/day_tracker.db
    NOMAD_LOG_LEVEL=DEBUG
"""

import logging
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

# Load .env from project root so variables are visible to every settings class
_env_path = PROJECT_ROOT / ".env"
load_dotenv(dotenv_path=_env_path)


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="NOMAD_",
        env_file=str(_env_path),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    name: str = Field(default="Nomad Tax Planner", description="Application name")

    # Day tracker storage
    ledger_db_path: Path = Field(
        default=PROJECT_ROOT / "data" / "day_tracker.db",
        description="SQLite file holding the trip ledger"
    )
    store_name: str = Field(
        default="nomad-tax-planner-trips",
        description="Key the trip ledger is stored under"
    )

    log_level: str = Field(default="INFO", description="Root log level")

    @field_validator("store_name")
    @classmethod
    def strip_store_name(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("store_name must not be empty")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = (v or "").strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings instance.

    Returns:
        Settings: Cached settings loaded from environment.
    """
    return Settings()
