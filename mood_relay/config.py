"""
Runtime configuration for the Mood Relay service.

Every setting can be overridden from the environment (case-insensitive) or
from a `.env` file in the working directory.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Search-point filter radius. Observed deployments used both 100 and 5000.
DEFAULT_MAX_RADIUS_KM = 100.0
DEFAULT_MATCH_LIMIT = 50


class Settings(BaseSettings):
    """Service settings loaded from the environment and `.env`."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    host: str = "0.0.0.0"
    port: int = 3001
    database_url: str = "sqlite+aiosqlite:///./mood_mapping.db"

    max_radius_km: float = Field(DEFAULT_MAX_RADIUS_KM, gt=0)
    match_limit: int = Field(DEFAULT_MATCH_LIMIT, gt=0)
    store_timeout_seconds: float = Field(10.0, gt=0)

    cors_origins: list[str] = ["*"]
    log_level: str = "INFO"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings, read once from the environment."""
    return Settings()
