from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file."""

    DB_BACKEND: str = "sqlite"
    SQLITE_PATH: str = "./data/sekolah.db"
    CORS_ORIGINS: str = ""  # Comma-separated origins, empty = same-origin only
    LOG_LEVEL: str = "INFO"

    # Dashboard / listing behaviour
    NEARBY_DEFAULT_LIMIT: int = 5
    RECENT_REVIEWS_LIMIT: int = 5
    SIGNUP_HISTOGRAM_MONTHS: int = 6

    # Display precision for averaged ratings
    SCHOOL_RATING_DECIMALS: int = 1  # public school list / detail
    DASHBOARD_RATING_DECIMALS: int = 2  # school-admin and user dashboards

    # Upper bound on a dashboard's combined persistence reads
    DATA_TIMEOUT_SECONDS: float = 10.0

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()
