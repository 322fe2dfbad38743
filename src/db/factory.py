from __future__ import annotations

from functools import lru_cache

from src.config import get_settings
from src.db.base import SchoolRepository
from src.db.sqlite_repo import SQLiteSchoolRepository

SUPPORTED_BACKENDS = ("sqlite",)


@lru_cache
def _sqlite_repository(sqlite_path: str) -> SQLiteSchoolRepository:
    return SQLiteSchoolRepository(sqlite_path)


def get_school_repository() -> SchoolRepository:
    """Return the :class:`SchoolRepository` for the configured ``DB_BACKEND``.

    One SQLite repository, and so one async engine, is shared per database
    path.

    Raises:
        ValueError: the backend is not recognised.
    """
    settings = get_settings()
    backend = settings.DB_BACKEND.lower()

    if backend == "sqlite":
        return _sqlite_repository(settings.SQLITE_PATH)

    raise ValueError(f"Unknown DB_BACKEND: {backend!r}. Supported values: {', '.join(SUPPORTED_BACKENDS)}.")
