from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.api.health import router as health_router
from src.api.reviews import router as reviews_router
from src.api.schools import router as schools_router
from src.api.stats import router as stats_router
from src.api.users import router as users_router
from src.config import get_settings
from src.errors import DataUnavailable, InvalidCoordinates, InvalidRating, OrphanedAdmin, UnknownRole

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Ensure the data directory, SQLite database, and tables exist on startup."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    db_path = Path(settings.SQLITE_PATH)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    from src.db.sqlite_repo import SQLiteSchoolRepository

    repo = SQLiteSchoolRepository(settings.SQLITE_PATH)
    await repo.init_db()
    await repo.engine.dispose()

    yield


app = FastAPI(
    title="Sekolah Review API",
    description="School directory, reviews and role-scoped dashboards",
    version="0.1.0",
    lifespan=lifespan,
)

_settings = get_settings()
_cors_origins = [o.strip() for o in _settings.CORS_ORIGINS.split(",") if o.strip()] if _settings.CORS_ORIGINS else []
if _cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


# ---------------------------------------------------------------------------
# Core error -> HTTP status mapping
# ---------------------------------------------------------------------------


@app.exception_handler(InvalidCoordinates)
@app.exception_handler(InvalidRating)
async def _bad_input(_request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(OrphanedAdmin)
async def _orphaned_admin(_request: Request, exc: OrphanedAdmin) -> JSONResponse:
    logger.warning("%s", exc)
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(UnknownRole)
async def _unknown_role(_request: Request, exc: UnknownRole) -> JSONResponse:
    logger.warning("%s", exc)
    return JSONResponse(status_code=403, content={"detail": "Invalid user role"})


@app.exception_handler(DataUnavailable)
async def _data_unavailable(_request: Request, exc: DataUnavailable) -> JSONResponse:
    logger.error("Data unavailable: %s", exc)
    return JSONResponse(status_code=503, content={"detail": "Data temporarily unavailable"})


app.include_router(health_router)
app.include_router(schools_router)
app.include_router(reviews_router)
app.include_router(users_router)
app.include_router(stats_router)


if __name__ == "__main__":
    uvicorn.run("src.main:app", host="0.0.0.0", port=8000, reload=True)
