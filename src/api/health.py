from __future__ import annotations

from fastapi import APIRouter

from src.api.dependencies import Repository

router = APIRouter(tags=["health"])


@router.get("/api/health")
async def health_check(repo: Repository) -> dict[str, str]:
    """Readiness probe.  Answers 503 when the database cannot be read."""
    await repo.count_schools()
    return {"status": "ok", "database": "ok"}
