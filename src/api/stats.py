from __future__ import annotations

from fastapi import APIRouter

from src.api.dependencies import CurrentPrincipal, Repository, authorize
from src.schemas.dashboard import DashboardView
from src.services.authorization import Action, ResourceRef
from src.services.statistics import Dashboard, build_dashboard

router = APIRouter(tags=["stats"])


@router.get("/api/stats", response_model=DashboardView)
async def get_stats(principal: CurrentPrincipal, repo: Repository) -> Dashboard:
    """Dashboard statistics for the caller's role."""
    authorize(principal, Action.VIEW_DASHBOARD, ResourceRef.me())
    return await build_dashboard(principal, repo)
