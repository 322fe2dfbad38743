"""Dashboard aggregation for each role.

:func:`build_dashboard` reads raw rows through a :class:`SchoolRepository`
and combines them with the rating and completeness calculators.  Independent
reads run concurrently in a task group: the first failure cancels the others
and is re-raised as is.  The whole batch is bounded by ``DATA_TIMEOUT_SECONDS``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Coroutine, Sequence
from typing import Any

from src.config import Settings, get_settings
from src.db.base import ReviewFilter, SchoolRepository
from src.db.models import Review, Role
from src.errors import DataUnavailable, OrphanedAdmin, UnknownRole
from src.schemas.dashboard import (
    CriterionAverages,
    MonthlySignups,
    RecentReview,
    SchoolAdminDashboard,
    SuperadminDashboard,
    UserDashboard,
)
from src.services.authorization import Principal
from src.services.completeness import profile_completeness
from src.services.ratings import aggregate_average, criterion_averages, review_average, round_rating

logger = logging.getLogger(__name__)

Dashboard = SuperadminDashboard | SchoolAdminDashboard | UserDashboard


async def build_dashboard(
    principal: Principal, repo: SchoolRepository, settings: Settings | None = None
) -> Dashboard:
    """Return the dashboard view for *principal*'s role.

    Raises:
        UnknownRole: the principal's role is not recognised.
        OrphanedAdmin: a SCHOOL_ADMIN's assigned school is missing.
        DataUnavailable: a repository read failed or the reads timed out.
    """
    settings = settings or get_settings()
    role = principal.known_role

    if role is Role.SUPERADMIN:
        view: Awaitable[Dashboard] = _superadmin_view(repo, settings)
    elif role is Role.SCHOOL_ADMIN:
        view = _school_admin_view(principal, repo, settings)
    elif role is Role.USER:
        view = _user_view(principal, repo, settings)
    else:
        raise UnknownRole(principal.role)

    try:
        return await asyncio.wait_for(view, timeout=settings.DATA_TIMEOUT_SECONDS)
    except asyncio.TimeoutError as exc:
        logger.error("Dashboard reads for %s timed out after %.1fs", principal.id, settings.DATA_TIMEOUT_SECONDS)
        raise DataUnavailable("Dashboard reads timed out") from exc


def to_recent_review(review: Review, decimals: int) -> RecentReview:
    """Flatten a review row (with ``school``/``user`` loaded) for display."""
    school = getattr(review, "school", None)
    user = getattr(review, "user", None)
    return RecentReview(
        id=review.id,
        school_id=review.school_id,
        school_name=school.name if school is not None else None,
        user_id=review.user_id,
        user_name=user.name if user is not None else None,
        kenyamanan=review.kenyamanan,
        pembelajaran=review.pembelajaran,
        fasilitas=review.fasilitas,
        kepemimpinan=review.kepemimpinan,
        komentar=review.komentar,
        created_at=review.created_at,
        average=round_rating(review_average(review), decimals),
    )


def summarize_school(reviews: Sequence[Any], decimals: int) -> dict[str, Any]:
    """Aggregate rating fields for a public school listing entry."""
    return {
        "avg_rating": aggregate_average(reviews, decimals),
        "review_count": len(reviews),
    }


async def _read_all(*reads: Coroutine[Any, Any, Any]) -> list[Any]:
    """Await *reads* concurrently and return their results in order."""
    try:
        async with asyncio.TaskGroup() as group:
            tasks = [group.create_task(read) for read in reads]
    except ExceptionGroup as failures:
        raise failures.exceptions[0] from None
    return [task.result() for task in tasks]


async def _superadmin_view(repo: SchoolRepository, settings: Settings) -> SuperadminDashboard:
    user_count, school_count, review_count, recent, signups = await _read_all(
        repo.count_users(),
        repo.count_schools(),
        repo.count_reviews(),
        repo.find_recent_reviews(None, settings.RECENT_REVIEWS_LIMIT),
        repo.monthly_signup_histogram(settings.SIGNUP_HISTOGRAM_MONTHS),
    )
    return SuperadminDashboard(
        user_count=user_count,
        school_count=school_count,
        review_count=review_count,
        recent_reviews=[to_recent_review(r, settings.SCHOOL_RATING_DECIMALS) for r in recent],
        user_signups=[MonthlySignups(month=m.month, count=m.count) for m in signups],
    )


async def _school_admin_view(
    principal: Principal, repo: SchoolRepository, settings: Settings
) -> SchoolAdminDashboard:
    school_id = principal.owned_school_id
    if school_id is None:
        raise OrphanedAdmin(principal.id, None)

    school, reviews, recent = await _read_all(
        repo.find_school_by_id(school_id),
        repo.find_reviews_by_school(school_id),
        repo.find_recent_reviews(ReviewFilter(school_id=school_id), settings.RECENT_REVIEWS_LIMIT),
    )
    if school is None:
        logger.warning("School admin %s points at missing school %s", principal.id, school_id)
        raise OrphanedAdmin(principal.id, school_id)

    decimals = settings.DASHBOARD_RATING_DECIMALS
    return SchoolAdminDashboard(
        assigned_school_id=school.id,
        school_name=school.name,
        review_count=len(reviews),
        average_rating=aggregate_average(reviews, decimals),
        criterion_averages=CriterionAverages(**criterion_averages(reviews, decimals)),
        recent_reviews=[to_recent_review(r, decimals) for r in recent],
        profile_completeness=profile_completeness(school),
    )


async def _user_view(principal: Principal, repo: SchoolRepository, settings: Settings) -> UserDashboard:
    own = ReviewFilter(user_id=principal.id)
    review_count, recent, reviews = await _read_all(
        repo.count_reviews(own),
        repo.find_recent_reviews(own, settings.RECENT_REVIEWS_LIMIT),
        repo.find_reviews_by_user(principal.id),
    )
    decimals = settings.DASHBOARD_RATING_DECIMALS
    return UserDashboard(
        review_count=review_count,
        recent_reviews=[to_recent_review(r, decimals) for r in recent],
        average_rating=aggregate_average(reviews, decimals),
    )
