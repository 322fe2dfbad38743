"""Role-specific dashboard payloads.

``DashboardView`` is a union discriminated on ``role`` so each role gets
exactly its own fields and a consumer can branch on the tag exhaustively.
"""

from __future__ import annotations

import datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class RecentReview(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    school_id: int
    school_name: str | None = None
    user_id: str
    user_name: str | None = None
    kenyamanan: float
    pembelajaran: float
    fasilitas: float
    kepemimpinan: float
    komentar: str | None = None
    created_at: datetime.datetime
    average: float


class MonthlySignups(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    month: str  # "YYYY-MM"
    count: int


class CriterionAverages(BaseModel):
    kenyamanan: float = 0.0
    pembelajaran: float = 0.0
    fasilitas: float = 0.0
    kepemimpinan: float = 0.0


class SuperadminDashboard(BaseModel):
    role: Literal["SUPERADMIN"] = "SUPERADMIN"
    user_count: int
    school_count: int
    review_count: int
    recent_reviews: list[RecentReview]
    user_signups: list[MonthlySignups]


class SchoolAdminDashboard(BaseModel):
    role: Literal["SCHOOL_ADMIN"] = "SCHOOL_ADMIN"
    assigned_school_id: int
    school_name: str
    review_count: int
    average_rating: float
    criterion_averages: CriterionAverages
    recent_reviews: list[RecentReview]
    profile_completeness: int


class UserDashboard(BaseModel):
    role: Literal["USER"] = "USER"
    review_count: int
    recent_reviews: list[RecentReview]
    average_rating: float


DashboardView = Annotated[
    Union[SuperadminDashboard, SchoolAdminDashboard, UserDashboard],
    Field(discriminator="role"),
]
