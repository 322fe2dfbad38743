from __future__ import annotations

import datetime

from pydantic import BaseModel, ConfigDict, Field

from src.db.models import Role


class UserResponse(BaseModel):
    """Account record as exposed to administrators."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str | None = None
    email: str
    role: str
    assigned_school_id: int | None = None
    created_at: datetime.datetime


class UserCreateRequest(BaseModel):
    name: str | None = Field(default=None, max_length=255)
    email: str = Field(min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    role: Role = Role.USER
    assigned_school_id: int | None = None


class UserUpdateRequest(BaseModel):
    """Partial update.  Sending ``role`` at all counts as a role change."""

    name: str | None = Field(default=None, max_length=255)
    email: str | None = Field(default=None, min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    role: Role | None = None
    assigned_school_id: int | None = None


class ProfileUpdateRequest(BaseModel):
    name: str = Field(min_length=2, max_length=255)
