from __future__ import annotations

import logging
import uuid
from typing import Any

from fastapi import APIRouter, HTTPException, Response, status
from sqlalchemy.exc import IntegrityError

from src.api.dependencies import CurrentPrincipal, Repository, authorize
from src.db.models import Role, User
from src.schemas.user import ProfileUpdateRequest, UserCreateRequest, UserResponse, UserUpdateRequest
from src.services.authorization import Action, ResourceRef

logger = logging.getLogger(__name__)

router = APIRouter(tags=["users"])


async def _check_assignment(repo: Repository, role: Role | str, school_id: int | None) -> int | None:
    """Return the school id to store for *role*, validating it for school admins."""
    if role != Role.SCHOOL_ADMIN:
        return None
    if school_id is None:
        raise HTTPException(status_code=400, detail="A school admin must be assigned to a school")
    if await repo.find_school_by_id(school_id) is None:
        raise HTTPException(status_code=404, detail="Assigned school not found")
    return school_id


@router.get("/api/users", response_model=list[UserResponse])
async def list_users(principal: CurrentPrincipal, repo: Repository) -> list[UserResponse]:
    authorize(principal, Action.LIST_USERS, ResourceRef.user())
    return [UserResponse.model_validate(u) for u in await repo.list_users()]


@router.post("/api/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(request: UserCreateRequest, principal: CurrentPrincipal, repo: Repository) -> UserResponse:
    authorize(principal, Action.CREATE_USER, ResourceRef.user())
    assigned = await _check_assignment(repo, request.role, request.assigned_school_id)
    user = User(
        id=str(uuid.uuid4()),
        name=request.name,
        email=request.email,
        role=request.role.value,
        assigned_school_id=assigned,
    )
    try:
        user = await repo.create_user(user)
    except IntegrityError as exc:
        raise HTTPException(status_code=409, detail="Email is already in use by another account.") from exc
    logger.info("User %s (%s) created by %s", user.id, user.role, principal.id)
    return UserResponse.model_validate(user)


@router.put("/api/users/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str, request: UserUpdateRequest, principal: CurrentPrincipal, repo: Repository
) -> UserResponse:
    """Update an account.  Any ``role`` in the payload is checked as a role change."""
    target = ResourceRef.user(user_id)
    authorize(principal, Action.UPDATE_USER, target)

    fields = request.model_dump(exclude_unset=True)
    if "role" in fields:
        authorize(principal, Action.CHANGE_USER_ROLE, target)

    existing = await repo.find_user_by_id(user_id)
    if existing is None:
        raise HTTPException(status_code=404, detail="User not found.")

    changes: dict[str, Any] = {}
    for key in ("name", "email"):
        if fields.get(key) is not None:
            changes[key] = fields[key]

    role = fields.get("role") or existing.role
    if "role" in fields and fields["role"] is not None:
        changes["role"] = Role(fields["role"]).value
    if "role" in changes or "assigned_school_id" in fields:
        school_id = fields.get("assigned_school_id", existing.assigned_school_id)
        changes["assigned_school_id"] = await _check_assignment(repo, role, school_id)

    try:
        user = await repo.update_user(user_id, changes)
    except IntegrityError as exc:
        raise HTTPException(status_code=409, detail="Email is already in use by another account.") from exc
    if user is None:
        raise HTTPException(status_code=404, detail="User not found.")
    return UserResponse.model_validate(user)


@router.delete("/api/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(user_id: str, principal: CurrentPrincipal, repo: Repository) -> Response:
    authorize(principal, Action.DELETE_USER, ResourceRef.user(user_id))
    if not await repo.delete_user(user_id):
        raise HTTPException(status_code=404, detail="User not found.")
    logger.info("User %s deleted by %s", user_id, principal.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/api/profile", response_model=UserResponse)
async def update_profile(
    request: ProfileUpdateRequest, principal: CurrentPrincipal, repo: Repository
) -> UserResponse:
    """Change the caller's own display name."""
    authorize(principal, Action.UPDATE_OWN_PROFILE, ResourceRef.me())
    user = await repo.update_user(principal.id, {"name": request.name})
    if user is None:
        raise HTTPException(status_code=404, detail="User not found.")
    return UserResponse.model_validate(user)
