from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status

from src.db.base import SchoolRepository
from src.db.factory import get_school_repository
from src.services.authorization import Action, Decision, Principal, ResourceRef, evaluate

logger = logging.getLogger(__name__)


async def get_current_principal(
    repo: Annotated[SchoolRepository, Depends(get_school_repository)],
    x_user_id: Annotated[str | None, Header()] = None,
) -> Principal:
    """Resolve the request's principal from the ``X-User-Id`` header.

    The header is set by the session layer in front of this service once it
    has authenticated the caller.
    """
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    user = await repo.find_user_by_id(x_user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unknown user")
    return Principal.from_user(user)


CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]
Repository = Annotated[SchoolRepository, Depends(get_school_repository)]


def authorize(principal: Principal, action: Action, resource: ResourceRef) -> Decision:
    """Evaluate the policy and raise 403 on denial."""
    decision = evaluate(principal, action, resource)
    if not decision:
        reason = decision.reason.value if decision.reason is not None else None
        logger.warning("Denied %s on %s for %s: %s", action.value, resource, principal.id, reason)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": "Forbidden", "reason": reason},
        )
    return decision
