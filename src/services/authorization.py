"""Role-scoped authorization policy.

:func:`evaluate` decides whether a :class:`Principal` may perform an
:class:`Action` on a :class:`ResourceRef`.  It is a pure function over
in-memory values: no database access, no ambient "current user" lookup, and
no exceptions for well-formed inputs.  A denial is an ordinary return value
carrying a :class:`DenyReason`.

Rules, first match wins:

1. a missing or unrecognised role is denied with ``UNKNOWN_ROLE``;
2. nobody may change their own role or delete their own account
   (``SELF_PROTECTION``), SUPERADMIN included;
3. SUPERADMIN may do anything else;
4. every known role may view its dashboard, edit its own profile and read
   schools;
5. SCHOOL_ADMIN may update only the school it is assigned to, and read only
   that school's reviews (``TENANT_MISMATCH``);
6. user management and school creation/deletion need SUPERADMIN
   (``INSUFFICIENT_ROLE``);
7. USER may create reviews anywhere, and read/update/delete its own
   (``NOT_AUTHOR`` otherwise);
8. anything else is denied (``NO_MATCHING_RULE``).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any

from src.db.models import Role


class Action(str, enum.Enum):
    READ_SCHOOL = "read_school"
    CREATE_SCHOOL = "create_school"
    UPDATE_SCHOOL = "update_school"
    DELETE_SCHOOL = "delete_school"

    LIST_USERS = "list_users"
    READ_USER = "read_user"
    CREATE_USER = "create_user"
    UPDATE_USER = "update_user"
    CHANGE_USER_ROLE = "change_user_role"
    DELETE_USER = "delete_user"

    CREATE_REVIEW = "create_review"
    READ_REVIEW = "read_review"
    UPDATE_REVIEW = "update_review"
    DELETE_REVIEW = "delete_review"

    VIEW_DASHBOARD = "view_dashboard"
    UPDATE_OWN_PROFILE = "update_own_profile"


class ResourceKind(str, enum.Enum):
    SCHOOL = "school"
    USER = "user"
    REVIEW = "review"
    SELF = "self"


class DenyReason(str, enum.Enum):
    SELF_PROTECTION = "SELF_PROTECTION"
    TENANT_MISMATCH = "TENANT_MISMATCH"
    INSUFFICIENT_ROLE = "INSUFFICIENT_ROLE"
    NOT_AUTHOR = "NOT_AUTHOR"
    NO_MATCHING_RULE = "NO_MATCHING_RULE"
    UNKNOWN_ROLE = "UNKNOWN_ROLE"


USER_MANAGEMENT_ACTIONS = frozenset(
    {
        Action.LIST_USERS,
        Action.READ_USER,
        Action.CREATE_USER,
        Action.UPDATE_USER,
        Action.CHANGE_USER_ROLE,
        Action.DELETE_USER,
    }
)
SCHOOL_ADMINISTRATION_ACTIONS = frozenset({Action.CREATE_SCHOOL, Action.DELETE_SCHOOL})
OWN_REVIEW_ACTIONS = frozenset({Action.READ_REVIEW, Action.UPDATE_REVIEW, Action.DELETE_REVIEW})
ANY_ROLE_ACTIONS = frozenset({Action.VIEW_DASHBOARD, Action.UPDATE_OWN_PROFILE, Action.READ_SCHOOL})


def parse_role(value: Any) -> Role | None:
    """Return the :class:`Role` for *value*, or ``None`` when it is not one."""
    if isinstance(value, Role):
        return value
    try:
        return Role(value)
    except ValueError:
        return None


@dataclass(frozen=True)
class Principal:
    """The authenticated actor for one request.

    ``role`` is kept as given so an unrecognised value reaches
    :func:`evaluate` intact.  ``owned_school_id`` is the school a
    SCHOOL_ADMIN may administer; it should be ``None`` for other roles.
    """

    id: str
    role: Role | str | None
    owned_school_id: int | str | None = None

    @classmethod
    def from_user(cls, user: Any) -> Principal:
        role = parse_role(user.role)
        owned = user.assigned_school_id if role is Role.SCHOOL_ADMIN else None
        return cls(id=user.id, role=role if role is not None else user.role, owned_school_id=owned)

    @property
    def known_role(self) -> Role | None:
        return parse_role(self.role)

    @property
    def is_consistent(self) -> bool:
        """True when ``owned_school_id`` is set exactly for SCHOOL_ADMIN."""
        role = self.known_role
        if role is None:
            return False
        return (self.owned_school_id is not None) == (role is Role.SCHOOL_ADMIN)


@dataclass(frozen=True)
class ResourceRef:
    """Identifies the target of an action.

    ``school_id`` is the owning school of a review; ``author_id`` is the id
    of the user who wrote it.  Both are only consulted for review actions.
    """

    kind: ResourceKind
    id: int | str | None = None
    school_id: int | None = None
    author_id: str | None = None

    @classmethod
    def school(cls, school_id: int | None = None) -> ResourceRef:
        return cls(ResourceKind.SCHOOL, school_id)

    @classmethod
    def user(cls, user_id: str | None = None) -> ResourceRef:
        return cls(ResourceKind.USER, user_id)

    @classmethod
    def review(
        cls, review_id: int | None = None, *, school_id: int | None = None, author_id: str | None = None
    ) -> ResourceRef:
        return cls(ResourceKind.REVIEW, review_id, school_id=school_id, author_id=author_id)

    @classmethod
    def me(cls) -> ResourceRef:
        return cls(ResourceKind.SELF)


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: DenyReason | None = None

    @classmethod
    def allow(cls) -> Decision:
        return cls(True)

    @classmethod
    def deny(cls, reason: DenyReason) -> Decision:
        return cls(False, reason)

    def __bool__(self) -> bool:
        return self.allowed


_ALLOW = Decision.allow()


def evaluate(principal: Principal, action: Action, resource: ResourceRef) -> Decision:
    """Decide whether *principal* may perform *action* on *resource*."""
    role = principal.known_role
    if role is None:
        return Decision.deny(DenyReason.UNKNOWN_ROLE)

    if _is_self_protected(principal, action, resource):
        return Decision.deny(DenyReason.SELF_PROTECTION)

    if role is Role.SUPERADMIN:
        return _ALLOW

    if action in ANY_ROLE_ACTIONS:
        return _ALLOW

    if role is Role.SCHOOL_ADMIN:
        if action is Action.UPDATE_SCHOOL:
            return _tenant_check(principal, resource.id)
        if action is Action.READ_REVIEW:
            return _tenant_check(principal, resource.school_id)

    if action in USER_MANAGEMENT_ACTIONS or action in SCHOOL_ADMINISTRATION_ACTIONS:
        return Decision.deny(DenyReason.INSUFFICIENT_ROLE)

    if role is Role.USER:
        if action is Action.CREATE_REVIEW:
            return _ALLOW
        if action in OWN_REVIEW_ACTIONS:
            if resource.author_id is not None and resource.author_id == principal.id:
                return _ALLOW
            return Decision.deny(DenyReason.NOT_AUTHOR)

    return Decision.deny(DenyReason.NO_MATCHING_RULE)


def _is_self_protected(principal: Principal, action: Action, resource: ResourceRef) -> bool:
    if action not in (Action.CHANGE_USER_ROLE, Action.DELETE_USER):
        return False
    if resource.kind is ResourceKind.SELF:
        return True
    return resource.kind is ResourceKind.USER and resource.id is not None and str(resource.id) == str(principal.id)


def _tenant_check(principal: Principal, school_id: int | str | None) -> Decision:
    # A SCHOOL_ADMIN without an assigned school matches nothing.
    if principal.owned_school_id is None or school_id is None:
        return Decision.deny(DenyReason.TENANT_MISMATCH)
    if str(school_id) != str(principal.owned_school_id):
        return Decision.deny(DenyReason.TENANT_MISMATCH)
    return _ALLOW
