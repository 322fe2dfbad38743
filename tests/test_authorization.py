"""Tests for the role-scoped policy in src.services.authorization."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from src.db.models import Role
from src.services.authorization import (
    Action,
    DenyReason,
    Principal,
    ResourceRef,
    evaluate,
)

SUPERADMIN = Principal("super-1", Role.SUPERADMIN)
ADMIN_S1 = Principal("admin-1", Role.SCHOOL_ADMIN, owned_school_id=1)
USER = Principal("user-1", Role.USER)


# ---------------------------------------------------------------------------
# Principal construction
# ---------------------------------------------------------------------------


class TestPrincipal:
    def test_from_school_admin_user(self):
        user = SimpleNamespace(id="a", role="SCHOOL_ADMIN", assigned_school_id=7)
        principal = Principal.from_user(user)
        assert principal.role is Role.SCHOOL_ADMIN
        assert principal.owned_school_id == 7
        assert principal.is_consistent

    def test_owned_school_dropped_for_other_roles(self):
        user = SimpleNamespace(id="u", role="USER", assigned_school_id=7)
        principal = Principal.from_user(user)
        assert principal.owned_school_id is None
        assert principal.is_consistent

    def test_unknown_role_kept_verbatim(self):
        principal = Principal.from_user(SimpleNamespace(id="g", role="GUEST", assigned_school_id=None))
        assert principal.role == "GUEST"
        assert principal.known_role is None
        assert not principal.is_consistent

    def test_school_admin_without_school_is_inconsistent(self):
        assert not Principal("a", Role.SCHOOL_ADMIN).is_consistent


# ---------------------------------------------------------------------------
# SUPERADMIN
# ---------------------------------------------------------------------------


class TestSuperadmin:
    @pytest.mark.parametrize(
        ("action", "resource"),
        [
            (Action.CREATE_SCHOOL, ResourceRef.school()),
            (Action.UPDATE_SCHOOL, ResourceRef.school(42)),
            (Action.DELETE_SCHOOL, ResourceRef.school(42)),
            (Action.LIST_USERS, ResourceRef.user()),
            (Action.CHANGE_USER_ROLE, ResourceRef.user("other")),
            (Action.DELETE_USER, ResourceRef.user("other")),
            (Action.READ_REVIEW, ResourceRef.review(1, school_id=3, author_id="someone")),
            (Action.DELETE_REVIEW, ResourceRef.review(1, school_id=3, author_id="someone")),
        ],
    )
    def test_allowed(self, action, resource):
        assert evaluate(SUPERADMIN, action, resource).allowed

    def test_cannot_change_own_role(self):
        decision = evaluate(SUPERADMIN, Action.CHANGE_USER_ROLE, ResourceRef.me())
        assert not decision.allowed
        assert decision.reason is DenyReason.SELF_PROTECTION

    def test_cannot_delete_self_by_id(self):
        decision = evaluate(SUPERADMIN, Action.DELETE_USER, ResourceRef.user("super-1"))
        assert decision.reason is DenyReason.SELF_PROTECTION

    def test_may_update_own_account_fields(self):
        assert evaluate(SUPERADMIN, Action.UPDATE_USER, ResourceRef.user("super-1"))


# ---------------------------------------------------------------------------
# SCHOOL_ADMIN
# ---------------------------------------------------------------------------


class TestSchoolAdmin:
    def test_updates_own_school(self):
        assert evaluate(ADMIN_S1, Action.UPDATE_SCHOOL, ResourceRef.school(1)).allowed

    def test_cannot_update_other_school(self):
        decision = evaluate(ADMIN_S1, Action.UPDATE_SCHOOL, ResourceRef.school(2))
        assert not decision.allowed
        assert decision.reason is DenyReason.TENANT_MISMATCH

    def test_string_and_int_ids_compare_equal(self):
        assert evaluate(ADMIN_S1, Action.UPDATE_SCHOOL, ResourceRef.school("1")).allowed

    def test_reads_reviews_of_own_school_only(self):
        assert evaluate(ADMIN_S1, Action.READ_REVIEW, ResourceRef.review(5, school_id=1, author_id="x"))
        decision = evaluate(ADMIN_S1, Action.READ_REVIEW, ResourceRef.review(6, school_id=2, author_id="x"))
        assert decision.reason is DenyReason.TENANT_MISMATCH

    def test_without_assigned_school_matches_nothing(self):
        orphan = Principal("admin-x", Role.SCHOOL_ADMIN, owned_school_id=None)
        decision = evaluate(orphan, Action.UPDATE_SCHOOL, ResourceRef.school(1))
        assert decision.reason is DenyReason.TENANT_MISMATCH

    @pytest.mark.parametrize("action", [Action.CREATE_SCHOOL, Action.DELETE_SCHOOL])
    def test_cannot_create_or_delete_schools(self, action):
        assert evaluate(ADMIN_S1, action, ResourceRef.school(1)).reason is DenyReason.INSUFFICIENT_ROLE

    def test_cannot_manage_users(self):
        decision = evaluate(ADMIN_S1, Action.LIST_USERS, ResourceRef.user())
        assert decision.reason is DenyReason.INSUFFICIENT_ROLE

    def test_cannot_submit_reviews(self):
        decision = evaluate(ADMIN_S1, Action.CREATE_REVIEW, ResourceRef.review(school_id=1))
        assert decision.reason is DenyReason.NO_MATCHING_RULE

    def test_sees_dashboard(self):
        assert evaluate(ADMIN_S1, Action.VIEW_DASHBOARD, ResourceRef.me())


# ---------------------------------------------------------------------------
# USER
# ---------------------------------------------------------------------------


class TestUser:
    def test_cannot_create_school(self):
        decision = evaluate(USER, Action.CREATE_SCHOOL, ResourceRef.school())
        assert not decision
        assert decision.reason is DenyReason.INSUFFICIENT_ROLE

    def test_cannot_update_school(self):
        decision = evaluate(USER, Action.UPDATE_SCHOOL, ResourceRef.school(1))
        assert decision.reason is DenyReason.NO_MATCHING_RULE

    def test_reads_schools(self):
        assert evaluate(USER, Action.READ_SCHOOL, ResourceRef.school(1))

    def test_creates_review_anywhere(self):
        assert evaluate(USER, Action.CREATE_REVIEW, ResourceRef.review(school_id=99))

    @pytest.mark.parametrize("action", [Action.READ_REVIEW, Action.UPDATE_REVIEW, Action.DELETE_REVIEW])
    def test_manages_own_review(self, action):
        assert evaluate(USER, action, ResourceRef.review(3, school_id=1, author_id="user-1"))

    @pytest.mark.parametrize("action", [Action.UPDATE_REVIEW, Action.DELETE_REVIEW])
    def test_cannot_touch_others_review(self, action):
        decision = evaluate(USER, action, ResourceRef.review(3, school_id=1, author_id="user-2"))
        assert decision.reason is DenyReason.NOT_AUTHOR

    def test_review_without_author_is_not_own(self):
        decision = evaluate(USER, Action.UPDATE_REVIEW, ResourceRef.review(3, school_id=1))
        assert decision.reason is DenyReason.NOT_AUTHOR

    def test_updates_own_profile(self):
        assert evaluate(USER, Action.UPDATE_OWN_PROFILE, ResourceRef.me())

    def test_cannot_delete_self(self):
        decision = evaluate(USER, Action.DELETE_USER, ResourceRef.me())
        assert decision.reason is DenyReason.SELF_PROTECTION


# ---------------------------------------------------------------------------
# Unknown roles
# ---------------------------------------------------------------------------


class TestUnknownRole:
    @pytest.mark.parametrize("role", ["GUEST", "", None, "superadmin"])
    def test_always_denied(self, role):
        principal = Principal("p", role)
        for action in Action:
            decision = evaluate(principal, action, ResourceRef.me())
            assert not decision.allowed
            assert decision.reason is DenyReason.UNKNOWN_ROLE

    def test_denial_is_a_value_not_an_exception(self):
        decision = evaluate(Principal("p", "GUEST"), Action.VIEW_DASHBOARD, ResourceRef.me())
        assert bool(decision) is False
