"""
Unit tests for branch scope resolution.
"""
import pytest

from auth.scope import ALL_BRANCHES, BranchScope, resolve_scope
from core.exceptions import ForbiddenError
from models.enums import UserRole


class TestResolveScope:
    """Test the effective branch filter derived from role and request."""

    def test_admin_without_branch_sees_all(self):
        scope = resolve_scope(UserRole.ADMIN.value, None)

        assert scope.is_all
        assert scope == ALL_BRANCHES

    def test_admin_can_pick_any_branch(self):
        scope = resolve_scope(UserRole.ADMIN.value, None, "BR002")

        assert not scope.is_all
        assert scope.branch_code == "BR002"

    def test_empty_requested_branch_means_none(self):
        assert resolve_scope(UserRole.ADMIN.value, None, "").is_all

    @pytest.mark.parametrize("role", [
        UserRole.BRANCH_MANAGER.value,
        UserRole.OPD_STAFF.value,
        UserRole.LAB_STAFF.value,
    ])
    def test_branch_staff_pinned_to_own_branch(self, role):
        assert resolve_scope(role, "BR001").branch_code == "BR001"
        assert resolve_scope(role, "BR001", "BR001").branch_code == "BR001"

    def test_branch_staff_cannot_request_other_branch(self):
        with pytest.raises(ForbiddenError) as exc_info:
            resolve_scope(UserRole.BRANCH_MANAGER.value, "BR001", "BR002")

        assert "own branch" in str(exc_info.value)

    def test_branch_staff_without_branch_rejected(self):
        with pytest.raises(ForbiddenError):
            resolve_scope(UserRole.OPD_STAFF.value, None)

    def test_forbidden_is_a_value_error(self):
        with pytest.raises(ValueError):
            resolve_scope(UserRole.OPD_STAFF.value, None)


class TestBranchScope:

    def test_all_branches_allows_everything(self):
        assert ALL_BRANCHES.allows("BR001")
        assert ALL_BRANCHES.allows("BR999")

    def test_single_branch_allows_only_itself(self):
        scope = BranchScope("BR001")

        assert scope.allows("BR001")
        assert not scope.allows("BR002")
        assert not scope.allows(None)
