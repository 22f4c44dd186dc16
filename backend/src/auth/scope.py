"""
Branch scope resolution.

Every branch-scoped read runs against a BranchScope. Administrators may read
one branch or all of them; every other role is pinned to its own branch.
"""

from dataclasses import dataclass
from typing import Optional

from core.exceptions import ForbiddenError
from models.enums import UserRole


@dataclass(frozen=True)
class BranchScope:
    """Effective branch filter for a request. branch_code None means all branches."""
    branch_code: Optional[str] = None

    @property
    def is_all(self) -> bool:
        return self.branch_code is None

    def allows(self, branch_code: Optional[str]) -> bool:
        """Check whether a record from branch_code is visible in this scope."""
        return self.is_all or self.branch_code == branch_code


ALL_BRANCHES = BranchScope()


def resolve_scope(role: str, caller_branch: Optional[str], requested_branch: Optional[str] = None) -> BranchScope:
    """
    Derive the effective branch scope for a caller.

    Args:
        role: Caller's role
        caller_branch: Branch the caller belongs to (None for administrators)
        requested_branch: Branch filter supplied with the request, if any

    Returns:
        BranchScope for the request

    Raises:
        ForbiddenError: If a non-administrator has no branch, or asks for
            a branch other than their own
    """
    requested_branch = requested_branch or None

    if role == UserRole.ADMIN.value:
        return BranchScope(requested_branch)

    if not caller_branch:
        raise ForbiddenError("User is not assigned to a branch")

    if requested_branch is not None and requested_branch != caller_branch:
        raise ForbiddenError("Access denied. You can only access your own branch data")

    return BranchScope(caller_branch)
