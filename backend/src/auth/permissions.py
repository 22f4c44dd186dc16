# pyright: reportMissingTypeStubs=false
"""
Role-based authorization and branch scoping dependencies.
"""

from typing import Callable, Optional
from fastapi import Depends, HTTPException, status

from auth.dependencies import UserContext, get_current_user
from auth.scope import BranchScope, resolve_scope
from models.enums import UserRole

# Role groups used by the routers
MANAGEMENT_ROLES = (UserRole.ADMIN.value, UserRole.BRANCH_MANAGER.value)
FRONT_DESK_ROLES = (UserRole.ADMIN.value, UserRole.BRANCH_MANAGER.value, UserRole.OPD_STAFF.value)


def require_roles(*roles: str) -> Callable[..., UserContext]:
    """
    Dependency factory that ensures the caller has one of the given roles.

    Returns:
        Dependency function that can be used with FastAPI Depends()
    """
    def dependency(current_user: UserContext = Depends(get_current_user)) -> UserContext:
        if current_user.has_role(*roles):
            return current_user

        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. Insufficient permissions"
        )

    return dependency


def scope_for(user: UserContext, requested_branch: Optional[str] = None) -> BranchScope:
    """Resolve the branch scope for an authenticated caller."""
    return resolve_scope(user.role, user.branch_code, requested_branch)
