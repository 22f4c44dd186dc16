# pyright: reportMissingTypeStubs=false
"""
Authentication dependencies for FastAPI.

Resolves the caller identity (role, branch, user id) from the bearer token
and the users table.
"""

import logging
from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from core.database import get_db
from models import User
from services.jwt_service import jwt_service, TokenPayload

logger = logging.getLogger(__name__)


class UserContext:
    """Authenticated user context extracted from JWT token."""

    def __init__(
        self,
        user_id: int,
        role: str,
        branch_code: Optional[str],
        name: str,
        email: Optional[str] = None
    ):
        self.user_id = user_id
        self.role = role
        self.branch_code = branch_code  # None for administrators
        self.name = name
        self.email = email

    def has_role(self, *roles: str) -> bool:
        """Check if user has one of the given roles."""
        return self.role in roles

    def __repr__(self) -> str:
        return f"UserContext(user_id={self.user_id}, role='{self.role}', branch_code={self.branch_code!r})"


# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


def get_token_payload(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[TokenPayload]:
    """Extract and validate JWT token payload."""
    if not credentials:
        return None

    return jwt_service.verify_token(credentials.credentials)


def get_current_user(
    payload: Optional[TokenPayload] = Depends(get_token_payload),
    db: Session = Depends(get_db)
) -> UserContext:
    """Get authenticated user context from JWT token."""
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication credentials not provided"
        )

    try:
        user_id = int(payload.sub)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token subject"
        )

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found"
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account is deactivated"
        )

    # Role and branch come from the user row so that changes apply immediately
    if payload.role != user.role or payload.branch_code != user.branch_code:
        logger.warning(f"Token claims out of date for user {user.id}, using stored role/branch")

    return UserContext(
        user_id=user.id,
        role=user.role,
        branch_code=user.branch_code,
        name=user.name,
        email=user.email
    )
