"""
Test utilities for diagnostic center tests.
"""

from typing import Optional

from models import User
from services.jwt_service import jwt_service, TokenPayload


def create_jwt_token(user_id: int, role: str, branch_code: Optional[str], name: str = "Test User") -> str:
    """Create a JWT access token for a staff user."""
    payload = TokenPayload(
        sub=str(user_id),
        role=role,
        branch_code=branch_code,
        name=name,
    )
    return jwt_service.create_access_token(payload)


def auth_headers(user: User) -> dict:
    """Bearer headers for a user."""
    token = create_jwt_token(user.id, user.role, user.branch_code, user.name)
    return {"Authorization": f"Bearer {token}"}
