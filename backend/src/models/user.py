"""
User model representing staff members.

Staff authenticate upstream and reach this backend with a JWT; the user row
is looked up on every request to confirm the account is still active and to
read its role and branch.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import String, TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column

from core.database import Base


class User(Base):
    """
    Staff member with a single role.

    Administrators are not pinned to a branch (branch_code is None); every
    other role belongs to exactly one branch.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    """Unique identifier for the user."""

    user_code: Mapped[Optional[str]] = mapped_column(String(30), unique=True, nullable=True)
    """Staff identifier (e.g., "BR001-OPD001")."""

    username: Mapped[str] = mapped_column(String(100), unique=True)

    name: Mapped[str] = mapped_column(String(255))

    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    role: Mapped[str] = mapped_column(String(30))
    """One of UserRole values."""

    branch_code: Mapped[Optional[str]] = mapped_column(String(20), nullable=True, index=True)
    """Branch the user works at. None for administrators."""

    is_active: Mapped[bool] = mapped_column(default=True)
    """Deactivated users are rejected at authentication."""

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True))

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}', role='{self.role}')>"
