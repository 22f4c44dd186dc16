"""
Branch model representing a physical diagnostic-center location.

Branches are the multi-tenancy boundary: patients, visits, orders, expenses
and commissions all belong to exactly one branch, and non-administrator
staff can only read data from their own branch.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import String, Text, TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column

from core.database import Base


class Branch(Base):
    """Physical branch of the diagnostic center."""

    __tablename__ = "branches"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    """Unique identifier for the branch."""

    branch_code: Mapped[str] = mapped_column(String(20), unique=True, index=True)
    """Human-readable branch identifier (e.g., "BR001")."""

    name: Mapped[str] = mapped_column(String(255))
    """Display name of the branch."""

    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    contact: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    is_active: Mapped[bool] = mapped_column(default=True)
    """Inactive branches are kept for historical reports."""

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True))
    """Timestamp when the branch was created."""

    def __repr__(self) -> str:
        return f"<Branch(branch_code='{self.branch_code}', name='{self.name}')>"
