"""
Doctor model.

Doctors consult OPD patients and refer lab tests. A doctor who refers a test
order earns a commission on it; the per-test rate comes from the test
catalogue, while the doctor's own commission_rate is kept for reference.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import JSON, String, Numeric, TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column

from core.database import Base


class Doctor(Base):
    """Consulting and referring doctor."""

    __tablename__ = "doctors"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    doctor_code: Mapped[str] = mapped_column(String(20), unique=True, index=True)
    """Human-readable identifier (e.g., "DOC001")."""

    name: Mapped[str] = mapped_column(String(255))

    specialization: Mapped[str] = mapped_column(String(255))

    contact: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    """Commission payment notifications are sent here."""

    consultation_fee: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    """Default fee charged for an OPD visit with this doctor."""

    commission_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=Decimal("0"))
    """Percentage (0-100)."""

    available_branches: Mapped[List[str]] = mapped_column(JSON, default=list)
    """Branch codes where the doctor consults."""

    is_active: Mapped[bool] = mapped_column(default=True)

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True))

    def is_available_at(self, branch_code: str) -> bool:
        """Check whether the doctor consults at a branch."""
        return bool(self.is_active) and branch_code in (self.available_branches or [])

    def __repr__(self) -> str:
        return f"<Doctor(doctor_code='{self.doctor_code}', name='{self.name}')>"
