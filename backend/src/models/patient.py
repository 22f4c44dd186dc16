"""
Patient model representing individuals registered at a branch.

Patients are registered by OPD staff and receive a branch-qualified code
(e.g., "BR001-PAT001"). Visits and test orders reference the patient.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import String, Text, Integer, TIMESTAMP, Index
from sqlalchemy.orm import Mapped, mapped_column

from core.database import Base


class Patient(Base):
    """
    Patient registered at a branch.

    A patient belongs to the branch that registered them; other branches can
    still serve the patient, but reports attribute revenue to the branch
    where the visit or order happened.
    """

    __tablename__ = "patients"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    """Unique identifier for the patient."""

    patient_code: Mapped[str] = mapped_column(String(30), unique=True, index=True)
    """Branch-qualified identifier (e.g., "BR001-PAT001")."""

    name: Mapped[str] = mapped_column(String(255))

    age: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    gender: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    """Valid values: 'MALE', 'FEMALE', 'OTHER'."""

    contact: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    branch_code: Mapped[str] = mapped_column(String(20))
    """Branch where the patient was registered."""

    registered_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    """User ID of the staff member who registered the patient."""

    is_active: Mapped[bool] = mapped_column(default=True)

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True))
    """Timestamp when the patient was registered."""

    __table_args__ = (
        Index('idx_patients_branch_contact', 'branch_code', 'contact'),
    )

    def __repr__(self) -> str:
        return f"<Patient(patient_code='{self.patient_code}', name='{self.name}')>"
