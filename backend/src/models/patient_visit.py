"""
OPD visit model.

A visit is one consultation of a patient with a doctor at a branch. Its
consultation fee is part of the branch's collections once paid.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import String, Integer, ForeignKey, Numeric, TIMESTAMP, Date, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base


class PatientVisit(Base):
    """OPD consultation visit."""

    __tablename__ = "patient_visits"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    visit_code: Mapped[str] = mapped_column(String(30), unique=True, index=True)
    """Branch-qualified identifier (e.g., "BR001-VIS001")."""

    patient_id: Mapped[int] = mapped_column(ForeignKey("patients.id", ondelete="RESTRICT"))

    doctor_id: Mapped[int] = mapped_column(ForeignKey("doctors.id", ondelete="RESTRICT"))

    branch_code: Mapped[str] = mapped_column(String(20))

    visit_date: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True))

    consultation_fee: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    """Fee charged for this visit (defaults to the doctor's consultation fee)."""

    payment_mode: Mapped[str] = mapped_column(String(20))
    """One of PaymentMode values."""

    payment_status: Mapped[str] = mapped_column(String(20))
    """One of PaymentStatus values."""

    visit_type: Mapped[str] = mapped_column(String(20))
    """CONSULTATION or FOLLOW_UP."""

    symptoms: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)

    next_visit_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    created_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    """User ID of the staff member who recorded the visit."""

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True))
    """Used as the collection date in accounts reports."""

    patient = relationship("Patient")
    doctor = relationship("Doctor")

    __table_args__ = (
        Index('idx_patient_visits_branch_created', 'branch_code', 'created_at'),
        Index('idx_patient_visits_branch_status', 'branch_code', 'payment_status'),
    )
