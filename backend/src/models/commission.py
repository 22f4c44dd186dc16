"""
Commission model.

One commission per referred test order. The unique constraint on order_id is
what guarantees at-most-one under concurrent calculation requests; the
service-level check only produces the friendlier error.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import String, Integer, ForeignKey, Numeric, TIMESTAMP, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base
from models.enums import CommissionStatus


class Commission(Base):
    """
    Referral commission earned by a doctor on a test order.

    State machine: PENDING -> PAID. The amount is fixed at creation; only
    payment_status, payment_date and paid_by change afterwards.
    """

    __tablename__ = "commissions"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    doctor_id: Mapped[int] = mapped_column(ForeignKey("doctors.id", ondelete="RESTRICT"))

    patient_id: Mapped[int] = mapped_column(ForeignKey("patients.id", ondelete="RESTRICT"))

    order_id: Mapped[int] = mapped_column(ForeignKey("test_orders.id", ondelete="RESTRICT"))
    """At most one commission per order."""

    commission_type: Mapped[str] = mapped_column(String(30))

    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2))

    percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2))
    """Unweighted mean of the qualifying line rates."""

    calculated_date: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True))

    payment_status: Mapped[str] = mapped_column(String(20))
    """PENDING or PAID."""

    payment_date: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    paid_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    """User ID of the staff member who recorded the payment."""

    branch_code: Mapped[str] = mapped_column(String(20))

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True))

    doctor = relationship("Doctor")
    patient = relationship("Patient")
    order = relationship("TestOrder")

    __table_args__ = (
        UniqueConstraint('order_id', name='uq_commissions_order_id'),
        Index('idx_commissions_doctor_status', 'doctor_id', 'payment_status'),
        Index('idx_commissions_branch_calculated', 'branch_code', 'calculated_date'),
    )

    @property
    def is_paid(self) -> bool:
        return self.payment_status == CommissionStatus.PAID.value
