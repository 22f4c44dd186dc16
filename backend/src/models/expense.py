"""
Branch expense model.

Expenses reduce net collection and net income in accounts reports.
Attachment files live in external object storage; only their metadata is
stored here.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, String, Text, Integer, Numeric, TIMESTAMP, Index
from sqlalchemy.orm import Mapped, mapped_column

from core.database import Base


class Expense(Base):
    """Expense recorded against a branch."""

    __tablename__ = "expenses"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    expense_code: Mapped[str] = mapped_column(String(30), unique=True, index=True)
    """Branch-qualified identifier (e.g., "BR001-EXP001")."""

    title: Mapped[str] = mapped_column(String(255))

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2))

    category: Mapped[str] = mapped_column(String(100))
    """Free-text category (e.g., "Rent", "Supplies")."""

    date: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True))
    """When the expense was incurred; report windows filter on this."""

    branch_code: Mapped[str] = mapped_column(String(20))

    created_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    attachments: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, default=list)
    """[{"filename": str, "url": str}]"""

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True))

    __table_args__ = (
        Index('idx_expenses_branch_date', 'branch_code', 'date'),
    )
