"""
Sequence counter model backing human-readable identifiers.

One row per counter key (e.g., "orderId_BR001"). Rows are created lazily on
first use and only ever incremented, so issued numbers are never reused.
A failed transaction after an increment leaves a gap, never a duplicate.
"""

from sqlalchemy import String, Integer
from sqlalchemy.orm import Mapped, mapped_column

from core.database import Base


class SequenceCounter(Base):
    """Monotonic counter keyed by entity kind and branch."""

    __tablename__ = "sequence_counters"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)

    value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    """Last issued value."""
