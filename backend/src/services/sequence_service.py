"""
Sequence generation for human-readable identifiers.

Counters live in the sequence_counters table and are advanced with a single
upsert statement (INSERT ... ON CONFLICT DO UPDATE ... RETURNING), so the
increment and the read happen atomically inside the database. Concurrent
callers on the same key always receive distinct values.
"""

import logging
from typing import Optional

from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from models.sequence_counter import SequenceCounter
from utils.id_utils import (
    format_identifier, sequence_key, ROLE_PREFIXES,
    PATIENT_PREFIX, VISIT_PREFIX, ORDER_PREFIX, EXPENSE_PREFIX,
    BRANCH_PREFIX, DOCTOR_PREFIX, TEST_PREFIX,
)

logger = logging.getLogger(__name__)

_UPSERT_BUILDERS = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}


class SequenceService:
    """Service for issuing sequence numbers and identifiers."""

    @staticmethod
    def next_sequence(db: Session, key: str) -> int:
        """
        Atomically increment and return the counter for a key.

        The counter is created on first use, so the first call for a key
        returns 1. The upsert runs inside the caller's transaction and holds the
        counter row until that transaction ends, so concurrent callers queue
        behind it instead of reading the same value.

        Args:
            db: Database session
            key: Counter key (e.g., "orderId_BR001")

        Returns:
            The newly issued sequence value

        Raises:
            ValueError: If the database dialect has no atomic upsert support
        """
        dialect = db.get_bind().dialect.name
        insert_builder = _UPSERT_BUILDERS.get(dialect)
        if insert_builder is None:
            raise ValueError(f"Sequence generation is not supported on dialect '{dialect}'")

        stmt = insert_builder(SequenceCounter).values(key=key, value=1)
        stmt = stmt.on_conflict_do_update(
            index_elements=[SequenceCounter.key],
            set_={"value": SequenceCounter.value + 1},
        ).returning(SequenceCounter.value)

        value = db.execute(stmt).scalar_one()
        logger.debug(f"Issued sequence {value} for key {key}")
        return int(value)

    @staticmethod
    def next_identifier(db: Session, kind: str, prefix: str, branch_code: Optional[str] = None) -> str:
        """
        Issue the next formatted identifier for an entity kind.

        Args:
            db: Database session
            kind: Counter kind (e.g., "order"); combined with branch_code into the counter key
            prefix: Identifier prefix (e.g., "ORD")
            branch_code: Issuing branch for branch-scoped kinds

        Returns:
            Formatted identifier (e.g., "BR001-ORD007")
        """
        sequence = SequenceService.next_sequence(db, sequence_key(kind, branch_code))
        return format_identifier(prefix, sequence, branch_code)

    @staticmethod
    def generate_patient_code(db: Session, branch_code: str) -> str:
        return SequenceService.next_identifier(db, "patient", PATIENT_PREFIX, branch_code)

    @staticmethod
    def generate_visit_code(db: Session, branch_code: str) -> str:
        return SequenceService.next_identifier(db, "visit", VISIT_PREFIX, branch_code)

    @staticmethod
    def generate_order_code(db: Session, branch_code: str) -> str:
        return SequenceService.next_identifier(db, "order", ORDER_PREFIX, branch_code)

    @staticmethod
    def generate_expense_code(db: Session, branch_code: str) -> str:
        return SequenceService.next_identifier(db, "expense", EXPENSE_PREFIX, branch_code)

    @staticmethod
    def generate_branch_code(db: Session) -> str:
        return SequenceService.next_identifier(db, "branch", BRANCH_PREFIX)

    @staticmethod
    def generate_doctor_code(db: Session) -> str:
        return SequenceService.next_identifier(db, "doctor", DOCTOR_PREFIX)

    @staticmethod
    def generate_test_code(db: Session) -> str:
        return SequenceService.next_identifier(db, "test", TEST_PREFIX)

    @staticmethod
    def generate_user_code(db: Session, role: str, branch_code: Optional[str]) -> str:
        """Staff identifier with a role prefix, e.g. "BR001-OPD001"."""
        prefix = ROLE_PREFIXES.get(role)
        if prefix is None:
            raise ValueError(f"Unknown role: {role}")
        return SequenceService.next_identifier(db, f"employee{prefix}", prefix, branch_code)
