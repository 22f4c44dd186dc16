"""
Type definitions for accounts report calculations.

Queries in AccountsService load rows into these records; the calculators in
accounts_calculators fold them. Every record carries its branch_code so the
same fold serves single-branch and branch-wise reports.
"""
from typing import Dict, List, Literal, Optional, TypedDict
from datetime import datetime
from decimal import Decimal


RevenuePeriod = Literal["daily", "weekly", "monthly", "yearly"]


class PaymentRecord(TypedDict):
    """A consultation fee or a test order amount."""
    branch_code: str
    source: Literal["consultation", "test"]
    record_id: int
    code: str  # visit_code or order_code
    patient_id: int
    patient_name: Optional[str]
    amount: Decimal
    payment_mode: str
    payment_status: str
    occurred_at: datetime  # business timezone


class ExpenseRecord(TypedDict):
    branch_code: str
    expense_id: int
    title: str
    category: str
    amount: Decimal
    occurred_at: datetime


class CommissionRecord(TypedDict):
    branch_code: str
    commission_id: int
    doctor_id: int
    amount: Decimal
    payment_status: str
    occurred_at: datetime  # calculated_date


class TestLineRecord(TypedDict):
    """One ordered test from a paid order, with its catalogue entry."""
    branch_code: str
    order_id: int
    lab_test_id: int
    test_code: str
    test_name: str
    category: str
    price: Decimal
    commission_rate: Decimal
    occurred_at: datetime


# Records grouped by kind, e.g. {"payments": [...], "expenses": [...]}
RecordBundle = Dict[str, List[dict]]
