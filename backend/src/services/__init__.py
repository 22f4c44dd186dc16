"""
Services package for shared business logic.

This package contains service classes that encapsulate business logic
shared across multiple API endpoints.
"""

from .sequence_service import SequenceService
from .commission_service import CommissionService
from .accounts_service import AccountsService
from .opd_service import OpdService
from .expense_service import ExpenseService
from .email_service import EmailService

__all__ = [
    "SequenceService",
    "CommissionService",
    "AccountsService",
    "OpdService",
    "ExpenseService",
    "EmailService",
]
