"""
Enumerations shared by models, services and API schemas.

Columns store the plain string values; compare against ``Enum.X.value``.
"""

from enum import Enum


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    BRANCH_MANAGER = "BRANCH_MANAGER"
    OPD_STAFF = "OPD_STAFF"
    LAB_STAFF = "LAB_STAFF"
    PHARMACY_STAFF = "PHARMACY_STAFF"
    MARKETING_EMPLOYEE = "MARKETING_EMPLOYEE"
    GENERAL_EMPLOYEE = "GENERAL_EMPLOYEE"


class PaymentMode(str, Enum):
    CASH = "CASH"
    CARD = "CARD"
    ONLINE = "ONLINE"
    CASH_ONLINE = "CASH_ONLINE"
    CASH_CARD = "CASH_CARD"
    INSURANCE = "INSURANCE"
    DUE = "DUE"


class PaymentStatus(str, Enum):
    PAID = "PAID"
    PENDING = "PENDING"
    PARTIAL = "PARTIAL"


class CommissionStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"


class CommissionType(str, Enum):
    TEST_REFERRAL = "TEST_REFERRAL"


class VisitType(str, Enum):
    CONSULTATION = "CONSULTATION"
    FOLLOW_UP = "FOLLOW_UP"


class TestCategory(str, Enum):
    PATHOLOGY = "PATHOLOGY"
    RADIOLOGY = "RADIOLOGY"
    CARDIOLOGY = "CARDIOLOGY"
    OTHER = "OTHER"


class TestStatus(str, Enum):
    PENDING = "PENDING"
    COLLECTED = "COLLECTED"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
