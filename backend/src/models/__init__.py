# Package initialization
# Import all models to ensure relationships are properly established
from .branch import Branch
from .user import User
from .doctor import Doctor
from .lab_test import LabTest
from .patient import Patient
from .patient_visit import PatientVisit
from .test_order import TestOrder, TestOrderItem
from .commission import Commission
from .expense import Expense
from .sequence_counter import SequenceCounter

__all__ = [
    "Branch",
    "User",
    "Doctor",
    "LabTest",
    "Patient",
    "PatientVisit",
    "TestOrder",
    "TestOrderItem",
    "Commission",
    "Expense",
    "SequenceCounter",
]
