"""
Shared response models for API endpoints.

Amounts are exposed as floats; the services keep Decimal internally.
"""

from datetime import datetime, date
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from models import Patient, PatientVisit, TestOrder, TestOrderItem


class PatientResponse(BaseModel):
    """Response model for patient information."""
    id: int
    patient_code: str
    name: str
    age: Optional[int] = None
    gender: Optional[str] = None
    contact: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    branch_code: str
    created_at: Optional[datetime] = None

    @classmethod
    def from_patient(cls, patient: Patient) -> "PatientResponse":
        return cls(
            id=patient.id,
            patient_code=patient.patient_code,
            name=patient.name,
            age=patient.age,
            gender=patient.gender,
            contact=patient.contact,
            email=patient.email,
            address=patient.address,
            branch_code=patient.branch_code,
            created_at=patient.created_at,
        )


class VisitResponse(BaseModel):
    """Response model for an OPD visit."""
    id: int
    visit_code: str
    patient_id: int
    doctor_id: int
    branch_code: str
    visit_date: datetime
    consultation_fee: float
    payment_mode: str
    payment_status: str
    visit_type: str
    symptoms: Optional[str] = None
    next_visit_date: Optional[date] = None

    @classmethod
    def from_visit(cls, visit: PatientVisit) -> "VisitResponse":
        return cls(
            id=visit.id,
            visit_code=visit.visit_code,
            patient_id=visit.patient_id,
            doctor_id=visit.doctor_id,
            branch_code=visit.branch_code,
            visit_date=visit.visit_date,
            consultation_fee=float(visit.consultation_fee),
            payment_mode=visit.payment_mode,
            payment_status=visit.payment_status,
            visit_type=visit.visit_type,
            symptoms=visit.symptoms,
            next_visit_date=visit.next_visit_date,
        )


class TestOrderItemResponse(BaseModel):
    """Response model for one ordered test."""
    __test__ = False

    id: int
    lab_test_id: int
    test_name: str
    price: float
    status: str
    collection_date: Optional[datetime] = None
    completion_date: Optional[datetime] = None

    @classmethod
    def from_item(cls, item: TestOrderItem) -> "TestOrderItemResponse":
        return cls(
            id=item.id,
            lab_test_id=item.lab_test_id,
            test_name=item.test_name,
            price=float(item.price),
            status=item.status,
            collection_date=item.collection_date,
            completion_date=item.completion_date,
        )


class TestOrderResponse(BaseModel):
    """Response model for a lab test order."""
    __test__ = False

    id: int
    order_code: str
    patient_id: int
    visit_id: Optional[int] = None
    referring_doctor_id: Optional[int] = None
    total_amount: float
    commission_amount: float
    payment_mode: str
    payment_status: str
    qr_code: Optional[str] = None
    lab_code: Optional[str] = None
    branch_code: str
    created_at: datetime
    items: List[TestOrderItemResponse]

    @classmethod
    def from_order(cls, order: TestOrder) -> "TestOrderResponse":
        return cls(
            id=order.id,
            order_code=order.order_code,
            patient_id=order.patient_id,
            visit_id=order.visit_id,
            referring_doctor_id=order.referring_doctor_id,
            total_amount=float(order.total_amount),
            commission_amount=float(order.commission_amount),
            payment_mode=order.payment_mode,
            payment_status=order.payment_status,
            qr_code=order.qr_code,
            lab_code=order.lab_code,
            branch_code=order.branch_code,
            created_at=order.created_at,
            items=[TestOrderItemResponse.from_item(i) for i in order.items],
        )


class CommissionResponse(BaseModel):
    """Response model for a commission ledger entry."""
    id: int
    doctor_id: int
    doctor_name: Optional[str] = None
    patient_id: int
    order_id: int
    order_code: Optional[str] = None
    commission_type: str
    amount: float
    percentage: float
    calculated_date: datetime
    payment_status: str
    payment_date: Optional[datetime] = None
    paid_by: Optional[int] = None
    branch_code: str


class ExpenseResponse(BaseModel):
    """Response model for an expense."""
    id: int
    expense_code: str
    title: str
    description: Optional[str] = None
    amount: float
    category: str
    date: datetime
    branch_code: str
    created_by: Optional[int] = None
    attachments: List[Dict[str, Any]] = []
