# pyright: reportMissingTypeStubs=false
"""
OPD API endpoints.

Front-desk operations: patient registration, consultation visits, lab test
orders and sample tracking. Records are always created at the caller's
branch; administrators name the branch explicitly.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from api.responses import PatientResponse, TestOrderItemResponse, TestOrderResponse, VisitResponse
from auth.dependencies import UserContext
from auth.permissions import FRONT_DESK_ROLES, require_roles, scope_for
from core.constants import MAX_STRING_LENGTH
from core.database import get_db
from models.enums import PaymentMode, PaymentStatus, TestStatus, UserRole, VisitType
from services import OpdService

logger = logging.getLogger(__name__)

router = APIRouter()

LAB_ROLES = FRONT_DESK_ROLES + (UserRole.LAB_STAFF.value,)


class PatientCreateRequest(BaseModel):
    """Request model for registering a patient."""
    name: str = Field(..., min_length=1, max_length=MAX_STRING_LENGTH)
    age: Optional[int] = Field(None, ge=0, le=150)
    gender: Optional[str] = None
    contact: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    branch_code: Optional[str] = Field(None, description="Required for administrators")


class VisitCreateRequest(BaseModel):
    """Request model for recording an OPD visit."""
    patient_id: int
    doctor_id: int
    payment_mode: PaymentMode
    payment_status: PaymentStatus = PaymentStatus.PAID
    visit_type: VisitType = VisitType.CONSULTATION
    consultation_fee: Optional[Decimal] = Field(None, ge=0, description="Defaults to the doctor's fee")
    symptoms: Optional[str] = None
    next_visit_date: Optional[date] = None
    branch_code: Optional[str] = Field(None, description="Required for administrators")


class OrderedTestRequest(BaseModel):
    test_id: int
    price: Optional[Decimal] = Field(None, ge=0, description="Overrides the catalogue price")


class TestOrderCreateRequest(BaseModel):
    """Request model for placing a lab test order."""
    __test__ = False

    patient_id: int
    tests: List[OrderedTestRequest] = Field(..., min_length=1)
    payment_mode: PaymentMode
    payment_status: PaymentStatus = PaymentStatus.PAID
    visit_id: Optional[int] = None
    referring_doctor_id: Optional[int] = None
    branch_code: Optional[str] = Field(None, description="Required for administrators")


class TestStatusUpdateRequest(BaseModel):
    __test__ = False

    status: TestStatus


def _target_branch(user: UserContext, requested_branch: Optional[str]) -> str:
    """Branch new records are created at."""
    scope = scope_for(user, requested_branch)
    if scope.is_all:
        raise ValueError("branch_code is required")
    return scope.branch_code  # type: ignore


@router.post("/patients", response_model=PatientResponse, status_code=status.HTTP_201_CREATED)
async def register_patient(
    request: PatientCreateRequest,
    current_user: UserContext = Depends(require_roles(*FRONT_DESK_ROLES)),
    db: Session = Depends(get_db)
) -> PatientResponse:
    """Register a new patient at the caller's branch."""
    try:
        patient = OpdService.register_patient(
            db,
            branch_code=_target_branch(current_user, request.branch_code),
            name=request.name,
            age=request.age,
            gender=request.gender,
            contact=request.contact,
            email=request.email,
            address=request.address,
            registered_by=current_user.user_id,
        )
        db.commit()
        return PatientResponse.from_patient(patient)
    except (ValueError, HTTPException):
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.exception(f"Error registering patient: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to register patient"
        )


@router.get("/patients/{patient_id}", response_model=PatientResponse)
async def get_patient(
    patient_id: int,
    current_user: UserContext = Depends(require_roles(*FRONT_DESK_ROLES)),
    db: Session = Depends(get_db)
) -> PatientResponse:
    patient = OpdService.get_patient(db, patient_id)
    if not scope_for(current_user).allows(patient.branch_code):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    return PatientResponse.from_patient(patient)


@router.post("/visits", response_model=VisitResponse, status_code=status.HTTP_201_CREATED)
async def create_visit(
    request: VisitCreateRequest,
    current_user: UserContext = Depends(require_roles(*FRONT_DESK_ROLES)),
    db: Session = Depends(get_db)
) -> VisitResponse:
    """Record a consultation visit."""
    try:
        visit = OpdService.create_visit(
            db,
            branch_code=_target_branch(current_user, request.branch_code),
            patient_id=request.patient_id,
            doctor_id=request.doctor_id,
            payment_mode=request.payment_mode.value,
            payment_status=request.payment_status.value,
            visit_type=request.visit_type.value,
            consultation_fee=request.consultation_fee,
            symptoms=request.symptoms,
            next_visit_date=request.next_visit_date,
            created_by=current_user.user_id,
        )
        db.commit()
        return VisitResponse.from_visit(visit)
    except (ValueError, HTTPException):
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.exception(f"Error recording visit for patient {request.patient_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to record visit"
        )


@router.post("/test-orders", response_model=TestOrderResponse, status_code=status.HTTP_201_CREATED)
async def create_test_order(
    request: TestOrderCreateRequest,
    current_user: UserContext = Depends(require_roles(*FRONT_DESK_ROLES)),
    db: Session = Depends(get_db)
) -> TestOrderResponse:
    """Place a lab test order; referred orders get their commission right away."""
    try:
        order = OpdService.create_test_order(
            db,
            branch_code=_target_branch(current_user, request.branch_code),
            patient_id=request.patient_id,
            tests=[t.model_dump() for t in request.tests],
            payment_mode=request.payment_mode.value,
            payment_status=request.payment_status.value,
            visit_id=request.visit_id,
            referring_doctor_id=request.referring_doctor_id,
            created_by=current_user.user_id,
        )
        db.commit()
        return TestOrderResponse.from_order(order)
    except (ValueError, HTTPException):
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.exception(f"Error placing test order for patient {request.patient_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to place test order"
        )


@router.get("/test-orders/lookup", response_model=TestOrderResponse)
async def find_test_order_by_qr(
    qr: str = Query(..., description="Scanned sample label payload"),
    current_user: UserContext = Depends(require_roles(*LAB_ROLES)),
    db: Session = Depends(get_db)
) -> TestOrderResponse:
    order = OpdService.find_order_by_qr(db, qr, scope_for(current_user))
    return TestOrderResponse.from_order(order)


@router.get("/test-orders/{order_id}", response_model=TestOrderResponse)
async def get_test_order(
    order_id: int,
    current_user: UserContext = Depends(require_roles(*LAB_ROLES)),
    db: Session = Depends(get_db)
) -> TestOrderResponse:
    order = OpdService.get_test_order(db, order_id, scope_for(current_user))
    return TestOrderResponse.from_order(order)


@router.patch("/test-orders/{order_id}/tests/{item_id}", response_model=TestOrderItemResponse)
async def update_test_status(
    order_id: int,
    item_id: int,
    request: TestStatusUpdateRequest,
    current_user: UserContext = Depends(require_roles(*LAB_ROLES)),
    db: Session = Depends(get_db)
) -> TestOrderItemResponse:
    """Move an ordered test to a new fulfillment status."""
    try:
        item = OpdService.update_test_status(
            db, order_id, item_id, request.status.value, scope_for(current_user)
        )
        db.commit()
        return TestOrderItemResponse.from_item(item)
    except (ValueError, HTTPException):
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.exception(f"Error updating test {item_id} on order {order_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update test status"
        )
