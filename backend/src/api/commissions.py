# pyright: reportMissingTypeStubs=false
"""
Commission API endpoints.

Calculation, payment and reporting of doctor referral commissions. All
routes are limited to administrators and branch managers; branch managers
only ever see their own branch.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from api.responses import CommissionResponse
from auth.dependencies import UserContext
from auth.permissions import MANAGEMENT_ROLES, require_roles, scope_for
from core.constants import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from core.database import get_db
from services import CommissionService, OpdService
from services.commission_service import commission_to_dict

logger = logging.getLogger(__name__)

router = APIRouter()


class BulkPayRequest(BaseModel):
    """Request model for paying several commissions at once."""
    commission_ids: List[int] = Field(..., min_length=1)


class BulkPayResult(BaseModel):
    commission_id: int
    doctor_name: Optional[str] = None
    amount: float
    paid: bool


class BulkPayResponse(BaseModel):
    """Response model for bulk payment."""
    results: List[BulkPayResult]
    paid_commissions: int
    total_amount: float


class CalculateCommissionResponse(BaseModel):
    """Response model for commission calculation."""
    commission: CommissionResponse
    order: Dict[str, Any]
    doctor: Dict[str, Any]


@router.post("/calculate/{order_id}", response_model=CalculateCommissionResponse, status_code=status.HTTP_201_CREATED)
async def calculate_commission(
    order_id: int,
    current_user: UserContext = Depends(require_roles(*MANAGEMENT_ROLES)),
    db: Session = Depends(get_db)
) -> CalculateCommissionResponse:
    """Calculate the referral commission for a test order."""
    try:
        # Branch managers may only calculate for their own branch's orders
        order = OpdService.get_test_order(db, order_id, scope_for(current_user))
        commission = CommissionService.calculate_commission(db, order.id)
        db.commit()

        doctor = commission.doctor
        return CalculateCommissionResponse(
            commission=CommissionResponse(**commission_to_dict(commission)),
            order={
                'order_code': order.order_code,
                'total_amount': float(order.total_amount),
                'commission_amount': float(order.commission_amount),
            },
            doctor={
                'name': doctor.name,
                'email': doctor.email,
            },
        )
    except (ValueError, HTTPException):
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.exception(f"Error calculating commission for order {order_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to calculate commission"
        )


@router.post("/bulk-pay", response_model=BulkPayResponse)
async def bulk_pay_commissions(
    request: BulkPayRequest,
    current_user: UserContext = Depends(require_roles(*MANAGEMENT_ROLES)),
    db: Session = Depends(get_db)
) -> BulkPayResponse:
    """Mark several pending commissions as paid."""
    try:
        result = CommissionService.bulk_pay_commissions(
            db,
            request.commission_ids,
            paid_by=current_user.user_id,
            scope=scope_for(current_user),
        )
        return BulkPayResponse(**result)
    except (ValueError, HTTPException):
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.exception(f"Error bulk paying commissions {request.commission_ids}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to pay commissions"
        )


@router.get("/doctor/{doctor_id}", response_model=None)
async def get_doctor_commissions(
    doctor_id: int,
    start_date: Optional[date] = Query(None, description="Start date (YYYY-MM-DD)"),
    end_date: Optional[date] = Query(None, description="End date (YYYY-MM-DD)"),
    branch_code: Optional[str] = Query(None),
    current_user: UserContext = Depends(require_roles(*MANAGEMENT_ROLES)),
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    """List a doctor's commissions with paid and pending totals."""
    return CommissionService.get_doctor_commissions(
        db, doctor_id,
        start_date=start_date,
        end_date=end_date,
        scope=scope_for(current_user, branch_code),
    )


@router.get("/reports", response_model=None)
async def get_commission_reports(
    start_date: Optional[date] = Query(None, description="Start date (YYYY-MM-DD)"),
    end_date: Optional[date] = Query(None, description="End date (YYYY-MM-DD)"),
    branch_code: Optional[str] = Query(None),
    current_user: UserContext = Depends(require_roles(*MANAGEMENT_ROLES)),
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    """Per-doctor commission totals, highest first."""
    return CommissionService.get_commission_reports(
        db,
        scope=scope_for(current_user, branch_code),
        start_date=start_date,
        end_date=end_date,
    )


@router.get("/pending", response_model=None)
async def get_pending_commissions(
    doctor_id: Optional[int] = Query(None),
    branch_code: Optional[str] = Query(None),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
    offset: int = Query(0, ge=0),
    current_user: UserContext = Depends(require_roles(*MANAGEMENT_ROLES)),
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    """Pending commissions, oldest first, with pagination."""
    return CommissionService.get_pending_commissions(
        db,
        scope=scope_for(current_user, branch_code),
        doctor_id=doctor_id,
        limit=limit,
        offset=offset,
    )


@router.get("/{commission_id}", response_model=CommissionResponse)
async def get_commission(
    commission_id: int,
    current_user: UserContext = Depends(require_roles(*MANAGEMENT_ROLES)),
    db: Session = Depends(get_db)
) -> CommissionResponse:
    commission = CommissionService.get_commission(db, commission_id, scope_for(current_user))
    return CommissionResponse(**commission_to_dict(commission))


@router.post("/{commission_id}/pay", response_model=CommissionResponse)
async def pay_commission(
    commission_id: int,
    current_user: UserContext = Depends(require_roles(*MANAGEMENT_ROLES)),
    db: Session = Depends(get_db)
) -> CommissionResponse:
    """Mark a pending commission as paid and notify the doctor."""
    try:
        CommissionService.get_commission(db, commission_id, scope_for(current_user))
        commission = CommissionService.pay_commission(db, commission_id, paid_by=current_user.user_id)
        return CommissionResponse(**commission_to_dict(commission))
    except (ValueError, HTTPException):
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.exception(f"Error paying commission {commission_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to pay commission"
        )
