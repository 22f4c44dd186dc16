# pyright: reportMissingTypeStubs=false
"""
Accounts API endpoints.

Financial reports across branches. Every report takes an optional
branch_code: administrators get a branch-wise breakdown without it, branch
staff are pinned to their own branch.
"""

import logging
from datetime import date
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from auth.dependencies import UserContext
from auth.permissions import FRONT_DESK_ROLES, MANAGEMENT_ROLES, require_roles, scope_for
from core.constants import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from core.database import get_db
from models.enums import CommissionStatus, PaymentMode
from services import AccountsService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/daily-collection", response_model=None)
async def get_daily_collection(
    day: Optional[date] = Query(None, alias="date", description="Single day (YYYY-MM-DD), defaults to today"),
    start_date: Optional[date] = Query(None, description="Start date (YYYY-MM-DD)"),
    end_date: Optional[date] = Query(None, description="End date (YYYY-MM-DD)"),
    branch_code: Optional[str] = Query(None),
    current_user: UserContext = Depends(require_roles(*FRONT_DESK_ROLES)),
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    """Collections by payment mode, net of expenses."""
    return AccountsService.daily_collection(
        db, scope_for(current_user, branch_code),
        day=day, start_date=start_date, end_date=end_date,
    )


@router.get("/payment-summary", response_model=None)
async def get_payment_summary(
    start_date: Optional[date] = Query(None, description="Start date (YYYY-MM-DD)"),
    end_date: Optional[date] = Query(None, description="End date (YYYY-MM-DD)"),
    payment_mode: Optional[PaymentMode] = Query(None),
    branch_code: Optional[str] = Query(None),
    current_user: UserContext = Depends(require_roles(*FRONT_DESK_ROLES)),
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    """Collected amounts by payment mode and status."""
    return AccountsService.payment_summary(
        db, scope_for(current_user, branch_code),
        start_date=start_date, end_date=end_date,
        payment_mode=payment_mode.value if payment_mode else None,
    )


@router.get("/outstanding", response_model=None)
async def get_outstanding_dues(
    patient_id: Optional[int] = Query(None),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
    offset: int = Query(0, ge=0),
    branch_code: Optional[str] = Query(None),
    current_user: UserContext = Depends(require_roles(*FRONT_DESK_ROLES)),
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    """Unpaid and partially paid visits and test orders."""
    return AccountsService.outstanding_dues(
        db, scope_for(current_user, branch_code),
        patient_id=patient_id, limit=limit, offset=offset,
    )


@router.get("/revenue-analytics", response_model=None)
async def get_revenue_analytics(
    period: str = Query("monthly", description="daily, weekly, monthly or yearly"),
    start_date: Optional[date] = Query(None, description="Start date (YYYY-MM-DD)"),
    end_date: Optional[date] = Query(None, description="End date (YYYY-MM-DD)"),
    branch_code: Optional[str] = Query(None),
    current_user: UserContext = Depends(require_roles(*MANAGEMENT_ROLES)),
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    """Paid revenue and expenses per period."""
    return AccountsService.revenue_analytics(
        db, scope_for(current_user, branch_code),
        period=period, start_date=start_date, end_date=end_date,
    )


@router.get("/commission-summary", response_model=None)
async def get_commission_summary(
    doctor_id: Optional[int] = Query(None),
    start_date: Optional[date] = Query(None, description="Start date (YYYY-MM-DD)"),
    end_date: Optional[date] = Query(None, description="End date (YYYY-MM-DD)"),
    payment_status: Optional[CommissionStatus] = Query(None),
    branch_code: Optional[str] = Query(None),
    current_user: UserContext = Depends(require_roles(*MANAGEMENT_ROLES)),
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    """Commissions per doctor by payment status."""
    return AccountsService.commission_summary(
        db, scope_for(current_user, branch_code),
        doctor_id=doctor_id, start_date=start_date, end_date=end_date,
        payment_status=payment_status.value if payment_status else None,
    )


@router.get("/test-revenue", response_model=None)
async def get_test_revenue(
    category: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None, description="Start date (YYYY-MM-DD)"),
    end_date: Optional[date] = Query(None, description="End date (YYYY-MM-DD)"),
    branch_code: Optional[str] = Query(None),
    current_user: UserContext = Depends(require_roles(*MANAGEMENT_ROLES)),
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    """Revenue per test and per category."""
    return AccountsService.test_revenue(
        db, scope_for(current_user, branch_code),
        category=category, start_date=start_date, end_date=end_date,
    )


@router.get("/financial-statement", response_model=None)
async def get_financial_statement(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=2000),
    branch_code: Optional[str] = Query(None),
    current_user: UserContext = Depends(require_roles(*MANAGEMENT_ROLES)),
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    """Monthly revenue, expenses, paid commissions and net income."""
    return AccountsService.financial_statement(
        db, scope_for(current_user, branch_code), month=month, year=year,
    )
