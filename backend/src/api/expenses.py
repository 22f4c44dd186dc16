# pyright: reportMissingTypeStubs=false
"""
Expense API endpoints.
"""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from api.responses import ExpenseResponse
from auth.dependencies import UserContext
from auth.permissions import MANAGEMENT_ROLES, require_roles, scope_for
from core.constants import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT, MAX_STRING_LENGTH
from core.database import get_db
from services import ExpenseService
from services.expense_service import expense_to_dict

logger = logging.getLogger(__name__)

router = APIRouter()


class ExpenseCreateRequest(BaseModel):
    """Request model for recording an expense."""
    title: str = Field(..., min_length=1, max_length=MAX_STRING_LENGTH)
    amount: Decimal = Field(..., gt=0)
    category: str = Field(..., min_length=1, max_length=MAX_STRING_LENGTH)
    date: Optional[datetime] = Field(None, description="Defaults to now")
    description: Optional[str] = None
    attachments: List[Dict[str, Any]] = Field(default_factory=list)
    branch_code: Optional[str] = Field(None, description="Required for administrators")


@router.post("", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
async def create_expense(
    request: ExpenseCreateRequest,
    current_user: UserContext = Depends(require_roles(*MANAGEMENT_ROLES)),
    db: Session = Depends(get_db)
) -> ExpenseResponse:
    """Record an expense at the caller's branch."""
    try:
        scope = scope_for(current_user, request.branch_code)
        if scope.is_all:
            raise ValueError("branch_code is required")

        expense = ExpenseService.create_expense(
            db,
            branch_code=scope.branch_code,  # type: ignore
            title=request.title,
            amount=request.amount,
            category=request.category,
            expense_date=request.date,
            description=request.description,
            attachments=request.attachments,
            created_by=current_user.user_id,
        )
        db.commit()
        return ExpenseResponse(**expense_to_dict(expense))
    except (ValueError, HTTPException):
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.exception(f"Error recording expense: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to record expense"
        )


@router.get("", response_model=None)
async def list_expenses(
    category: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None, description="Start date (YYYY-MM-DD)"),
    end_date: Optional[date] = Query(None, description="End date (YYYY-MM-DD)"),
    branch_code: Optional[str] = Query(None),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
    offset: int = Query(0, ge=0),
    current_user: UserContext = Depends(require_roles(*MANAGEMENT_ROLES)),
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    return ExpenseService.list_expenses(
        db, scope_for(current_user, branch_code),
        category=category, start_date=start_date, end_date=end_date,
        limit=limit, offset=offset,
    )


@router.get("/summary", response_model=None)
async def get_expense_summary(
    start_date: Optional[date] = Query(None, description="Start date (YYYY-MM-DD)"),
    end_date: Optional[date] = Query(None, description="End date (YYYY-MM-DD)"),
    branch_code: Optional[str] = Query(None),
    current_user: UserContext = Depends(require_roles(*MANAGEMENT_ROLES)),
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    """Expense totals by category for the current month, or a given range."""
    return ExpenseService.expense_summary(
        db, scope_for(current_user, branch_code),
        start_date=start_date, end_date=end_date,
    )
