"""
Service for branch expenses.
"""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from auth.scope import BranchScope
from core.constants import DEFAULT_PAGE_LIMIT, RECENT_EXPENSES_COUNT
from models import Expense
from services.commission_calculator import round_currency
from services.sequence_service import SequenceService
from utils.datetime_utils import business_now, business_today, day_range, ensure_business_tz

logger = logging.getLogger(__name__)


def expense_to_dict(expense: Expense) -> Dict[str, Any]:
    return {
        'id': expense.id,
        'expense_code': expense.expense_code,
        'title': expense.title,
        'description': expense.description,
        'amount': float(expense.amount),
        'category': expense.category,
        'date': ensure_business_tz(expense.date),
        'branch_code': expense.branch_code,
        'created_by': expense.created_by,
        'attachments': expense.attachments or [],
    }


class ExpenseService:
    """Service for recording and summarizing expenses."""

    @staticmethod
    def create_expense(
        db: Session,
        branch_code: str,
        title: str,
        amount: Decimal,
        category: str,
        expense_date: Optional[datetime] = None,
        description: Optional[str] = None,
        attachments: Optional[List[Dict[str, Any]]] = None,
        created_by: Optional[int] = None
    ) -> Expense:
        """
        Record an expense against a branch.

        Raises:
            ValueError: If the amount is not positive
        """
        amount = round_currency(amount)
        if amount <= 0:
            raise ValueError("Expense amount must be greater than zero")

        expense = Expense(
            expense_code=SequenceService.generate_expense_code(db, branch_code),
            title=title,
            description=description,
            amount=amount,
            category=category.strip(),
            date=ensure_business_tz(expense_date) if expense_date else business_now(),
            branch_code=branch_code,
            created_by=created_by,
            attachments=attachments or [],
        )
        db.add(expense)
        db.flush()
        logger.info(f"🧾 Expense {expense.expense_code} recorded: {amount} ({expense.category})")
        return expense

    @staticmethod
    def list_expenses(
        db: Session,
        scope: BranchScope,
        category: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: int = DEFAULT_PAGE_LIMIT,
        offset: int = 0
    ) -> Dict[str, Any]:
        """List expenses, most recent first, with pagination."""
        query = db.query(Expense)
        if not scope.is_all:
            query = query.filter(Expense.branch_code == scope.branch_code)
        if category:
            query = query.filter(Expense.category == category)
        if start_date or end_date:
            window_start, window_end = day_range(start_date or end_date, end_date or start_date)  # type: ignore
            query = query.filter(Expense.date >= window_start, Expense.date < window_end)

        total = query.count()
        expenses = query.order_by(Expense.date.desc(), Expense.id.desc()).offset(offset).limit(limit).all()
        return {
            'expenses': [expense_to_dict(e) for e in expenses],
            'pagination': {
                'total': total,
                'limit': limit,
                'offset': offset,
                'has_more': offset + len(expenses) < total,
            },
        }

    @staticmethod
    def expense_summary(
        db: Session,
        scope: BranchScope,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None
    ) -> Dict[str, Any]:
        """
        Totals by category plus the most recent expenses.

        Defaults to the current month to date.
        """
        today = business_today()
        start_date = start_date or date(today.year, today.month, 1)
        end_date = end_date or today
        window_start, window_end = day_range(start_date, end_date)

        query = db.query(Expense).filter(Expense.date >= window_start, Expense.date < window_end)
        if not scope.is_all:
            query = query.filter(Expense.branch_code == scope.branch_code)
        expenses = query.order_by(Expense.date.desc(), Expense.id.desc()).all()

        by_category: Dict[str, Dict[str, Any]] = {}
        total_amount = Decimal('0')
        for expense in expenses:
            total_amount += expense.amount
            entry = by_category.setdefault(expense.category, {
                'category': expense.category,
                'total_amount': Decimal('0'),
                'count': 0,
            })
            entry['total_amount'] += expense.amount
            entry['count'] += 1

        categories = sorted(by_category.values(), key=lambda c: c['total_amount'], reverse=True)
        for entry in categories:
            entry['total_amount'] = float(entry['total_amount'])

        return {
            'branch_code': scope.branch_code,
            'date_range': {'start_date': start_date.isoformat(), 'end_date': end_date.isoformat()},
            'total_amount': float(total_amount),
            'total_count': len(expenses),
            'by_category': categories,
            'recent_expenses': [expense_to_dict(e) for e in expenses[:RECENT_EXPENSES_COUNT]],
        }
