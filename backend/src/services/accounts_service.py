"""
Service for branch-scoped accounts reports.

Every report follows the same steps: load the scoped records for the date
window, fold them with branch always in the grouping key, then either return
the caller's single branch or, for an unscoped administrator, every branch
plus a grand total. Net figures are recomputed on every call.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from auth.scope import BranchScope
from core.constants import (
    DEFAULT_PAGE_LIMIT,
    PAYMENT_SUMMARY_DEFAULT_DAYS,
    REVENUE_PERIOD_DEFAULT_WINDOWS,
)
from models import Branch, Commission, Doctor, Expense, LabTest, Patient, PatientVisit, TestOrder, TestOrderItem
from models.enums import CommissionStatus, PaymentStatus
from services.accounts_calculators import (
    CommissionSummaryCalculator,
    DailyCollectionCalculator,
    FinancialStatementCalculator,
    OutstandingDuesCalculator,
    PaymentSummaryCalculator,
    RevenueAnalyticsCalculator,
    TestRevenueCalculator,
    fold_report,
)
from services.accounts_types import (
    CommissionRecord,
    ExpenseRecord,
    PaymentRecord,
    RecordBundle,
    TestLineRecord,
)
from utils.datetime_utils import business_today, day_range, ensure_business_tz, month_range, shift_months
from utils.dict_utils import decimals_to_float

logger = logging.getLogger(__name__)

COLLECTED_STATUSES = (PaymentStatus.PAID.value, PaymentStatus.PARTIAL.value)
OUTSTANDING_STATUSES = (PaymentStatus.PENDING.value, PaymentStatus.PARTIAL.value)
REVENUE_PERIODS = ("daily", "weekly", "monthly", "yearly")

Window = Tuple[datetime, datetime]


def _date_range_meta(start_date: date, end_date: date) -> Dict[str, Any]:
    return {'date_range': {'start_date': start_date.isoformat(), 'end_date': end_date.isoformat()}}


class AccountsService:
    """Service for accounts and financial reports."""

    @staticmethod
    def daily_collection(
        db: Session,
        scope: BranchScope,
        day: Optional[date] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None
    ) -> Dict[str, Any]:
        """
        Paid and partially paid collections by payment mode, net of expenses.

        Defaults to today. An explicit start/end range takes precedence over day.
        """
        if start_date or end_date:
            start_date = start_date or end_date
            end_date = end_date or start_date
        else:
            start_date = end_date = day or business_today()
        window = day_range(start_date, end_date)  # type: ignore

        bundle: RecordBundle = {
            'payments': AccountsService._payment_records(db, scope, window, statuses=COLLECTED_STATUSES),  # type: ignore
            'expenses': AccountsService._expense_records(db, scope, window),  # type: ignore
        }
        return AccountsService._present(
            db, scope, bundle, DailyCollectionCalculator.calculate,
            meta=_date_range_meta(start_date, end_date),  # type: ignore
            grand_total_key='summary',
        )

    @staticmethod
    def payment_summary(
        db: Session,
        scope: BranchScope,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        payment_mode: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Collected amounts by payment mode and status (pending records excluded).

        Defaults to the last 30 days.
        """
        end_date = end_date or business_today()
        start_date = start_date or (end_date - timedelta(days=PAYMENT_SUMMARY_DEFAULT_DAYS))
        window = day_range(start_date, end_date)

        bundle: RecordBundle = {
            'payments': AccountsService._payment_records(  # type: ignore
                db, scope, window,
                exclude_status=PaymentStatus.PENDING.value,
                payment_mode=payment_mode,
            ),
        }
        meta = _date_range_meta(start_date, end_date)
        if payment_mode:
            meta['payment_mode'] = payment_mode
        return AccountsService._present(
            db, scope, bundle, PaymentSummaryCalculator.calculate,
            meta=meta, grand_total_key='summary',
        )

    @staticmethod
    def outstanding_dues(
        db: Session,
        scope: BranchScope,
        patient_id: Optional[int] = None,
        limit: int = DEFAULT_PAGE_LIMIT,
        offset: int = 0
    ) -> Dict[str, Any]:
        """
        Unpaid and partially paid visits and orders, newest first.

        Summary totals cover every outstanding record; the record lists are
        paginated with limit/offset (per branch in the branch-wise shape).
        """
        bundle: RecordBundle = {
            'payments': AccountsService._payment_records(  # type: ignore
                db, scope, None, statuses=OUTSTANDING_STATUSES, patient_id=patient_id
            ),
        }
        return AccountsService._present(
            db, scope, bundle,
            lambda records: OutstandingDuesCalculator.calculate(records, limit, offset),
            meta={'pagination': {'limit': limit, 'offset': offset}},
            grand_total_key='summary',
        )

    @staticmethod
    def revenue_analytics(
        db: Session,
        scope: BranchScope,
        period: str = "monthly",
        start_date: Optional[date] = None,
        end_date: Optional[date] = None
    ) -> Dict[str, Any]:
        """
        Paid revenue and expenses bucketed by day, ISO week, month or year.

        Default windows: 7 days (daily), 28 days (weekly), 12 months
        (monthly), 5 years (yearly), all ending today.

        Raises:
            ValueError: If period is not one of daily/weekly/monthly/yearly
        """
        if period not in REVENUE_PERIODS:
            raise ValueError(f"Invalid period '{period}'. Use one of: {', '.join(REVENUE_PERIODS)}")

        end_date = end_date or business_today()
        if start_date is None:
            start_date = AccountsService._default_revenue_start(period, end_date)
        window = day_range(start_date, end_date)

        bundle: RecordBundle = {
            'payments': AccountsService._payment_records(  # type: ignore
                db, scope, window, statuses=(PaymentStatus.PAID.value,)
            ),
            'expenses': AccountsService._expense_records(db, scope, window),  # type: ignore
        }
        meta = {'period': period, **_date_range_meta(start_date, end_date)}
        return AccountsService._present(
            db, scope, bundle,
            lambda records: RevenueAnalyticsCalculator.calculate(records, period),  # type: ignore
            meta=meta, grand_total_key='total_summary',
        )

    @staticmethod
    def commission_summary(
        db: Session,
        scope: BranchScope,
        doctor_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        payment_status: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Commissions per doctor with a breakdown by payment status, largest first.

        Without a date range every commission is included. The end date is
        inclusive (end of day).
        """
        window = AccountsService._optional_window(start_date, end_date)
        records = AccountsService._commission_records(
            db, scope, window, doctor_id=doctor_id, payment_status=payment_status
        )
        doctor_ids = {r['doctor_id'] for r in records}
        doctor_names: Dict[int, str] = {}
        if doctor_ids:
            doctor_names = {
                d.id: d.name for d in db.query(Doctor.id, Doctor.name).filter(Doctor.id.in_(doctor_ids)).all()
            }

        meta: Dict[str, Any] = {}
        if window:
            meta.update(_date_range_meta(start_date or end_date, end_date or start_date))  # type: ignore
        return AccountsService._present(
            db, scope, {'commissions': records},  # type: ignore
            lambda bundle: CommissionSummaryCalculator.calculate(bundle, doctor_names),
            meta=meta, grand_total_key='summary',
        )

    @staticmethod
    def test_revenue(
        db: Session,
        scope: BranchScope,
        category: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None
    ) -> Dict[str, Any]:
        """
        Revenue from paid orders per test and per category, with the commission
        each test would earn at its configured rate.
        """
        window = AccountsService._optional_window(start_date, end_date)
        records = AccountsService._test_line_records(db, scope, window, category=category)

        meta: Dict[str, Any] = {}
        if category:
            meta['category'] = category
        if window:
            meta.update(_date_range_meta(start_date or end_date, end_date or start_date))  # type: ignore
        return AccountsService._present(
            db, scope, {'test_lines': records},  # type: ignore
            TestRevenueCalculator.calculate,
            meta=meta, grand_total_key='summary',
        )

    @staticmethod
    def financial_statement(
        db: Session,
        scope: BranchScope,
        month: Optional[int] = None,
        year: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Monthly statement: revenue, expenses, paid commissions, net income and
        profit margin. Defaults to the current month to date.

        Raises:
            ValueError: If month is outside 1-12
        """
        today = business_today()
        year = year or today.year
        month = month or today.month
        start_date, end_date = month_range(year, month)
        if start_date <= today <= end_date:
            end_date = today
        window = day_range(start_date, end_date)

        bundle: RecordBundle = {
            'payments': AccountsService._payment_records(  # type: ignore
                db, scope, window, statuses=(PaymentStatus.PAID.value,)
            ),
            'expenses': AccountsService._expense_records(db, scope, window),  # type: ignore
            'commissions': AccountsService._commission_records(  # type: ignore
                db, scope, window, payment_status=CommissionStatus.PAID.value
            ),
        }
        meta = {
            'period': {
                'month': month,
                'year': year,
                'start_date': start_date.isoformat(),
                'end_date': end_date.isoformat(),
            }
        }
        return AccountsService._present(
            db, scope, bundle, FinancialStatementCalculator.calculate,
            meta=meta, grand_total_key=None,
        )

    # Presentation

    @staticmethod
    def _present(
        db: Session,
        scope: BranchScope,
        bundle: RecordBundle,
        fold: Callable[[RecordBundle], Dict[str, Any]],
        meta: Dict[str, Any],
        grand_total_key: Optional[str],
    ) -> Dict[str, Any]:
        """
        Shape a folded report for the caller's scope.

        Single branch: the fold body at top level. All branches: one entry per
        branch and a grand total folded over every record.
        """
        body, per_branch = fold_report(bundle, fold, scope.branch_code)
        if body is not None:
            return decimals_to_float({
                'type': 'single-branch',
                'branch_code': scope.branch_code,
                **meta,
                **body,
            })

        names = AccountsService._branch_names(db, per_branch.keys())
        branches = [
            {'branch_code': code, 'branch_name': names.get(code), **per_branch[code]}
            for code in sorted(per_branch)
        ]
        overall = fold(bundle)
        return decimals_to_float({
            'type': 'branch-wise',
            **meta,
            'branches': branches,
            'grand_total': overall[grand_total_key] if grand_total_key else overall,
        })

    @staticmethod
    def _branch_names(db: Session, codes: Iterable[str]) -> Dict[str, str]:
        codes = list(codes)
        if not codes:
            return {}
        rows = db.query(Branch.branch_code, Branch.name).filter(Branch.branch_code.in_(codes)).all()
        return {code: name for code, name in rows}

    # Windows

    @staticmethod
    def _default_revenue_start(period: str, end_date: date) -> date:
        window = REVENUE_PERIOD_DEFAULT_WINDOWS[period]
        if 'days' in window:
            return end_date - timedelta(days=window['days'])
        if 'months' in window:
            return shift_months(date(end_date.year, end_date.month, 1), -window['months'])
        return date(end_date.year - window['years'], 1, 1)

    @staticmethod
    def _optional_window(start_date: Optional[date], end_date: Optional[date]) -> Optional[Window]:
        if not start_date and not end_date:
            return None
        return day_range(start_date or end_date, end_date or start_date)  # type: ignore

    # Record loading

    @staticmethod
    def _payment_records(
        db: Session,
        scope: BranchScope,
        window: Optional[Window],
        statuses: Optional[Sequence[str]] = None,
        exclude_status: Optional[str] = None,
        patient_id: Optional[int] = None,
        payment_mode: Optional[str] = None
    ) -> List[PaymentRecord]:
        """Load visit fees and order totals as payment records."""
        records: List[PaymentRecord] = []

        sources = (
            ('consultation', PatientVisit, PatientVisit.visit_code, PatientVisit.consultation_fee),
            ('test', TestOrder, TestOrder.order_code, TestOrder.total_amount),
        )
        for source, model, code_column, amount_column in sources:
            query = db.query(
                model.id,
                code_column,
                model.patient_id,
                Patient.name,
                amount_column,
                model.payment_mode,
                model.payment_status,
                model.branch_code,
                model.created_at,
            ).outerjoin(Patient, Patient.id == model.patient_id)

            if not scope.is_all:
                query = query.filter(model.branch_code == scope.branch_code)
            if window:
                query = query.filter(model.created_at >= window[0], model.created_at < window[1])
            if statuses:
                query = query.filter(model.payment_status.in_(list(statuses)))
            if exclude_status:
                query = query.filter(model.payment_status != exclude_status)
            if patient_id is not None:
                query = query.filter(model.patient_id == patient_id)
            if payment_mode:
                query = query.filter(model.payment_mode == payment_mode)

            for row_id, code, row_patient_id, patient_name, amount, mode, status, branch_code, created_at in query.all():
                records.append(PaymentRecord(
                    branch_code=branch_code,
                    source=source,  # type: ignore
                    record_id=row_id,
                    code=code,
                    patient_id=row_patient_id,
                    patient_name=patient_name,
                    amount=amount,
                    payment_mode=mode,
                    payment_status=status,
                    occurred_at=ensure_business_tz(created_at),  # type: ignore
                ))

        return records

    @staticmethod
    def _expense_records(db: Session, scope: BranchScope, window: Optional[Window]) -> List[ExpenseRecord]:
        """Load expenses incurred within the window."""
        query = db.query(Expense)
        if not scope.is_all:
            query = query.filter(Expense.branch_code == scope.branch_code)
        if window:
            query = query.filter(Expense.date >= window[0], Expense.date < window[1])

        return [
            ExpenseRecord(
                branch_code=expense.branch_code,
                expense_id=expense.id,
                title=expense.title,
                category=expense.category,
                amount=expense.amount,
                occurred_at=ensure_business_tz(expense.date),  # type: ignore
            )
            for expense in query.all()
        ]

    @staticmethod
    def _commission_records(
        db: Session,
        scope: BranchScope,
        window: Optional[Window],
        doctor_id: Optional[int] = None,
        payment_status: Optional[str] = None
    ) -> List[CommissionRecord]:
        """Load commissions by calculated date."""
        query = db.query(Commission)
        if not scope.is_all:
            query = query.filter(Commission.branch_code == scope.branch_code)
        if window:
            query = query.filter(Commission.calculated_date >= window[0], Commission.calculated_date < window[1])
        if doctor_id is not None:
            query = query.filter(Commission.doctor_id == doctor_id)
        if payment_status:
            query = query.filter(Commission.payment_status == payment_status)

        return [
            CommissionRecord(
                branch_code=commission.branch_code,
                commission_id=commission.id,
                doctor_id=commission.doctor_id,
                amount=commission.amount,
                payment_status=commission.payment_status,
                occurred_at=ensure_business_tz(commission.calculated_date),  # type: ignore
            )
            for commission in query.all()
        ]

    @staticmethod
    def _test_line_records(
        db: Session,
        scope: BranchScope,
        window: Optional[Window],
        category: Optional[str] = None
    ) -> List[TestLineRecord]:
        """Load the line items of paid orders joined with the test catalogue."""
        query = db.query(
            TestOrderItem.order_id,
            TestOrderItem.price,
            LabTest.id,
            LabTest.test_code,
            LabTest.test_name,
            LabTest.category,
            LabTest.commission_rate,
            TestOrder.branch_code,
            TestOrder.created_at,
        ).join(
            TestOrder, TestOrder.id == TestOrderItem.order_id
        ).join(
            LabTest, LabTest.id == TestOrderItem.lab_test_id
        ).filter(
            TestOrder.payment_status == PaymentStatus.PAID.value
        )

        if not scope.is_all:
            query = query.filter(TestOrder.branch_code == scope.branch_code)
        if window:
            query = query.filter(TestOrder.created_at >= window[0], TestOrder.created_at < window[1])
        if category:
            query = query.filter(LabTest.category == category)

        return [
            TestLineRecord(
                branch_code=branch_code,
                order_id=order_id,
                lab_test_id=lab_test_id,
                test_code=test_code,
                test_name=test_name,
                category=test_category,
                price=price,
                commission_rate=commission_rate,
                occurred_at=ensure_business_tz(created_at),  # type: ignore
            )
            for (order_id, price, lab_test_id, test_code, test_name, test_category,
                 commission_rate, branch_code, created_at) in query.all()
        ]
