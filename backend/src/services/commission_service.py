"""
Service for the doctor commission ledger.

Commissions are created once per referred test order and move from PENDING
to PAID. Payment state is committed before the doctor is notified, so a
failed notification never undoes a payment.
"""

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from auth.scope import BranchScope, ALL_BRANCHES
from core.exceptions import NotFoundError, InvalidStateError, ForbiddenError
from models import Commission, Doctor, TestOrder, TestOrderItem
from models.enums import CommissionStatus, CommissionType
from services.commission_calculator import CommissionLine, calculate_order_commission, round_currency
from services.email_service import EmailService
from utils.datetime_utils import business_now, start_of_day

logger = logging.getLogger(__name__)

ALREADY_CALCULATED_MESSAGE = "Commission already calculated for this order"


def commission_to_dict(commission: Commission) -> Dict[str, Any]:
    """Serialize a commission record for API responses."""
    doctor = commission.doctor
    order = commission.order
    return {
        'id': commission.id,
        'doctor_id': commission.doctor_id,
        'doctor_name': doctor.name if doctor else None,
        'patient_id': commission.patient_id,
        'order_id': commission.order_id,
        'order_code': order.order_code if order else None,
        'commission_type': commission.commission_type,
        'amount': float(commission.amount),
        'percentage': float(commission.percentage),
        'calculated_date': commission.calculated_date,
        'payment_status': commission.payment_status,
        'payment_date': commission.payment_date,
        'paid_by': commission.paid_by,
        'branch_code': commission.branch_code,
    }


class CommissionService:
    """Service for commission calculation, payment and reporting."""

    @staticmethod
    def calculate_commission(db: Session, order_id: int) -> Commission:
        """
        Create the commission for a referred test order.

        Calling this twice for the same order is an error, not a no-op.

        Args:
            db: Database session
            order_id: Test order ID

        Returns:
            The new PENDING commission (flushed, not committed)

        Raises:
            NotFoundError: If the order does not exist
            InvalidStateError: If the order has no referring doctor or
                already has a commission
        """
        order = db.query(TestOrder).options(
            joinedload(TestOrder.items).joinedload(TestOrderItem.lab_test)
        ).filter(TestOrder.id == order_id).first()
        if not order:
            raise NotFoundError("Test order not found")

        doctor = None
        if order.referring_doctor_id is not None:
            doctor = db.query(Doctor).filter(Doctor.id == order.referring_doctor_id).first()
        if not doctor:
            raise InvalidStateError("No referring doctor found for this order")

        existing = db.query(Commission.id).filter(Commission.order_id == order.id).first()
        if existing:
            raise InvalidStateError(ALREADY_CALCULATED_MESSAGE)

        lines = [
            CommissionLine(price=item.price, rate=item.lab_test.commission_rate)
            for item in order.items
            if item.lab_test is not None
        ]
        result = calculate_order_commission(lines)

        commission = Commission(
            doctor_id=doctor.id,
            patient_id=order.patient_id,
            order_id=order.id,
            commission_type=CommissionType.TEST_REFERRAL.value,
            amount=result.total_commission,
            percentage=result.average_percentage,
            calculated_date=business_now(),
            payment_status=CommissionStatus.PENDING.value,
            branch_code=order.branch_code,
        )
        db.add(commission)
        try:
            db.flush()
        except IntegrityError:
            # Another request created the commission between the check and the insert
            db.rollback()
            raise InvalidStateError(ALREADY_CALCULATED_MESSAGE)

        logger.info(
            f"💰 Commission {commission.amount} ({commission.percentage}%) calculated "
            f"for order {order.order_code}, doctor {doctor.doctor_code}"
        )
        return commission

    @staticmethod
    def get_commission(db: Session, commission_id: int, scope: BranchScope = ALL_BRANCHES) -> Commission:
        """
        Get a commission by ID.

        Raises:
            NotFoundError: If the commission does not exist
            ForbiddenError: If the commission belongs to a branch outside the scope
        """
        commission = db.query(Commission).filter(Commission.id == commission_id).first()
        if not commission:
            raise NotFoundError("Commission not found")
        if not scope.allows(commission.branch_code):
            raise ForbiddenError("Access denied")
        return commission

    @staticmethod
    def pay_commission(db: Session, commission_id: int, paid_by: Optional[int]) -> Commission:
        """
        Mark a commission as paid and notify the doctor.

        The payment is committed before the notification is attempted.

        Raises:
            NotFoundError: If the commission does not exist
            InvalidStateError: If the commission is already paid
        """
        commission = db.query(Commission).filter(
            Commission.id == commission_id
        ).with_for_update().first()
        if not commission:
            raise NotFoundError("Commission not found")
        if commission.is_paid:
            raise InvalidStateError("Commission already paid")

        CommissionService._mark_paid(commission, paid_by)
        db.commit()

        logger.info(f"✅ Commission {commission.id} paid by user {paid_by}")
        CommissionService._notify_payment(commission)
        return commission

    @staticmethod
    def bulk_pay_commissions(
        db: Session,
        commission_ids: List[int],
        paid_by: Optional[int],
        scope: BranchScope = ALL_BRANCHES
    ) -> Dict[str, Any]:
        """
        Pay every commission in the list that is still pending.

        IDs that do not exist, are already paid or fall outside the scope are
        skipped silently.

        Returns:
            Dict with per-commission results, paid count and total amount

        Raises:
            NotFoundError: If none of the IDs refer to a pending commission
        """
        unique_ids = list(dict.fromkeys(commission_ids))
        pending: List[Commission] = []
        if unique_ids:
            pending = CommissionService._pending_for_update(db, unique_ids, scope).all()

        if not pending:
            raise NotFoundError("No pending commissions found")

        for commission in pending:
            CommissionService._mark_paid(commission, paid_by)
        db.commit()

        results: List[Dict[str, Any]] = []
        total_amount = Decimal('0')
        for commission in pending:
            CommissionService._notify_payment(commission)
            total_amount += commission.amount
            results.append({
                'commission_id': commission.id,
                'doctor_name': commission.doctor.name if commission.doctor else None,
                'amount': float(commission.amount),
                'paid': True,
            })

        logger.info(f"✅ Bulk paid {len(pending)} commissions totalling {total_amount} by user {paid_by}")
        return {
            'results': results,
            'paid_commissions': len(pending),
            'total_amount': float(round_currency(total_amount)),
        }

    @staticmethod
    def get_doctor_commissions(
        db: Session,
        doctor_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        scope: BranchScope = ALL_BRANCHES
    ) -> Dict[str, Any]:
        """
        Get a doctor's commissions (newest first) with a payment summary.

        Raises:
            NotFoundError: If the doctor does not exist
        """
        doctor = db.query(Doctor).filter(Doctor.id == doctor_id).first()
        if not doctor:
            raise NotFoundError("Doctor not found")

        query = db.query(Commission).filter(Commission.doctor_id == doctor_id)
        query = CommissionService._apply_filters(query, scope, start_date, end_date)
        commissions = query.order_by(Commission.calculated_date.desc(), Commission.id.desc()).all()

        total_amount = Decimal('0')
        paid_amount = Decimal('0')
        for commission in commissions:
            total_amount += commission.amount
            if commission.is_paid:
                paid_amount += commission.amount

        return {
            'doctor': {
                'id': doctor.id,
                'doctor_code': doctor.doctor_code,
                'name': doctor.name,
                'specialization': doctor.specialization,
            },
            'commissions': [commission_to_dict(c) for c in commissions],
            'summary': {
                'total_commissions': len(commissions),
                'total_amount': float(total_amount),
                'paid_amount': float(paid_amount),
                'pending_amount': float(total_amount - paid_amount),
            },
        }

    @staticmethod
    def get_commission_reports(
        db: Session,
        scope: BranchScope = ALL_BRANCHES,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None
    ) -> Dict[str, Any]:
        """
        Per-doctor commission totals with a grand total, largest first.

        An empty window yields an empty report with zero totals.
        """
        query = db.query(
            Commission.doctor_id,
            Commission.amount,
            Commission.payment_status,
        )
        query = CommissionService._apply_filters(query, scope, start_date, end_date)

        per_doctor: Dict[int, Dict[str, Any]] = {}
        for doctor_id, amount, payment_status in query.all():
            stats = per_doctor.setdefault(doctor_id, {
                'total_commissions': 0,
                'total_amount': Decimal('0'),
                'paid_amount': Decimal('0'),
                'pending_amount': Decimal('0'),
            })
            stats['total_commissions'] += 1
            stats['total_amount'] += amount
            if payment_status == CommissionStatus.PAID.value:
                stats['paid_amount'] += amount
            else:
                stats['pending_amount'] += amount

        doctors: Dict[int, Doctor] = {}
        if per_doctor:
            doctors = {
                d.id: d for d in db.query(Doctor).filter(Doctor.id.in_(list(per_doctor.keys()))).all()
            }

        rows: List[Dict[str, Any]] = []
        for doctor_id, stats in per_doctor.items():
            doctor = doctors.get(doctor_id)
            rows.append({
                'doctor_id': doctor_id,
                'doctor_code': doctor.doctor_code if doctor else None,
                'doctor_name': doctor.name if doctor else None,
                'specialization': doctor.specialization if doctor else None,
                'total_commissions': stats['total_commissions'],
                'total_amount': stats['total_amount'],
                'paid_amount': stats['paid_amount'],
                'pending_amount': stats['pending_amount'],
            })
        rows.sort(key=lambda row: row['total_amount'], reverse=True)

        summary = {
            'total_doctors': len(rows),
            'total_commissions': sum(row['total_commissions'] for row in rows),
            'total_amount': sum((row['total_amount'] for row in rows), Decimal('0')),
            'paid_amount': sum((row['paid_amount'] for row in rows), Decimal('0')),
            'pending_amount': sum((row['pending_amount'] for row in rows), Decimal('0')),
        }

        for row in rows:
            for key in ('total_amount', 'paid_amount', 'pending_amount'):
                row[key] = float(row[key])
        for key in ('total_amount', 'paid_amount', 'pending_amount'):
            summary[key] = float(summary[key])

        return {
            'branch_code': scope.branch_code,
            'doctor_reports': rows,
            'summary': summary,
        }

    @staticmethod
    def get_pending_commissions(
        db: Session,
        scope: BranchScope = ALL_BRANCHES,
        doctor_id: Optional[int] = None,
        limit: int = 50,
        offset: int = 0
    ) -> Dict[str, Any]:
        """
        Page through pending commissions (oldest first) with pending totals.
        """
        query = db.query(Commission).filter(Commission.payment_status == CommissionStatus.PENDING.value)
        if not scope.is_all:
            query = query.filter(Commission.branch_code == scope.branch_code)
        if doctor_id is not None:
            query = query.filter(Commission.doctor_id == doctor_id)

        total = query.count()
        pending_amount = sum((c.amount for c in query.with_entities(Commission.amount)), Decimal('0'))
        page = query.options(
            joinedload(Commission.doctor), joinedload(Commission.order)
        ).order_by(Commission.calculated_date.asc(), Commission.id.asc()).offset(offset).limit(limit).all()

        return {
            'commissions': [commission_to_dict(c) for c in page],
            'pagination': {
                'total': total,
                'limit': limit,
                'offset': offset,
                'has_more': offset + len(page) < total,
            },
            'summary': {
                'total_pending_commissions': total,
                'total_pending_amount': float(pending_amount),
            },
        }

    @staticmethod
    def _apply_filters(query, scope: BranchScope, start_date: Optional[date], end_date: Optional[date]):  # type: ignore
        """Apply branch scope and calculated_date window filters."""
        if not scope.is_all:
            query = query.filter(Commission.branch_code == scope.branch_code)
        if start_date:
            query = query.filter(Commission.calculated_date >= start_of_day(start_date))
        if end_date:
            # End date is inclusive
            query = query.filter(Commission.calculated_date < start_of_day(end_date + timedelta(days=1)))
        return query

    @staticmethod
    def _pending_for_update(db: Session, commission_ids: List[int], scope: BranchScope):  # type: ignore
        """Pending commissions among the IDs, row-locked for payment."""
        query = db.query(Commission).options(joinedload(Commission.doctor)).filter(
            Commission.id.in_(commission_ids),
            Commission.payment_status == CommissionStatus.PENDING.value
        )
        if not scope.is_all:
            query = query.filter(Commission.branch_code == scope.branch_code)
        # PostgreSQL cannot lock the nullable side of the doctor outer join
        return query.order_by(Commission.id).with_for_update(of=Commission)

    @staticmethod
    def _mark_paid(commission: Commission, paid_by: Optional[int]) -> None:
        commission.payment_status = CommissionStatus.PAID.value
        commission.payment_date = business_now()
        commission.paid_by = paid_by

    @staticmethod
    def _notify_payment(commission: Commission) -> None:
        """Best-effort doctor notification; failures are logged only."""
        doctor = commission.doctor
        if doctor is None:
            return
        try:
            sent = EmailService.send_commission_notification(
                doctor.email, doctor.name, commission.amount, commission.calculated_date
            )
            if not sent:
                logger.info(f"Commission {commission.id} paid without notification to doctor {doctor.id}")
        except Exception as e:
            logger.exception(f"Failed to notify doctor {doctor.id} about commission {commission.id}: {e}")
