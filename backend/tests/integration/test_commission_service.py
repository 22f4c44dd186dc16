"""
Integration tests for the commission ledger.

Covers calculation from referred test orders, single and bulk payment,
doctor notification and the commission reports.
"""

import pytest
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy.dialects import postgresql

from auth.scope import BranchScope
from core.exceptions import ForbiddenError, InvalidStateError, NotFoundError
from models import Commission
from models.enums import CommissionStatus, PaymentMode, PaymentStatus
from services.commission_service import ALREADY_CALCULATED_MESSAGE, CommissionService
from services.email_service import EmailService
from services.opd_service import OpdService
from tests.conftest import create_doctor, create_lab_test, create_patient
from utils.datetime_utils import BUSINESS_TZ


@pytest.fixture
def catalogue(db_session, branches):
    """Doctor, patient and two tests at BR001."""
    doctor = create_doctor(db_session, available_branches=["BR001", "BR002"])
    blood = create_lab_test(db_session, "TST001", "Complete Blood Count", Decimal("1000.00"), Decimal("10.00"))
    xray = create_lab_test(db_session, "TST002", "Chest X-Ray", Decimal("500.00"), Decimal("20.00"), category="RADIOLOGY")
    patient = create_patient(db_session, "BR001")
    return doctor, blood, xray, patient


@pytest.fixture
def sent_notifications(monkeypatch):
    """Record commission notifications instead of sending email."""
    sent = []

    def fake_notification(email, name, amount, period):
        sent.append({'email': email, 'name': name, 'amount': amount})
        return True

    monkeypatch.setattr(EmailService, "send_commission_notification", staticmethod(fake_notification))
    return sent


def place_order(db_session, catalogue, referring: bool = True, branch_code: str = "BR001"):
    doctor, blood, xray, patient = catalogue
    order = OpdService.create_test_order(
        db_session,
        branch_code=branch_code,
        patient_id=patient.id,
        tests=[{'test_id': blood.id}, {'test_id': xray.id}],
        payment_mode=PaymentMode.CASH.value,
        payment_status=PaymentStatus.PAID.value,
        referring_doctor_id=doctor.id if referring else None,
    )
    db_session.commit()
    return order


def commission_for(db_session, order) -> Commission:
    return db_session.query(Commission).filter(Commission.order_id == order.id).one()


class TestCalculateCommission:
    """Test commission creation for referred orders."""

    def test_referred_order_gets_commission(self, db_session, catalogue):
        order = place_order(db_session, catalogue)

        commission = commission_for(db_session, order)
        # 1000 * 10% + 500 * 20%
        assert commission.amount == Decimal("200.00")
        assert commission.percentage == Decimal("15.00")
        assert commission.payment_status == CommissionStatus.PENDING.value
        assert commission.branch_code == "BR001"
        assert commission.doctor_id == catalogue[0].id
        assert commission.patient_id == catalogue[3].id
        assert order.commission_amount == Decimal("200.00")

    def test_calculate_for_order_referred_later(self, db_session, catalogue):
        order = place_order(db_session, catalogue, referring=False)
        assert db_session.query(Commission).count() == 0

        order.referring_doctor_id = catalogue[0].id
        db_session.commit()

        commission = CommissionService.calculate_commission(db_session, order.id)
        db_session.commit()

        assert commission.amount == Decimal("200.00")
        assert commission.order_id == order.id

    def test_order_not_found(self, db_session, catalogue):
        with pytest.raises(NotFoundError, match="Test order not found"):
            CommissionService.calculate_commission(db_session, 9999)

    def test_order_without_referring_doctor(self, db_session, catalogue):
        order = place_order(db_session, catalogue, referring=False)

        with pytest.raises(InvalidStateError, match="No referring doctor"):
            CommissionService.calculate_commission(db_session, order.id)

    def test_second_calculation_is_rejected(self, db_session, catalogue):
        order = place_order(db_session, catalogue)

        with pytest.raises(InvalidStateError) as exc_info:
            CommissionService.calculate_commission(db_session, order.id)

        assert str(exc_info.value) == ALREADY_CALCULATED_MESSAGE
        assert db_session.query(Commission).filter(Commission.order_id == order.id).count() == 1

    def test_out_of_range_rates_are_skipped(self, db_session, catalogue):
        doctor, blood, xray, patient = catalogue
        bad_rate = create_lab_test(db_session, "TST003", "Legacy Panel", Decimal("800.00"), Decimal("150.00"))

        order = OpdService.create_test_order(
            db_session,
            branch_code="BR001",
            patient_id=patient.id,
            tests=[{'test_id': blood.id}, {'test_id': bad_rate.id}],
            payment_mode=PaymentMode.CASH.value,
            payment_status=PaymentStatus.PAID.value,
            referring_doctor_id=doctor.id,
        )
        db_session.commit()

        commission = commission_for(db_session, order)
        assert commission.amount == Decimal("100.00")
        assert commission.percentage == Decimal("10.00")


class TestGetCommission:

    def test_scope_is_enforced(self, db_session, catalogue):
        commission = commission_for(db_session, place_order(db_session, catalogue))

        assert CommissionService.get_commission(db_session, commission.id, BranchScope("BR001")).id == commission.id
        with pytest.raises(ForbiddenError):
            CommissionService.get_commission(db_session, commission.id, BranchScope("BR002"))

    def test_not_found(self, db_session):
        with pytest.raises(NotFoundError, match="Commission not found"):
            CommissionService.get_commission(db_session, 12345)


class TestPayCommission:
    """Test single commission payment."""

    def test_pay_marks_paid_and_notifies(self, db_session, catalogue, sent_notifications):
        commission = commission_for(db_session, place_order(db_session, catalogue))

        paid = CommissionService.pay_commission(db_session, commission.id, paid_by=42)

        assert paid.payment_status == CommissionStatus.PAID.value
        assert paid.payment_date is not None
        assert paid.paid_by == 42
        assert sent_notifications == [{'email': 'doctor@example.com', 'name': 'Dr. Test', 'amount': Decimal("200.00")}]

    def test_pay_twice_fails(self, db_session, catalogue, sent_notifications):
        commission = commission_for(db_session, place_order(db_session, catalogue))
        CommissionService.pay_commission(db_session, commission.id, paid_by=1)

        with pytest.raises(InvalidStateError, match="Commission already paid"):
            CommissionService.pay_commission(db_session, commission.id, paid_by=1)

        assert len(sent_notifications) == 1

    def test_pay_missing_commission(self, db_session):
        with pytest.raises(NotFoundError):
            CommissionService.pay_commission(db_session, 777, paid_by=1)

    def test_notification_failure_keeps_payment(self, db_session, catalogue, monkeypatch):
        commission = commission_for(db_session, place_order(db_session, catalogue))

        def broken_notification(*args, **kwargs):
            raise RuntimeError("mail server down")

        monkeypatch.setattr(EmailService, "send_commission_notification", staticmethod(broken_notification))

        CommissionService.pay_commission(db_session, commission.id, paid_by=1)

        db_session.expire_all()
        stored = db_session.query(Commission).filter(Commission.id == commission.id).one()
        assert stored.payment_status == CommissionStatus.PAID.value


class TestBulkPayCommissions:
    """Test paying several commissions at once."""

    def test_skips_paid_and_unknown_ids(self, db_session, catalogue, sent_notifications):
        first = commission_for(db_session, place_order(db_session, catalogue))
        second = commission_for(db_session, place_order(db_session, catalogue))
        CommissionService.pay_commission(db_session, first.id, paid_by=1)
        sent_notifications.clear()

        result = CommissionService.bulk_pay_commissions(db_session, [first.id, second.id, 9999], paid_by=2)

        assert result['paid_commissions'] == 1
        assert result['total_amount'] == 200.0
        assert [r['commission_id'] for r in result['results']] == [second.id]
        assert result['results'][0]['paid'] is True
        assert len(sent_notifications) == 1

    def test_nothing_pending(self, db_session, catalogue, sent_notifications):
        commission = commission_for(db_session, place_order(db_session, catalogue))
        CommissionService.pay_commission(db_session, commission.id, paid_by=1)

        with pytest.raises(NotFoundError, match="No pending commissions found"):
            CommissionService.bulk_pay_commissions(db_session, [commission.id], paid_by=1)

    def test_duplicate_ids_paid_once(self, db_session, catalogue, sent_notifications):
        commission = commission_for(db_session, place_order(db_session, catalogue))

        result = CommissionService.bulk_pay_commissions(db_session, [commission.id, commission.id], paid_by=1)

        assert result['paid_commissions'] == 1
        assert len(sent_notifications) == 1

    def test_scope_excludes_other_branches(self, db_session, catalogue, sent_notifications):
        br002_patient = create_patient(db_session, "BR002", name="Other Patient")
        doctor, blood, xray, _ = catalogue
        other_order = OpdService.create_test_order(
            db_session,
            branch_code="BR002",
            patient_id=br002_patient.id,
            tests=[{'test_id': blood.id}],
            payment_mode=PaymentMode.CASH.value,
            payment_status=PaymentStatus.PAID.value,
            referring_doctor_id=doctor.id,
        )
        db_session.commit()
        other = commission_for(db_session, other_order)

        with pytest.raises(NotFoundError):
            CommissionService.bulk_pay_commissions(db_session, [other.id], paid_by=1, scope=BranchScope("BR001"))

    def test_row_lock_limited_to_commissions_on_postgresql(self, db_session):
        """The doctor join is an outer join, so only commission rows may be locked."""
        query = CommissionService._pending_for_update(db_session, [1, 2], BranchScope("BR001"))

        sql = str(query.statement.compile(dialect=postgresql.dialect()))

        assert "LEFT OUTER JOIN doctors" in sql
        assert sql.rstrip().endswith("FOR UPDATE OF commissions")


class TestCommissionReports:
    """Test doctor statements, reports and pending listings."""

    def test_doctor_commissions_summary(self, db_session, catalogue, sent_notifications):
        first = commission_for(db_session, place_order(db_session, catalogue))
        place_order(db_session, catalogue)
        CommissionService.pay_commission(db_session, first.id, paid_by=1)

        result = CommissionService.get_doctor_commissions(db_session, catalogue[0].id)

        assert result['doctor']['name'] == 'Dr. Test'
        assert len(result['commissions']) == 2
        assert result['summary'] == {
            'total_commissions': 2,
            'total_amount': 400.0,
            'paid_amount': 200.0,
            'pending_amount': 200.0,
        }

    def test_doctor_commissions_unknown_doctor(self, db_session):
        with pytest.raises(NotFoundError, match="Doctor not found"):
            CommissionService.get_doctor_commissions(db_session, 404)

    def test_date_filter_is_inclusive_of_end_date(self, db_session, catalogue):
        commission = commission_for(db_session, place_order(db_session, catalogue))
        commission.calculated_date = datetime(2024, 10, 16, 23, 30, tzinfo=BUSINESS_TZ)
        db_session.commit()

        within = CommissionService.get_doctor_commissions(
            db_session, catalogue[0].id, start_date=date(2024, 10, 1), end_date=date(2024, 10, 16)
        )
        before = CommissionService.get_doctor_commissions(
            db_session, catalogue[0].id, start_date=date(2024, 10, 1), end_date=date(2024, 10, 15)
        )

        assert within['summary']['total_commissions'] == 1
        assert before['summary']['total_commissions'] == 0

    def test_reports_sorted_by_total(self, db_session, catalogue, sent_notifications):
        doctor, blood, xray, patient = catalogue
        second_doctor = create_doctor(db_session, "DOC002", "Dr. Second", available_branches=["BR001"])
        place_order(db_session, catalogue)
        big_order = OpdService.create_test_order(
            db_session,
            branch_code="BR001",
            patient_id=patient.id,
            tests=[{'test_id': blood.id}, {'test_id': blood.id}, {'test_id': xray.id}],
            payment_mode=PaymentMode.CARD.value,
            payment_status=PaymentStatus.PAID.value,
            referring_doctor_id=second_doctor.id,
        )
        db_session.commit()
        CommissionService.pay_commission(db_session, commission_for(db_session, big_order).id, paid_by=1)

        report = CommissionService.get_commission_reports(db_session)

        assert report['branch_code'] is None
        assert [r['doctor_name'] for r in report['doctor_reports']] == ['Dr. Second', 'Dr. Test']
        assert report['doctor_reports'][0]['paid_amount'] == 300.0
        assert report['summary'] == {
            'total_doctors': 2,
            'total_commissions': 2,
            'total_amount': 500.0,
            'paid_amount': 300.0,
            'pending_amount': 200.0,
        }

    def test_reports_empty_window(self, db_session, catalogue):
        place_order(db_session, catalogue)

        report = CommissionService.get_commission_reports(
            db_session, start_date=date(2000, 1, 1), end_date=date(2000, 1, 31)
        )

        assert report['doctor_reports'] == []
        assert report['summary']['total_amount'] == 0.0

    def test_pending_pagination(self, db_session, catalogue):
        for _ in range(3):
            place_order(db_session, catalogue)

        page = CommissionService.get_pending_commissions(db_session, BranchScope("BR001"), limit=2, offset=0)

        assert len(page['commissions']) == 2
        assert page['pagination'] == {'total': 3, 'limit': 2, 'offset': 0, 'has_more': True}
        assert page['summary'] == {'total_pending_commissions': 3, 'total_pending_amount': 600.0}
        assert page['commissions'][0]['order_code'] == 'BR001-ORD001'

        other_branch = CommissionService.get_pending_commissions(db_session, BranchScope("BR002"))
        assert other_branch['pagination']['total'] == 0
