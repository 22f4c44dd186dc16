"""
Unit tests for accounts report calculators.
"""
import pytest
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from services.accounts_calculators import (
    CommissionSummaryCalculator,
    DailyCollectionCalculator,
    FinancialStatementCalculator,
    OutstandingDuesCalculator,
    PaymentSummaryCalculator,
    RevenueAnalyticsCalculator,
    TestRevenueCalculator,
    fold_report,
    group_by_branch,
    revenue_bucket,
)
from services.accounts_types import PaymentRecord, ExpenseRecord, CommissionRecord
from utils.datetime_utils import BUSINESS_TZ

_next_id = iter(range(1, 10_000))


def payment(
    amount: str,
    source: str = 'consultation',
    mode: str = 'CASH',
    status: str = 'PAID',
    branch: str = 'BR001',
    at: Optional[datetime] = None,
    patient_id: int = 1
) -> PaymentRecord:
    record_id = next(_next_id)
    return {
        'branch_code': branch,
        'source': source,  # type: ignore
        'record_id': record_id,
        'code': f"{branch}-{'VIS' if source == 'consultation' else 'ORD'}{record_id:03d}",
        'patient_id': patient_id,
        'patient_name': 'Test Patient',
        'amount': Decimal(amount),
        'payment_mode': mode,
        'payment_status': status,
        'occurred_at': at or datetime(2024, 10, 16, 10, 0, tzinfo=BUSINESS_TZ),
    }


def expense(amount: str, category: str = 'RENT', branch: str = 'BR001', at: Optional[datetime] = None) -> ExpenseRecord:
    return {
        'branch_code': branch,
        'expense_id': next(_next_id),
        'title': category.title(),
        'category': category,
        'amount': Decimal(amount),
        'occurred_at': at or datetime(2024, 10, 16, 12, 0, tzinfo=BUSINESS_TZ),
    }


def commission(amount: str, doctor_id: int = 1, status: str = 'PENDING', branch: str = 'BR001') -> CommissionRecord:
    return {
        'branch_code': branch,
        'commission_id': next(_next_id),
        'doctor_id': doctor_id,
        'amount': Decimal(amount),
        'payment_status': status,
        'occurred_at': datetime(2024, 10, 16, 10, 0, tzinfo=BUSINESS_TZ),
    }


def lab_line(order_id: int, test_id: int, price: str, rate: str, category: str = 'PATHOLOGY', branch: str = 'BR001') -> dict:
    return {
        'branch_code': branch,
        'order_id': order_id,
        'lab_test_id': test_id,
        'test_code': f"TST{test_id:03d}",
        'test_name': f"Test {test_id}",
        'category': category,
        'price': Decimal(price),
        'commission_rate': Decimal(rate),
        'occurred_at': datetime(2024, 10, 16, 10, 0, tzinfo=BUSINESS_TZ),
    }


class TestDailyCollectionCalculator:
    """Test collections by payment mode."""

    def test_empty(self):
        result = DailyCollectionCalculator.calculate({'payments': [], 'expenses': []})

        assert result['collections'] == []
        assert result['summary'] == {
            'total_collection': Decimal('0'),
            'total_expenses': Decimal('0'),
            'net_collection': Decimal('0'),
            'transaction_count': 0,
        }

    def test_groups_by_mode_and_source(self):
        bundle = {
            'payments': [
                payment('500', 'consultation', 'CASH'),
                payment('1200', 'test', 'CASH'),
                payment('300', 'consultation', 'CARD'),
            ],
            'expenses': [expense('200')],
        }

        result = DailyCollectionCalculator.calculate(bundle)

        cash, card = result['collections']
        assert cash['payment_mode'] == 'CASH'
        assert cash['consultation_amount'] == Decimal('500')
        assert cash['test_amount'] == Decimal('1200')
        assert cash['total_amount'] == Decimal('1700')
        assert (cash['consultation_count'], cash['test_count'], cash['total_count']) == (1, 1, 2)
        assert card['payment_mode'] == 'CARD'
        assert card['total_amount'] == Decimal('300')

        summary = result['summary']
        assert summary['total_collection'] == Decimal('2000')
        assert summary['total_expenses'] == Decimal('200')
        assert summary['net_collection'] == Decimal('1800')
        assert summary['transaction_count'] == 3

    def test_total_is_sum_of_mode_totals(self):
        payments = [payment(str(10 * i), 'test' if i % 2 else 'consultation', mode)
                    for i, mode in enumerate(['CASH', 'CARD', 'ONLINE', 'CASH', 'INSURANCE'], start=1)]

        result = DailyCollectionCalculator.calculate({'payments': payments, 'expenses': []})

        assert result['summary']['total_collection'] == sum(
            (c['total_amount'] for c in result['collections']), Decimal('0')
        )
        for c in result['collections']:
            assert c['total_amount'] == c['consultation_amount'] + c['test_amount']

    def test_net_can_be_negative(self):
        result = DailyCollectionCalculator.calculate({'payments': [], 'expenses': [expense('50')]})

        assert result['summary']['net_collection'] == Decimal('-50')


class TestPaymentSummaryCalculator:

    def test_breakdown_by_mode_and_status(self):
        bundle = {'payments': [
            payment('100', mode='CASH', status='PAID'),
            payment('50', mode='CASH', status='PARTIAL'),
            payment('70', source='test', mode='CASH', status='PAID'),
        ]}

        result = PaymentSummaryCalculator.calculate(bundle)

        paid, partial = result['payment_breakdown']
        assert (paid['payment_mode'], paid['payment_status']) == ('CASH', 'PAID')
        assert paid['consultation_amount'] == Decimal('100')
        assert paid['test_amount'] == Decimal('70')
        assert paid['count'] == 2
        assert (partial['payment_mode'], partial['payment_status']) == ('CASH', 'PARTIAL')
        assert result['summary'] == {
            'total_amount': Decimal('220'),
            'transaction_count': 3,
            'paid_amount': Decimal('170'),
            'partial_amount': Decimal('50'),
        }


class TestOutstandingDuesCalculator:

    def test_splits_visits_and_tests_newest_first(self):
        older = datetime(2024, 10, 1, 9, 0, tzinfo=BUSINESS_TZ)
        newer = datetime(2024, 10, 2, 9, 0, tzinfo=BUSINESS_TZ)
        bundle = {'payments': [
            payment('100', 'consultation', status='PENDING', at=older),
            payment('200', 'consultation', status='PARTIAL', at=newer),
            payment('900', 'test', status='PENDING', at=older),
        ]}

        result = OutstandingDuesCalculator.calculate(bundle, limit=50, offset=0)

        assert [v['amount'] for v in result['outstanding_visits']] == [Decimal('200'), Decimal('100')]
        assert [t['amount'] for t in result['outstanding_tests']] == [Decimal('900')]
        assert result['summary'] == {
            'total_visits_due': 2,
            'total_tests_due': 1,
            'total_visit_amount': Decimal('300'),
            'total_test_amount': Decimal('900'),
            'grand_total': Decimal('1200'),
        }

    def test_pagination_does_not_change_summary(self):
        bundle = {'payments': [payment('10', status='PENDING') for _ in range(5)]}

        result = OutstandingDuesCalculator.calculate(bundle, limit=2, offset=4)

        assert len(result['outstanding_visits']) == 1
        assert result['summary']['total_visits_due'] == 5
        assert result['summary']['total_visit_amount'] == Decimal('50')


class TestRevenueBucket:

    @pytest.mark.parametrize("period,label,start", [
        ("daily", "2024-10-16", date(2024, 10, 16)),
        ("weekly", "2024-W42", date(2024, 10, 14)),
        ("monthly", "2024-10", date(2024, 10, 1)),
        ("yearly", "2024", date(2024, 1, 1)),
    ])
    def test_labels(self, period, label, start):
        assert revenue_bucket(date(2024, 10, 16), period) == (label, start)

    def test_iso_week_crosses_year(self):
        # 2024-12-30 is a Monday in ISO week 1 of 2025
        assert revenue_bucket(date(2024, 12, 30), "weekly") == ("2025-W01", date(2024, 12, 30))

    def test_invalid_period(self):
        with pytest.raises(ValueError):
            revenue_bucket(date(2024, 10, 16), "hourly")  # type: ignore


class TestRevenueAnalyticsCalculator:

    def test_monthly_buckets_sorted(self):
        bundle = {
            'payments': [
                payment('100', 'consultation', at=datetime(2024, 10, 5, tzinfo=BUSINESS_TZ)),
                payment('400', 'test', at=datetime(2024, 9, 20, tzinfo=BUSINESS_TZ)),
                payment('50', 'test', at=datetime(2024, 10, 6, tzinfo=BUSINESS_TZ)),
            ],
            'expenses': [expense('30', at=datetime(2024, 10, 7, tzinfo=BUSINESS_TZ))],
        }

        result = RevenueAnalyticsCalculator.calculate(bundle, "monthly")

        september, october = result['analytics']
        assert september['period'] == '2024-09'
        assert september['period_start'] == '2024-09-01'
        assert september['test_revenue'] == Decimal('400')
        assert october['consultation_revenue'] == Decimal('100')
        assert october['test_count'] == 1
        assert october['total_revenue'] == Decimal('150')
        assert october['expenses'] == Decimal('30')
        assert october['net_revenue'] == Decimal('120')
        assert result['total_summary'] == {
            'total_revenue': Decimal('550'),
            'total_expenses': Decimal('30'),
            'net_revenue': Decimal('520'),
        }

    def test_expense_only_period_is_reported(self):
        bundle = {'payments': [], 'expenses': [expense('30')]}

        result = RevenueAnalyticsCalculator.calculate(bundle, "daily")

        assert len(result['analytics']) == 1
        assert result['analytics'][0]['net_revenue'] == Decimal('-30')


class TestCommissionSummaryCalculator:

    def test_breakdown_per_doctor(self):
        bundle = {'commissions': [
            commission('100', doctor_id=1, status='PENDING'),
            commission('50', doctor_id=1, status='PAID'),
            commission('300', doctor_id=2, status='PAID'),
        ]}

        result = CommissionSummaryCalculator.calculate(bundle, {1: 'Dr. One', 2: 'Dr. Two'})

        top, second = result['doctors']
        assert top['doctor_name'] == 'Dr. Two'
        assert top['total_commission'] == Decimal('300')
        assert second['doctor_id'] == 1
        assert [b['payment_status'] for b in second['commission_breakdown']] == ['PENDING', 'PAID']
        assert second['total_count'] == 2
        assert result['summary'] == {
            'total_commission': Decimal('450'),
            'total_transactions': 3,
            'total_doctors': 2,
        }


class TestTestRevenueCalculator:

    def test_per_test_and_category(self):
        bundle = {'test_lines': [
            lab_line(order_id=1, test_id=1, price='1000', rate='10'),
            lab_line(order_id=2, test_id=1, price='1000', rate='10'),
            lab_line(order_id=2, test_id=2, price='3000', rate='5', category='RADIOLOGY'),
        ]}

        result = TestRevenueCalculator.calculate(bundle)

        radiology_test, blood_test = result['test_revenue']
        assert radiology_test['test_id'] == 2
        assert radiology_test['total_commission'] == Decimal('150.00')
        assert blood_test['total_revenue'] == Decimal('2000')
        assert blood_test['total_commission'] == Decimal('200.00')
        assert blood_test['order_count'] == 2
        assert [c['category'] for c in result['category_revenue']] == ['RADIOLOGY', 'PATHOLOGY']
        assert result['summary'] == {
            'total_revenue': Decimal('5000'),
            'total_commission': Decimal('350.00'),
            'total_tests': 3,
        }

    def test_order_count_counts_each_line(self):
        """A test ordered twice on one order counts twice."""
        bundle = {'test_lines': [
            lab_line(order_id=1, test_id=1, price='1000', rate='10'),
            lab_line(order_id=1, test_id=1, price='1000', rate='10'),
        ]}

        result = TestRevenueCalculator.calculate(bundle)

        (blood_test,) = result['test_revenue']
        assert blood_test['order_count'] == 2
        assert blood_test['total_revenue'] == Decimal('2000')


class TestFinancialStatementCalculator:

    def test_net_income_and_margin(self):
        bundle = {
            'payments': [payment('1000', 'consultation'), payment('3000', 'test')],
            'expenses': [expense('500', 'RENT'), expense('300', 'SALARY'), expense('200', 'RENT')],
            'commissions': [commission('200', status='PAID')],
        }

        result = FinancialStatementCalculator.calculate(bundle)

        assert result['revenue'] == {
            'consultations': Decimal('1000'),
            'tests': Decimal('3000'),
            'total': Decimal('4000'),
        }
        assert result['expenses']['total'] == Decimal('1000')
        assert result['expenses']['by_category'][0] == {'category': 'RENT', 'amount': Decimal('700'), 'count': 2}
        assert result['commissions'] == {'paid': Decimal('200'), 'count': 1}
        assert result['net_income'] == Decimal('2800')
        assert result['profit_margin'] == Decimal('70.00')

    def test_zero_revenue_margin_is_zero(self):
        bundle = {'payments': [], 'expenses': [expense('100')], 'commissions': []}

        result = FinancialStatementCalculator.calculate(bundle)

        assert result['net_income'] == Decimal('-100')
        assert result['profit_margin'] == Decimal('0')


class TestFoldReport:

    def test_group_by_branch_keeps_every_kind(self):
        bundle = {'payments': [payment('10', branch='BR002')], 'expenses': [expense('5', branch='BR001')]}

        grouped = group_by_branch(bundle)

        assert set(grouped) == {'BR001', 'BR002'}
        assert grouped['BR001']['payments'] == []
        assert grouped['BR002']['expenses'] == []

    def test_single_branch_folds_only_that_branch(self):
        bundle = {'payments': [payment('10', branch='BR001'), payment('99', branch='BR002')], 'expenses': []}

        body, per_branch = fold_report(bundle, DailyCollectionCalculator.calculate, 'BR001')

        assert per_branch == {}
        assert body is not None
        assert body['summary']['total_collection'] == Decimal('10')

    def test_single_branch_without_records(self):
        bundle = {'payments': [payment('10', branch='BR001')], 'expenses': []}

        body, _ = fold_report(bundle, DailyCollectionCalculator.calculate, 'BR003')

        assert body is not None
        assert body['collections'] == []

    def test_branch_totals_add_up_to_overall(self):
        payments: List[PaymentRecord] = [
            payment('10', branch='BR001'),
            payment('20', branch='BR002'),
            payment('30', branch='BR002', mode='CARD'),
        ]
        bundle = {'payments': payments, 'expenses': [expense('5', branch='BR002')]}

        body, per_branch = fold_report(bundle, DailyCollectionCalculator.calculate, None)
        overall = DailyCollectionCalculator.calculate(bundle)

        assert body is None
        assert set(per_branch) == {'BR001', 'BR002'}
        assert sum(
            (b['summary']['total_collection'] for b in per_branch.values()), Decimal('0')
        ) == overall['summary']['total_collection']
        assert per_branch['BR002']['summary']['net_collection'] == Decimal('45')
