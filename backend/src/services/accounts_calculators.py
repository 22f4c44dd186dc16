"""
Fold calculators for accounts reports.

Each calculator turns a RecordBundle into one report body with Decimal
amounts. Calculators never query the database and never look at branch
scope; AccountsService decides which records go in and how the result is
presented.
"""
from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Tuple

from models.enums import CommissionStatus, PaymentMode, PaymentStatus
from services.accounts_types import (
    CommissionRecord,
    ExpenseRecord,
    PaymentRecord,
    RecordBundle,
    RevenuePeriod,
    TestLineRecord,
)
from services.commission_calculator import calculate_commission, round_currency

ZERO = Decimal('0')

_MODE_ORDER = {mode.value: index for index, mode in enumerate(PaymentMode)}
_STATUS_ORDER = {status.value: index for index, status in enumerate(PaymentStatus)}


def group_by_branch(bundle: RecordBundle) -> Dict[str, RecordBundle]:
    """
    Split every record list in a bundle by branch_code.

    Each branch gets the full set of kinds, empty where it has no records.
    """
    grouped: Dict[str, RecordBundle] = {}
    for kind, records in bundle.items():
        for record in records:
            branch = grouped.setdefault(record['branch_code'], {k: [] for k in bundle})
            branch[kind].append(record)
    return grouped


def empty_bundle(bundle: RecordBundle) -> RecordBundle:
    return {kind: [] for kind in bundle}


def _sum(values) -> Decimal:  # type: ignore
    return sum(values, ZERO)


class DailyCollectionCalculator:
    """Collections by payment mode, net of expenses."""

    @staticmethod
    def calculate(bundle: RecordBundle) -> Dict[str, Any]:
        payments: List[PaymentRecord] = bundle.get('payments', [])  # type: ignore
        expenses: List[ExpenseRecord] = bundle.get('expenses', [])  # type: ignore

        by_mode: Dict[str, Dict[str, Any]] = {}
        for payment in payments:
            mode = payment['payment_mode']
            stats = by_mode.setdefault(mode, {
                'payment_mode': mode,
                'consultation_amount': ZERO,
                'test_amount': ZERO,
                'total_amount': ZERO,
                'consultation_count': 0,
                'test_count': 0,
                'total_count': 0,
            })
            if payment['source'] == 'consultation':
                stats['consultation_amount'] += payment['amount']
                stats['consultation_count'] += 1
            else:
                stats['test_amount'] += payment['amount']
                stats['test_count'] += 1
            stats['total_amount'] += payment['amount']
            stats['total_count'] += 1

        collections = sorted(by_mode.values(), key=lambda s: _MODE_ORDER.get(s['payment_mode'], len(_MODE_ORDER)))

        total_collection = _sum(c['total_amount'] for c in collections)
        total_expenses = _sum(e['amount'] for e in expenses)

        return {
            'collections': collections,
            'summary': {
                'total_collection': total_collection,
                'total_expenses': total_expenses,
                'net_collection': total_collection - total_expenses,
                'transaction_count': sum(c['total_count'] for c in collections),
            },
        }


class PaymentSummaryCalculator:
    """Collections by payment mode and payment status."""

    @staticmethod
    def calculate(bundle: RecordBundle) -> Dict[str, Any]:
        payments: List[PaymentRecord] = bundle.get('payments', [])  # type: ignore

        groups: Dict[Tuple[str, str], Dict[str, Any]] = {}
        for payment in payments:
            key = (payment['payment_mode'], payment['payment_status'])
            stats = groups.setdefault(key, {
                'payment_mode': key[0],
                'payment_status': key[1],
                'consultation_amount': ZERO,
                'test_amount': ZERO,
                'total_amount': ZERO,
                'count': 0,
            })
            if payment['source'] == 'consultation':
                stats['consultation_amount'] += payment['amount']
            else:
                stats['test_amount'] += payment['amount']
            stats['total_amount'] += payment['amount']
            stats['count'] += 1

        breakdown = sorted(
            groups.values(),
            key=lambda s: (
                _MODE_ORDER.get(s['payment_mode'], len(_MODE_ORDER)),
                _STATUS_ORDER.get(s['payment_status'], len(_STATUS_ORDER)),
            )
        )

        by_status: Dict[str, Decimal] = defaultdict(lambda: ZERO)
        for stats in breakdown:
            by_status[stats['payment_status']] += stats['total_amount']

        return {
            'payment_breakdown': breakdown,
            'summary': {
                'total_amount': _sum(s['total_amount'] for s in breakdown),
                'transaction_count': sum(s['count'] for s in breakdown),
                'paid_amount': by_status.get(PaymentStatus.PAID.value, ZERO),
                'partial_amount': by_status.get(PaymentStatus.PARTIAL.value, ZERO),
            },
        }


class OutstandingDuesCalculator:
    """Unpaid and partially paid visits and orders."""

    @staticmethod
    def calculate(bundle: RecordBundle, limit: int, offset: int) -> Dict[str, Any]:
        payments: List[PaymentRecord] = bundle.get('payments', [])  # type: ignore

        visits = [p for p in payments if p['source'] == 'consultation']
        tests = [p for p in payments if p['source'] == 'test']
        newest_first: Callable[[PaymentRecord], Any] = lambda p: (p['occurred_at'], p['record_id'])
        visits.sort(key=newest_first, reverse=True)
        tests.sort(key=newest_first, reverse=True)

        total_visit_amount = _sum(v['amount'] for v in visits)
        total_test_amount = _sum(t['amount'] for t in tests)

        return {
            'outstanding_visits': [OutstandingDuesCalculator._row(v) for v in visits[offset:offset + limit]],
            'outstanding_tests': [OutstandingDuesCalculator._row(t) for t in tests[offset:offset + limit]],
            'summary': {
                'total_visits_due': len(visits),
                'total_tests_due': len(tests),
                'total_visit_amount': total_visit_amount,
                'total_test_amount': total_test_amount,
                'grand_total': total_visit_amount + total_test_amount,
            },
        }

    @staticmethod
    def _row(payment: PaymentRecord) -> Dict[str, Any]:
        return {
            'id': payment['record_id'],
            'code': payment['code'],
            'patient_id': payment['patient_id'],
            'patient_name': payment['patient_name'],
            'amount': payment['amount'],
            'payment_mode': payment['payment_mode'],
            'payment_status': payment['payment_status'],
            'created_at': payment['occurred_at'],
        }


def revenue_bucket(day: date, period: RevenuePeriod) -> Tuple[str, date]:
    """
    Bucket label and bucket start date for a calendar day.

    Weeks are ISO weeks (Monday start), labelled "2024-W05".
    """
    if period == "daily":
        return day.isoformat(), day
    if period == "weekly":
        iso_year, iso_week, _ = day.isocalendar()
        return f"{iso_year}-W{iso_week:02d}", day - timedelta(days=day.weekday())
    if period == "monthly":
        return f"{day.year}-{day.month:02d}", date(day.year, day.month, 1)
    if period == "yearly":
        return f"{day.year}", date(day.year, 1, 1)
    raise ValueError(f"Invalid period: {period}")


class RevenueAnalyticsCalculator:
    """Paid revenue and expenses bucketed by day, ISO week, month or year."""

    @staticmethod
    def calculate(bundle: RecordBundle, period: RevenuePeriod) -> Dict[str, Any]:
        payments: List[PaymentRecord] = bundle.get('payments', [])  # type: ignore
        expenses: List[ExpenseRecord] = bundle.get('expenses', [])  # type: ignore

        buckets: Dict[str, Dict[str, Any]] = {}

        def bucket_for(record: Dict[str, Any]) -> Dict[str, Any]:
            label, start = revenue_bucket(record['occurred_at'].date(), period)
            if label not in buckets:
                buckets[label] = {
                    'period': label,
                    'period_start': start,
                    'consultation_revenue': ZERO,
                    'consultation_count': 0,
                    'test_revenue': ZERO,
                    'test_count': 0,
                    'total_revenue': ZERO,
                    'expenses': ZERO,
                    'net_revenue': ZERO,
                }
            return buckets[label]

        for payment in payments:
            bucket = bucket_for(payment)  # type: ignore
            if payment['source'] == 'consultation':
                bucket['consultation_revenue'] += payment['amount']
                bucket['consultation_count'] += 1
            else:
                bucket['test_revenue'] += payment['amount']
                bucket['test_count'] += 1
            bucket['total_revenue'] += payment['amount']

        for expense in expenses:
            bucket_for(expense)['expenses'] += expense['amount']  # type: ignore

        analytics = sorted(buckets.values(), key=lambda b: b['period_start'])
        for bucket in analytics:
            bucket['net_revenue'] = bucket['total_revenue'] - bucket['expenses']
            bucket['period_start'] = bucket['period_start'].isoformat()

        total_revenue = _sum(b['total_revenue'] for b in analytics)
        total_expenses = _sum(b['expenses'] for b in analytics)
        return {
            'analytics': analytics,
            'total_summary': {
                'total_revenue': total_revenue,
                'total_expenses': total_expenses,
                'net_revenue': total_revenue - total_expenses,
            },
        }


class CommissionSummaryCalculator:
    """Commissions per doctor with a payment status breakdown."""

    @staticmethod
    def calculate(bundle: RecordBundle, doctor_names: Dict[int, str]) -> Dict[str, Any]:
        commissions: List[CommissionRecord] = bundle.get('commissions', [])  # type: ignore

        per_doctor: Dict[int, Dict[str, Dict[str, Any]]] = defaultdict(dict)
        for commission in commissions:
            status = commission['payment_status']
            entry = per_doctor[commission['doctor_id']].setdefault(status, {
                'payment_status': status,
                'amount': ZERO,
                'count': 0,
            })
            entry['amount'] += commission['amount']
            entry['count'] += 1

        doctors: List[Dict[str, Any]] = []
        for doctor_id, breakdown in per_doctor.items():
            ordered = sorted(breakdown.values(), key=lambda e: e['payment_status'] != CommissionStatus.PENDING.value)
            doctors.append({
                'doctor_id': doctor_id,
                'doctor_name': doctor_names.get(doctor_id),
                'commission_breakdown': ordered,
                'total_commission': _sum(e['amount'] for e in ordered),
                'total_count': sum(e['count'] for e in ordered),
            })
        doctors.sort(key=lambda d: d['total_commission'], reverse=True)

        return {
            'doctors': doctors,
            'summary': {
                'total_commission': _sum(d['total_commission'] for d in doctors),
                'total_transactions': sum(d['total_count'] for d in doctors),
                'total_doctors': len(doctors),
            },
        }


class TestRevenueCalculator:
    """Revenue and projected commission per test and per category."""

    __test__ = False

    @staticmethod
    def calculate(bundle: RecordBundle) -> Dict[str, Any]:
        lines: List[TestLineRecord] = bundle.get('test_lines', [])  # type: ignore

        per_test: Dict[int, Dict[str, Any]] = {}
        per_category: Dict[str, Dict[str, Any]] = {}

        for line in lines:
            stats = per_test.setdefault(line['lab_test_id'], {
                'test_id': line['lab_test_id'],
                'test_code': line['test_code'],
                'test_name': line['test_name'],
                'category': line['category'],
                'total_revenue': ZERO,
                'total_commission': ZERO,
                'order_count': 0,
            })
            stats['total_revenue'] += line['price']
            stats['total_commission'] += calculate_commission(line['price'], line['commission_rate'])
            stats['order_count'] += 1

            category = per_category.setdefault(line['category'], {
                'category': line['category'],
                'revenue': ZERO,
                'count': 0,
            })
            category['revenue'] += line['price']
            category['count'] += 1

        by_test = sorted(per_test.values(), key=lambda s: s['total_revenue'], reverse=True)
        by_category = sorted(per_category.values(), key=lambda c: c['revenue'], reverse=True)

        return {
            'test_revenue': by_test,
            'category_revenue': by_category,
            'summary': {
                'total_revenue': _sum(s['total_revenue'] for s in by_test),
                'total_commission': _sum(s['total_commission'] for s in by_test),
                'total_tests': len(lines),
            },
        }


class FinancialStatementCalculator:
    """Monthly revenue, expenses, paid commissions, net income and margin."""

    @staticmethod
    def calculate(bundle: RecordBundle) -> Dict[str, Any]:
        payments: List[PaymentRecord] = bundle.get('payments', [])  # type: ignore
        expenses: List[ExpenseRecord] = bundle.get('expenses', [])  # type: ignore
        commissions: List[CommissionRecord] = bundle.get('commissions', [])  # type: ignore

        consultation_revenue = _sum(p['amount'] for p in payments if p['source'] == 'consultation')
        test_revenue = _sum(p['amount'] for p in payments if p['source'] == 'test')
        total_revenue = consultation_revenue + test_revenue

        by_category: Dict[str, Dict[str, Any]] = {}
        for expense in expenses:
            entry = by_category.setdefault(expense['category'], {
                'category': expense['category'],
                'amount': ZERO,
                'count': 0,
            })
            entry['amount'] += expense['amount']
            entry['count'] += 1
        total_expenses = _sum(e['amount'] for e in expenses)

        paid_commissions = _sum(c['amount'] for c in commissions)

        net_income = total_revenue - total_expenses - paid_commissions

        return {
            'revenue': {
                'consultations': consultation_revenue,
                'tests': test_revenue,
                'total': total_revenue,
            },
            'expenses': {
                'by_category': sorted(by_category.values(), key=lambda e: e['amount'], reverse=True),
                'total': total_expenses,
            },
            'commissions': {
                'paid': paid_commissions,
                'count': len(commissions),
            },
            'net_income': net_income,
            'profit_margin': FinancialStatementCalculator.profit_margin(net_income, total_revenue),
        }

    @staticmethod
    def profit_margin(net_income: Decimal, total_revenue: Decimal) -> Decimal:
        """Net income as a percentage of revenue; 0 when there is no revenue."""
        if not total_revenue:
            return Decimal('0')
        return round_currency(net_income / total_revenue * Decimal(100))


def fold_report(
    bundle: RecordBundle,
    fold: Callable[[RecordBundle], Dict[str, Any]],
    branch_code: Optional[str],
) -> Tuple[Optional[Dict[str, Any]], Dict[str, Dict[str, Any]]]:
    """
    Run a fold with branch always part of the grouping.

    Returns:
        (single-branch body or None, per-branch bodies keyed by branch code)
        When branch_code is given only that branch is folded.
    """
    grouped = group_by_branch(bundle)
    if branch_code is not None:
        return fold(grouped.get(branch_code, empty_bundle(bundle))), {}
    return None, {code: fold(records) for code, records in grouped.items()}
