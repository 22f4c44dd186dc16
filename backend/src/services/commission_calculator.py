"""
Commission arithmetic.

Money is handled as Decimal and rounded half-up to cents. Order-level
commission is the sum of independently rounded line commissions; the
reported percentage is the plain mean of the qualifying line rates.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Tuple, Union

from core.constants import COMMISSION_RATE_MIN, COMMISSION_RATE_MAX

CENT = Decimal('0.01')

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number) -> Decimal:
    """Convert a number to Decimal without binary float artifacts."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_currency(value: Number) -> Decimal:
    """Round to 2 decimal places, halves away from zero."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_commission(amount: Number, rate_percent: Number) -> Decimal:
    """
    Commission on a single amount.

    Example: calculate_commission(1000, 12.5) == Decimal('125.00')
    """
    return round_currency(to_decimal(amount) * to_decimal(rate_percent) / Decimal(100))


def is_valid_rate(rate_percent: Number) -> bool:
    rate = to_decimal(rate_percent)
    return Decimal(COMMISSION_RATE_MIN) <= rate <= Decimal(COMMISSION_RATE_MAX)


@dataclass(frozen=True)
class CommissionLine:
    """Price and commission rate of one ordered test."""
    price: Decimal
    rate: Decimal


@dataclass(frozen=True)
class OrderCommission:
    """Order-level commission result."""
    total_commission: Decimal
    average_percentage: Decimal
    qualifying_amount: Decimal
    qualifying_lines: int


def calculate_order_commission(lines: Iterable[Union[CommissionLine, Tuple[Number, Number]]]) -> OrderCommission:
    """
    Aggregate commission over an order's line items.

    Lines whose rate falls outside [0, 100] are ignored entirely. When no
    line qualifies the result is all zeros.
    """
    qualifying: List[CommissionLine] = []
    for line in lines:
        if not isinstance(line, CommissionLine):
            price, rate = line
            line = CommissionLine(price=to_decimal(price), rate=to_decimal(rate))
        if is_valid_rate(line.rate):
            qualifying.append(line)

    if not qualifying:
        return OrderCommission(
            total_commission=Decimal('0.00'),
            average_percentage=Decimal('0.00'),
            qualifying_amount=Decimal('0.00'),
            qualifying_lines=0,
        )

    total = sum((calculate_commission(line.price, line.rate) for line in qualifying), Decimal('0'))
    average = sum((line.rate for line in qualifying), Decimal('0')) / Decimal(len(qualifying))

    return OrderCommission(
        total_commission=round_currency(total),
        average_percentage=round_currency(average),
        qualifying_amount=round_currency(sum((line.price for line in qualifying), Decimal('0'))),
        qualifying_lines=len(qualifying),
    )
