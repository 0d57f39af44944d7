import calendar
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP

from portal.models import Product, User


CENT = Decimal("0.01")


@dataclass(frozen=True)
class ProRataQuote:
    final_price: Decimal
    days_remaining: int
    total_days_in_month: int

    @property
    def is_full_month(self) -> bool:
        return self.days_remaining == self.total_days_in_month


def _as_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _as_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def price_for_group(product: Product, reseller_group) -> Decimal:
    # Unknown groups silently fall back to the base price.
    if reseller_group == 1:
        return _as_decimal(product.group1_price)
    if reseller_group == 2:
        return _as_decimal(product.group2_price)
    return _as_decimal(product.base_price)


def days_in_month(reference_date) -> int:
    ref = _as_date(reference_date)
    return calendar.monthrange(ref.year, ref.month)[1]


def prorate(monthly_price, reference_date) -> ProRataQuote:
    """Charge for the rest of the calendar month, ``reference_date`` inclusive.

    ``final_price = monthly_price * days_remaining / total_days_in_month``,
    rounded half-up to cents. The first of the month charges the full price and
    the last day charges one day's worth.
    """
    ref = _as_date(reference_date)
    total_days = days_in_month(ref)
    days_remaining = total_days - ref.day + 1
    price = _as_decimal(monthly_price)
    final_price = (price * days_remaining / total_days).quantize(CENT, rounding=ROUND_HALF_UP)
    return ProRataQuote(
        final_price=final_price,
        days_remaining=days_remaining,
        total_days_in_month=total_days,
    )


def quote_for_user(product: Product, user: User, reference_date) -> ProRataQuote:
    return prorate(price_for_group(product, user.reseller_group), reference_date)


def next_billing_date(reference_date) -> date:
    ref = _as_date(reference_date)
    if ref.month == 12:
        return date(ref.year + 1, 1, 1)
    return date(ref.year, ref.month + 1, 1)
