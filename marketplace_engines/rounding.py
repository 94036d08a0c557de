"""
Rounding -- Integer minor-unit arithmetic for breakdown amounts.

Every amount in a breakdown is an ``int`` count of minor units (kobo,
cents). Configuration values arrive as Decimal major units; this module is
the only place they cross into integers, always with banker's rounding.
"""

from __future__ import annotations

from decimal import Decimal

from marketplace_kernel.domain.rules import MonetizationSnapshot
from marketplace_kernel.domain.values import Money
from marketplace_kernel.exceptions import ExchangeRateNotFoundError
from marketplace_kernel.logging_config import get_logger

logger = get_logger("engines.rounding")


def percent_of(amount: int, rate: Decimal) -> int:
    """
    ``round_half_even(amount * rate / 100)`` in integer minor units.

    >>> percent_of(10000, Decimal("7.5"))
    750
    >>> percent_of(50, Decimal("5"))     # 2.5 rounds to even
    2
    """
    # Integer rational arithmetic, exact at any magnitude.
    numerator, denominator = rate.as_integer_ratio()
    quotient, remainder = divmod(amount * numerator, denominator * 100)
    twice = 2 * remainder
    if twice > denominator * 100 or (twice == denominator * 100 and quotient % 2):
        quotient += 1
    return quotient


def to_minor_units(
    amount: Decimal,
    currency: str,
    target_currency: str | None = None,
    snapshot: MonetizationSnapshot | None = None,
) -> int:
    """
    Convert a major-unit ``amount`` in ``currency`` to minor units of
    ``target_currency`` (``currency`` itself when omitted).

    Cross-currency conversion uses the snapshot's exchange rates; the
    converted value is rounded half-even once, at the end.

    Raises:
        ExchangeRateNotFoundError: The snapshot has no rate for the pair.
    """
    money = Money.of(amount, currency)
    target = (target_currency or currency).upper().strip()
    if money.currency.code == target:
        return money.to_minor_units()

    rate = snapshot.exchange_rate(money.currency.code, target) if snapshot else None
    if rate is None:
        logger.error("exchange_rate_missing", extra={
            "from_currency": money.currency.code,
            "to_currency": target,
        })
        raise ExchangeRateNotFoundError(money.currency.code, target)
    return rate.convert(money).to_minor_units()


def from_minor_units(units: int, currency: str) -> Money:
    """Integer minor units back to a major-unit Money for display."""
    return Money.from_minor_units(units, currency)
