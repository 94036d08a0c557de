"""
Fee engine -- payment-method processing fees and transaction limits.

A configured payment method contributes one fee line: its percentage of
the subtotal plus its fixed fee, each converted to integer minor units of
the transaction currency. Limits are checked against the payer's total
once every tax and fee is known.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from marketplace_engines.rounding import percent_of, to_minor_units
from marketplace_kernel.domain.rules import (
    MonetizationSnapshot,
    PaymentMethod,
    PaymentMethodConfig,
)
from marketplace_kernel.exceptions import (
    AboveMaximumAmountError,
    BelowMinimumAmountError,
    PaymentMethodUnavailableError,
)
from marketplace_kernel.logging_config import get_logger

logger = get_logger("engines.fees")


@dataclass(frozen=True)
class FeeLine:
    """One applied fee; ``fixed_amount`` and ``amount`` are minor units."""

    fee_type: str
    name: str
    amount: int
    rate: Decimal | None = None
    fixed_amount: int = 0

    def to_dict(self) -> dict:
        return {
            "fee_type": self.fee_type,
            "name": self.name,
            "rate": str(self.rate) if self.rate is not None else None,
            "fixed_amount": self.fixed_amount,
            "amount": self.amount,
        }


def resolve_payment_method(
    snapshot: MonetizationSnapshot, method: PaymentMethod | str
) -> PaymentMethodConfig:
    """
    The enabled configuration for ``method``.

    Raises:
        PaymentMethodUnavailableError: Unknown, unconfigured or disabled.
    """
    key = method.value if isinstance(method, PaymentMethod) else str(method)
    config = snapshot.payment_method(key)
    if config is None or not config.enabled:
        logger.warning("payment_method_unavailable", extra={
            "method": key,
            "configured": config is not None,
        })
        raise PaymentMethodUnavailableError(key)
    return config


def compute_payment_method_fee(
    config: PaymentMethodConfig,
    subtotal: int,
    currency: str,
    snapshot: MonetizationSnapshot | None = None,
) -> FeeLine:
    """
    Processing fee for ``config`` on ``subtotal`` minor units.

    Raises:
        ExchangeRateNotFoundError: The method's fixed fee is configured in
            a currency with no rate to ``currency``.
    """
    percentage_part = 0
    if config.fee_percentage is not None:
        percentage_part = percent_of(subtotal, config.fee_percentage)

    fixed_part = 0
    if config.fee_fixed is not None:
        fixed_part = to_minor_units(config.fee_fixed, config.currency, currency, snapshot)

    line = FeeLine(
        fee_type=f"payment_method:{config.method.value}",
        name=config.name,
        rate=config.fee_percentage,
        fixed_amount=fixed_part,
        amount=percentage_part + fixed_part,
    )
    logger.debug("payment_method_fee_computed", extra={
        "method": config.method.value,
        "percentage_part": percentage_part,
        "fixed_part": fixed_part,
        "amount": line.amount,
    })
    return line


def check_amount_limits(
    config: PaymentMethodConfig,
    total: int,
    currency: str,
    snapshot: MonetizationSnapshot | None = None,
) -> None:
    """
    Enforce the method's minimum and maximum on the payer's total.

    Raises:
        BelowMinimumAmountError: ``total`` is under ``min_amount``.
        AboveMaximumAmountError: ``total`` is over ``max_amount``.
    """
    method = config.method.value
    if config.min_amount is not None:
        minimum = to_minor_units(config.min_amount, config.currency, currency, snapshot)
        if total < minimum:
            logger.warning("payment_below_minimum", extra={
                "method": method,
                "total": total,
                "minimum": minimum,
                "currency": currency,
            })
            raise BelowMinimumAmountError(method, total, minimum, currency)

    if config.max_amount is not None:
        maximum = to_minor_units(config.max_amount, config.currency, currency, snapshot)
        if total > maximum:
            logger.warning("payment_above_maximum", extra={
                "method": method,
                "total": total,
                "maximum": maximum,
                "currency": currency,
            })
            raise AboveMaximumAmountError(method, total, maximum, currency)
