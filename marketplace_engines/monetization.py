"""
Monetization Engine - Order payment breakdown.

Maps one order to the exact amounts that flow from it: the taxes and
processing fees the payer is charged on top of the subtotal, the
caller-supplied discount, the platform's cut and what is owed to the
seller.

Pure and deterministic: every input, including the transaction time and
the rule snapshot, is passed in. Identical inputs always produce an
identical breakdown (same fingerprint), which payout batching and audits
rely on.

All amounts are integer minor units. Two identities hold for every
breakdown this engine returns, and are verified before returning:

    total      = subtotal - discount + sum(taxes) + sum(fees)
    seller_net = subtotal - discount - platform_cut

Seller-borne taxes are reported as ``withholdings``; they reduce
``seller_payout`` and never touch ``total``.

Usage:
    from marketplace_engines.monetization import (
        MonetizationRequest,
        OrderMonetizationCalculator,
    )

    request = MonetizationRequest(
        subtotal=10000,
        currency="NGN",
        country="NG",
        transaction_at=datetime(2026, 3, 1, tzinfo=timezone.utc),
        seller_id="seller-42",
    )
    breakdown = OrderMonetizationCalculator().calculate(
        request=request, snapshot=snapshot
    )
    breakdown.total       # 10750 with 7.5% VAT
    breakdown.seller_net  # 9500 with a 5% platform cut
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from marketplace_engines.fees import (
    FeeLine,
    check_amount_limits,
    compute_payment_method_fee,
    resolve_payment_method,
)
from marketplace_engines.revenue_share import (
    compute_platform_cut,
    resolve_revenue_scheme,
)
from marketplace_engines.tax import (
    TaxLine,
    compute_tax_lines,
    select_applicable_tax_rules,
)
from marketplace_engines.tracer import traced_engine
from marketplace_kernel.domain.rules import (
    MonetizationSnapshot,
    PaymentMethod,
    RevenueShareBasis,
    ensure_utc,
)
from marketplace_kernel.exceptions import (
    BreakdownInvariantViolation,
    InvalidAmountError,
    InvalidDiscountError,
    UnsupportedCurrencyError,
)
from marketplace_kernel.logging_config import LogContext, get_logger
from marketplace_kernel.utils.hashing import hash_payload

logger = get_logger("engines.monetization")


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class MonetizationRequest:
    """
    One order to price.

    ``subtotal`` and ``discount`` are integer minor units of ``currency``.
    ``escrow`` is carried through to payment authorization; it never
    changes the arithmetic.
    """

    subtotal: int
    currency: str
    country: str
    transaction_at: datetime
    seller_id: str | None = None
    seller_tier: str | None = None
    category: str | None = None
    user_type: str | None = None
    escrow: bool = False
    discount: int = 0
    payment_method: PaymentMethod | str | None = None


@dataclass(frozen=True)
class PaymentBreakdown:
    """
    Computed amounts for one order; immutable once issued.

    A breakdown attached to a payment is never recomputed: a later change
    to a tax rule must not alter it.
    """

    currency: str
    subtotal: int
    taxes: tuple[TaxLine, ...]
    fees: tuple[FeeLine, ...]
    discount: int
    total: int
    platform_cut: int
    seller_net: int
    withholdings: tuple[TaxLine, ...] = field(default_factory=tuple)
    revenue_scheme_id: str = ""
    platform_rate: Decimal = Decimal("0")
    snapshot_id: str = ""

    @property
    def tax_total(self) -> int:
        return sum(line.amount for line in self.taxes)

    @property
    def fee_total(self) -> int:
        return sum(line.amount for line in self.fees)

    @property
    def withholding_total(self) -> int:
        return sum(line.amount for line in self.withholdings)

    @property
    def seller_payout(self) -> int:
        """Amount actually paid out: seller_net less seller-borne taxes."""
        return self.seller_net - self.withholding_total

    def to_dict(self) -> dict:
        return {
            "currency": self.currency,
            "subtotal": self.subtotal,
            "taxes": [line.to_dict() for line in self.taxes],
            "fees": [line.to_dict() for line in self.fees],
            "withholdings": [line.to_dict() for line in self.withholdings],
            "discount": self.discount,
            "total": self.total,
            "platform_cut": self.platform_cut,
            "platform_rate": str(self.platform_rate),
            "revenue_scheme_id": self.revenue_scheme_id,
            "seller_net": self.seller_net,
            "seller_payout": self.seller_payout,
            "snapshot_id": self.snapshot_id,
        }

    @property
    def fingerprint(self) -> str:
        """SHA-256 of the canonical JSON form; equal breakdowns share it."""
        return hash_payload(self.to_dict())


class OrderMonetizationCalculator:
    """
    Compute PaymentBreakdowns from a frozen rule snapshot.

    Stateless; one instance may be shared across threads.

    Validation order: subtotal, currency, discount, payment method. Rule
    resolution follows: taxes, revenue scheme, fees, then the payment
    method's amount limits on the final total.
    """

    @traced_engine("monetization", "1.0", fingerprint_fields=("request", "snapshot"))
    def calculate(
        self,
        request: MonetizationRequest,
        snapshot: MonetizationSnapshot,
    ) -> PaymentBreakdown:
        """
        Price one order.

        Raises:
            InvalidAmountError: subtotal is not a non-negative integer.
            UnsupportedCurrencyError: currency not configured or disabled.
            InvalidDiscountError: discount is not an integer in [0, subtotal].
            PaymentMethodUnavailableError: method unknown or disabled.
            NoRevenueSchemeError: no scheme resolves for the seller.
            ExchangeRateNotFoundError: a fixed amount needs a missing rate.
            BelowMinimumAmountError / AboveMaximumAmountError: total is
                outside the payment method's limits.
            BreakdownInvariantViolation: internal arithmetic drift.
        """
        t0 = time.monotonic()
        with LogContext.bind(seller_id=request.seller_id):
            logger.info("monetization_started", extra={
                "subtotal": request.subtotal,
                "currency": request.currency,
                "country": request.country,
                "discount": request.discount,
                "payment_method": (
                    request.payment_method.value
                    if isinstance(request.payment_method, PaymentMethod)
                    else request.payment_method
                ),
                "escrow": request.escrow,
                "snapshot_id": snapshot.snapshot_id,
            })

            breakdown = self._calculate(request, snapshot)

            duration_ms = round((time.monotonic() - t0) * 1000, 2)
            logger.info("monetization_completed", extra={
                "subtotal": breakdown.subtotal,
                "tax_total": breakdown.tax_total,
                "fee_total": breakdown.fee_total,
                "discount": breakdown.discount,
                "total": breakdown.total,
                "platform_cut": breakdown.platform_cut,
                "seller_net": breakdown.seller_net,
                "revenue_scheme_id": breakdown.revenue_scheme_id,
                "fingerprint": breakdown.fingerprint,
                "duration_ms": duration_ms,
            })
        return breakdown

    def _calculate(
        self,
        request: MonetizationRequest,
        snapshot: MonetizationSnapshot,
    ) -> PaymentBreakdown:
        subtotal = self._validate_subtotal(request.subtotal)
        currency = self._validate_currency(request.currency, snapshot)
        discount = self._validate_discount(request.discount, subtotal)
        method_config = None
        if request.payment_method is not None:
            method_config = resolve_payment_method(snapshot, request.payment_method)

        at = ensure_utc(request.transaction_at)

        rules = select_applicable_tax_rules(
            snapshot.tax_rules,
            country=request.country,
            at=at,
            subtotal=subtotal,
            currency=currency,
            category=request.category,
            user_type=request.user_type,
            snapshot=snapshot,
        )
        taxes, withholdings = compute_tax_lines(
            rules=rules, subtotal=subtotal, currency=currency, snapshot=snapshot
        )

        scheme = resolve_revenue_scheme(
            snapshot.revenue_schemes, request.seller_id, at, request.seller_tier
        )
        if snapshot.revenue_share_basis is RevenueShareBasis.DISCOUNTED_SUBTOTAL:
            basis = subtotal - discount
        else:
            basis = subtotal
        platform_cut = compute_platform_cut(basis, scheme.rate)

        fees: tuple[FeeLine, ...] = ()
        if method_config is not None:
            fees = (compute_payment_method_fee(method_config, subtotal, currency, snapshot),)

        total = (
            subtotal
            - discount
            + sum(line.amount for line in taxes)
            + sum(line.amount for line in fees)
        )
        if method_config is not None:
            check_amount_limits(method_config, total, currency, snapshot)

        seller_net = subtotal - discount - platform_cut
        if seller_net < 0:
            logger.warning("seller_net_negative", extra={
                "subtotal": subtotal,
                "discount": discount,
                "platform_cut": platform_cut,
                "seller_net": seller_net,
            })

        breakdown = PaymentBreakdown(
            currency=currency,
            subtotal=subtotal,
            taxes=taxes,
            fees=fees,
            discount=discount,
            total=total,
            platform_cut=platform_cut,
            seller_net=seller_net,
            withholdings=withholdings,
            revenue_scheme_id=scheme.scheme_id,
            platform_rate=scheme.rate,
            snapshot_id=snapshot.snapshot_id,
        )
        verify_breakdown(breakdown)
        return breakdown

    @staticmethod
    def _validate_subtotal(subtotal: object) -> int:
        if not _is_int(subtotal):
            logger.warning("invalid_subtotal", extra={"subtotal": repr(subtotal)})
            raise InvalidAmountError(subtotal, "must be an integer number of minor units")
        if subtotal < 0:
            logger.warning("invalid_subtotal", extra={"subtotal": subtotal})
            raise InvalidAmountError(subtotal, "must not be negative")
        return subtotal

    @staticmethod
    def _validate_currency(currency: object, snapshot: MonetizationSnapshot) -> str:
        code = currency.upper().strip() if isinstance(currency, str) else ""
        if not code or not snapshot.is_currency_enabled(code):
            logger.warning("unsupported_currency", extra={
                "currency": repr(currency),
                "enabled_currencies": list(snapshot.enabled_currency_codes),
            })
            raise UnsupportedCurrencyError(str(currency), snapshot.enabled_currency_codes)
        return code

    @staticmethod
    def _validate_discount(discount: object, subtotal: int) -> int:
        if not _is_int(discount) or discount < 0 or discount > subtotal:
            logger.warning("invalid_discount", extra={
                "discount": repr(discount),
                "subtotal": subtotal,
            })
            raise InvalidDiscountError(discount, subtotal)
        return discount


def verify_breakdown(breakdown: PaymentBreakdown) -> None:
    """
    Re-derive both reconciliation identities from the breakdown's lines.

    Raises:
        BreakdownInvariantViolation: An identity does not hold. Logged at
            CRITICAL; never corrected.
    """
    expected_total = (
        breakdown.subtotal
        - breakdown.discount
        + breakdown.tax_total
        + breakdown.fee_total
    )
    if breakdown.total != expected_total:
        _report_violation("total", expected_total, breakdown.total)

    expected_net = breakdown.subtotal - breakdown.discount - breakdown.platform_cut
    if breakdown.seller_net != expected_net:
        _report_violation("seller_net", expected_net, breakdown.seller_net)


def _report_violation(invariant: str, expected: int, actual: int) -> None:
    logger.critical("breakdown_invariant_violated", extra={
        "invariant": invariant,
        "expected": expected,
        "actual": actual,
    })
    raise BreakdownInvariantViolation(invariant, expected, actual)
