"""
Payment authorization record.

Attaches an issued PaymentBreakdown to a payment. The breakdown is frozen
at this point and never recomputed. The escrow flag chooses the initial
escrow sub-state: funds are either held until release (delivery
confirmed) or released immediately. Escrow never alters the amounts.

The gateway charge itself is an external call; this module only records
what to charge (``charge_amount`` in ``currency``) and the gateway's
opaque reference.

Refunds accumulate against the charge: the payment is partially refunded
until the refunded total reaches ``charge_amount``, then refunded. A
refunded payment, partially or fully, is no longer payable to the seller.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum

from marketplace_engines.monetization import PaymentBreakdown
from marketplace_kernel.domain.rules import PaymentMethod, ensure_utc
from marketplace_kernel.logging_config import get_logger

logger = get_logger("engines.payment")


class EscrowStatus(str, Enum):
    HELD = "held"
    RELEASED = "released"
    PARTIALLY_REFUNDED = "partially_refunded"
    REFUNDED = "refunded"


@dataclass(frozen=True)
class Refund:
    """Money returned to the payer, in minor units of the charge currency."""

    amount: int
    reason: str
    refunded_at: datetime


@dataclass(frozen=True)
class PaymentAuthorization:
    """An authorized payment and its breakdown."""

    reference: str
    seller_id: str
    method: PaymentMethod
    breakdown: PaymentBreakdown
    escrow_status: EscrowStatus
    authorized_at: datetime
    released_at: datetime | None = None
    release_reason: str | None = None
    refunds: tuple[Refund, ...] = ()

    @property
    def charge_amount(self) -> int:
        """What the gateway charges the payer, in minor units."""
        return self.breakdown.total

    @property
    def currency(self) -> str:
        return self.breakdown.currency

    @property
    def refunded_amount(self) -> int:
        return sum(refund.amount for refund in self.refunds)

    @property
    def is_payable(self) -> bool:
        """Funds may be paid out to the seller."""
        return self.escrow_status is EscrowStatus.RELEASED


def authorize_payment(
    breakdown: PaymentBreakdown,
    method: PaymentMethod | str,
    reference: str,
    seller_id: str,
    authorized_at: datetime,
    escrow: bool = False,
) -> PaymentAuthorization:
    """Record an authorization; escrowed payments start ``held``."""
    if not reference:
        raise ValueError("Payment reference is required")
    if not seller_id:
        raise ValueError("Seller id is required")

    at = ensure_utc(authorized_at)
    status = EscrowStatus.HELD if escrow else EscrowStatus.RELEASED
    authorization = PaymentAuthorization(
        reference=reference,
        seller_id=seller_id,
        method=PaymentMethod(method),
        breakdown=breakdown,
        escrow_status=status,
        authorized_at=at,
        released_at=None if escrow else at,
    )
    logger.info("payment_authorized", extra={
        "reference": reference,
        "seller_id": seller_id,
        "method": authorization.method.value,
        "charge_amount": authorization.charge_amount,
        "currency": authorization.currency,
        "escrow_status": status.value,
        "breakdown_fingerprint": breakdown.fingerprint,
    })
    return authorization


def release_escrow(
    authorization: PaymentAuthorization,
    released_at: datetime,
    reason: str,
) -> PaymentAuthorization:
    """
    Release held funds to the seller.

    Raises:
        ValueError: The payment is not held in escrow.
    """
    if authorization.escrow_status is not EscrowStatus.HELD:
        logger.warning("escrow_release_rejected", extra={
            "reference": authorization.reference,
            "escrow_status": authorization.escrow_status.value,
        })
        raise ValueError(
            f"Payment {authorization.reference} is not held in escrow "
            f"(status: {authorization.escrow_status.value})"
        )

    released = replace(
        authorization,
        escrow_status=EscrowStatus.RELEASED,
        released_at=ensure_utc(released_at),
        release_reason=reason,
    )
    logger.info("escrow_released", extra={
        "reference": authorization.reference,
        "seller_id": authorization.seller_id,
        "reason": reason,
    })
    return released


def refund_payment(
    authorization: PaymentAuthorization,
    amount: int,
    refunded_at: datetime,
    reason: str,
) -> PaymentAuthorization:
    """
    Return part or all of the charge to the payer.

    Raises:
        ValueError: ``amount`` is not a positive integer, the payment is
            already fully refunded, or the refunded total would exceed
            the charge.
    """
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise ValueError(f"Refund amount must be a positive integer, got {amount!r}")
    if authorization.escrow_status is EscrowStatus.REFUNDED:
        raise ValueError(f"Payment {authorization.reference} is already fully refunded")

    refunded = authorization.refunded_amount + amount
    if refunded > authorization.charge_amount:
        logger.warning("refund_rejected", extra={
            "reference": authorization.reference,
            "amount": amount,
            "refunded_amount": authorization.refunded_amount,
            "charge_amount": authorization.charge_amount,
        })
        raise ValueError(
            f"Refund of {amount} exceeds the remaining "
            f"{authorization.charge_amount - authorization.refunded_amount} "
            f"on payment {authorization.reference}"
        )

    status = (
        EscrowStatus.REFUNDED
        if refunded == authorization.charge_amount
        else EscrowStatus.PARTIALLY_REFUNDED
    )
    result = replace(
        authorization,
        escrow_status=status,
        refunds=authorization.refunds + (
            Refund(amount=amount, reason=reason, refunded_at=ensure_utc(refunded_at)),
        ),
    )
    logger.info("payment_refunded", extra={
        "reference": authorization.reference,
        "seller_id": authorization.seller_id,
        "amount": amount,
        "refunded_amount": refunded,
        "escrow_status": status.value,
        "reason": reason,
    })
    return result
