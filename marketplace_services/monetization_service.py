"""
marketplace_services.monetization_service -- Quote and authorize order payments.

Responsibility:
    Imperative shell around the pure calculator: loads a consistent rule
    snapshot from the rule store, supplies the current time from the
    injected clock, and hands both to OrderMonetizationCalculator.

Architecture position:
    Services -- orchestration over engines + kernel selectors.
    Currencies, exchange rates and the revenue-share basis come from the
    configuration snapshot; tax rules, revenue schemes and payment
    methods come from the database.

Invariants enforced:
    - One quote reads all of its rules through one session, so a
      concurrent administrative edit cannot yield a mix of old and new
      rule versions. Callers run it inside ``session_scope()``.
    - Engines never see the clock: the service resolves "now" once and
      passes it as the transaction time.

Usage:
    with session_scope() as session:
        service = MonetizationService(session, config=get_active_snapshot("georgy", now))
        breakdown = service.quote(subtotal=10000, currency="NGN", country="NG",
                                  seller_id="seller-42")
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Session

from marketplace_engines.monetization import (
    MonetizationRequest,
    OrderMonetizationCalculator,
    PaymentBreakdown,
)
from marketplace_engines.payment import PaymentAuthorization, authorize_payment, refund_payment
from marketplace_kernel.domain.clock import Clock, SystemClock
from marketplace_kernel.domain.rules import MonetizationSnapshot, PaymentMethod
from marketplace_kernel.logging_config import LogContext, get_logger
from marketplace_kernel.selectors.rule_selector import RuleSelector

logger = get_logger("services.monetization")


class MonetizationService:
    """
    Quotes orders against the rules stored in the database.

    Contract:
        Receives the Session, Clock and configuration snapshot via
        constructor injection. Never commits; the caller owns the
        transaction.
    """

    def __init__(
        self,
        session: Session,
        config: MonetizationSnapshot,
        clock: Clock | None = None,
        calculator: OrderMonetizationCalculator | None = None,
    ):
        self._session = session
        self._config = config
        self._clock = clock or SystemClock()
        self._calculator = calculator or OrderMonetizationCalculator()
        self._selector = RuleSelector(session)

    def load_snapshot(self, as_of: datetime | None = None) -> MonetizationSnapshot:
        """Current stored rules merged with configured currencies and rates."""
        return self._selector.load_snapshot(
            as_of or self._clock.now(),
            currencies=self._config.currencies,
            exchange_rates=self._config.exchange_rates,
            revenue_share_basis=self._config.revenue_share_basis,
        )

    def quote(
        self,
        subtotal: int,
        currency: str,
        country: str,
        seller_id: str | None = None,
        seller_tier: str | None = None,
        category: str | None = None,
        user_type: str | None = None,
        discount: int = 0,
        payment_method: PaymentMethod | str | None = None,
        escrow: bool = False,
        transaction_at: datetime | None = None,
        order_id: str | None = None,
    ) -> PaymentBreakdown:
        """
        Price one order.

        ``transaction_at`` defaults to the clock's current time. Every
        error of ``OrderMonetizationCalculator.calculate`` propagates.
        """
        at = transaction_at or self._clock.now()
        with LogContext.bind(order_id=order_id, seller_id=seller_id):
            snapshot = self.load_snapshot(at)
            request = MonetizationRequest(
                subtotal=subtotal,
                currency=currency,
                country=country,
                transaction_at=at,
                seller_id=seller_id,
                seller_tier=seller_tier,
                category=category,
                user_type=user_type,
                escrow=escrow,
                discount=discount,
                payment_method=payment_method,
            )
            breakdown = self._calculator.calculate(request=request, snapshot=snapshot)
            logger.info("order_quoted", extra={
                "total": breakdown.total,
                "currency": breakdown.currency,
                "snapshot_checksum": snapshot.checksum,
                "fingerprint": breakdown.fingerprint,
            })
        return breakdown

    def authorize(
        self,
        breakdown: PaymentBreakdown,
        method: PaymentMethod | str,
        reference: str,
        seller_id: str,
        escrow: bool = False,
    ) -> PaymentAuthorization:
        """Attach ``breakdown`` to a gateway authorization at the clock's time."""
        with LogContext.bind(payment_id=reference, seller_id=seller_id):
            return authorize_payment(
                breakdown,
                method=method,
                reference=reference,
                seller_id=seller_id,
                authorized_at=self._clock.now(),
                escrow=escrow,
            )

    def refund(
        self,
        authorization: PaymentAuthorization,
        amount: int,
        reason: str,
    ) -> PaymentAuthorization:
        """Refund ``amount`` minor units of the charge at the clock's time."""
        with LogContext.bind(payment_id=authorization.reference, seller_id=authorization.seller_id):
            return refund_payment(
                authorization,
                amount=amount,
                refunded_at=self._clock.now(),
                reason=reason,
            )
