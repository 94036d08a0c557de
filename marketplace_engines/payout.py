"""
Payout Engine - Group payable payments into seller payout batches.

Pure: payments and the schedule date are inputs; nothing is persisted.

Rules:
    - Only released payments are batched; escrow-held and refunded
      payments wait.
    - One batch per (seller, currency). A payment reference appears in at
      most one item across all batches; when several payments share a
      reference, the one with the lowest (seller_id, currency) is kept.
    - Each item pays ``seller_payout`` (seller_net less withholdings).
    - Batches sort by seller then currency, items by reference, so the
      same payments always yield the same batches and batch ids.
"""

from __future__ import annotations

import time
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable

from marketplace_engines.payment import PaymentAuthorization
from marketplace_engines.tracer import traced_engine
from marketplace_kernel.domain.rules import ensure_utc
from marketplace_kernel.logging_config import get_logger
from marketplace_kernel.utils.hashing import hash_payload

logger = get_logger("engines.payout")

PAYOUT_DELAY = timedelta(days=1)


@dataclass(frozen=True)
class PayoutItem:
    reference: str
    seller_net: int
    withholding: int
    amount: int


@dataclass(frozen=True)
class PayoutBatch:
    batch_id: str
    seller_id: str
    currency: str
    scheduled_for: datetime
    items: tuple[PayoutItem, ...]

    @property
    def total(self) -> int:
        return sum(item.amount for item in self.items)

    @property
    def item_count(self) -> int:
        return len(self.items)


def next_payout_date(settled_at: datetime) -> datetime:
    """Payouts run the day after settlement (T+1)."""
    return ensure_utc(settled_at) + PAYOUT_DELAY


@traced_engine("payout", "1.0", fingerprint_fields=("payments", "scheduled_for"))
def build_payout_batches(
    payments: Iterable[PaymentAuthorization],
    scheduled_for: datetime,
) -> tuple[PayoutBatch, ...]:
    """
    Batch payable payments per seller and currency.

    Args:
        payments: Authorized payments, in any order.
        scheduled_for: When the batches are due to be paid.

    Returns:
        Batches sorted by ``(seller_id, currency)``.
    """
    t0 = time.monotonic()
    when = ensure_utc(scheduled_for)

    payable: list[PaymentAuthorization] = []
    held = 0
    for payment in payments:
        if payment.is_payable:
            payable.append(payment)
        else:
            held += 1
    payable.sort(key=lambda p: (p.reference, p.seller_id, p.currency, p.authorized_at))

    grouped: dict[tuple[str, str], dict[str, PayoutItem]] = defaultdict(dict)
    seen: set[str] = set()
    duplicates = 0
    for payment in payable:
        if payment.reference in seen:
            duplicates += 1
            logger.warning("payout_duplicate_reference", extra={
                "reference": payment.reference,
                "seller_id": payment.seller_id,
            })
            continue
        seen.add(payment.reference)
        key = (payment.seller_id, payment.currency)
        breakdown = payment.breakdown
        grouped[key][payment.reference] = PayoutItem(
            reference=payment.reference,
            seller_net=breakdown.seller_net,
            withholding=breakdown.withholding_total,
            amount=breakdown.seller_payout,
        )

    batches: list[PayoutBatch] = []
    for (seller_id, currency), by_reference in sorted(grouped.items()):
        items = tuple(by_reference[ref] for ref in sorted(by_reference))
        batch_id = "PO-" + hash_payload({
            "seller_id": seller_id,
            "currency": currency,
            "scheduled_for": when,
            "references": [item.reference for item in items],
        })[:16]
        batches.append(PayoutBatch(
            batch_id=batch_id,
            seller_id=seller_id,
            currency=currency,
            scheduled_for=when,
            items=items,
        ))

    duration_ms = round((time.monotonic() - t0) * 1000, 2)
    logger.info("payout_batches_built", extra={
        "batch_count": len(batches),
        "item_count": sum(b.item_count for b in batches),
        "skipped_unreleased": held,
        "skipped_duplicates": duplicates,
        "scheduled_for": when.isoformat(),
        "duration_ms": duration_ms,
    })
    return tuple(batches)
