"""
Financial summary over issued breakdowns.

Aggregates platform revenue (the platform's cut), seller revenue
(seller_net), taxes collected by kind and fees by type. All amounts stay
integer minor units of a single currency.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Sequence

from marketplace_engines.monetization import PaymentBreakdown
from marketplace_engines.tracer import traced_engine
from marketplace_kernel.exceptions import CurrencyMismatchError
from marketplace_kernel.logging_config import get_logger

logger = get_logger("engines.reporting")


@dataclass(frozen=True)
class FinancialSummary:
    currency: str
    count: int = 0
    subtotal: int = 0
    discount: int = 0
    charged: int = 0
    platform_revenue: int = 0
    seller_revenue: int = 0
    taxes_collected: int = 0
    fees_collected: int = 0
    withholdings: int = 0
    taxes_by_kind: dict[str, int] = field(default_factory=dict)
    fees_by_type: dict[str, int] = field(default_factory=dict)

    @property
    def seller_payouts(self) -> int:
        return self.seller_revenue - self.withholdings


@traced_engine("reporting", "1.0", fingerprint_fields=("breakdowns", "currency"))
def summarize_breakdowns(
    breakdowns: Sequence[PaymentBreakdown],
    currency: str | None = None,
) -> FinancialSummary:
    """
    Sum a set of breakdowns.

    Args:
        breakdowns: Breakdowns sharing one currency.
        currency: Expected currency; required when ``breakdowns`` is empty.

    Raises:
        CurrencyMismatchError: Breakdowns in more than one currency, or
            not in ``currency``.
        ValueError: No breakdowns and no currency.
    """
    if currency is None:
        if not breakdowns:
            raise ValueError("currency is required to summarize zero breakdowns")
        currency = breakdowns[0].currency
    currency = currency.upper().strip()

    taxes_by_kind: Counter[str] = Counter()
    fees_by_type: Counter[str] = Counter()
    totals: Counter[str] = Counter()

    for breakdown in breakdowns:
        if breakdown.currency != currency:
            logger.error("summary_currency_mismatch", extra={
                "expected": currency,
                "actual": breakdown.currency,
            })
            raise CurrencyMismatchError(currency, breakdown.currency)
        totals["subtotal"] += breakdown.subtotal
        totals["discount"] += breakdown.discount
        totals["charged"] += breakdown.total
        totals["platform_revenue"] += breakdown.platform_cut
        totals["seller_revenue"] += breakdown.seller_net
        totals["taxes_collected"] += breakdown.tax_total
        totals["fees_collected"] += breakdown.fee_total
        totals["withholdings"] += breakdown.withholding_total
        for line in breakdown.taxes + breakdown.withholdings:
            taxes_by_kind[line.kind.value] += line.amount
        for fee in breakdown.fees:
            fees_by_type[fee.fee_type] += fee.amount

    summary = FinancialSummary(
        currency=currency,
        count=len(breakdowns),
        subtotal=totals["subtotal"],
        discount=totals["discount"],
        charged=totals["charged"],
        platform_revenue=totals["platform_revenue"],
        seller_revenue=totals["seller_revenue"],
        taxes_collected=totals["taxes_collected"],
        fees_collected=totals["fees_collected"],
        withholdings=totals["withholdings"],
        taxes_by_kind=dict(sorted(taxes_by_kind.items())),
        fees_by_type=dict(sorted(fees_by_type.items())),
    )
    logger.info("financial_summary_built", extra={
        "currency": currency,
        "count": summary.count,
        "charged": summary.charged,
        "platform_revenue": summary.platform_revenue,
        "seller_revenue": summary.seller_revenue,
    })
    return summary
