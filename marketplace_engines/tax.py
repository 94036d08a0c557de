"""
Tax Engine - Resolve and compute the tax lines of an order.

Pure functions with no I/O; rules come from a MonetizationSnapshot or a
RuleStore.

Rules apply in ascending ``rule_id`` order. Every rule is levied on the
original subtotal except compounding rules, which are levied on the
subtotal plus the payer-borne taxes computed before them. Seller-borne
rules (e.g. withholding tax) produce withholding lines that reduce the
seller's payout instead of the payer's charge.

Usage:
    from marketplace_engines.tax import compute_tax_lines, select_applicable_tax_rules

    rules = select_applicable_tax_rules(
        snapshot.tax_rules,
        country="NG",
        at=transaction_at,
        subtotal=10000,
        currency="NGN",
    )
    taxes, withholdings = compute_tax_lines(rules=rules, subtotal=10000, currency="NGN")
    taxes[0].amount  # 750 for a 7.5% VAT rule
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Sequence

from marketplace_engines.rounding import percent_of, to_minor_units
from marketplace_engines.tracer import traced_engine
from marketplace_kernel.domain.rules import (
    MonetizationSnapshot,
    TaxBearer,
    TaxKind,
    TaxRule,
    effective_tax_rules,
)
from marketplace_kernel.logging_config import get_logger

logger = get_logger("engines.tax")


@dataclass(frozen=True)
class TaxLine:
    """
    One applied tax.

    ``rate`` is the rule's rate as configured: a percentage, or a fixed
    major-unit amount when ``is_fixed``. ``taxable_amount`` and ``amount``
    are integer minor units of the transaction currency.
    """

    rule_id: str
    kind: TaxKind
    name: str
    rate: Decimal
    taxable_amount: int
    amount: int
    is_fixed: bool = False
    is_compound: bool = False
    borne_by: TaxBearer = TaxBearer.PAYER

    def to_dict(self) -> dict:
        return {
            "rule_id": self.rule_id,
            "kind": self.kind.value,
            "name": self.name,
            "rate": str(self.rate),
            "is_fixed": self.is_fixed,
            "is_compound": self.is_compound,
            "borne_by": self.borne_by.value,
            "taxable_amount": self.taxable_amount,
            "amount": self.amount,
        }


def _threshold_minor(
    rule: TaxRule, currency: str, snapshot: MonetizationSnapshot | None
) -> int | None:
    if rule.threshold is None:
        return None
    return to_minor_units(rule.threshold, rule.currency or currency, currency, snapshot)


def select_applicable_tax_rules(
    rules: Sequence[TaxRule],
    country: str,
    at: datetime,
    subtotal: int,
    currency: str,
    category: str | None = None,
    user_type: str | None = None,
    snapshot: MonetizationSnapshot | None = None,
) -> tuple[TaxRule, ...]:
    """
    Rules that apply to one transaction, ascending by ``rule_id``.

    A rule applies when it is active, valid at ``at``, scoped to
    ``country``, tagged for the category or user type (or untagged), and
    the subtotal reaches its threshold.
    """
    selected: list[TaxRule] = []
    for rule in effective_tax_rules(rules, country, at):
        if not rule.matches_tags(category, user_type):
            continue
        threshold = _threshold_minor(rule, currency, snapshot)
        if threshold is not None and subtotal < threshold:
            logger.debug("tax_rule_below_threshold", extra={
                "rule_id": rule.rule_id,
                "subtotal": subtotal,
                "threshold": threshold,
            })
            continue
        selected.append(rule)

    logger.debug("tax_rules_selected", extra={
        "country": country,
        "category": category,
        "user_type": user_type,
        "rule_ids": [r.rule_id for r in selected],
    })
    return tuple(selected)


@traced_engine("tax", "1.0", fingerprint_fields=("rules", "subtotal", "currency"))
def compute_tax_lines(
    rules: Sequence[TaxRule],
    subtotal: int,
    currency: str,
    snapshot: MonetizationSnapshot | None = None,
) -> tuple[tuple[TaxLine, ...], tuple[TaxLine, ...]]:
    """
    Compute tax amounts for already-selected rules.

    Args:
        rules: Applicable rules; applied in ascending ``rule_id`` order
            regardless of the order given.
        subtotal: Order subtotal in minor units.
        currency: Transaction currency.
        snapshot: Supplies exchange rates for fixed amounts configured in
            another currency.

    Returns:
        ``(taxes, withholdings)``: payer-borne lines and seller-borne lines.

    Raises:
        ExchangeRateNotFoundError: A fixed rule's currency has no rate to
            the transaction currency.
    """
    t0 = time.monotonic()
    logger.info("tax_calculation_started", extra={
        "subtotal": subtotal,
        "currency": currency,
        "rule_count": len(rules),
    })

    taxes: list[TaxLine] = []
    withholdings: list[TaxLine] = []
    payer_tax_total = 0

    for rule in sorted(rules, key=lambda r: r.rule_id):
        base = subtotal + payer_tax_total if rule.is_compound else subtotal
        if rule.is_fixed:
            amount = to_minor_units(rule.rate, rule.currency or currency, currency, snapshot)
        else:
            amount = percent_of(base, rule.rate)

        line = TaxLine(
            rule_id=rule.rule_id,
            kind=rule.kind,
            name=rule.name,
            rate=rule.rate,
            taxable_amount=base,
            amount=amount,
            is_fixed=rule.is_fixed,
            is_compound=rule.is_compound,
            borne_by=rule.borne_by,
        )
        if rule.borne_by is TaxBearer.SELLER:
            withholdings.append(line)
        else:
            taxes.append(line)
            payer_tax_total += amount

    duration_ms = round((time.monotonic() - t0) * 1000, 2)
    logger.info("tax_calculation_completed", extra={
        "tax_total": payer_tax_total,
        "tax_line_count": len(taxes),
        "withholding_count": len(withholdings),
        "duration_ms": duration_ms,
    })
    return tuple(taxes), tuple(withholdings)
