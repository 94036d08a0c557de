"""
Rule store interface and its in-memory implementation.

``RuleStore`` is the seam between the calculator's callers and wherever
rules live. ``SnapshotRuleStore`` answers from a frozen
MonetizationSnapshot; ``marketplace_kernel.selectors.RuleSelector``
answers from the database with the same resolution rules.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, runtime_checkable

from marketplace_engines.revenue_share import resolve_revenue_scheme
from marketplace_kernel.domain.rules import (
    MonetizationSnapshot,
    RevenueShareScheme,
    TaxRule,
    effective_tax_rules,
)


@runtime_checkable
class RuleStore(Protocol):
    """Read-only source of tax rules and revenue share schemes."""

    def list_applicable_tax_rules(
        self, country: str, timestamp: datetime
    ) -> tuple[TaxRule, ...]:
        ...

    def resolve_revenue_scheme(
        self,
        seller_id: str | None,
        timestamp: datetime,
        seller_tier: str | None = None,
    ) -> RevenueShareScheme:
        ...


class SnapshotRuleStore:
    """RuleStore over one immutable snapshot."""

    def __init__(self, snapshot: MonetizationSnapshot):
        self._snapshot = snapshot

    @property
    def snapshot(self) -> MonetizationSnapshot:
        return self._snapshot

    def list_applicable_tax_rules(
        self, country: str, timestamp: datetime
    ) -> tuple[TaxRule, ...]:
        """Rules active in ``country`` at ``timestamp``, by rule_id.

        Category tags and thresholds depend on the order and are applied
        by the tax engine.
        """
        return effective_tax_rules(self._snapshot.tax_rules, country, timestamp)

    def resolve_revenue_scheme(
        self,
        seller_id: str | None,
        timestamp: datetime,
        seller_tier: str | None = None,
    ) -> RevenueShareScheme:
        """Raises NoRevenueSchemeError when nothing resolves."""
        return resolve_revenue_scheme(
            self._snapshot.revenue_schemes, seller_id, timestamp, seller_tier
        )
