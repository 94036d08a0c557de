"""
Module: marketplace_kernel.selectors.rule_selector
Responsibility: Read-only rule store over the database. Answers the two
    questions the calculator's caller asks -- which tax rules apply in a
    country at a time, and which revenue scheme governs a seller -- and
    loads a complete MonetizationSnapshot in one transaction.
Architecture position: Kernel > Selectors. Imports models/ and domain/.

Invariants enforced:
    - Read-only; the caller owns the session.
    - Returns immutable domain objects, never ORM rows.
    - Validity and precedence use the same domain functions as the
      in-memory store, so both stores resolve identically.

Failure modes:
    - NoRevenueSchemeError when no scheme resolves for a seller.
    - ValueError when a stored row violates a domain invariant.
"""

from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Sequence

from sqlalchemy import select

from marketplace_kernel.domain.rules import (
    CurrencyConfig,
    MonetizationSnapshot,
    PaymentMethodConfig as PaymentMethodConfigValue,
    RevenueShareBasis,
    RevenueShareScheme as RevenueShareSchemeValue,
    TaxRule as TaxRuleValue,
    effective_tax_rules,
    ensure_utc,
    select_revenue_scheme,
)
from marketplace_kernel.domain.values import ExchangeRate
from marketplace_kernel.exceptions import NoRevenueSchemeError
from marketplace_kernel.logging_config import get_logger
from marketplace_kernel.models.payment_method import PaymentMethodConfig
from marketplace_kernel.models.revenue_share import RevenueShareScheme
from marketplace_kernel.models.tax_rule import TaxRule
from marketplace_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.rules")


def _tax_rule_value(row: TaxRule) -> TaxRuleValue:
    return TaxRuleValue(
        rule_id=row.rule_id,
        name=row.name,
        kind=row.kind,
        rate=Decimal(row.rate),
        country=row.country,
        valid_from=ensure_utc(row.valid_from),
        valid_to=ensure_utc(row.valid_to) if row.valid_to else None,
        is_fixed=row.is_fixed,
        threshold=Decimal(row.threshold) if row.threshold is not None else None,
        applies_to=tuple(row.applies_to or ()),
        is_active=row.is_active,
        is_compound=row.is_compound,
        currency=row.currency,
        borne_by=row.borne_by,
    )


def _scheme_value(row: RevenueShareScheme) -> RevenueShareSchemeValue:
    return RevenueShareSchemeValue(
        scheme_id=row.scheme_id,
        rate=Decimal(row.rate),
        effective_from=ensure_utc(row.effective_from),
        effective_to=ensure_utc(row.effective_to) if row.effective_to else None,
        seller_id=row.seller_id,
        tier=row.tier,
        is_active=row.is_active,
    )


def _method_value(row: PaymentMethodConfig) -> PaymentMethodConfigValue:
    return PaymentMethodConfigValue(
        method=row.method,
        name=row.name,
        description=row.description,
        currency=row.currency,
        enabled=row.enabled,
        fee_percentage=row.fee_percentage,
        fee_fixed=row.fee_fixed,
        min_amount=row.min_amount,
        max_amount=row.max_amount,
    )


class RuleSelector(BaseSelector[TaxRule]):
    """
    Database-backed rule store.

    Time filtering happens in the domain layer rather than SQL so that
    timezone handling is identical across backends.
    """

    def _active_tax_rules(self, country: str | None = None) -> list[TaxRuleValue]:
        stmt = select(TaxRule).where(TaxRule.is_active.is_(True))
        if country is not None:
            stmt = stmt.where(TaxRule.country == country.upper().strip())
        rows = self.session.execute(stmt.order_by(TaxRule.rule_id)).scalars().all()
        return [_tax_rule_value(row) for row in rows]

    def _active_schemes(self) -> list[RevenueShareSchemeValue]:
        rows = self.session.execute(
            select(RevenueShareScheme)
            .where(RevenueShareScheme.is_active.is_(True))
            .order_by(RevenueShareScheme.scheme_id)
        ).scalars().all()
        return [_scheme_value(row) for row in rows]

    def list_applicable_tax_rules(
        self, country: str, timestamp: datetime
    ) -> tuple[TaxRuleValue, ...]:
        """Active tax rules for ``country`` valid at ``timestamp``, by rule_id."""
        rules = effective_tax_rules(self._active_tax_rules(country), country, timestamp)
        logger.debug("tax_rules_listed", extra={
            "country": country,
            "timestamp": timestamp.isoformat(),
            "rule_ids": [r.rule_id for r in rules],
        })
        return rules

    def resolve_revenue_scheme(
        self,
        seller_id: str | None,
        timestamp: datetime,
        seller_tier: str | None = None,
    ) -> RevenueShareSchemeValue:
        """
        The scheme governing ``seller_id`` at ``timestamp``.

        Raises:
            NoRevenueSchemeError: If no seller-specific or default scheme
                is valid at ``timestamp``.
        """
        scheme = select_revenue_scheme(
            self._active_schemes(), seller_id, timestamp, seller_tier
        )
        if scheme is None:
            logger.error("revenue_scheme_unresolved", extra={
                "seller_id": seller_id,
                "seller_tier": seller_tier,
                "timestamp": timestamp.isoformat(),
            })
            raise NoRevenueSchemeError(seller_id, timestamp.isoformat(), seller_tier)
        return scheme

    def list_payment_methods(self) -> tuple[PaymentMethodConfigValue, ...]:
        rows = self.session.execute(
            select(PaymentMethodConfig).order_by(PaymentMethodConfig.method)
        ).scalars().all()
        return tuple(_method_value(row) for row in rows)

    def load_snapshot(
        self,
        as_of: datetime,
        currencies: Sequence[CurrencyConfig],
        exchange_rates: Sequence[ExchangeRate] = (),
        revenue_share_basis: RevenueShareBasis = RevenueShareBasis.SUBTOTAL,
    ) -> MonetizationSnapshot:
        """
        Read every active rule into an immutable snapshot.

        Call inside one transaction (``session_scope``) so concurrent
        administrative edits cannot produce a mix of old and new rules.
        Currencies and exchange rates come from configuration, not the
        database.
        """
        snapshot = MonetizationSnapshot(
            tax_rules=tuple(self._active_tax_rules()),
            revenue_schemes=tuple(self._active_schemes()),
            payment_methods=self.list_payment_methods(),
            currencies=tuple(currencies),
            exchange_rates=tuple(exchange_rates),
            revenue_share_basis=revenue_share_basis,
            snapshot_id=f"db@{ensure_utc(as_of).isoformat()}",
        )
        checksum = snapshot.content_hash()
        logger.info("rule_snapshot_loaded", extra={
            "snapshot_id": snapshot.snapshot_id,
            "checksum": checksum,
            "tax_rule_count": len(snapshot.tax_rules),
            "revenue_scheme_count": len(snapshot.revenue_schemes),
            "payment_method_count": len(snapshot.payment_methods),
        })
        return replace(snapshot, checksum=checksum)
