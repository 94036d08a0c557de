"""
marketplace_services.rule_admin_service -- Administrative writes to the rule store.

Responsibility:
    The only writer of tax rule, revenue scheme and payment method rows.
    Imports a configuration snapshot into the database (upserting by
    business key) and deactivates rules. Calculations never write.

Invariants enforced:
    - Every write records the acting administrator (created_by_id /
      updated_by_id).
    - Rows are matched by business key (rule_id, scheme_id, method), so
      importing the same snapshot twice changes nothing.
    - Deactivation flips ``is_active``; rows are never deleted, so past
      breakdowns stay explainable.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from marketplace_kernel.domain.rules import MonetizationSnapshot
from marketplace_kernel.logging_config import LogContext, get_logger
from marketplace_kernel.models.payment_method import PaymentMethodConfig
from marketplace_kernel.models.revenue_share import RevenueShareScheme
from marketplace_kernel.models.tax_rule import TaxRule

logger = get_logger("services.rule_admin")


class RuleAdminService:
    """Administrative rule maintenance; the caller owns the transaction."""

    def __init__(self, session: Session, actor_id: UUID):
        self._session = session
        self._actor_id = actor_id

    def _upsert(self, model: type, key_attr: str, key: str, values: dict) -> bool:
        row = self._session.execute(
            select(model).where(getattr(model, key_attr) == key)
        ).scalar_one_or_none()
        if row is None:
            self._session.add(model(**values, created_by_id=self._actor_id))
            return True
        for attr, value in values.items():
            setattr(row, attr, value)
        row.updated_by_id = self._actor_id
        return False

    def import_snapshot(self, snapshot: MonetizationSnapshot) -> dict[str, int]:
        """
        Upsert every rule of ``snapshot``.

        Returns:
            Count of rows created per table.
        """
        created = {"tax_rules": 0, "revenue_schemes": 0, "payment_methods": 0}
        with LogContext.bind(actor_id=str(self._actor_id)):
            for rule in snapshot.tax_rules:
                created["tax_rules"] += self._upsert(TaxRule, "rule_id", rule.rule_id, {
                    "rule_id": rule.rule_id,
                    "name": rule.name,
                    "kind": rule.kind.value,
                    "rate": rule.rate,
                    "is_fixed": rule.is_fixed,
                    "threshold": rule.threshold,
                    "applies_to": list(rule.applies_to),
                    "country": rule.country,
                    "valid_from": rule.valid_from,
                    "valid_to": rule.valid_to,
                    "is_active": rule.is_active,
                    "is_compound": rule.is_compound,
                    "currency": rule.currency,
                    "borne_by": rule.borne_by.value,
                })
            for scheme in snapshot.revenue_schemes:
                created["revenue_schemes"] += self._upsert(
                    RevenueShareScheme, "scheme_id", scheme.scheme_id, {
                        "scheme_id": scheme.scheme_id,
                        "seller_id": scheme.seller_id,
                        "tier": scheme.tier,
                        "rate": scheme.rate,
                        "effective_from": scheme.effective_from,
                        "effective_to": scheme.effective_to,
                        "is_active": scheme.is_active,
                    },
                )
            for method in snapshot.payment_methods:
                created["payment_methods"] += self._upsert(
                    PaymentMethodConfig, "method", method.method.value, {
                        "method": method.method.value,
                        "name": method.name,
                        "description": method.description,
                        "enabled": method.enabled,
                        "fee_percentage": method.fee_percentage,
                        "fee_fixed": method.fee_fixed,
                        "currency": method.currency,
                        "min_amount": method.min_amount,
                        "max_amount": method.max_amount,
                    },
                )
            self._session.flush()

            logger.info("rule_snapshot_imported", extra={
                "snapshot_id": snapshot.snapshot_id,
                "created_counts": created,
            })
        return created

    def deactivate_tax_rule(self, rule_id: str) -> None:
        """
        Stop a tax rule from applying to new calculations.

        Raises:
            KeyError: No rule with ``rule_id``.
        """
        row = self._session.execute(
            select(TaxRule).where(TaxRule.rule_id == rule_id)
        ).scalar_one_or_none()
        if row is None:
            raise KeyError(f"Tax rule not found: {rule_id}")
        row.is_active = False
        row.updated_by_id = self._actor_id
        self._session.flush()
        logger.info("tax_rule_deactivated", extra={
            "rule_id": rule_id,
            "actor_id": str(self._actor_id),
        })
