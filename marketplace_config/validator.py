"""
Configuration Validator (``marketplace_config.validator``).

Checks an assembled ``MarketplaceConfigSet`` for faults that would only
surface at calculation time, so they are caught when the set is loaded.

Errors (set MUST NOT be used):
    * duplicate tax rule, scheme, payment method or currency ids
    * the settlement currency is not an enabled currency
    * no active default-tier revenue scheme at the scope start
    * a fixed amount, threshold or limit in a currency with no exchange
      rate to the settlement currency

Warnings (review before publishing):
    * tax rules for a country other than the scope's
    * enabled payment methods with neither fees nor limits
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field

from marketplace_config.schema import MarketplaceConfigSet
from marketplace_kernel.domain.rules import DEFAULT_TIER


@dataclass
class ConfigValidationResult:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)


def _duplicates(ids: list[str]) -> list[str]:
    return sorted(i for i, n in Counter(ids).items() if n > 1)


def validate_configuration(config: MarketplaceConfigSet) -> ConfigValidationResult:
    """Validate a configuration set; never raises."""
    result = ConfigValidationResult()
    snapshot = config.snapshot
    settlement = config.scope.currency

    for label, ids in (
        ("tax rule", [r.rule_id for r in snapshot.tax_rules]),
        ("revenue scheme", [s.scheme_id for s in snapshot.revenue_schemes]),
        ("payment method", [m.method.value for m in snapshot.payment_methods]),
        ("currency", [c.code for c in snapshot.currencies]),
    ):
        for dup in _duplicates(ids):
            result.add_error(f"Duplicate {label} id: {dup}")

    if not snapshot.is_currency_enabled(settlement):
        result.add_error(
            f"Settlement currency {settlement} is not an enabled currency"
        )

    start = config.scope.effective_from
    if not any(
        s.is_default and s.tier == DEFAULT_TIER and s.is_effective(start)
        for s in snapshot.revenue_schemes
    ):
        result.add_error(
            f"No active default revenue scheme at {start.isoformat()}"
        )

    def _check_convertible(currency: str | None, owner: str) -> None:
        if currency is None or currency == settlement:
            return
        if snapshot.exchange_rate(currency, settlement) is None:
            result.add_error(
                f"{owner} uses {currency} but no {currency}/{settlement} rate exists"
            )

    for rule in snapshot.tax_rules:
        if rule.is_fixed or rule.threshold is not None:
            _check_convertible(rule.currency, f"Tax rule {rule.rule_id}")
        if rule.country != config.scope.country:
            result.add_warning(
                f"Tax rule {rule.rule_id} targets {rule.country}, "
                f"scope country is {config.scope.country}"
            )

    for method in snapshot.payment_methods:
        _check_convertible(method.currency, f"Payment method {method.method.value}")
        if method.enabled and all(
            v is None
            for v in (
                method.fee_percentage,
                method.fee_fixed,
                method.min_amount,
                method.max_amount,
            )
        ):
            result.add_warning(
                f"Payment method {method.method.value} has no fees or limits"
            )

    return result
