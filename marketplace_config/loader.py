"""
Configuration Loader (``marketplace_config.loader``).

Responsibility
--------------
Loads YAML fragment files and parses their entries into the kernel's
immutable rule entities. Build/test tooling only: runtime code obtains
configuration through ``marketplace_config.get_active_snapshot()``.

Invariants enforced
-------------------
* Required keys are never defaulted; a missing key raises ``KeyError``.
* Rates and amounts become ``Decimal`` via their YAML text, so ``7.5``
  in a fragment is exactly ``Decimal("7.5")``.
* Timestamps become timezone-aware UTC; bare dates mean midnight UTC.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError``.
* Malformed YAML  -> ``yaml.YAMLError``.
* Missing required keys  -> ``KeyError``.
* Bad values (dates, rates, currencies, enum members)  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from marketplace_config.schema import ConfigScope
from marketplace_kernel.domain.rules import (
    CurrencyConfig,
    PaymentMethodConfig,
    RevenueShareScheme,
    TaxRule,
    ensure_utc,
)
from marketplace_kernel.domain.values import ExchangeRate


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load one YAML file; an empty file yields ``{}``."""
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_datetime(value: Any) -> datetime:
    """
    Parse a timestamp from YAML.

    Accepts datetime objects (PyYAML parses unquoted timestamps), dates
    (taken as midnight UTC), and ISO-8601 strings.

    Raises:
        ValueError: if ``value`` is not a timestamp.
    """
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, str):
        return ensure_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
    raise ValueError(f"Cannot parse timestamp from {value!r}")


def _optional_datetime(data: dict[str, Any], key: str) -> datetime | None:
    return parse_datetime(data[key]) if data.get(key) is not None else None


def parse_decimal(value: Any) -> Decimal:
    """Exact Decimal from a YAML scalar (int, float literal or string)."""
    if isinstance(value, bool):
        raise ValueError(f"Cannot parse decimal from {value!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"Cannot parse decimal from {value!r}") from e


def _optional_decimal(data: dict[str, Any], key: str) -> Decimal | None:
    return parse_decimal(data[key]) if data.get(key) is not None else None


def parse_scope(data: dict[str, Any]) -> ConfigScope:
    return ConfigScope(
        marketplace=data["marketplace"],
        country=data["country"].upper(),
        currency=data["currency"].upper(),
        effective_from=parse_datetime(data["effective_from"]),
        effective_to=_optional_datetime(data, "effective_to"),
    )


def parse_currency(data: dict[str, Any]) -> CurrencyConfig:
    return CurrencyConfig(
        code=data["code"],
        name=data["name"],
        symbol=data["symbol"],
        decimals=int(data["decimals"]),
        enabled=bool(data.get("enabled", True)),
    )


def parse_tax_rule(data: dict[str, Any]) -> TaxRule:
    """
    Parse a TaxRule.

    ``rate`` is a percentage unless ``is_fixed`` is true, in which case it
    is a fixed amount in major units of ``currency``.
    """
    return TaxRule(
        rule_id=data["rule_id"],
        name=data["name"],
        kind=data["kind"],
        rate=parse_decimal(data["rate"]),
        country=data["country"],
        valid_from=parse_datetime(data["valid_from"]),
        valid_to=_optional_datetime(data, "valid_to"),
        is_fixed=bool(data.get("is_fixed", False)),
        threshold=_optional_decimal(data, "threshold"),
        applies_to=tuple(data.get("applies_to", ())),
        is_active=bool(data.get("is_active", True)),
        is_compound=bool(data.get("is_compound", False)),
        currency=data.get("currency"),
        borne_by=data.get("borne_by", "payer"),
    )


def parse_revenue_scheme(data: dict[str, Any]) -> RevenueShareScheme:
    return RevenueShareScheme(
        scheme_id=data["scheme_id"],
        rate=parse_decimal(data["rate"]),
        effective_from=parse_datetime(data["effective_from"]),
        effective_to=_optional_datetime(data, "effective_to"),
        seller_id=data.get("seller_id"),
        tier=data.get("tier", "default"),
        is_active=bool(data.get("is_active", True)),
    )


def parse_payment_method(data: dict[str, Any]) -> PaymentMethodConfig:
    fees = data.get("fees", {})
    limits = data.get("limits", {})
    return PaymentMethodConfig(
        method=data["method"],
        name=data["name"],
        description=data.get("description", ""),
        currency=data["currency"],
        enabled=bool(data.get("enabled", True)),
        fee_percentage=_optional_decimal(fees, "percentage"),
        fee_fixed=_optional_decimal(fees, "fixed"),
        min_amount=_optional_decimal(limits, "min"),
        max_amount=_optional_decimal(limits, "max"),
    )


def parse_exchange_rate(data: dict[str, Any]) -> ExchangeRate:
    return ExchangeRate.of(data["from"], data["to"], parse_decimal(data["rate"]))


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON form of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
