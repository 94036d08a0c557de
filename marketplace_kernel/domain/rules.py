"""
Rules -- Immutable monetization configuration entities.

Responsibility:
    Defines the configuration records the calculator reads: TaxRule,
    RevenueShareScheme, PaymentMethodConfig, CurrencyConfig, and the
    MonetizationSnapshot that bundles them for a single calculation.

Architecture position:
    Kernel > Domain -- pure data, zero I/O. Built by marketplace_config
    (YAML) or marketplace_kernel.selectors (database), consumed by
    marketplace_engines.

Invariants enforced:
    - Every entity is a frozen dataclass; collections are tuples.
    - Percentages and fixed amounts are Decimal, never float.
    - All timestamps are timezone-aware UTC (naive values are taken as UTC).
    - Validity windows are half-open: ``valid_from <= at < valid_to``;
      ``valid_to=None`` is open-ended.

Lifecycle:
    Created and updated by platform administrators; read-only during
    calculation. A snapshot is a consistent view as of one read
    transaction and is never mutated after construction.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum

from marketplace_kernel.domain.currency import CurrencyRegistry
from marketplace_kernel.domain.values import ExchangeRate
from marketplace_kernel.utils.hashing import hash_payload


def ensure_utc(value: datetime) -> datetime:
    """Normalize a datetime to UTC; naive values are interpreted as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _to_decimal(value: Decimal | int | str, what: str) -> Decimal:
    if isinstance(value, float):
        raise TypeError(f"{what} must not be a float")
    return value if isinstance(value, Decimal) else Decimal(str(value))


def _within(at: datetime, start: datetime, end: datetime | None) -> bool:
    if at < start:
        return False
    return end is None or at < end


class TaxKind(str, Enum):
    """Kind of tax a rule levies."""

    VAT = "vat"
    SERVICE_TAX = "service_tax"
    WITHHOLDING_TAX = "withholding_tax"
    STAMP_DUTY = "stamp_duty"
    CUSTOM = "custom"


class TaxBearer(str, Enum):
    """Who carries a tax: added to the payer's charge or withheld from the seller."""

    PAYER = "payer"
    SELLER = "seller"


class PaymentMethod(str, Enum):
    CARD = "card"
    BANK_TRANSFER = "bank_transfer"
    MOBILE_MONEY = "mobile_money"
    COD = "cod"
    WALLET = "wallet"
    USSD = "ussd"


class RevenueShareBasis(str, Enum):
    """Amount the platform rate is applied to."""

    SUBTOTAL = "subtotal"
    DISCOUNTED_SUBTOTAL = "discounted_subtotal"


DEFAULT_TIER = "default"


@dataclass(frozen=True)
class TaxRule:
    """
    Jurisdiction- and category-scoped tax definition.

    ``rate`` is a percentage (7.5 means 7.5%) unless ``is_fixed`` is set,
    in which case it is a fixed amount in major units of ``currency``
    (the transaction currency when ``currency`` is None). ``threshold``
    uses the same currency.
    """

    rule_id: str
    name: str
    kind: TaxKind
    rate: Decimal
    country: str
    valid_from: datetime
    valid_to: datetime | None = None
    is_fixed: bool = False
    threshold: Decimal | None = None
    applies_to: tuple[str, ...] = ()
    is_active: bool = True
    is_compound: bool = False
    currency: str | None = None
    borne_by: TaxBearer = TaxBearer.PAYER

    def __post_init__(self) -> None:
        if not self.rule_id:
            raise ValueError("Tax rule id is required")
        object.__setattr__(self, "kind", TaxKind(self.kind))
        object.__setattr__(self, "borne_by", TaxBearer(self.borne_by))
        object.__setattr__(self, "rate", _to_decimal(self.rate, "Tax rate"))
        if self.rate < Decimal("0"):
            raise ValueError(f"Tax rate cannot be negative: {self.rule_id}")
        if self.threshold is not None:
            threshold = _to_decimal(self.threshold, "Tax threshold")
            if threshold < Decimal("0"):
                raise ValueError(f"Tax threshold cannot be negative: {self.rule_id}")
            object.__setattr__(self, "threshold", threshold)
        object.__setattr__(self, "country", self.country.upper().strip())
        object.__setattr__(self, "applies_to", tuple(self.applies_to))
        object.__setattr__(self, "valid_from", ensure_utc(self.valid_from))
        if self.valid_to is not None:
            object.__setattr__(self, "valid_to", ensure_utc(self.valid_to))
            if self.valid_to <= self.valid_from:
                raise ValueError(
                    f"Tax rule {self.rule_id} validity window is empty"
                )
        if self.currency is not None:
            object.__setattr__(self, "currency", CurrencyRegistry.validate(self.currency))

    def is_effective(self, at: datetime) -> bool:
        """Active and inside the validity window at ``at``."""
        return self.is_active and _within(ensure_utc(at), self.valid_from, self.valid_to)

    def matches_tags(self, category: str | None, user_type: str | None) -> bool:
        """An empty tag list applies to everything; otherwise tags must intersect."""
        if not self.applies_to:
            return True
        subject = {t for t in (category, user_type) if t}
        return bool(subject.intersection(self.applies_to))

    def is_applicable(
        self,
        country: str,
        at: datetime,
        category: str | None = None,
        user_type: str | None = None,
    ) -> bool:
        """Applicability excluding the threshold, which needs the subtotal."""
        return (
            self.is_effective(at)
            and self.country == country.upper().strip()
            and self.matches_tags(category, user_type)
        )


@dataclass(frozen=True)
class RevenueShareScheme:
    """
    Platform cut definition.

    ``seller_id=None`` marks a default scheme; ``rate`` is the percentage of
    the subtotal the platform retains.
    """

    scheme_id: str
    rate: Decimal
    effective_from: datetime
    effective_to: datetime | None = None
    seller_id: str | None = None
    tier: str = DEFAULT_TIER
    is_active: bool = True

    def __post_init__(self) -> None:
        if not self.scheme_id:
            raise ValueError("Revenue share scheme id is required")
        rate = _to_decimal(self.rate, "Revenue share rate")
        if rate < Decimal("0") or rate > Decimal("100"):
            raise ValueError(f"Revenue share rate must be within 0..100: {self.scheme_id}")
        object.__setattr__(self, "rate", rate)
        object.__setattr__(self, "effective_from", ensure_utc(self.effective_from))
        if self.effective_to is not None:
            object.__setattr__(self, "effective_to", ensure_utc(self.effective_to))
            if self.effective_to <= self.effective_from:
                raise ValueError(
                    f"Revenue share scheme {self.scheme_id} validity window is empty"
                )

    @property
    def is_default(self) -> bool:
        return self.seller_id is None

    def is_effective(self, at: datetime) -> bool:
        return self.is_active and _within(ensure_utc(at), self.effective_from, self.effective_to)


@dataclass(frozen=True)
class PaymentMethodConfig:
    """
    Fees and limits for one payment method.

    ``fee_fixed``, ``min_amount`` and ``max_amount`` are major units of
    ``currency``.
    """

    method: PaymentMethod
    name: str
    currency: str
    enabled: bool = True
    fee_percentage: Decimal | None = None
    fee_fixed: Decimal | None = None
    min_amount: Decimal | None = None
    max_amount: Decimal | None = None
    description: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "method", PaymentMethod(self.method))
        object.__setattr__(self, "currency", CurrencyRegistry.validate(self.currency))
        for attr in ("fee_percentage", "fee_fixed", "min_amount", "max_amount"):
            value = getattr(self, attr)
            if value is None:
                continue
            value = _to_decimal(value, attr)
            if value < Decimal("0"):
                raise ValueError(f"{attr} cannot be negative for {self.method.value}")
            object.__setattr__(self, attr, value)
        if (
            self.min_amount is not None
            and self.max_amount is not None
            and self.min_amount > self.max_amount
        ):
            raise ValueError(f"min_amount exceeds max_amount for {self.method.value}")


@dataclass(frozen=True)
class CurrencyConfig:
    """A currency the marketplace transacts in."""

    code: str
    name: str
    symbol: str
    decimals: int
    enabled: bool = True

    def __post_init__(self) -> None:
        code = CurrencyRegistry.validate(self.code)
        object.__setattr__(self, "code", code)
        expected = CurrencyRegistry.get_decimal_places(code)
        if self.decimals != expected:
            raise ValueError(
                f"Currency {code} declares {self.decimals} decimals, "
                f"ISO 4217 defines {expected}"
            )


@dataclass(frozen=True)
class MonetizationSnapshot:
    """
    Frozen view of all monetization configuration as of one read.

    The calculator only ever reads from a snapshot; it never reaches for
    live, mutable configuration.
    """

    tax_rules: tuple[TaxRule, ...] = ()
    revenue_schemes: tuple[RevenueShareScheme, ...] = ()
    payment_methods: tuple[PaymentMethodConfig, ...] = ()
    currencies: tuple[CurrencyConfig, ...] = ()
    exchange_rates: tuple[ExchangeRate, ...] = ()
    revenue_share_basis: RevenueShareBasis = RevenueShareBasis.SUBTOTAL
    snapshot_id: str = ""
    checksum: str = ""

    def __post_init__(self) -> None:
        for attr in (
            "tax_rules",
            "revenue_schemes",
            "payment_methods",
            "currencies",
            "exchange_rates",
        ):
            object.__setattr__(self, attr, tuple(getattr(self, attr)))
        object.__setattr__(
            self, "revenue_share_basis", RevenueShareBasis(self.revenue_share_basis)
        )

    @property
    def enabled_currency_codes(self) -> tuple[str, ...]:
        return tuple(sorted(c.code for c in self.currencies if c.enabled))

    def is_currency_enabled(self, code: str) -> bool:
        normalized = code.upper().strip() if isinstance(code, str) else ""
        return normalized in self.enabled_currency_codes

    def payment_method(self, method: PaymentMethod | str) -> PaymentMethodConfig | None:
        key = method.value if isinstance(method, PaymentMethod) else str(method).lower()
        for config in self.payment_methods:
            if config.method.value == key:
                return config
        return None

    def content_hash(self) -> str:
        """SHA-256 of the snapshot contents, excluding its id and checksum."""
        return hash_payload(
            {
                "tax_rules": [asdict(r) for r in self.tax_rules],
                "revenue_schemes": [asdict(s) for s in self.revenue_schemes],
                "payment_methods": [asdict(m) for m in self.payment_methods],
                "currencies": [asdict(c) for c in self.currencies],
                "exchange_rates": [
                    {"pair": list(r.pair), "rate": r.rate} for r in self.exchange_rates
                ],
                "revenue_share_basis": self.revenue_share_basis,
            }
        )

    def exchange_rate(self, from_currency: str, to_currency: str) -> ExchangeRate | None:
        """Direct rate for the pair, else the inverse of the reverse pair."""
        for rate in self.exchange_rates:
            if rate.pair == (from_currency, to_currency):
                return rate
        for rate in self.exchange_rates:
            if rate.pair == (to_currency, from_currency):
                return rate.inverse()
        return None


# ---------------------------------------------------------------------------
# Rule selection (shared by the in-memory and database rule stores)
# ---------------------------------------------------------------------------


def effective_tax_rules(
    rules: tuple[TaxRule, ...] | list[TaxRule],
    country: str,
    at: datetime,
) -> tuple[TaxRule, ...]:
    """Active rules for ``country`` valid at ``at``, ascending by rule_id."""
    normalized = country.upper().strip()
    matching = [r for r in rules if r.country == normalized and r.is_effective(at)]
    return tuple(sorted(matching, key=lambda r: r.rule_id))


def select_revenue_scheme(
    schemes: tuple[RevenueShareScheme, ...] | list[RevenueShareScheme],
    seller_id: str | None,
    at: datetime,
    seller_tier: str | None = None,
) -> RevenueShareScheme | None:
    """
    Pick the single scheme that governs a seller at ``at``.

    Precedence, first non-empty level wins:
        1. seller-specific schemes for ``seller_id``
        2. default schemes whose tier equals ``seller_tier``
        3. default schemes with the ``default`` tier
    Within a level the most recent ``effective_from`` wins, then the
    lowest ``scheme_id``.
    """
    live = [s for s in schemes if s.is_effective(at)]

    levels: list[list[RevenueShareScheme]] = []
    if seller_id is not None:
        levels.append([s for s in live if s.seller_id == seller_id])
    if seller_tier and seller_tier != DEFAULT_TIER:
        levels.append([s for s in live if s.is_default and s.tier == seller_tier])
    levels.append([s for s in live if s.is_default and s.tier == DEFAULT_TIER])

    for candidates in levels:
        if candidates:
            latest = max(s.effective_from for s in candidates)
            return min(
                (s for s in candidates if s.effective_from == latest),
                key=lambda s: s.scheme_id,
            )
    return None
