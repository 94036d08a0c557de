"""
Pure domain layer.

Money value objects, the currency registry, and the immutable rule
entities the calculator reads. No dependencies on:
- ORM (SQLAlchemy)
- Database
- Wall-clock time (except SystemClock)
- I/O
"""

from marketplace_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from marketplace_kernel.domain.currency import CurrencyInfo, CurrencyRegistry
from marketplace_kernel.domain.rules import (
    DEFAULT_TIER,
    CurrencyConfig,
    MonetizationSnapshot,
    PaymentMethod,
    PaymentMethodConfig,
    RevenueShareBasis,
    RevenueShareScheme,
    TaxBearer,
    TaxKind,
    TaxRule,
    ensure_utc,
)
from marketplace_kernel.domain.values import Currency, ExchangeRate, Money
