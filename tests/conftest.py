"""
Pytest fixtures for the marketplace monetization test suite.

Provides:
- Structured logging configured for every test, plus a capture fixture
- A deterministic clock and administrator id
- In-memory SQLite sessions for selector and service tests
- Rule and snapshot builders for engine tests
"""

import json
import logging
from datetime import datetime, timezone
from decimal import Decimal
from io import StringIO
from typing import Generator
from uuid import UUID, uuid4

import pytest
from sqlalchemy.orm import Session

from marketplace_kernel.db.engine import (
    create_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from marketplace_kernel.domain.clock import DeterministicClock
from marketplace_kernel.domain.rules import (
    CurrencyConfig,
    MonetizationSnapshot,
    PaymentMethodConfig,
    RevenueShareScheme,
    TaxRule,
)
from marketplace_kernel.domain.values import ExchangeRate
from marketplace_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)

JAN_1 = datetime(2026, 1, 1, tzinfo=timezone.utc)
MARCH_1 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture marketplace_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            calculator.calculate(request=request, snapshot=snapshot)
            logs = captured_logs()
            assert any(r["message"] == "monetization_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("marketplace_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Clock and actor fixtures
# =============================================================================


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    return DeterministicClock(MARCH_1)


@pytest.fixture
def test_actor_id() -> UUID:
    return uuid4()


# =============================================================================
# Database fixtures (in-memory SQLite)
# =============================================================================


@pytest.fixture
def session() -> Generator[Session, None, None]:
    """Fresh in-memory database per test."""
    init_engine_from_url("sqlite://")
    create_tables()
    s = get_session()
    try:
        yield s
    finally:
        s.close()
        reset_engine()


# =============================================================================
# Rule builders
# =============================================================================


def make_vat(rate: str = "7.5", **overrides) -> TaxRule:
    fields = dict(
        rule_id="NG-VAT-001",
        name="Value Added Tax",
        kind="vat",
        rate=Decimal(rate),
        country="NG",
        valid_from=JAN_1,
    )
    fields.update(overrides)
    return TaxRule(**fields)


def make_scheme(scheme_id: str = "RS-DEFAULT", rate: str = "5", **overrides) -> RevenueShareScheme:
    fields = dict(scheme_id=scheme_id, rate=Decimal(rate), effective_from=JAN_1)
    fields.update(overrides)
    return RevenueShareScheme(**fields)


def make_card(**overrides) -> PaymentMethodConfig:
    fields = dict(
        method="card",
        name="Debit/Credit Card",
        currency="NGN",
        fee_percentage=Decimal("1.5"),
        min_amount=Decimal("100"),
        max_amount=Decimal("5000000"),
    )
    fields.update(overrides)
    return PaymentMethodConfig(**fields)


NGN = CurrencyConfig(code="NGN", name="Nigerian Naira", symbol="₦", decimals=2)
USD = CurrencyConfig(code="USD", name="US Dollar", symbol="$", decimals=2)
USD_NGN = ExchangeRate.of("USD", "NGN", "1500")


def make_snapshot(**overrides) -> MonetizationSnapshot:
    """NG snapshot: 7.5% VAT, 5% default revenue share, NGN and USD enabled."""
    fields = dict(
        tax_rules=(make_vat(),),
        revenue_schemes=(make_scheme(),),
        payment_methods=(make_card(),),
        currencies=(NGN, USD),
        exchange_rates=(USD_NGN,),
        snapshot_id="test-snapshot",
    )
    fields.update(overrides)
    return MonetizationSnapshot(**fields)


@pytest.fixture
def snapshot() -> MonetizationSnapshot:
    return make_snapshot()
