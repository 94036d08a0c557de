"""Tests for payment-method fees and transaction limits."""

from decimal import Decimal

import pytest

from conftest import make_card, make_snapshot
from marketplace_engines.fees import (
    check_amount_limits,
    compute_payment_method_fee,
    resolve_payment_method,
)
from marketplace_kernel.domain.rules import PaymentMethod
from marketplace_kernel.exceptions import (
    AboveMaximumAmountError,
    BelowMinimumAmountError,
    PaymentMethodUnavailableError,
)


def _bank_transfer(**overrides):
    fields = dict(
        method="bank_transfer",
        name="Bank Transfer",
        fee_percentage=Decimal("0.5"),
        fee_fixed=Decimal("50"),
        max_amount=Decimal("10000000"),
    )
    fields.update(overrides)
    return make_card(**fields)


class TestResolvePaymentMethod:

    def test_enabled_method(self):
        config = resolve_payment_method(make_snapshot(), "card")
        assert config.method is PaymentMethod.CARD

    def test_enum_accepted(self):
        assert resolve_payment_method(make_snapshot(), PaymentMethod.CARD).name

    def test_unconfigured(self):
        with pytest.raises(PaymentMethodUnavailableError) as exc_info:
            resolve_payment_method(make_snapshot(), "mobile_money")
        assert exc_info.value.method == "mobile_money"

    def test_disabled(self, captured_logs):
        snapshot = make_snapshot(payment_methods=(make_card(enabled=False),))
        with pytest.raises(PaymentMethodUnavailableError):
            resolve_payment_method(snapshot, "card")
        record = next(r for r in captured_logs() if r["message"] == "payment_method_unavailable")
        assert record["configured"] is True


class TestComputePaymentMethodFee:

    def test_percentage_only(self):
        line = compute_payment_method_fee(make_card(), 10000, "NGN")
        assert line.amount == 150
        assert line.fixed_amount == 0
        assert line.fee_type == "payment_method:card"

    def test_percentage_plus_fixed(self):
        # 0.5% of 10000 = 50 kobo, plus 50.00 NGN = 5000 kobo
        line = compute_payment_method_fee(_bank_transfer(), 10000, "NGN")
        assert line.fixed_amount == 5000
        assert line.amount == 5050

    def test_fixed_fee_converted(self):
        # 50 NGN in USD at 1/1500 = 0.0333 USD -> 3 cents
        line = compute_payment_method_fee(_bank_transfer(), 10000, "USD", make_snapshot())
        assert line.fixed_amount == 3
        assert line.amount == 53

    def test_no_fees_configured(self):
        line = compute_payment_method_fee(make_card(fee_percentage=None), 10000, "NGN")
        assert line.amount == 0
        assert line.to_dict()["rate"] is None


class TestCheckAmountLimits:

    def test_within_limits(self):
        check_amount_limits(make_card(), 10000, "NGN")

    def test_minimum_is_inclusive(self):
        # 100.00 NGN minimum = 10000 kobo
        check_amount_limits(make_card(), 10000, "NGN")
        with pytest.raises(BelowMinimumAmountError) as exc_info:
            check_amount_limits(make_card(), 9999, "NGN")
        assert exc_info.value.minimum == 10000

    def test_above_maximum(self):
        with pytest.raises(AboveMaximumAmountError) as exc_info:
            check_amount_limits(make_card(), 500_000_001, "NGN")
        assert exc_info.value.maximum == 500_000_000

    def test_no_limits(self):
        check_amount_limits(make_card(min_amount=None, max_amount=None), 1, "NGN")

    def test_limits_converted(self):
        # 100 NGN minimum in USD = 0.0667 USD -> 7 cents
        with pytest.raises(BelowMinimumAmountError):
            check_amount_limits(make_card(), 6, "USD", make_snapshot())
        check_amount_limits(make_card(), 7, "USD", make_snapshot())
