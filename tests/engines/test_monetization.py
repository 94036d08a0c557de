"""
Tests for the order monetization calculator.

Verifies:
- Worked breakdowns (VAT, platform cut, fees, discounts)
- Validation order and typed errors
- Reconciliation checks and the CRITICAL log on drift
- Determinism: identical inputs give identical fingerprints
"""

from dataclasses import replace
from decimal import Decimal

import pytest

from conftest import MARCH_1, make_card, make_scheme, make_snapshot, make_vat
from marketplace_engines.monetization import (
    MonetizationRequest,
    OrderMonetizationCalculator,
    verify_breakdown,
)
from marketplace_kernel.domain.rules import RevenueShareBasis
from marketplace_kernel.exceptions import (
    BelowMinimumAmountError,
    BreakdownInvariantViolation,
    InvalidAmountError,
    InvalidDiscountError,
    NoRevenueSchemeError,
    PaymentMethodUnavailableError,
    UnsupportedCurrencyError,
)


def _request(**overrides) -> MonetizationRequest:
    fields = dict(
        subtotal=10000,
        currency="NGN",
        country="NG",
        transaction_at=MARCH_1,
        seller_id="seller-42",
    )
    fields.update(overrides)
    return MonetizationRequest(**fields)


class TestBreakdown:

    def setup_method(self):
        self.calculator = OrderMonetizationCalculator()
        self.snapshot = make_snapshot()

    def _calculate(self, **overrides):
        return self.calculator.calculate(request=_request(**overrides), snapshot=self.snapshot)

    def test_vat_and_platform_cut(self):
        breakdown = self._calculate()
        assert breakdown.tax_total == 750
        assert breakdown.platform_cut == 500
        assert breakdown.total == 10750
        assert breakdown.seller_net == 9500
        assert breakdown.fees == ()
        assert breakdown.revenue_scheme_id == "RS-DEFAULT"
        assert breakdown.platform_rate == Decimal("5")
        assert breakdown.snapshot_id == "test-snapshot"

    def test_with_card_fee(self):
        breakdown = self._calculate(payment_method="card")
        assert breakdown.fee_total == 150
        assert breakdown.total == 10900
        assert breakdown.seller_net == 9500

    def test_currency_normalized(self):
        assert self._calculate(currency=" ngn ").currency == "NGN"

    def test_zero_subtotal_with_fixed_rule(self):
        stamp = make_vat(rule_id="NG-STAMP-001", kind="stamp_duty", rate="50", is_fixed=True)
        self.snapshot = make_snapshot(tax_rules=(stamp,))
        breakdown = self._calculate(subtotal=0)
        assert breakdown.total == 5000
        assert breakdown.platform_cut == 0
        assert breakdown.seller_net == 0

    def test_discount_reduces_total_not_cut(self):
        breakdown = self._calculate(discount=2000)
        assert breakdown.total == 8750
        assert breakdown.platform_cut == 500
        assert breakdown.seller_net == 7500

    def test_full_discount_gives_negative_net(self, captured_logs):
        breakdown = self._calculate(subtotal=500, discount=500)
        # VAT 37.5 rounds to 38; cut 25 on the undiscounted subtotal
        assert breakdown.total == 38
        assert breakdown.seller_net == -25
        assert any(r["message"] == "seller_net_negative" for r in captured_logs())

    def test_discounted_basis(self):
        self.snapshot = make_snapshot(
            revenue_share_basis=RevenueShareBasis.DISCOUNTED_SUBTOTAL
        )
        breakdown = self._calculate(discount=2000)
        assert breakdown.platform_cut == 400
        assert breakdown.seller_net == 7600
        assert breakdown.total == 8750

    def test_seller_specific_scheme(self):
        self.snapshot = make_snapshot(
            revenue_schemes=(
                make_scheme(),
                make_scheme("RS-SELLER-42", "2", seller_id="seller-42"),
            )
        )
        breakdown = self._calculate()
        assert breakdown.platform_cut == 200
        assert breakdown.revenue_scheme_id == "RS-SELLER-42"

    def test_withholding_reduces_payout_only(self):
        wht = make_vat(
            rule_id="NG-WHT-001",
            kind="withholding_tax",
            rate="5",
            borne_by="seller",
            applies_to=("services",),
        )
        self.snapshot = make_snapshot(tax_rules=(make_vat(), wht))
        breakdown = self._calculate(category="services")
        assert breakdown.total == 10750
        assert breakdown.withholding_total == 500
        assert breakdown.seller_net == 9500
        assert breakdown.seller_payout == 9000

    def test_escrow_does_not_change_amounts(self):
        assert self._calculate(escrow=True).to_dict() == self._calculate().to_dict()

    def test_rules_outside_window_ignored(self):
        breakdown = self.calculator.calculate(
            request=_request(transaction_at=MARCH_1.replace(year=2025)),
            snapshot=make_snapshot(revenue_schemes=(make_scheme(effective_from=MARCH_1.replace(year=2024)),)),
        )
        assert breakdown.taxes == ()

    def test_naive_transaction_time_taken_as_utc(self):
        naive = _request(transaction_at=MARCH_1.replace(tzinfo=None))
        assert self.calculator.calculate(request=naive, snapshot=self.snapshot).total == 10750

    def test_to_dict(self):
        data = self._calculate(payment_method="card").to_dict()
        assert data["total"] == 10900
        assert data["platform_rate"] == "5"
        assert data["fees"][0]["fee_type"] == "payment_method:card"
        assert data["seller_payout"] == 9500


class TestValidation:

    def setup_method(self):
        self.calculator = OrderMonetizationCalculator()
        self.snapshot = make_snapshot()

    def _calculate(self, **overrides):
        return self.calculator.calculate(request=_request(**overrides), snapshot=self.snapshot)

    @pytest.mark.parametrize("subtotal", [-1, 1.5, True, "10000", None])
    def test_invalid_subtotal(self, subtotal):
        with pytest.raises(InvalidAmountError):
            self._calculate(subtotal=subtotal)

    def test_unsupported_currency(self):
        with pytest.raises(UnsupportedCurrencyError) as exc_info:
            self._calculate(currency="GHS")
        assert exc_info.value.enabled_currencies == ("NGN", "USD")

    def test_subtotal_checked_before_currency(self):
        with pytest.raises(InvalidAmountError):
            self._calculate(subtotal=-5, currency="GHS")

    def test_discount_above_subtotal(self):
        with pytest.raises(InvalidDiscountError) as exc_info:
            self._calculate(subtotal=500, discount=501)
        assert exc_info.value.code == "INVALID_DISCOUNT"

    @pytest.mark.parametrize("discount", [-1, 1.0, False])
    def test_invalid_discount(self, discount):
        with pytest.raises(InvalidDiscountError):
            self._calculate(discount=discount)

    def test_currency_checked_before_discount(self):
        with pytest.raises(UnsupportedCurrencyError):
            self._calculate(currency="GHS", discount=99999)

    def test_unavailable_method(self):
        with pytest.raises(PaymentMethodUnavailableError):
            self._calculate(payment_method="ussd")

    def test_no_revenue_scheme(self):
        self.snapshot = make_snapshot(revenue_schemes=())
        with pytest.raises(NoRevenueSchemeError):
            self._calculate()

    def test_total_below_method_minimum(self):
        # 5000 + 375 VAT + 75 fee = 5450 < 10000 minimum
        with pytest.raises(BelowMinimumAmountError) as exc_info:
            self._calculate(subtotal=5000, payment_method="card")
        assert exc_info.value.total == 5450

    def test_limits_apply_to_total_not_subtotal(self):
        # 9300 + 698 VAT + 140 fee = 10138 clears the 10000 minimum
        self.snapshot = make_snapshot(payment_methods=(make_card(),))
        assert self._calculate(subtotal=9300, payment_method="card").total == 10138


class TestDeterminism:

    def setup_method(self):
        self.calculator = OrderMonetizationCalculator()

    def test_identical_inputs_identical_breakdown(self):
        first = self.calculator.calculate(request=_request(), snapshot=make_snapshot())
        second = self.calculator.calculate(request=_request(), snapshot=make_snapshot())
        assert first == second
        assert first.fingerprint == second.fingerprint

    def test_fingerprint_changes_with_amounts(self):
        first = self.calculator.calculate(request=_request(), snapshot=make_snapshot())
        second = self.calculator.calculate(request=_request(subtotal=10001), snapshot=make_snapshot())
        assert first.fingerprint != second.fingerprint


class TestVerifyBreakdown:

    def setup_method(self):
        self.breakdown = OrderMonetizationCalculator().calculate(
            request=_request(), snapshot=make_snapshot()
        )

    def test_valid_breakdown_passes(self):
        verify_breakdown(self.breakdown)

    def test_total_drift_is_critical(self, captured_logs):
        tampered = replace(self.breakdown, total=self.breakdown.total + 1)
        with pytest.raises(BreakdownInvariantViolation) as exc_info:
            verify_breakdown(tampered)
        assert exc_info.value.invariant == "total"
        record = next(r for r in captured_logs() if r["message"] == "breakdown_invariant_violated")
        assert record["level"] == "CRITICAL"
        assert record["expected"] == 10750
        assert record["actual"] == 10751

    def test_seller_net_drift(self):
        tampered = replace(self.breakdown, seller_net=0)
        with pytest.raises(BreakdownInvariantViolation) as exc_info:
            verify_breakdown(tampered)
        assert exc_info.value.invariant == "seller_net"


class TestLogging:

    def test_started_and_completed(self, captured_logs):
        OrderMonetizationCalculator().calculate(request=_request(), snapshot=make_snapshot())
        logs = captured_logs()
        completed = next(r for r in logs if r["message"] == "monetization_completed")
        assert completed["total"] == 10750
        assert completed["seller_id"] == "seller-42"
        assert "duration_ms" in completed
        assert any(r["message"] == "monetization_started" for r in logs)

    def test_engine_trace(self, captured_logs):
        calculator = OrderMonetizationCalculator()
        calculator.calculate(request=_request(), snapshot=make_snapshot())
        calculator.calculate(request=_request(), snapshot=make_snapshot())
        traces = [
            r for r in captured_logs()
            if r["message"] == "MARKETPLACE_ENGINE_TRACE" and r["engine_name"] == "monetization"
        ]
        assert len(traces) == 2
        assert traces[0]["input_fingerprint"] == traces[1]["input_fingerprint"]
        assert len(traces[0]["input_fingerprint"]) == 16
