"""Tests for minor-unit rounding and currency conversion."""

from decimal import Decimal

import pytest

from conftest import make_snapshot
from marketplace_engines.rounding import from_minor_units, percent_of, to_minor_units
from marketplace_kernel.exceptions import ExchangeRateNotFoundError


class TestPercentOf:

    def test_exact(self):
        assert percent_of(10000, Decimal("7.5")) == 750

    def test_half_even_down(self):
        # 50 * 5% = 2.5 -> 2
        assert percent_of(50, Decimal("5")) == 2

    def test_half_even_up(self):
        # 70 * 5% = 3.5 -> 4
        assert percent_of(70, Decimal("5")) == 4

    def test_zero_amount(self):
        assert percent_of(0, Decimal("7.5")) == 0

    def test_fractional_rate(self):
        assert percent_of(123456, Decimal("0.5")) == 617

    def test_exact_beyond_decimal_precision(self):
        # 7.5% of 10**30 + 7 is 75 * 10**27 + 0.525
        assert percent_of(10**30 + 7, Decimal("7.5")) == 75 * 10**27 + 1

    def test_half_even_at_large_magnitude(self):
        # 10**30 + 10 at 5% ends in .5 on an even quotient
        assert percent_of(10**30 + 10, Decimal("5")) == 5 * 10**28
        assert percent_of(10**30 + 30, Decimal("5")) == 5 * 10**28 + 2


class TestToMinorUnits:

    def test_same_currency(self):
        assert to_minor_units(Decimal("50.00"), "NGN") == 5000

    def test_zero_decimal_currency(self):
        assert to_minor_units(Decimal("1500"), "XOF") == 1500

    def test_converted_via_snapshot_rate(self):
        assert to_minor_units(Decimal("1"), "USD", "NGN", make_snapshot()) == 150000

    def test_inverse_rate(self):
        # 3000 NGN at 1/1500 = 2 USD
        assert to_minor_units(Decimal("3000"), "NGN", "USD", make_snapshot()) == 200

    def test_missing_rate_raises(self, captured_logs):
        with pytest.raises(ExchangeRateNotFoundError) as exc_info:
            to_minor_units(Decimal("10"), "GHS", "NGN", make_snapshot())
        assert exc_info.value.from_currency == "GHS"
        assert any(r["message"] == "exchange_rate_missing" for r in captured_logs())

    def test_no_snapshot_for_conversion(self):
        with pytest.raises(ExchangeRateNotFoundError):
            to_minor_units(Decimal("1"), "USD", "NGN")


class TestFromMinorUnits:

    def test_display_amount(self):
        money = from_minor_units(10750, "NGN")
        assert money.amount == Decimal("107.50")
        assert str(money) == "107.50 NGN"
