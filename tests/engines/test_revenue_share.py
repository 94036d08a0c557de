"""Tests for revenue scheme resolution and the platform cut."""

from decimal import Decimal

import pytest

from conftest import JAN_1, MARCH_1, make_scheme
from marketplace_engines.revenue_share import compute_platform_cut, resolve_revenue_scheme
from marketplace_kernel.exceptions import NoRevenueSchemeError


class TestResolveRevenueScheme:

    def setup_method(self):
        self.schemes = (
            make_scheme("RS-DEFAULT", "5"),
            make_scheme("RS-PREMIUM", "3.5", tier="premium"),
            make_scheme("RS-SELLER-42", "2", seller_id="seller-42"),
        )

    def test_default(self):
        assert resolve_revenue_scheme(self.schemes, "seller-1", MARCH_1).scheme_id == "RS-DEFAULT"

    def test_seller_specific(self):
        assert resolve_revenue_scheme(self.schemes, "seller-42", MARCH_1).scheme_id == "RS-SELLER-42"

    def test_tier(self):
        scheme = resolve_revenue_scheme(self.schemes, "seller-1", MARCH_1, "premium")
        assert scheme.rate == Decimal("3.5")

    def test_none_raises(self, captured_logs):
        with pytest.raises(NoRevenueSchemeError) as exc_info:
            resolve_revenue_scheme((), "seller-1", MARCH_1)
        assert exc_info.value.seller_id == "seller-1"
        assert any(r["message"] == "revenue_scheme_unresolved" for r in captured_logs())

    def test_before_any_scheme_starts(self):
        future = (make_scheme(effective_from=MARCH_1),)
        with pytest.raises(NoRevenueSchemeError):
            resolve_revenue_scheme(future, None, JAN_1)


class TestComputePlatformCut:

    @pytest.mark.parametrize(
        "basis,rate,expected",
        [
            (10000, "5", 500),
            (0, "5", 0),
            (10000, "0", 0),
            (10000, "100", 10000),
            (50, "5", 2),
            (12345, "2.5", 309),
        ],
    )
    def test_cut(self, basis, rate, expected):
        assert compute_platform_cut(basis, Decimal(rate)) == expected
