"""Unit tests for the ISO 4217 currency registry."""

import pytest

from marketplace_kernel.domain.currency import CurrencyRegistry
from marketplace_kernel.exceptions import InvalidCurrencyError


class TestCurrencyRegistry:

    def test_known_codes(self):
        assert CurrencyRegistry.is_valid("NGN")
        assert CurrencyRegistry.is_valid("usd")
        assert not CurrencyRegistry.is_valid("ABC")
        assert not CurrencyRegistry.is_valid("")

    def test_decimal_places(self):
        assert CurrencyRegistry.get_decimal_places("NGN") == 2
        assert CurrencyRegistry.get_decimal_places("JPY") == 0
        assert CurrencyRegistry.get_decimal_places("BHD") == 3

    def test_unknown_code_uses_default_places(self):
        assert CurrencyRegistry.get_decimal_places("ZZZ") == CurrencyRegistry.DEFAULT_DECIMAL_PLACES

    def test_validate_normalizes(self):
        assert CurrencyRegistry.validate(" ghs ") == "GHS"

    @pytest.mark.parametrize("code", ["", "NG", "NAIRA", "ZZZ"])
    def test_validate_rejects(self, code):
        with pytest.raises(InvalidCurrencyError):
            CurrencyRegistry.validate(code)

    def test_invalid_currency_is_value_error(self):
        with pytest.raises(ValueError):
            CurrencyRegistry.validate("ZZZ")

    def test_info(self):
        info = CurrencyRegistry.get_info("kes")
        assert info is not None
        assert (info.code, info.decimal_places) == ("KES", 2)
        assert CurrencyRegistry.get_info("ZZZ") is None
