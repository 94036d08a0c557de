"""Currency -- ISO 4217 registry and minor-unit exponents."""

from dataclasses import dataclass
from typing import ClassVar

from marketplace_kernel.exceptions import InvalidCurrencyError


@dataclass(frozen=True)
class CurrencyInfo:
    """Information about a single ISO 4217 currency."""

    code: str
    decimal_places: int
    name: str


class CurrencyRegistry:
    """Registry of ISO 4217 currencies the marketplace can settle in."""

    # Source: https://www.iso.org/iso-4217-currency-codes.html
    _CURRENCIES: ClassVar[dict[str, CurrencyInfo]] = {
        # West Africa
        "NGN": CurrencyInfo("NGN", 2, "Nigerian Naira"),
        "GHS": CurrencyInfo("GHS", 2, "Ghanaian Cedi"),
        "XOF": CurrencyInfo("XOF", 0, "West African CFA Franc"),
        "GMD": CurrencyInfo("GMD", 2, "Gambian Dalasi"),
        "SLE": CurrencyInfo("SLE", 2, "Sierra Leonean Leone"),
        "LRD": CurrencyInfo("LRD", 2, "Liberian Dollar"),
        # Central, East and Southern Africa
        "XAF": CurrencyInfo("XAF", 0, "Central African CFA Franc"),
        "KES": CurrencyInfo("KES", 2, "Kenyan Shilling"),
        "UGX": CurrencyInfo("UGX", 0, "Ugandan Shilling"),
        "TZS": CurrencyInfo("TZS", 2, "Tanzanian Shilling"),
        "RWF": CurrencyInfo("RWF", 0, "Rwandan Franc"),
        "ETB": CurrencyInfo("ETB", 2, "Ethiopian Birr"),
        "ZAR": CurrencyInfo("ZAR", 2, "South African Rand"),
        "ZMW": CurrencyInfo("ZMW", 2, "Zambian Kwacha"),
        "MWK": CurrencyInfo("MWK", 2, "Malawian Kwacha"),
        "BWP": CurrencyInfo("BWP", 2, "Botswana Pula"),
        # North Africa and Middle East
        "EGP": CurrencyInfo("EGP", 2, "Egyptian Pound"),
        "MAD": CurrencyInfo("MAD", 2, "Moroccan Dirham"),
        "TND": CurrencyInfo("TND", 3, "Tunisian Dinar"),
        "AED": CurrencyInfo("AED", 2, "UAE Dirham"),
        "KWD": CurrencyInfo("KWD", 3, "Kuwaiti Dinar"),
        "BHD": CurrencyInfo("BHD", 3, "Bahraini Dinar"),
        # Major settlement currencies
        "USD": CurrencyInfo("USD", 2, "US Dollar"),
        "EUR": CurrencyInfo("EUR", 2, "Euro"),
        "GBP": CurrencyInfo("GBP", 2, "Pound Sterling"),
        "CAD": CurrencyInfo("CAD", 2, "Canadian Dollar"),
        "CHF": CurrencyInfo("CHF", 2, "Swiss Franc"),
        "CNY": CurrencyInfo("CNY", 2, "Chinese Yuan"),
        "INR": CurrencyInfo("INR", 2, "Indian Rupee"),
        "JPY": CurrencyInfo("JPY", 0, "Japanese Yen"),
        "KRW": CurrencyInfo("KRW", 0, "South Korean Won"),
    }

    # Default decimal places for unknown currencies
    DEFAULT_DECIMAL_PLACES: ClassVar[int] = 2

    @classmethod
    def is_valid(cls, code: str) -> bool:
        """Check if a currency code is known to the registry."""
        if not code or not isinstance(code, str):
            return False
        return code.upper().strip() in cls._CURRENCIES

    @classmethod
    def get_info(cls, code: str) -> CurrencyInfo | None:
        """Get currency information by code."""
        if not code or not isinstance(code, str):
            return None
        return cls._CURRENCIES.get(code.upper().strip())

    @classmethod
    def get_decimal_places(cls, code: str) -> int:
        """Get the minor-unit exponent for a currency."""
        info = cls.get_info(code)
        return info.decimal_places if info else cls.DEFAULT_DECIMAL_PLACES

    @classmethod
    def validate(cls, code: str) -> str:
        """Validate and normalize a currency code."""
        if not code or not isinstance(code, str):
            raise InvalidCurrencyError(str(code))

        normalized = code.upper().strip()
        if len(normalized) != 3:
            raise InvalidCurrencyError(code)
        if normalized not in cls._CURRENCIES:
            raise InvalidCurrencyError(code)
        return normalized
