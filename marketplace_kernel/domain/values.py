"""
Values -- Immutable, self-validating money value objects.

Responsibility:
    Provides Currency, Money and ExchangeRate. Breakdown arithmetic runs on
    integer minor units; Money is the bridge between configuration amounts
    (Decimal, major units, e.g. "50.00 NGN") and those integers.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    No outward dependencies except marketplace_kernel.domain.currency.

Invariants enforced:
    - Money amounts are Decimal, never float.
    - Currency codes are validated against the ISO 4217 registry at
      construction time.
    - Conversion to minor units is explicit and uses a named rounding mode.

Failure modes:
    - ValueError on construction with invalid amounts, currencies or rates.
    - TypeError when a float is passed as an amount.
    - CurrencyMismatchError when a rate converts money in the wrong currency.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation

from marketplace_kernel.domain.currency import CurrencyRegistry
from marketplace_kernel.exceptions import CurrencyMismatchError


@dataclass(frozen=True, slots=True)
class Currency:
    """
    ISO 4217 currency code value object.

    Guarantees:
        - Immutable and hashable
        - code is always uppercase, stripped, and known to CurrencyRegistry
    """

    code: str

    def __post_init__(self) -> None:
        normalized = self.code.upper().strip() if self.code else ""
        if not CurrencyRegistry.is_valid(normalized):
            raise ValueError(f"Invalid ISO 4217 currency code: {self.code}")
        object.__setattr__(self, "code", normalized)

    @property
    def decimal_places(self) -> int:
        """Minor-unit exponent (2 for NGN, 0 for XOF, 3 for KWD)."""
        return CurrencyRegistry.get_decimal_places(self.code)

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"Currency({self.code!r})"


@dataclass(frozen=True, slots=True)
class Money:
    """
    Monetary amount in major units paired with its Currency.

    Contract:
        Amount and currency are never separated. No auto-rounding: callers
        convert to minor units explicitly via ``to_minor_units``.
    """

    amount: Decimal
    currency: Currency

    def __post_init__(self) -> None:
        if isinstance(self.amount, float):
            raise TypeError("Money amount must not be a float")
        if not isinstance(self.amount, Decimal):
            try:
                object.__setattr__(self, "amount", Decimal(str(self.amount)))
            except (InvalidOperation, ValueError) as e:
                raise ValueError(f"Invalid amount: {self.amount}") from e

        if isinstance(self.currency, str):
            object.__setattr__(self, "currency", Currency(self.currency))
        elif not isinstance(self.currency, Currency):
            raise TypeError(f"currency must be Currency or str, got {type(self.currency)}")

    @classmethod
    def of(cls, amount: Decimal | str | int, currency: str | Currency) -> Money:
        """Create Money from a major-unit amount."""
        if isinstance(amount, (str, int)):
            amount = Decimal(str(amount))
        if isinstance(currency, str):
            currency = Currency(currency)
        return cls(amount=amount, currency=currency)

    @classmethod
    def from_minor_units(cls, units: int, currency: str | Currency) -> Money:
        """Create Money from an integer count of minor units (kobo, cents)."""
        if isinstance(currency, str):
            currency = Currency(currency)
        amount = Decimal(units).scaleb(-currency.decimal_places)
        return cls(amount=amount, currency=currency)

    def to_minor_units(self, rounding: str = ROUND_HALF_EVEN) -> int:
        """
        Convert to an integer count of minor units.

        Sub-minor-unit fractions are rounded with ``rounding``
        (banker's rounding by default, which avoids systematic bias).
        """
        scaled = self.amount.scaleb(self.currency.decimal_places)
        return int(scaled.to_integral_value(rounding=rounding))

    def __str__(self) -> str:
        return f"{self.amount} {self.currency.code}"

    def __repr__(self) -> str:
        return f"Money({self.amount!r}, {self.currency!r})"


@dataclass(frozen=True, slots=True)
class ExchangeRate:
    """
    Exchange rate between two currencies.

    Represents: 1 unit of from_currency = rate units of to_currency.
    The rate must be a positive Decimal.
    """

    from_currency: Currency
    to_currency: Currency
    rate: Decimal

    def __post_init__(self) -> None:
        if isinstance(self.from_currency, str):
            object.__setattr__(self, "from_currency", Currency(self.from_currency))
        if isinstance(self.to_currency, str):
            object.__setattr__(self, "to_currency", Currency(self.to_currency))

        if isinstance(self.rate, float):
            raise TypeError("Exchange rate must not be a float")
        if not isinstance(self.rate, Decimal):
            try:
                object.__setattr__(self, "rate", Decimal(str(self.rate)))
            except (InvalidOperation, ValueError) as e:
                raise ValueError(f"Invalid exchange rate: {self.rate}") from e

        if self.rate <= Decimal("0"):
            raise ValueError(f"Exchange rate must be positive: {self.rate}")

    @classmethod
    def of(
        cls,
        from_currency: str | Currency,
        to_currency: str | Currency,
        rate: Decimal | str | int,
    ) -> ExchangeRate:
        if isinstance(rate, (str, int)):
            rate = Decimal(str(rate))
        return cls(from_currency=from_currency, to_currency=to_currency, rate=rate)

    def convert(self, money: Money) -> Money:
        """
        Convert money from from_currency to to_currency.

        Does not round; the caller converts the result to minor units.

        Raises:
            CurrencyMismatchError: If money is not in from_currency.
        """
        if money.currency != self.from_currency:
            raise CurrencyMismatchError(money.currency.code, self.from_currency.code)
        return Money(amount=money.amount * self.rate, currency=self.to_currency)

    def inverse(self) -> ExchangeRate:
        """If this rate is USD->NGN at 1500, inverse is NGN->USD at 1/1500."""
        return ExchangeRate(
            from_currency=self.to_currency,
            to_currency=self.from_currency,
            rate=Decimal("1") / self.rate,
        )

    @property
    def pair(self) -> tuple[str, str]:
        return (self.from_currency.code, self.to_currency.code)

    def __str__(self) -> str:
        return f"{self.from_currency}/{self.to_currency} = {self.rate}"
