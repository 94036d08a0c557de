"""
Typed Exception Hierarchy for the Marketplace Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Checkout code must react to monetization failures precisely. Parsing
message strings is fragile, so every error here has:
  1. A TYPED exception class (catch by type, not message)
  2. A CODE class attribute (machine-readable, API-safe)
  3. Structured DATA attributes (not just a message string)

Example:
    try:
        breakdown = calculator.calculate(request=request, snapshot=snapshot)
    except InvalidDiscountError as e:
        api_response(code=e.code, discount=e.discount, subtotal=e.subtotal)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    MarketplaceKernelError (base)
    |
    +-- MonetizationError
    |   +-- InvalidAmountError
    |   +-- UnsupportedCurrencyError
    |   +-- NoRevenueSchemeError
    |   +-- BelowMinimumAmountError
    |   +-- AboveMaximumAmountError
    |   +-- InvalidDiscountError
    |   +-- PaymentMethodUnavailableError
    |   +-- BreakdownInvariantViolation
    |
    +-- CurrencyError
        +-- InvalidCurrencyError
        +-- CurrencyMismatchError
        +-- ExchangeRateNotFoundError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category      | Code                         | When Raised
--------------|------------------------------|-----------------------------------------
Monetization  | INVALID_AMOUNT               | Subtotal negative or not an integer
              | UNSUPPORTED_CURRENCY         | Currency not configured or disabled
              | NO_REVENUE_SCHEME            | No scheme resolves (config fault)
              | BELOW_MINIMUM_AMOUNT         | Total under payment method minimum
              | ABOVE_MAXIMUM_AMOUNT         | Total over payment method maximum
              | INVALID_DISCOUNT             | Discount negative or above subtotal
              | PAYMENT_METHOD_UNAVAILABLE   | Method not configured or disabled
              | BREAKDOWN_INVARIANT_VIOLATION| Reconciliation check failed (bug)
--------------|------------------------------|-----------------------------------------
Currency      | INVALID_CURRENCY             | Not a valid ISO 4217 code
              | CURRENCY_MISMATCH            | Mixed currencies in operation
              | EXCHANGE_RATE_NOT_FOUND      | No rate for a currency pair

===============================================================================
HANDLING PATTERNS
===============================================================================

1. Validation errors are user-facing ("discount cannot exceed order amount").
2. NoRevenueSchemeError is a configuration integrity fault: alert operators,
   do not retry.
3. BreakdownInvariantViolation is a bug signal: abort checkout, never
   correct the numbers.

Nothing in this hierarchy is retried automatically -- failures are
deterministic given inputs.
"""


class MarketplaceKernelError(Exception):
    """
    Base exception for all marketplace kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "MARKETPLACE_KERNEL_ERROR"


# Monetization exceptions


class MonetizationError(MarketplaceKernelError):
    """Base exception for order monetization errors."""

    code: str = "MONETIZATION_ERROR"


class InvalidAmountError(MonetizationError):
    """Subtotal is negative or not an integral number of minor units."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, amount: object, reason: str):
        self.amount = amount
        self.reason = reason
        super().__init__(f"Invalid amount {amount!r}: {reason}")


class UnsupportedCurrencyError(MonetizationError):
    """Currency is not configured or not enabled for transactions."""

    code: str = "UNSUPPORTED_CURRENCY"

    def __init__(self, currency: str, enabled_currencies: tuple[str, ...] = ()):
        self.currency = currency
        self.enabled_currencies = enabled_currencies
        super().__init__(
            f"Currency '{currency}' is not enabled "
            f"(enabled: {', '.join(enabled_currencies) or 'none'})"
        )


class NoRevenueSchemeError(MonetizationError):
    """
    No revenue share scheme resolves for the seller at the transaction time.

    This is a configuration integrity fault (no default scheme exists),
    not a per-request error to swallow.
    """

    code: str = "NO_REVENUE_SCHEME"

    def __init__(self, seller_id: str | None, as_of: str, seller_tier: str | None = None):
        self.seller_id = seller_id
        self.as_of = as_of
        self.seller_tier = seller_tier
        super().__init__(
            f"No revenue share scheme for seller={seller_id!r} "
            f"tier={seller_tier!r} as of {as_of}"
        )


class BelowMinimumAmountError(MonetizationError):
    """Total charge is under the payment method's minimum transaction amount."""

    code: str = "BELOW_MINIMUM_AMOUNT"

    def __init__(self, method: str, total: int, minimum: int, currency: str):
        self.method = method
        self.total = total
        self.minimum = minimum
        self.currency = currency
        super().__init__(
            f"Total {total} {currency} (minor units) is below the {method} "
            f"minimum of {minimum}"
        )


class AboveMaximumAmountError(MonetizationError):
    """Total charge exceeds the payment method's maximum transaction amount."""

    code: str = "ABOVE_MAXIMUM_AMOUNT"

    def __init__(self, method: str, total: int, maximum: int, currency: str):
        self.method = method
        self.total = total
        self.maximum = maximum
        self.currency = currency
        super().__init__(
            f"Total {total} {currency} (minor units) exceeds the {method} "
            f"maximum of {maximum}"
        )


class InvalidDiscountError(MonetizationError):
    """Discount is negative, non-integral, or larger than the subtotal."""

    code: str = "INVALID_DISCOUNT"

    def __init__(self, discount: object, subtotal: int):
        self.discount = discount
        self.subtotal = subtotal
        super().__init__(
            f"Discount {discount!r} is invalid for subtotal {subtotal}; "
            f"discount cannot exceed order amount"
        )


class PaymentMethodUnavailableError(MonetizationError):
    """Payment method is not configured or has been disabled."""

    code: str = "PAYMENT_METHOD_UNAVAILABLE"

    def __init__(self, method: str):
        self.method = method
        super().__init__(f"Payment method '{method}' is not available")


class BreakdownInvariantViolation(MonetizationError):
    """
    Reconciliation check failed after assembling a breakdown.

    Any arithmetic drift is a fatal internal error. It is logged at
    CRITICAL and never silently corrected.
    """

    code: str = "BREAKDOWN_INVARIANT_VIOLATION"

    def __init__(self, invariant: str, expected: int, actual: int):
        self.invariant = invariant
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Breakdown invariant '{invariant}' violated: "
            f"expected {expected}, got {actual}"
        )


# Currency-related exceptions


class CurrencyError(MarketplaceKernelError):
    """Base exception for currency-related errors."""

    code: str = "CURRENCY_ERROR"


class InvalidCurrencyError(CurrencyError, ValueError):
    """Invalid ISO 4217 currency code provided. Also a ValueError."""

    code: str = "INVALID_CURRENCY"

    def __init__(self, currency: str):
        self.currency = currency
        super().__init__(f"Invalid ISO 4217 currency code: '{currency}'")


class CurrencyMismatchError(CurrencyError):
    """Attempted operation on mismatched currencies."""

    code: str = "CURRENCY_MISMATCH"

    def __init__(self, currency1: str, currency2: str):
        self.currency1 = currency1
        self.currency2 = currency2
        super().__init__(f"Currency mismatch: {currency1} vs {currency2}")


class ExchangeRateNotFoundError(CurrencyError):
    """No exchange rate found for the currency pair."""

    code: str = "EXCHANGE_RATE_NOT_FOUND"

    def __init__(self, from_currency: str, to_currency: str):
        self.from_currency = from_currency
        self.to_currency = to_currency
        super().__init__(
            f"No exchange rate found for {from_currency}/{to_currency}"
        )

