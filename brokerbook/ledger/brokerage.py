"""Brokerage and currency arithmetic primitives."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from brokerbook.domain.errors import InvalidInputError


CURRENCY_QUANTUM = Decimal("0.01")
PRICE_QUANTUM = Decimal("0.0001")
_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


def brokerage_to_decimal(value: object, field_name: str) -> Decimal:
    """Coerce numeric input to a finite `Decimal`.

    Floats go through `str()` so binary noise is not carried into currency math.

    Args:
        value: Candidate numeric value (`Decimal`, `int`, `float` or numeric string).
        field_name: Field name for error reporting.

    Returns:
        Decimal: Finite decimal value.

    Raises:
        InvalidInputError: Raised when value is missing, non-numeric or non-finite.
    """

    if value is None or isinstance(value, bool):
        raise InvalidInputError(f"{field_name} must be a number")
    if isinstance(value, Decimal):
        candidate = value
    else:
        try:
            candidate = Decimal(str(value).strip())
        except (InvalidOperation, ValueError) as error:
            raise InvalidInputError(f"{field_name} must be a number, got {value!r}") from error

    if not candidate.is_finite():
        raise InvalidInputError(f"{field_name} must be finite")
    return candidate


def brokerage_round_currency(value: Decimal) -> Decimal:
    """Round a monetary value half-up to two decimal places."""

    return value.quantize(CURRENCY_QUANTUM, rounding=ROUND_HALF_UP)


def brokerage_round_price(value: Decimal) -> Decimal:
    """Round an average price half-up to four decimal places."""

    return value.quantize(PRICE_QUANTUM, rounding=ROUND_HALF_UP)


def brokerage_trade_amount(quantity: int, rate: object) -> Decimal:
    """Compute `quantity * rate` at currency precision.

    Args:
        quantity: Positive unit quantity.
        rate: Positive trade price.

    Returns:
        Decimal: Rounded trade amount.

    Raises:
        InvalidInputError: Raised when quantity or rate is not positive.
    """

    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidInputError("quantity must be a positive integer")
    rate_value = brokerage_to_decimal(rate, "rate")
    if rate_value <= _ZERO:
        raise InvalidInputError("rate must be greater than zero")
    return brokerage_round_currency(Decimal(quantity) * rate_value)


def brokerage_compute(amount: object, rate_percent: object) -> Decimal:
    """Compute brokerage as `amount * rate_percent / 100` rounded half-up to 0.01.

    Args:
        amount: Trade amount, zero or positive.
        rate_percent: Brokerage percentage, zero or positive.

    Returns:
        Decimal: Non-negative brokerage amount.

    Raises:
        InvalidInputError: Raised when either input is negative or non-finite.
    """

    amount_value = brokerage_to_decimal(amount, "amount")
    rate_value = brokerage_to_decimal(rate_percent, "rate_percent")
    if amount_value < _ZERO:
        raise InvalidInputError("amount must not be negative")
    if rate_value < _ZERO:
        raise InvalidInputError("rate_percent must not be negative")
    return brokerage_round_currency(amount_value * rate_value / _HUNDRED)


__all__ = [
    "CURRENCY_QUANTUM",
    "PRICE_QUANTUM",
    "brokerage_compute",
    "brokerage_round_currency",
    "brokerage_round_price",
    "brokerage_to_decimal",
    "brokerage_trade_amount",
]
