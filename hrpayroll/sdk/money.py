"""Fixed-point money helpers.

Amounts are Decimals end to end. Rounding (half-up to cents) happens once,
when a figure is handed back to a caller.
"""

from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, List, Union

from .errors import FieldError, ValidationError

Numeric = Union[int, float, str, Decimal]

CENTS = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")
MONTHS_PER_YEAR = Decimal("12")

# Largest amount a request may carry. Annualized and summed figures stay
# well inside the default 28-digit decimal context.
MAX_AMOUNT = Decimal("1000000000000")


def to_decimal(value: Numeric) -> Decimal:
    """Convert a number to Decimal.

    Floats go through str() so 0.1 stays 0.1 rather than its binary expansion.

    Raises:
        ValueError: If the value is not numeric (bools included)
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a numeric amount: {value!r}")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        value = str(value)
    try:
        result = Decimal(value)
    except (InvalidOperation, TypeError) as e:
        raise ValueError(f"Not a numeric amount: {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"Not a finite amount: {value!r}")
    return result


def round_money(amount: Decimal) -> Decimal:
    """Round to 2 places, half-up (394.665 -> 394.67).

    Raises:
        ValidationError: The amount has too many digits to carry cents
    """
    try:
        return amount.quantize(CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation as e:
        raise ValidationError([FieldError(
            field="__root__",
            message=f"Amount {amount} is too large to round to cents",
            code="amount_out_of_range",
        )]) from e


def allocate_cents(amounts: List[Decimal]) -> List[Decimal]:
    """Round non-negative amounts to cents so they add up to their rounded total.

    Each amount is truncated to cents, then the cents still missing from
    round_money(sum) go one at a time to the largest remainders (earlier
    entries first on ties). Amounts with no remainder never gain a cent.
    """
    total = round_money(sum(amounts, ZERO))
    floors = [a.quantize(CENTS, rounding=ROUND_DOWN) for a in amounts]
    missing = int((total - sum(floors, ZERO)) / CENTS)
    by_remainder = sorted(
        range(len(amounts)), key=lambda i: (-(amounts[i] - floors[i]), i)
    )
    result = list(floors)
    for index in by_remainder[:missing]:
        result[index] += CENTS
    return result


def percent_of(amount: Decimal, rate: Decimal) -> Decimal:
    """Apply a percentage rate (5 means 5%)."""
    return amount * rate / HUNDRED


def sum_amounts(items: Iterable) -> Decimal:
    """Sum the .amount of income or deduction items."""
    return sum((item.amount for item in items), ZERO)
