"""
Summary Statistics Reducer

DESIGN DECISION: Every total, average and percentage in the finance core
is computed here. The ledger, the goal tracker and the memory layer must
agree to the cent when their numbers are shown side by side, so there is
exactly one aggregation and rounding rule:

- Sums are exact Decimal sums (never rounded)
- Percentages and averages are rounded to 2 places, ROUND_HALF_UP
- Monthly contribution targets round up to a whole unit

No state. Amounts are Decimal; ints and numeric strings are accepted and
converted.
"""

from decimal import ROUND_CEILING, ROUND_HALF_UP, Decimal
from typing import Callable, Hashable, Iterable, TypeVar

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENTS = Decimal("0.01")


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() first so floats keep their printed value (0.1 -> Decimal("0.1"))
    return Decimal(str(value))


def round_money(value) -> Decimal:
    """Round to 2 decimal places, half up."""
    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def ceil_amount(value) -> Decimal:
    """Round up to a whole unit."""
    return to_decimal(value).to_integral_value(rounding=ROUND_CEILING)


def sum_amounts(values: Iterable) -> Decimal:
    total = ZERO
    for value in values:
        total += to_decimal(value)
    return total


def percentage_of(part, whole) -> Decimal:
    """part / whole * 100, 2 places. Returns 0 when whole is 0."""
    whole = to_decimal(whole)
    if whole == ZERO:
        return ZERO
    return round_money(to_decimal(part) / whole * HUNDRED)


def mean(values: Iterable) -> Decimal:
    """Arithmetic mean, 2 places. Returns 0 for no values."""
    items = [to_decimal(v) for v in values]
    if not items:
        return ZERO
    return round_money(sum_amounts(items) / len(items))


def group_sum_by(
    items: Iterable[T],
    key_fn: Callable[[T], K],
    amount_fn: Callable[[T], object],
) -> dict[K, Decimal]:
    """
    Sum amounts per key.

    Keys appear in the order they are first seen in `items`.
    """
    groups: dict[K, Decimal] = {}
    for item in items:
        key = key_fn(item)
        groups[key] = groups.get(key, ZERO) + to_decimal(amount_fn(item))
    return groups
