"""Shared aggregation and rounding rules."""

from javali.aggregation.reducer import (
    ceil_amount,
    group_sum_by,
    mean,
    percentage_of,
    round_money,
    sum_amounts,
    to_decimal,
)

__all__ = [
    "ceil_amount",
    "group_sum_by",
    "mean",
    "percentage_of",
    "round_money",
    "sum_amounts",
    "to_decimal",
]
