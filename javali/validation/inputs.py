"""
Input Validation

DESIGN DECISION: Caller input is parsed into a pydantic model at the
boundary of every mutating operation. Pydantic's own error is translated
into the core's ValidationError so callers handle one exception type,
and it is raised before any state is touched.

Validation NEVER silently fixes input. It reports what is wrong.
"""

from typing import Any, Type, TypeVar, Union

import pydantic

from javali.aggregation import to_decimal
from javali.errors import ValidationError

M = TypeVar("M", bound=pydantic.BaseModel)


def parse_input(model: Type[M], data: Union[M, dict[str, Any]]) -> M:
    """
    Coerce `data` into `model`, raising ValidationError on failure.

    Instances of `model` are re-validated so models built with
    `model_construct` cannot bypass the checks.
    """
    try:
        if isinstance(data, model):
            return model.model_validate(data.model_dump(exclude_unset=True))
        return model.model_validate(data)
    except pydantic.ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or None
        raise ValidationError(
            f"Invalid {model.__name__}: {field or 'input'}: {first['msg']}",
            field=field,
        ) from e


def require_positive(value, field: str):
    """Reject amounts that are not strictly positive and finite."""
    try:
        amount = to_decimal(value)
    except (ArithmeticError, ValueError, TypeError) as e:
        raise ValidationError(f"{field} must be a number", field=field) from e
    if not amount.is_finite() or amount <= 0:
        raise ValidationError(f"{field} must be a positive number", field=field)
    return amount
