"""Input validation package."""

from javali.validation.inputs import parse_input, require_positive

__all__ = ["parse_input", "require_positive"]
