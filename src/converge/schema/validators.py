"""Attribute validator factories.

Each validator is a callable taking the attribute value and returning an
error message, or None when the value is acceptable. Absent and unknown
values are never validated.
"""

import re
from typing import Any, Callable, Optional

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .values import is_unknown

Validator = Callable[[Any], Optional[str]]

ARN_PATTERN = re.compile(r"^arn:[\w-]+:[\w-]+:[\w-]*:\d{0,12}:.+$")


def _skip(value: Any) -> bool:
    return value is None or is_unknown(value)


def regex_matches(pattern: str, message: str) -> Validator:
    """Value must match the regular expression (anchors are up to the pattern)."""
    compiled = re.compile(pattern)

    def validate(value: Any) -> Optional[str]:
        if _skip(value):
            return None
        if not isinstance(value, str) or not compiled.search(value):
            return message
        return None

    return validate


def length_between(minimum: int, maximum: int) -> Validator:
    """String length must be within [minimum, maximum]."""
    def validate(value: Any) -> Optional[str]:
        if _skip(value):
            return None
        if not hasattr(value, "__len__"):
            return "value has no length"
        if not minimum <= len(value) <= maximum:
            return f"length must be between {minimum} and {maximum}, got {len(value)}"
        return None

    return validate


def one_of(*allowed: Any) -> Validator:
    """Value must be one of the allowed values."""
    def validate(value: Any) -> Optional[str]:
        if _skip(value):
            return None
        if value not in allowed:
            expected = ", ".join(str(a) for a in allowed)
            return f"expected one of [{expected}], got {value!r}"
        return None

    return validate


def all_of(*validators: Validator) -> Validator:
    """Run validators in order and report the first failure."""
    def validate(value: Any) -> Optional[str]:
        for validator in validators:
            error = validator(value)
            if error:
                return error
        return None

    return validate


def valid_arn() -> Validator:
    """Value must look like an ARN."""
    return regex_matches(ARN_PATTERN.pattern, "must be a valid ARN")


def variant_of(annotation: Any) -> Validator:
    """Value must validate against a (usually discriminated union) pydantic type."""
    adapter = TypeAdapter(annotation)

    def validate(value: Any) -> Optional[str]:
        if _skip(value):
            return None
        try:
            adapter.validate_python(value)
        except PydanticValidationError as e:
            problems = [
                f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
                for err in e.errors()
            ]
            return "; ".join(problems)
        return None

    return validate
