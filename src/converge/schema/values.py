"""Unknown value marker for attributes resolved only after apply."""

from typing import Any


class _Unknown:
    """Singleton marker for a value that is known only after apply."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNKNOWN"

    def __str__(self) -> str:
        return "(known after apply)"

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self

    def __reduce__(self):
        return (_Unknown, ())


UNKNOWN = _Unknown()


def is_unknown(value: Any) -> bool:
    """Check if a value is the unknown marker."""
    return value is UNKNOWN


def contains_unknown(value: Any) -> bool:
    """Check if a value or any nested value is unknown."""
    if value is UNKNOWN:
        return True
    if isinstance(value, dict):
        return any(contains_unknown(v) for v in value.values())
    if isinstance(value, list):
        return any(contains_unknown(v) for v in value)
    return False


def strip_unknown(value: Any) -> Any:
    """Replace unknown values with None (state never holds unknowns)."""
    if value is UNKNOWN:
        return None
    if isinstance(value, dict):
        return {k: strip_unknown(v) for k, v in value.items()}
    if isinstance(value, list):
        return [strip_unknown(v) for v in value]
    return value


def fill_unknown(value: Any, fallback: Any) -> Any:
    """Replace unknown values with the value at the same position in fallback."""
    if value is UNKNOWN:
        return fallback
    if isinstance(value, dict):
        source = fallback if isinstance(fallback, dict) else {}
        return {k: fill_unknown(v, source.get(k)) for k, v in value.items()}
    if isinstance(value, list):
        source = fallback if isinstance(fallback, list) else []
        return [fill_unknown(v, source[i] if i < len(source) else None) for i, v in enumerate(value)]
    return value
