"""Attribute path helpers: paths look like ``location[0].type``."""

import re
from typing import Any, List, Union

from .values import UNKNOWN
from ..utils.errors import SchemaError

_SEGMENT = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*)((?:\[\d+\])*)$")

PathPart = Union[str, int]


def parse_path(path: str) -> List[PathPart]:
    """Split ``a[0].b`` into ``["a", 0, "b"]``."""
    parts: List[PathPart] = []
    for segment in path.split("."):
        match = _SEGMENT.match(segment)
        if not match:
            raise SchemaError(f"Invalid attribute path: {path}")
        parts.append(match.group(1))
        for index in re.findall(r"\[(\d+)\]", match.group(2)):
            parts.append(int(index))
    return parts


def join_path(prefix: str, name: str) -> str:
    """Join a parent path and an attribute name."""
    return f"{prefix}.{name}" if prefix else name


def get_path(tree: Any, path: str, default: Any = None) -> Any:
    """
    Read the value at path.

    Returns UNKNOWN when an intermediate value is unknown, and default when
    the path does not exist.
    """
    current = tree
    for part in parse_path(path):
        if current is UNKNOWN:
            return UNKNOWN
        if isinstance(part, int):
            if not isinstance(current, list) or part >= len(current):
                return default
            current = current[part]
        else:
            if not isinstance(current, dict) or part not in current:
                return default
            current = current[part]
    return current


def set_path(tree: Any, path: str, value: Any) -> None:
    """Set the value at an existing path."""
    parts = parse_path(path)
    current = tree
    for part in parts[:-1]:
        current = current[part]
    current[parts[-1]] = value
