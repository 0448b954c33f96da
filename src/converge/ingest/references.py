"""Cross-resource references: ``${type.name.attribute}`` inside attribute values."""

import re
from typing import Any, Callable, List, NamedTuple, Set
from ..schema.paths import parse_path
from ..schema.values import UNKNOWN, contains_unknown
from ..utils.errors import ConfigLoadError, SchemaError

REFERENCE_PATTERN = re.compile(r"\$\{([^}]+)\}")


class Reference(NamedTuple):
    """A parsed reference: the target object's address and an attribute path."""
    address: str
    path: str


def parse_reference(expression: str) -> Reference:
    """
    Parse ``type.name.attribute`` (attribute may be a path like ``location[0].name``).

    Raises:
        ConfigLoadError: If the expression is malformed
    """
    parts = expression.strip().split(".", 2)
    if len(parts) != 3 or not all(parts):
        raise ConfigLoadError(
            f"Invalid reference '${{{expression}}}': expected ${{type.name.attribute}}"
        )
    try:
        parse_path(parts[2])
    except SchemaError:
        raise ConfigLoadError(f"Invalid attribute path in reference '${{{expression}}}'")
    return Reference(address=f"{parts[0]}.{parts[1]}", path=parts[2])


def extract_references(value: Any) -> List[Reference]:
    """Find every reference in an attribute tree."""
    refs: List[Reference] = []
    if isinstance(value, str):
        for match in REFERENCE_PATTERN.findall(value):
            refs.append(parse_reference(match))
    elif isinstance(value, dict):
        for v in value.values():
            refs.extend(extract_references(v))
    elif isinstance(value, list):
        for item in value:
            refs.extend(extract_references(item))
    return refs


def referenced_addresses(value: Any) -> Set[str]:
    """Addresses of every object referenced from an attribute tree."""
    return {ref.address for ref in extract_references(value)}


def resolve_references(value: Any, lookup: Callable[[Reference], Any]) -> Any:
    """
    Substitute references with the values they point to.

    A string that is exactly one reference takes the referenced value as-is
    (any type). References embedded in longer strings are interpolated. When
    a referenced value is unknown, the whole string is unknown.

    Args:
        value: Attribute tree
        lookup: Returns the current value for a reference (may be UNKNOWN)

    Returns:
        Attribute tree with references resolved
    """
    if isinstance(value, dict):
        return {k: resolve_references(v, lookup) for k, v in value.items()}
    if isinstance(value, list):
        return [resolve_references(item, lookup) for item in value]
    if not isinstance(value, str) or "${" not in value:
        return value

    whole = REFERENCE_PATTERN.fullmatch(value)
    if whole:
        return lookup(parse_reference(whole.group(1)))

    pieces = []
    position = 0
    for match in REFERENCE_PATTERN.finditer(value):
        resolved = lookup(parse_reference(match.group(1)))
        if contains_unknown(resolved):
            return UNKNOWN
        if resolved is None:
            raise ConfigLoadError(f"Reference '{match.group(0)}' has no value to interpolate")
        pieces.append(value[position:match.start()])
        pieces.append(str(resolved))
        position = match.end()
    pieces.append(value[position:])
    return "".join(pieces)
