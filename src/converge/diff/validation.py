"""Validate desired configuration against a resource schema."""

from typing import Any, Dict, List, Optional
from ..schema.models import AttributeType, ResourceSchema, SchemaLevel
from ..schema.paths import join_path
from ..schema.values import UNKNOWN, contains_unknown, is_unknown
from ..utils.errors import ValidationError
from ..utils.logging import get_logger
from .models import Diagnostic

logger = get_logger("diff.validation")

_PYTHON_TYPES = {
    AttributeType.STRING: str,
    AttributeType.BOOL: bool,
    AttributeType.INT: int,
    AttributeType.LIST: list,
    AttributeType.MAP: dict,
    AttributeType.OBJECT: dict,
}


def as_block_items(value: Any) -> Any:
    """Normalize a block value to a list of element dicts (UNKNOWN passes through)."""
    if value is None:
        return []
    if is_unknown(value):
        return UNKNOWN
    if isinstance(value, dict):
        return [value]
    return value


def check_type(attr_type: AttributeType, value: Any) -> Optional[str]:
    """Return a type mismatch message, or None."""
    if attr_type == AttributeType.INT and isinstance(value, bool):
        return "expected int, got bool"
    if not isinstance(value, _PYTHON_TYPES[attr_type]):
        return f"expected {attr_type.value}, got {type(value).__name__}"
    return None


def validate_config(
    desired: Dict[str, Any],
    schema: ResourceSchema,
    prior: Optional[Dict[str, Any]] = None
) -> List[Diagnostic]:
    """
    Validate desired configuration against a resource schema.

    Args:
        desired: Desired attribute tree
        schema: Resource schema
        prior: Prior state attributes; computed-only attributes may echo these

    Returns:
        List of diagnostics (empty if valid)
    """
    if not isinstance(desired, dict):
        return [Diagnostic(summary="configuration must be a mapping")]

    diagnostics: List[Diagnostic] = []
    _validate_level(desired, prior or {}, schema, "", diagnostics)

    # Cross-attribute rules only make sense once the shape is valid
    if not diagnostics:
        for validator in schema.config_validators:
            error = validator(desired)
            if error:
                diagnostics.append(Diagnostic(summary=error))

    return diagnostics


def ensure_valid(
    desired: Dict[str, Any],
    schema: ResourceSchema,
    prior: Optional[Dict[str, Any]] = None
) -> None:
    """
    Validate and raise on any diagnostic.

    Raises:
        ValidationError: If desired violates schema constraints
    """
    diagnostics = validate_config(desired, schema, prior)
    if diagnostics:
        logger.debug(f"{schema.type_name}: {len(diagnostics)} validation error(s)")
        raise ValidationError(
            f"Invalid configuration for {schema.type_name}",
            diagnostics=diagnostics,
            resource_type=schema.type_name
        )


def _validate_level(
    desired: Dict[str, Any],
    prior: Dict[str, Any],
    level: SchemaLevel,
    prefix: str,
    diagnostics: List[Diagnostic]
) -> None:
    """Validate one nesting level, recursing into blocks."""
    known_names = set(level.names)
    for key in desired:
        if key not in known_names:
            diagnostics.append(Diagnostic(path=join_path(prefix, key), summary="unsupported argument"))

    for attribute in level.attributes:
        path = join_path(prefix, attribute.name)
        value = desired.get(attribute.name)

        if value is None:
            if attribute.required:
                diagnostics.append(Diagnostic(path=path, summary="required attribute is missing"))
            continue

        if attribute.computed_only:
            # Echoing the recorded value back is allowed (e.g. planning from a state snapshot)
            if is_unknown(value) or value != prior.get(attribute.name):
                diagnostics.append(Diagnostic(path=path, summary="value is computed by the remote system and cannot be set"))
            continue

        if is_unknown(value):
            continue

        type_error = check_type(attribute.type, value)
        if type_error:
            diagnostics.append(Diagnostic(path=path, summary=type_error))
            continue

        # Values holding references not yet known are checked once they resolve
        if contains_unknown(value):
            continue

        for validator in attribute.validators:
            error = validator(value)
            if error:
                diagnostics.append(Diagnostic(path=path, summary=error))

    for block in level.blocks:
        path = join_path(prefix, block.name)
        items = as_block_items(desired.get(block.name))
        if is_unknown(items):
            continue

        if not isinstance(items, list) or not all(isinstance(item, dict) for item in items):
            diagnostics.append(Diagnostic(path=path, summary="block must be a list of objects"))
            continue

        if len(items) < block.min_items:
            diagnostics.append(Diagnostic(
                path=path,
                summary=f"at least {block.min_items} block(s) required, got {len(items)}"
            ))
        if block.max_items is not None and len(items) > block.max_items:
            diagnostics.append(Diagnostic(
                path=path,
                summary=f"at most {block.max_items} block(s) allowed, got {len(items)}"
            ))
            continue

        prior_items = as_block_items(prior.get(block.name))
        if not isinstance(prior_items, list):
            prior_items = []
        for index, item in enumerate(items):
            prior_item = prior_items[index] if index < len(prior_items) else {}
            _validate_level(item, prior_item if isinstance(prior_item, dict) else {}, block, f"{path}[{index}]", diagnostics)
