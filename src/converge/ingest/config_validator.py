"""Validate configuration document structure."""

import re
from typing import Any, Dict, List
from ..utils.errors import ConfigLoadError
from ..utils.logging import get_logger

logger = get_logger("ingest.config_validator")

NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_-]*$")


def validate_document_structure(document: Dict[str, Any]) -> None:
    """
    Validate configuration document structure.

    Args:
        document: Parsed configuration document

    Raises:
        ConfigLoadError: If document structure is invalid
    """
    if not isinstance(document, dict):
        raise ConfigLoadError(
            "Configuration document must be a mapping with a 'resources' list."
        )

    unknown_keys = sorted(set(document) - {"resources"})
    if unknown_keys:
        logger.warning(f"Ignoring unknown top-level keys: {', '.join(unknown_keys)}")

    resources = document.get("resources", [])
    if resources is None:
        resources = []
    if not isinstance(resources, list):
        raise ConfigLoadError("'resources' must be a list.")

    problems: List[str] = []
    seen = set()
    for index, resource in enumerate(resources):
        for problem in validate_resource_entry(resource):
            problems.append(f"resources[{index}]: {problem}")
        if isinstance(resource, dict) and "type" in resource and "name" in resource:
            address = f"{resource['type']}.{resource['name']}"
            if address in seen:
                problems.append(f"resources[{index}]: duplicate address {address}")
            seen.add(address)

    if problems:
        raise ConfigLoadError("; ".join(problems))

    logger.debug("Configuration document structure validation passed")


def validate_resource_entry(resource: Any) -> List[str]:
    """
    Validate a single resource entry.

    Args:
        resource: Resource entry from the document

    Returns:
        List of problems (empty if valid)
    """
    problems = []

    if not isinstance(resource, dict):
        return ["resource entry must be a mapping"]

    missing = [field for field in ("type", "name") if field not in resource]
    if missing:
        problems.append(f"missing required fields: {', '.join(missing)}")

    for field in ("type", "name"):
        value = resource.get(field)
        if value is not None and (not isinstance(value, str) or not NAME_PATTERN.match(value)):
            problems.append(f"'{field}' must be an identifier, got {value!r}")

    unknown = sorted(set(resource) - {"type", "name", "depends_on", "attributes"})
    if unknown:
        problems.append(f"unsupported fields: {', '.join(unknown)}")

    depends_on = resource.get("depends_on", [])
    if depends_on is not None and (
        not isinstance(depends_on, list) or not all(isinstance(d, str) for d in depends_on)
    ):
        problems.append("'depends_on' must be a list of addresses")

    attributes = resource.get("attributes", {})
    if attributes is not None and not isinstance(attributes, dict):
        problems.append("'attributes' must be a mapping")

    return problems


def get_document_summary(document: Dict[str, Any]) -> Dict[str, Any]:
    """
    Extract summary information from a configuration document.

    Args:
        document: Parsed configuration document

    Returns:
        Dictionary with resource count and count per type
    """
    resources = document.get("resources") or []
    type_counts: Dict[str, int] = {}
    for resource in resources:
        type_counts[resource.get("type", "unknown")] = type_counts.get(resource.get("type", "unknown"), 0) + 1

    return {
        "resource_count": len(resources),
        "type_counts": type_counts,
    }
