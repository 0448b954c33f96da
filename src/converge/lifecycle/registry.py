"""Declarative registry of resource adapters, keyed by resource type name."""

from typing import Dict, List
from ..utils.errors import ConfigError
from .adapter import ResourceAdapter

RESOURCE_ADAPTERS: Dict[str, ResourceAdapter] = {}


def register_adapter(adapter: ResourceAdapter) -> ResourceAdapter:
    """Register an adapter under its schema's type name."""
    RESOURCE_ADAPTERS[adapter.type_name] = adapter
    return adapter


def _load_builtin_adapters() -> None:
    # Importing the package registers the built-in resource kinds
    from .. import resources  # noqa: F401


def get_adapter(type_name: str) -> ResourceAdapter:
    """
    Get the adapter for a resource type.

    Raises:
        ConfigError: If the type is not registered
    """
    _load_builtin_adapters()
    if type_name not in RESOURCE_ADAPTERS:
        supported = ", ".join(sorted(RESOURCE_ADAPTERS)) or "none"
        raise ConfigError(f"Unsupported resource type: {type_name}. Supported types: {supported}")
    return RESOURCE_ADAPTERS[type_name]


def supported_types() -> List[str]:
    _load_builtin_adapters()
    return sorted(RESOURCE_ADAPTERS)
