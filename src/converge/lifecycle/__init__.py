"""Lifecycle executor - drive remote objects through create, read, update and delete."""

from .adapter import ResourceAdapter
from .client import ControlPlaneClient, DrainableClient
from .context import CancellationToken, ProviderContext
from .executor import LifecycleExecutor, LifecyclePhase, OperationResult
from .registry import get_adapter, register_adapter, supported_types

__all__ = [
    "ResourceAdapter",
    "ControlPlaneClient",
    "DrainableClient",
    "CancellationToken",
    "ProviderContext",
    "LifecycleExecutor",
    "LifecyclePhase",
    "OperationResult",
    "get_adapter",
    "register_adapter",
    "supported_types",
]
