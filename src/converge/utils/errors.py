"""Custom exception classes for converge."""

from typing import List, Optional


class ConvergeError(Exception):
    """Base exception for all converge errors."""
    pass


class ConfigError(ConvergeError):
    """Raised when engine configuration is invalid or missing."""
    pass


class ConfigLoadError(ConvergeError):
    """Raised when a resource configuration document cannot be loaded or is invalid."""
    pass


class SchemaError(ConvergeError):
    """Raised when a resource schema definition is inconsistent."""
    pass


class StateError(ConvergeError):
    """Raised when the state file cannot be read or written."""
    pass


class ValidationError(ConvergeError):
    """Raised when desired configuration violates schema constraints."""

    def __init__(self, message: str, diagnostics: Optional[List] = None, resource_type: Optional[str] = None):
        super().__init__(message)
        self.diagnostics = diagnostics or []
        self.resource_type = resource_type

    def __str__(self) -> str:
        message = super().__str__()
        if not self.diagnostics:
            return message
        details = "; ".join(str(d) for d in self.diagnostics)
        return f"{message}: {details}"


class RemoteError(ConvergeError):
    """Base class for errors reported by the remote control plane."""

    def __init__(self, message: str, resource_id: Optional[str] = None, operation: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.resource_id = resource_id
        self.operation = operation

    def with_context(self, resource_id: Optional[str], operation: str) -> "RemoteError":
        """Attach resource identity and operation name unless already present."""
        if self.resource_id is None:
            self.resource_id = resource_id
        if self.operation is None:
            self.operation = operation
        return self

    def __str__(self) -> str:
        if self.operation and self.resource_id:
            return f"{self.operation} ({self.resource_id}): {self.message}"
        if self.operation:
            return f"{self.operation}: {self.message}"
        return self.message


class NotFoundError(RemoteError):
    """Remote object does not exist."""
    pass


class ConflictError(RemoteError):
    """Remote operation blocked by the object's current condition."""

    NOT_EMPTY = "not_empty"

    def __init__(self, message: str, code: Optional[str] = None, resource_id: Optional[str] = None,
                 operation: Optional[str] = None):
        super().__init__(message, resource_id=resource_id, operation=operation)
        self.code = code


class TransientRemoteError(RemoteError):
    """Network or throttling failure; retries belong to the client."""
    pass


class FatalRemoteError(RemoteError):
    """Any other remote failure."""
    pass


class OperationTimeoutError(RemoteError):
    """Remote call exceeded the caller-supplied timeout."""
    pass


class OperationCancelledError(ConvergeError):
    """Operation cancelled by the caller; progress lists the steps that completed."""

    def __init__(self, message: str, operation: Optional[str] = None, resource_id: Optional[str] = None,
                 progress: Optional[List[str]] = None):
        super().__init__(message)
        self.operation = operation
        self.resource_id = resource_id
        self.progress = list(progress or [])


class ReplacementRequiredError(ConvergeError):
    """Raised when an in-place update is attempted with a change set that requires replacement."""
    pass


class InvalidTransitionError(ConvergeError):
    """Raised when a lifecycle operation is not allowed from the current phase."""
    pass


class ConcurrentOperationError(ConvergeError):
    """Raised when a second operation starts while one is in flight on the same object."""
    pass


class GraphError(ConvergeError):
    """Raised when the resource dependency graph cannot be built (unknown dependency or cycle)."""
    pass
