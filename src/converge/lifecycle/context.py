"""Explicitly passed provider context and cancellation token."""

import threading
from typing import Dict, List, Optional
from ..utils.errors import ConfigError, OperationCancelledError
from .client import ControlPlaneClient

DEFAULT_TIMEOUT_SECONDS = 300.0


class CancellationToken:
    """Caller-controlled cancellation flag shared with running operations."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(
        self,
        operation: str,
        resource_id: Optional[str] = None,
        progress: Optional[List[str]] = None
    ) -> None:
        """Raise OperationCancelledError if cancellation was requested."""
        if self._event.is_set():
            raise OperationCancelledError(
                f"{operation} cancelled",
                operation=operation,
                resource_id=resource_id,
                progress=progress
            )


class ProviderContext:
    """Capabilities and settings handed to every lifecycle operation."""

    def __init__(
        self,
        clients: Optional[Dict[str, ControlPlaneClient]] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        cancellation: Optional[CancellationToken] = None,
        region: str = "us-east-1",
        account_id: str = "000000000000",
        partition: str = "aws"
    ):
        """
        Initialize provider context.

        Args:
            clients: Control plane client per resource type name
            timeout: Upper bound in seconds for every remote call
            cancellation: Cancellation token (a fresh one if omitted)
            region: Region used for server-side identifiers such as ARNs
            account_id: Account used for server-side identifiers
            partition: ARN partition
        """
        if timeout <= 0:
            raise ConfigError(f"timeout must be positive, got {timeout}")
        self.clients = dict(clients or {})
        self.timeout = timeout
        self.cancellation = cancellation or CancellationToken()
        self.region = region
        self.account_id = account_id
        self.partition = partition

    def client_for(self, resource_type: str) -> ControlPlaneClient:
        """Get the client registered for a resource type."""
        client = self.clients.get(resource_type)
        if client is None:
            raise ConfigError(f"No control plane client configured for {resource_type}")
        return client

    def arn(self, service: str, resource: str) -> str:
        """Build a regional ARN."""
        return f"arn:{self.partition}:{service}:{self.region}:{self.account_id}:{resource}"

    def __repr__(self) -> str:
        return f"ProviderContext(region={self.region}, timeout={self.timeout}, clients={sorted(self.clients)})"

    @classmethod
    def from_config(
        cls,
        config: Dict,
        clients: Optional[Dict[str, ControlPlaneClient]] = None,
        cancellation: Optional[CancellationToken] = None
    ) -> "ProviderContext":
        """
        Build a context from the engine config (see converge.config).

        Args:
            config: Config dictionary with engine and provider sections
            clients: Control plane client per resource type name
            cancellation: Optional shared cancellation token
        """
        engine = config.get("engine", {})
        provider = config.get("provider", {})
        return cls(
            clients=clients,
            timeout=float(engine.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS)),
            cancellation=cancellation,
            region=provider.get("region", "us-east-1"),
            account_id=str(provider.get("account_id", "000000000000")),
            partition=provider.get("partition", "aws")
        )
