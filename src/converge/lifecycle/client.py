"""Abstract interface for remote control plane clients."""

from abc import ABC, abstractmethod
from typing import Any, Dict


class ControlPlaneClient(ABC):
    """
    Opaque capability the executor calls to reach a cloud control plane.

    Implementations translate failures into the converge error taxonomy:
    - NotFoundError when the object does not exist
    - ConflictError (with a code such as ConflictError.NOT_EMPTY) when the
      object's condition blocks the operation
    - TransientRemoteError after the client's own retries are exhausted
    - FatalRemoteError for anything else

    The executor never assumes a wire protocol.
    """

    @abstractmethod
    def create(self, request: Dict[str, Any]) -> str:
        """
        Create a remote object.

        Args:
            request: Request built by the resource adapter

        Returns:
            Identity of the created object
        """
        pass

    @abstractmethod
    def read(self, identity: str) -> Dict[str, Any]:
        """
        Read a remote object.

        Returns:
            Raw attributes as reported by the remote system
        """
        pass

    @abstractmethod
    def update(self, identity: str, changes: Dict[str, Any]) -> None:
        """Apply an in-place update to a remote object."""
        pass

    @abstractmethod
    def delete(self, identity: str) -> None:
        """Delete a remote object."""
        pass


class DrainableClient(ControlPlaneClient):
    """Client for container-like objects whose contents can be removed before deletion."""

    @abstractmethod
    def drain(self, identity: str) -> int:
        """
        Remove contained sub-objects (best effort).

        Returns:
            Number of sub-objects removed
        """
        pass
