"""State store: one record per managed object, persisted as JSON."""

import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, List, Optional, Union
from pydantic import ValidationError as PydanticValidationError
from ..utils.errors import StateError
from ..utils.logging import get_logger
from .models import ResourceState, ResourceStatus, StateDocument, STATE_FORMAT_VERSION

logger = get_logger("state.store")


class StateStore:
    """Holds the last-known-good state of every managed object, keyed by address."""

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path else None
        self.serial = 0
        self._resources: Dict[str, ResourceState] = {}
        self._lock = threading.Lock()

    @classmethod
    def open(cls, path: Union[str, Path]) -> "StateStore":
        """Open a file-backed store, loading the file if it exists."""
        store = cls(path)
        store.load()
        return store

    def load(self) -> None:
        """
        Load state from the backing file (missing file means empty state).

        Raises:
            StateError: If the file cannot be read or is invalid
        """
        if self.path is None or not self.path.exists():
            return

        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise StateError(f"Error reading state file {self.path}: {e}")

        try:
            document = StateDocument.model_validate_json(text)
        except PydanticValidationError as e:
            raise StateError(f"Invalid state file {self.path}: {e}")

        if document.version > STATE_FORMAT_VERSION:
            raise StateError(
                f"State file {self.path} has format version {document.version}; "
                f"this release supports up to {STATE_FORMAT_VERSION}"
            )

        with self._lock:
            self.serial = document.serial
            self._resources = {r.address: r for r in document.resources if r.status != ResourceStatus.ABSENT}

        logger.info(f"Loaded state from {self.path} ({len(self._resources)} resources, serial {self.serial})")

    def save(self) -> None:
        """
        Write state atomically to the backing file.

        Raises:
            StateError: If the file cannot be written
        """
        if self.path is None:
            return

        with self._lock:
            self.serial += 1
            document = StateDocument(
                serial=self.serial,
                resources=[self._resources[a] for a in sorted(self._resources)]
            )

        data = document.model_dump_json(indent=2)
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(data + "\n")
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StateError(f"Failed to write state file {self.path}: {e}")

        logger.debug(f"Saved state to {self.path} (serial {self.serial})")

    def get(self, address: str) -> Optional[ResourceState]:
        """Get the state of a managed object by address."""
        with self._lock:
            return self._resources.get(address)

    def put(self, state: ResourceState) -> None:
        """Record a state; absent states remove the object from managed state."""
        with self._lock:
            if state.status == ResourceStatus.ABSENT:
                self._resources.pop(state.address, None)
            else:
                self._resources[state.address] = state

    def remove(self, address: str) -> bool:
        """Stop managing an object. Returns True if it was present."""
        with self._lock:
            return self._resources.pop(address, None) is not None

    def list(self) -> List[ResourceState]:
        """All managed objects, ordered by address."""
        with self._lock:
            return [self._resources[a] for a in sorted(self._resources)]

    def __contains__(self, address: str) -> bool:
        with self._lock:
            return address in self._resources

    def __len__(self) -> int:
        with self._lock:
            return len(self._resources)
