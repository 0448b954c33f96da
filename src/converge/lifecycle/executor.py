"""Lifecycle executor: drives Create/Read/Update/Delete for one managed object."""

import threading
from enum import Enum
from typing import Any, Callable, Dict, List, Optional
from pydantic import BaseModel, Field
from ..diff.engine import detect_drift
from ..diff.models import ChangeKind, ChangeSet, PlanAction
from ..schema.values import fill_unknown
from ..state.models import ResourceState, ResourceStatus
from ..utils.errors import (
    ConcurrentOperationError,
    ConflictError,
    ConvergeError,
    FatalRemoteError,
    InvalidTransitionError,
    NotFoundError,
    OperationCancelledError,
    OperationTimeoutError,
    RemoteError,
    ReplacementRequiredError,
)
from ..utils.logging import get_logger
from .adapter import ResourceAdapter
from .client import DrainableClient
from .context import ProviderContext

logger = get_logger("lifecycle.executor")


class LifecyclePhase(str, Enum):
    """Executor phase for one managed object."""
    ABSENT = "absent"
    CREATING = "creating"
    PRESENT = "present"
    UPDATING = "updating"
    DELETING = "deleting"
    ERROR = "error"


class OperationResult(BaseModel):
    """Outcome of one lifecycle operation."""
    operation: str = Field(..., description="Operation name (create, read, update, delete, replace, no-op)")
    address: str = Field(..., description="Logical address of the object")
    identity: Optional[str] = Field(default=None, description="Remote identity after the operation")
    phase: LifecyclePhase = Field(..., description="Executor phase after the operation")
    state: ResourceState = Field(..., description="State after the operation")
    drift: List[str] = Field(default_factory=list, description="Attribute paths that drifted (read only)")
    not_found: bool = Field(default=False, description="Remote reported the object missing")
    progress: List[str] = Field(default_factory=list, description="Remote steps completed, in order")
    remote_calls: int = Field(default=0, ge=0, description="Number of remote calls issued")


class LifecycleExecutor:
    """
    Executes lifecycle operations for exactly one managed object.

    The executor owns its ResourceState for the duration of each operation
    and is not reentrant: a second operation started while one is in flight
    raises ConcurrentOperationError. Remote calls are issued one at a time,
    each bounded by the context timeout. Cancellation is checked before
    every remote call.
    """

    def __init__(
        self,
        adapter: ResourceAdapter,
        context: ProviderContext,
        state: Optional[ResourceState] = None,
        name: str = "this"
    ):
        self.adapter = adapter
        self.context = context
        self.client = context.client_for(adapter.type_name)
        self.state = state if state is not None else ResourceState.absent(adapter.type_name, name)
        self.phase = self._settled_phase()
        self.last_error: Optional[ConvergeError] = None
        self._guard = threading.Lock()
        self._identity_hint: Optional[str] = None
        self._progress: List[str] = []
        self._drift: List[str] = []
        self._not_found = False
        self._remote_calls = 0

    @property
    def address(self) -> str:
        return self.state.address

    @property
    def schema(self):
        return self.adapter.schema

    # Public operations

    def create(self, change_set: ChangeSet) -> OperationResult:
        """Absent -> Present. Creates the remote object and records its state."""
        def body() -> None:
            if self.state.exists:
                raise InvalidTransitionError(f"create ({self.address}): object already exists")
            self._identity_hint = change_set.identity
            self._do_create(change_set)

        return self._run("create", body)

    def read(self) -> OperationResult:
        """Present -> Present (refreshed), or Absent when the remote object is gone."""
        def body() -> None:
            if not self.state.exists:
                raise InvalidTransitionError(f"read ({self.address}): object is not managed")
            self._do_read()

        return self._run("read", body)

    def update(self, change_set: ChangeSet) -> OperationResult:
        """Present -> Present. Rejects change sets that require replacement."""
        def body() -> None:
            if self.state.status != ResourceStatus.PRESENT:
                raise InvalidTransitionError(
                    f"update ({self.address}): object is {self.state.status.value}, not present"
                )
            if change_set.requires_replacement:
                paths = change_set.paths_with(ChangeKind.REQUIRES_REPLACEMENT) or ["<tainted>"]
                raise ReplacementRequiredError(
                    f"update ({self.address}): change requires replacement ({', '.join(paths)}); "
                    "delete and create instead"
                )
            if change_set.action == PlanAction.NO_OP:
                return
            self._do_update(change_set)

        return self._run("update", body)

    def delete(self, force: Optional[bool] = None) -> OperationResult:
        """Present -> Absent. Not-found counts as success."""
        def body() -> None:
            if not self.state.exists:
                raise InvalidTransitionError(f"delete ({self.address}): object is not managed")
            self._do_delete(force)

        return self._run("delete", body)

    def apply(self, change_set: ChangeSet) -> OperationResult:
        """Execute a change set: create, update, delete, or delete-then-create."""
        action = change_set.action
        if action == PlanAction.CREATE:
            return self.create(change_set)
        if action == PlanAction.UPDATE:
            return self.update(change_set)
        if action == PlanAction.DELETE:
            return self.delete()
        if action == PlanAction.NO_OP:
            return self._run("no-op", lambda: None)

        def body() -> None:
            self._identity_hint = change_set.identity
            if self.state.exists:
                self._do_delete(None)
            self._do_create(change_set)

        return self._run("replace", body)

    # Transitions

    def _do_create(self, change_set: ChangeSet) -> None:
        self.phase = LifecyclePhase.CREATING
        request = self.adapter.expand_create(change_set.planned, self.context)
        identity = self._call("create", self.client.create, request)
        self._progress.append("create")

        attributes = self.adapter.post_create(change_set.planned, identity, self.context)
        # Recorded as tainted until the read-back succeeds so the identity is never lost
        self.state = self.state.populated(identity, attributes, status=ResourceStatus.TAINTED)

        if self.adapter.read_after_write:
            attributes = self._read_back(identity, attributes, "create")

        self.state = self.state.populated(identity, attributes)
        self.phase = LifecyclePhase.PRESENT
        logger.info(f"Created {self.address} ({identity})")

    def _do_read(self) -> None:
        identity = self.state.identity
        prior = self.state.attributes
        try:
            response = self._call("read", self.client.read, identity)
        except NotFoundError:
            logger.warning(f"{self.address} ({identity}) not found, removing from state")
            self._not_found = True
            self.state = self.state.cleared()
            self.phase = LifecyclePhase.ABSENT
            return
        self._progress.append("read")

        attributes = self.adapter.flatten(identity, response, prior, self.context)
        self._drift = detect_drift(prior, attributes, self.schema)
        if self._drift:
            logger.warning(f"Drift detected on {self.address}: {', '.join(self._drift)}")

        self.state = self.state.populated(identity, attributes, status=self.state.status)
        self.phase = LifecyclePhase.PRESENT

    def _do_update(self, change_set: ChangeSet) -> None:
        self.phase = LifecyclePhase.UPDATING
        identity = self.state.identity
        attributes = fill_unknown(change_set.planned, self.state.attributes)
        request = self.adapter.expand_update(change_set, self.context)

        if request is None:
            logger.info(f"{self.address}: state-only change, no remote call needed")
        else:
            self._call("update", self.client.update, identity, request)
            self._progress.append("update")
            if self.adapter.read_after_write:
                attributes = self._read_back(identity, attributes, "update")

        self.state = self.state.populated(identity, attributes)
        self.phase = LifecyclePhase.PRESENT
        logger.info(f"Updated {self.address} ({identity})")

    def _do_delete(self, force: Optional[bool]) -> None:
        self.phase = LifecyclePhase.DELETING
        identity = self.state.identity
        try:
            self._call("delete", self.client.delete, identity)
        except NotFoundError:
            logger.info(f"{self.address} ({identity}) already deleted")
        except ConflictError as e:
            if e.code != ConflictError.NOT_EMPTY or not self._force_destroy(force):
                raise
            if not isinstance(self.client, DrainableClient):
                logger.warning(f"{self.address}: client cannot drain contents, force destroy unavailable")
                raise

            logger.info(f"{self.address} ({identity}) is not empty, draining before delete")
            removed = self._call("drain", self.client.drain, identity)
            self._progress.append("drain")
            logger.info(f"Drained {removed} object(s) from {self.address}")

            try:
                self._call("delete", self.client.delete, identity)
            except NotFoundError:
                logger.info(f"{self.address} ({identity}) already deleted")

        self._progress.append("delete")
        self.state = self.state.cleared()
        self.phase = LifecyclePhase.ABSENT
        logger.info(f"Deleted {self.address} ({identity})")

    def _read_back(self, identity: str, attributes: dict, operation: str) -> dict:
        try:
            response = self._call("read", self.client.read, identity)
        except NotFoundError as e:
            raise FatalRemoteError(
                f"object not found immediately after {operation}",
                resource_id=identity,
                operation="read"
            ) from e
        self._progress.append("read")
        return self.adapter.flatten(identity, response, attributes, self.context)

    # Plumbing

    def _force_destroy(self, force: Optional[bool]) -> bool:
        if force is not None:
            return force
        flag = self.schema.force_destroy_attribute
        return bool(flag and self.state.attributes.get(flag))

    def _resource_id(self) -> str:
        return self.state.identity or self._identity_hint or self.address

    def _settled_phase(self) -> LifecyclePhase:
        return LifecyclePhase.PRESENT if self.state.exists else LifecyclePhase.ABSENT

    def _call(self, operation: str, func: Callable[..., Any], *args: Any) -> Any:
        """
        Issue one remote call, bounded by the context timeout.

        The call runs on a daemon thread; a call that outlives the timeout is
        abandoned and never holds up interpreter exit.
        """
        self.context.cancellation.raise_if_cancelled(operation, self._resource_id(), self._progress)
        self._remote_calls += 1

        outcome: Dict[str, Any] = {}

        def invoke() -> None:
            try:
                outcome["value"] = func(*args)
            except Exception as e:
                outcome["error"] = e

        worker = threading.Thread(target=invoke, name=f"converge-{operation}", daemon=True)
        worker.start()
        worker.join(self.context.timeout)

        if worker.is_alive():
            logger.warning(
                f"{self.address}: abandoned {operation} call still running after {self.context.timeout}s"
            )
            raise OperationTimeoutError(
                f"remote call did not complete within {self.context.timeout}s",
                resource_id=self._resource_id(),
                operation=operation
            )

        error = outcome.get("error")
        if error is None:
            return outcome.get("value")
        if isinstance(error, RemoteError):
            raise error.with_context(self._resource_id(), operation)
        if isinstance(error, ConvergeError):
            raise error
        raise FatalRemoteError(
            str(error) or type(error).__name__,
            resource_id=self._resource_id(),
            operation=operation
        ) from error

    def _run(self, operation: str, body: Callable[[], None]) -> OperationResult:
        if not self._guard.acquire(blocking=False):
            raise ConcurrentOperationError(f"{operation} ({self.address}): another operation is in progress")

        self._progress = []
        self._drift = []
        self._not_found = False
        self._remote_calls = 0
        try:
            body()
            self.last_error = None
            return OperationResult(
                operation=operation,
                address=self.address,
                identity=self.state.identity,
                phase=self.phase,
                state=self.state,
                drift=list(self._drift),
                not_found=self._not_found,
                progress=list(self._progress),
                remote_calls=self._remote_calls
            )
        except OperationCancelledError as e:
            e.progress = list(self._progress)
            self.phase = self._settled_phase()
            logger.warning(
                f"{operation} ({self.address}) cancelled after: {', '.join(self._progress) or 'no remote calls'}"
            )
            raise
        except (InvalidTransitionError, ReplacementRequiredError):
            raise
        except ConvergeError as e:
            self.phase = LifecyclePhase.ERROR
            self.last_error = e
            logger.error(f"{operation} ({self.address}) failed: {e}")
            raise
        finally:
            self._guard.release()
