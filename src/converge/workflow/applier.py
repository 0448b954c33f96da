"""Apply a plan: delete orphans, then converge objects generation by generation."""

from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import Any, Dict, List, Optional, Set
from pydantic import BaseModel, Field
from ..diff.engine import compute_change_set
from ..diff.models import PlanAction
from ..ingest.models import ConfigDocument
from ..ingest.references import Reference, resolve_references
from ..lifecycle.context import ProviderContext
from ..lifecycle.executor import LifecycleExecutor, OperationResult
from ..lifecycle.registry import get_adapter
from ..schema.paths import get_path
from ..state.models import ResourceState
from ..state.store import StateStore
from ..utils.errors import ConvergeError, OperationCancelledError
from ..utils.logging import get_logger
from .planner import Plan

logger = get_logger("workflow.applier")

DEFAULT_MAX_WORKERS = 4


class OutcomeStatus(str, Enum):
    """What happened to one object during apply."""
    APPLIED = "applied"
    UNCHANGED = "unchanged"
    FAILED = "failed"
    SKIPPED = "skipped"


class ResourceOutcome(BaseModel):
    """Result of applying one object."""
    address: str = Field(..., description="Logical address")
    action: PlanAction = Field(..., description="Action taken (or planned, when skipped)")
    status: OutcomeStatus = Field(..., description="Outcome")
    error: Optional[str] = Field(default=None, description="Error message when failed or skipped")
    cancelled: bool = Field(default=False, description="Stopped by the cancellation token")
    result: Optional[OperationResult] = Field(default=None, description="Executor result when applied")


class ApplyResult(BaseModel):
    """Outcomes of applying a plan."""
    outcomes: Dict[str, ResourceOutcome] = Field(default_factory=dict, description="Outcome per address")

    @property
    def succeeded(self) -> bool:
        return all(
            o.status in (OutcomeStatus.APPLIED, OutcomeStatus.UNCHANGED) for o in self.outcomes.values()
        )

    def with_status(self, status: OutcomeStatus) -> List[str]:
        return sorted(a for a, o in self.outcomes.items() if o.status == status)


class PlanApplier:
    """
    Executes a plan against the remote control plane.

    Deletes of objects no longer configured run first, dependents before
    dependencies. Then every configured object is converged, one executor
    per object, with each dependency generation running concurrently. The
    change set of each object is recomputed right before it is applied so
    references to objects applied earlier resolve to their real values.
    Objects whose dependencies failed are skipped.
    """

    def __init__(
        self,
        plan: Plan,
        document: ConfigDocument,
        store: StateStore,
        context: ProviderContext,
        max_workers: int = DEFAULT_MAX_WORKERS
    ):
        self.plan = plan
        self.document = document
        self.store = store
        self.context = context
        self.max_workers = max(1, max_workers)
        self.result = ApplyResult()
        self._blocked: Set[str] = set()

    def apply(self) -> ApplyResult:
        deletes = set(self.plan.actions(PlanAction.DELETE))
        for generation in self.plan.destroy_order:
            batch = [address for address in generation if address in deletes]
            self._run_generation(batch, self._delete_one, blocked_by=self._blocking_dependents)

        if not self.plan.destroy:
            for generation in self.plan.apply_order:
                batch = [address for address in generation if self.document.get(address) is not None]
                self._run_generation(batch, self._converge_one, blocked_by=self._blocking_dependencies)

        applied = self.result.with_status(OutcomeStatus.APPLIED)
        failed = self.result.with_status(OutcomeStatus.FAILED)
        logger.info(f"Apply complete: {len(applied)} applied, {len(failed)} failed")
        return self.result

    def _run_generation(self, batch: List[str], work, blocked_by) -> None:
        runnable = []
        for address in batch:
            blocker = blocked_by(address)
            if blocker:
                self._skip(address, blocker)
            else:
                runnable.append(address)
        if not runnable:
            return

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(runnable))) as pool:
            outcomes = list(pool.map(work, runnable))

        for outcome in outcomes:
            self.result.outcomes[outcome.address] = outcome
            if outcome.status == OutcomeStatus.FAILED:
                self._blocked.add(outcome.address)
        self.store.save()

        cancelled = [o.address for o in outcomes if o.cancelled]
        if cancelled:
            raise OperationCancelledError(
                f"apply cancelled while processing {', '.join(cancelled)}",
                operation="apply",
                progress=self.result.with_status(OutcomeStatus.APPLIED)
            )

    def _blocking_dependencies(self, address: str) -> Optional[str]:
        for dependency in self.plan.dependencies.get(address, []):
            if dependency in self._blocked:
                return dependency
        return None

    def _blocking_dependents(self, address: str) -> Optional[str]:
        for dependent in self.plan.dependents_of(address):
            if dependent in self._blocked:
                return dependent
        return None

    def _skip(self, address: str, blocker: str) -> None:
        change_set = self.plan.changes.get(address)
        logger.warning(f"Skipping {address}: {blocker} did not apply")
        self._blocked.add(address)
        self.result.outcomes[address] = ResourceOutcome(
            address=address,
            action=change_set.action if change_set else PlanAction.NO_OP,
            status=OutcomeStatus.SKIPPED,
            error=f"dependency {blocker} did not apply"
        )

    def _delete_one(self, address: str) -> ResourceOutcome:
        prior = self.store.get(address)
        if prior is None:
            return ResourceOutcome(address=address, action=PlanAction.DELETE, status=OutcomeStatus.UNCHANGED)
        adapter = get_adapter(prior.resource_type)
        executor = LifecycleExecutor(adapter, self.context, prior, prior.name)
        return self._execute(address, PlanAction.DELETE, executor, executor.delete)

    def _converge_one(self, address: str) -> ResourceOutcome:
        config = self.document.get(address)
        adapter = get_adapter(config.type)
        depends_on = self.plan.dependencies.get(address, [])

        prior = self.store.get(address)
        if prior is None:
            state = ResourceState.absent(config.type, config.name, depends_on)
        else:
            state = prior.model_copy(update={"depends_on": list(depends_on)})

        try:
            desired = resolve_references(config.attributes, self._applied_value)
            change_set = compute_change_set(desired, prior, adapter.schema, address=address)
        except ConvergeError as e:
            logger.error(f"Could not plan {address}: {e}")
            return ResourceOutcome(address=address, action=PlanAction.NO_OP, status=OutcomeStatus.FAILED, error=str(e))

        if change_set.action == PlanAction.NO_OP:
            if prior is not None and prior.depends_on != state.depends_on:
                self.store.put(state)
            return ResourceOutcome(address=address, action=PlanAction.NO_OP, status=OutcomeStatus.UNCHANGED)

        executor = LifecycleExecutor(adapter, self.context, state, config.name)
        return self._execute(address, change_set.action, executor, lambda: executor.apply(change_set))

    def _execute(self, address: str, action: PlanAction, executor: LifecycleExecutor, operation) -> ResourceOutcome:
        try:
            result = operation()
        except OperationCancelledError as e:
            self.store.put(executor.state)
            return ResourceOutcome(
                address=address, action=action, status=OutcomeStatus.FAILED, error=str(e), cancelled=True
            )
        except ConvergeError as e:
            # The executor keeps the last state it reached (e.g. tainted after a failed read-back)
            self.store.put(executor.state)
            return ResourceOutcome(address=address, action=action, status=OutcomeStatus.FAILED, error=str(e))

        self.store.put(result.state)
        return ResourceOutcome(address=address, action=action, status=OutcomeStatus.APPLIED, result=result)

    def _applied_value(self, ref: Reference) -> Any:
        state = self.store.get(ref.address)
        if state is None:
            return None
        return get_path(state.attributes, ref.path)


def apply_plan(
    plan: Plan,
    document: ConfigDocument,
    store: StateStore,
    context: ProviderContext,
    max_workers: int = DEFAULT_MAX_WORKERS
) -> ApplyResult:
    """
    Apply a plan and persist state after every generation.

    Args:
        plan: Plan from build_plan
        document: Configuration the plan was built from
        store: State store (updated in place and saved)
        context: Provider context with a client per resource type
        max_workers: Upper bound on concurrently applied objects

    Returns:
        ApplyResult with one outcome per object touched

    Raises:
        OperationCancelledError: If the context's cancellation token fired
    """
    return PlanApplier(plan, document, store, context, max_workers).apply()
