"""Plan every configured resource against recorded state, in dependency order."""

from typing import Any, Dict, List
from pydantic import BaseModel, Field
from ..diff.engine import compute_change_set, plan_destroy
from ..diff.models import ChangeSet, Diagnostic, PlanAction
from ..diff.validation import validate_config
from ..graph.dependency_graph import DependencyGraph
from ..ingest.models import ConfigDocument
from ..ingest.references import Reference, resolve_references
from ..lifecycle.registry import get_adapter
from ..schema.paths import get_path, parse_path
from ..schema.values import UNKNOWN
from ..state.store import StateStore
from ..utils.errors import ConfigLoadError, ConvergeError
from ..utils.logging import get_logger

logger = get_logger("workflow.planner")


class Plan(BaseModel):
    """Change sets for a whole configuration document."""
    changes: Dict[str, ChangeSet] = Field(default_factory=dict, description="Change set per address, in apply order")
    apply_order: List[List[str]] = Field(default_factory=list, description="Generations, dependencies first")
    destroy_order: List[List[str]] = Field(default_factory=list, description="Generations, dependents first")
    dependencies: Dict[str, List[str]] = Field(default_factory=dict, description="Direct dependencies per address")
    destroy: bool = Field(default=False, description="Plan deletes every managed object")

    class Config:
        arbitrary_types_allowed = True

    def summary(self) -> Dict[str, int]:
        """Counts in the form "N to add, N to change, N to destroy" (replace counts as add + destroy)."""
        counts = {"add": 0, "change": 0, "destroy": 0}
        for change_set in self.changes.values():
            if change_set.action == PlanAction.CREATE:
                counts["add"] += 1
            elif change_set.action == PlanAction.UPDATE:
                counts["change"] += 1
            elif change_set.action == PlanAction.DELETE:
                counts["destroy"] += 1
            elif change_set.action == PlanAction.REPLACE:
                counts["add"] += 1
                counts["destroy"] += 1
        return counts

    @property
    def has_changes(self) -> bool:
        return any(cs.action != PlanAction.NO_OP for cs in self.changes.values())

    def actions(self, *actions: PlanAction) -> List[str]:
        """Addresses whose action is one of the given actions."""
        return [address for address, cs in self.changes.items() if cs.action in actions]

    def dependents_of(self, address: str) -> List[str]:
        """Addresses that directly depend on address."""
        return sorted(a for a, deps in self.dependencies.items() if address in deps)


def build_plan(document: ConfigDocument, store: StateStore, destroy: bool = False) -> Plan:
    """
    Compute change sets for every configured and every orphaned object.

    Objects are planned in dependency order so references to other objects
    resolve to their planned values (unknown until applied when computed).
    Objects recorded in state but no longer configured are planned for
    deletion.

    Args:
        document: Desired configuration
        store: Recorded state
        destroy: Plan deletion of every managed object instead

    Returns:
        Plan covering every object

    Raises:
        GraphError: If dependencies are unknown or cyclic
        ValidationError: If a resource configuration is invalid
        ConfigError: If a resource type is not supported
    """
    graph = DependencyGraph()
    graph.build_from_configs(document.resources)
    orphans = graph.add_orphans(store.list())
    if orphans:
        logger.info(f"Objects no longer configured: {', '.join(orphans)}")

    planned_values: Dict[str, Dict[str, Any]] = {}
    changes: Dict[str, ChangeSet] = {}

    for generation in graph.apply_order():
        for address in generation:
            config = graph.get_config(address)
            prior = store.get(address)

            if config is None or destroy:
                if prior is not None and prior.exists:
                    changes[address] = plan_destroy(prior, get_adapter(prior.resource_type).schema)
                continue

            schema = get_adapter(config.type).schema
            desired = resolve_references(
                config.attributes,
                lambda ref: _planned_value(ref, planned_values, document)
            )
            change_set = compute_change_set(desired, prior, schema, address=address)
            planned_values[address] = change_set.planned
            changes[address] = change_set

    plan = Plan(
        changes=changes,
        apply_order=graph.apply_order(),
        destroy_order=graph.destroy_order(),
        dependencies={address: sorted(graph.graph.successors(address)) for address in graph.graph.nodes},
        destroy=destroy
    )
    counts = plan.summary()
    logger.info(f"Plan: {counts['add']} to add, {counts['change']} to change, {counts['destroy']} to destroy")
    return plan


def validate_document(document: ConfigDocument) -> Dict[str, List[Diagnostic]]:
    """
    Validate every resource in a document without consulting state.

    References to other objects are treated as unknown.

    Returns:
        Diagnostics per address (only addresses with problems)
    """
    graph = DependencyGraph()
    graph.build_from_configs(document.resources)

    problems: Dict[str, List[Diagnostic]] = {}
    for resource in document.resources:
        try:
            schema = get_adapter(resource.type).schema
            desired = resolve_references(resource.attributes, lambda ref: _check_reference(ref, document))
        except ConvergeError as e:
            problems[resource.address] = [Diagnostic(summary=str(e))]
            continue
        diagnostics = validate_config(desired, schema)
        if diagnostics:
            problems[resource.address] = diagnostics

    return problems


def _check_reference(ref: Reference, document: ConfigDocument) -> Any:
    target = document.get(ref.address)
    if target is None:
        raise ConfigLoadError(f"Reference to unknown resource {ref.address}")
    root = parse_path(ref.path)[0]
    schema = get_adapter(target.type).schema
    if root not in schema.names:
        raise ConfigLoadError(f"Reference to unsupported attribute {ref.address}.{ref.path}")
    return UNKNOWN


def _planned_value(ref: Reference, planned_values: Dict[str, Dict[str, Any]], document: ConfigDocument) -> Any:
    _check_reference(ref, document)
    planned = planned_values.get(ref.address)
    if planned is None:
        return UNKNOWN
    return get_path(planned, ref.path)
