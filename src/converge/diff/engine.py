"""Diff engine: compare desired configuration with prior state and produce a change set."""

import copy
from typing import Any, Dict, List, Optional, Tuple
import networkx as nx
from ..schema.models import AttributeSchema, ResourceSchema, SchemaLevel
from ..schema.paths import join_path, set_path
from ..schema.values import UNKNOWN, contains_unknown, is_unknown
from ..state.models import ResourceState, ResourceStatus
from ..utils.errors import SchemaError
from ..utils.logging import get_logger
from .models import AttributeChange, ChangeKind, ChangeSet, PlanAction
from .validation import as_block_items, ensure_valid

logger = get_logger("diff.engine")


def compute_change_set(
    desired: Dict[str, Any],
    prior_state: Optional[ResourceState],
    schema: ResourceSchema,
    address: Optional[str] = None
) -> ChangeSet:
    """
    Compute the change set for one managed object.

    Args:
        desired: Desired attribute tree (user configuration)
        prior_state: Last recorded state, or None/absent for a new object
        schema: Resource schema
        address: Optional logical address for reporting

    Returns:
        ChangeSet describing every attribute and the whole-object action

    Raises:
        ValidationError: If desired violates schema constraints
    """
    desired = desired or {}
    prior: Optional[Dict[str, Any]] = None
    tainted = False
    identity = None
    if prior_state is not None and prior_state.exists:
        prior = prior_state.attributes
        tainted = prior_state.status == ResourceStatus.TAINTED
        identity = prior_state.identity
        if address is None:
            address = prior_state.address

    ensure_valid(desired, schema, prior)

    if prior is None:
        planned = _Planner(schema).plan(desired, None)
        changes = _classify(planned, None, schema)
        action = PlanAction.CREATE
    else:
        planned = _Planner(schema).plan(desired, prior)
        changes = _classify(planned, prior, schema)

        replace = tainted or any(c.kind == ChangeKind.REQUIRES_REPLACEMENT for c in changes.values())
        if replace:
            # The replacement is a brand new object: plan it as one, but diff against prior
            planned = _Planner(schema).plan(desired, None)
            changes = _classify(planned, prior, schema)
            action = PlanAction.REPLACE
        elif any(c.kind == ChangeKind.SET for c in changes.values()):
            action = PlanAction.UPDATE
        else:
            action = PlanAction.NO_OP

    if identity is None:
        planned_identity = planned.get(schema.identity_attribute)
        if planned_identity is not None and not is_unknown(planned_identity):
            identity = str(planned_identity)

    change_set = ChangeSet(
        resource_type=schema.type_name,
        address=address,
        identity=identity,
        action=action,
        changes=changes,
        planned=planned,
        prior=copy.deepcopy(prior) if prior is not None else None
    )

    logger.debug(
        f"Planned {address or schema.type_name}: {action.value} "
        f"({len(change_set.changed)} attribute change(s))"
    )
    return change_set


def plan_destroy(prior_state: ResourceState, schema: ResourceSchema) -> ChangeSet:
    """Build the delete change set for an object that is no longer configured."""
    changes: Dict[str, AttributeChange] = {}
    for name, value in prior_state.attributes.items():
        attribute = schema.attribute(name)
        changes[name] = AttributeChange(
            path=name,
            kind=ChangeKind.SET,
            before=value,
            after=None,
            sensitive=bool(attribute and attribute.sensitive)
        )

    return ChangeSet(
        resource_type=schema.type_name,
        address=prior_state.address,
        identity=prior_state.identity,
        action=PlanAction.DELETE,
        changes=changes,
        planned={},
        prior=copy.deepcopy(prior_state.attributes)
    )


def detect_drift(prior: Dict[str, Any], current: Dict[str, Any], schema: ResourceSchema) -> List[str]:
    """Attribute paths whose refreshed value differs from the recorded value."""
    changes = _classify(current, prior, schema)
    return [path for path, change in changes.items() if change.kind != ChangeKind.UNCHANGED]


def _fallback(attribute: AttributeSchema, prior_value: Any, prior_exists: bool) -> Any:
    """Planned value for an unconfigured attribute without a plan modifier result."""
    if attribute.computed_only:
        return prior_value if prior_exists and prior_value is not None else UNKNOWN
    if attribute.default is not None:
        return copy.deepcopy(attribute.default)
    if attribute.computed:
        return prior_value if prior_exists and prior_value is not None else UNKNOWN
    return None


class _Planner:
    """Builds the planned value tree for one object."""

    def __init__(self, schema: ResourceSchema):
        self.schema = schema
        self._deferred: Dict[str, Tuple[AttributeSchema, Any, bool]] = {}

    def plan(self, desired: Dict[str, Any], prior: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        planned = self._plan_level(desired, prior, self.schema, "")
        self._resolve_modifiers(planned)
        return planned

    def _plan_level(
        self,
        desired: Dict[str, Any],
        prior: Optional[Dict[str, Any]],
        level: SchemaLevel,
        prefix: str
    ) -> Dict[str, Any]:
        planned: Dict[str, Any] = {}
        prior_exists = prior is not None

        for attribute in level.attributes:
            path = join_path(prefix, attribute.name)
            configured = desired.get(attribute.name)
            prior_value = prior.get(attribute.name) if prior_exists else None

            if configured is not None:
                planned[attribute.name] = copy.deepcopy(configured)
            elif attribute.plan_modifier is not None:
                planned[attribute.name] = UNKNOWN
                self._deferred[path] = (attribute, prior_value, prior_exists)
            else:
                planned[attribute.name] = _fallback(attribute, prior_value, prior_exists)

        for block in level.blocks:
            items = as_block_items(desired.get(block.name))
            if is_unknown(items):
                planned[block.name] = UNKNOWN
                continue

            prior_items = as_block_items(prior.get(block.name)) if prior_exists else []
            if not isinstance(prior_items, list):
                prior_items = []

            block_path = join_path(prefix, block.name)
            planned[block.name] = [
                self._plan_level(
                    item,
                    prior_items[index] if index < len(prior_items) else None,
                    block,
                    f"{block_path}[{index}]"
                )
                for index, item in enumerate(items)
            ]

        return planned

    def _resolve_modifiers(self, planned: Dict[str, Any]) -> None:
        """Run deferred plan modifiers in dependency order."""
        if not self._deferred:
            return

        graph = nx.DiGraph()
        graph.add_nodes_from(self._deferred)
        for path, (attribute, _, _) in self._deferred.items():
            for source in attribute.plan_modifier.sources:
                for target in self._deferred:
                    if source == target or source.startswith(f"{target}.") or source.startswith(f"{target}["):
                        graph.add_edge(target, path)

        try:
            order = list(nx.topological_sort(graph))
        except nx.NetworkXUnfeasible:
            cycle = " -> ".join(edge[0] for edge in nx.find_cycle(graph))
            raise SchemaError(f"{self.schema.type_name}: plan modifier dependency cycle: {cycle}")

        for path in order:
            attribute, prior_value, prior_exists = self._deferred[path]
            value = attribute.plan_modifier.plan(planned, prior_value)
            if value is None:
                value = _fallback(attribute, prior_value, prior_exists)
            set_path(planned, path, value)
            logger.debug(f"Plan modifier resolved {path} = {value!r}")


def _classify(
    planned: Dict[str, Any],
    prior: Optional[Dict[str, Any]],
    schema: ResourceSchema
) -> Dict[str, AttributeChange]:
    changes: Dict[str, AttributeChange] = {}
    _classify_level(planned, prior, schema, "", changes)
    return changes


def _classify_value(attribute: AttributeSchema, before: Any, after: Any, prior_exists: bool) -> ChangeKind:
    # Unknown values never take part in replacement comparisons
    if contains_unknown(after):
        return ChangeKind.COMPUTED_PENDING
    if not prior_exists:
        return ChangeKind.SET if after is not None else ChangeKind.UNCHANGED
    if after == before:
        return ChangeKind.UNCHANGED
    if attribute.replace_on_change:
        return ChangeKind.REQUIRES_REPLACEMENT
    return ChangeKind.SET


def _classify_level(
    planned: Dict[str, Any],
    prior: Optional[Dict[str, Any]],
    level: SchemaLevel,
    prefix: str,
    changes: Dict[str, AttributeChange]
) -> None:
    prior_exists = prior is not None

    for attribute in level.attributes:
        path = join_path(prefix, attribute.name)
        after = planned.get(attribute.name)
        before = prior.get(attribute.name) if prior_exists else None
        changes[path] = AttributeChange(
            path=path,
            kind=_classify_value(attribute, before, after, prior_exists),
            before=before,
            after=after,
            sensitive=attribute.sensitive
        )

    for block in level.blocks:
        block_path = join_path(prefix, block.name)
        after_items = planned.get(block.name)
        before_items = as_block_items(prior.get(block.name)) if prior_exists else []

        if is_unknown(after_items):
            changes[block_path] = AttributeChange(
                path=block_path,
                kind=ChangeKind.COMPUTED_PENDING,
                before=before_items,
                after=UNKNOWN
            )
            continue

        after_items = after_items or []
        for index in range(max(len(after_items), len(before_items))):
            after_item = after_items[index] if index < len(after_items) else {}
            if index < len(before_items):
                before_item = before_items[index]
            else:
                before_item = {} if prior_exists else None
            _classify_level(after_item, before_item, block, f"{block_path}[{index}]", changes)
