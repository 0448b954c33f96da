"""Plan output formatter - converts plans and change sets to readable text or JSON."""

import json
import os
from typing import Any, Dict, List, Optional
from ..diff.validation import as_block_items
from ..diff.models import AttributeChange, ChangeKind, ChangeSet, Diagnostic, PlanAction
from ..lifecycle.registry import get_adapter
from ..schema.models import SchemaLevel
from ..schema.values import is_unknown
from ..state.models import ResourceState
from ..workflow.planner import Plan

KNOWN_AFTER_APPLY = "(known after apply)"
SENSITIVE_VALUE = "(sensitive value)"
FORCES_REPLACEMENT = "# forces replacement"


def _use_ascii(ascii_mode: Optional[bool] = None) -> bool:
    """Resolve whether to use ASCII output (checked at format time)."""
    if ascii_mode is not None:
        return bool(ascii_mode)
    return os.environ.get("CONVERGE_ASCII", "").lower() in ("1", "true", "yes")


ACTION_SYMBOLS = {
    PlanAction.CREATE: "+",
    PlanAction.UPDATE: "~",
    PlanAction.REPLACE: "-/+",
    PlanAction.DELETE: "-",
    PlanAction.NO_OP: " ",
}


def _arrow(ascii_mode: bool) -> str:
    return "->" if ascii_mode else "→"


def _section(title: str, width: int = 65) -> List[str]:
    """Return section divider."""
    h = "-" * width
    return [h, title.center(width), h]


def _render_value(value: Any, sensitive: bool = False) -> str:
    if sensitive and value is not None:
        return SENSITIVE_VALUE
    if value == SENSITIVE_VALUE:
        return value
    if is_unknown(value):
        return KNOWN_AFTER_APPLY
    if value is None:
        return "null"
    return json.dumps(value, default=_json_default, sort_keys=True)


def mask_sensitive(attributes: Dict[str, Any], level: SchemaLevel) -> Dict[str, Any]:
    """Copy of an attribute tree with sensitive values (also inside blocks) masked."""
    masked = dict(attributes)
    for attribute in level.attributes:
        if attribute.sensitive and masked.get(attribute.name) is not None:
            masked[attribute.name] = SENSITIVE_VALUE
    for block in level.blocks:
        items = as_block_items(masked.get(block.name))
        if isinstance(items, list):
            masked[block.name] = [
                mask_sensitive(item, block) if isinstance(item, dict) else item for item in items
            ]
    return masked


def _masked_prior(change_set: ChangeSet) -> Dict[str, Any]:
    schema = get_adapter(change_set.resource_type).schema
    return mask_sensitive(change_set.prior or {}, schema)


def _action_description(change_set: ChangeSet) -> str:
    return {
        PlanAction.CREATE: "will be created",
        PlanAction.UPDATE: "will be updated in-place",
        PlanAction.REPLACE: "must be replaced",
        PlanAction.DELETE: "will be destroyed",
        PlanAction.NO_OP: "is up to date",
    }[change_set.action]


def _attribute_line(change: AttributeChange, action: PlanAction, ascii_mode: bool) -> Optional[str]:
    if action == PlanAction.CREATE:
        if change.after is None:
            return None
        return f"    + {change.path} = {_render_value(change.after, change.sensitive)}"
    if change.kind == ChangeKind.UNCHANGED:
        return None
    if change.kind == ChangeKind.COMPUTED_PENDING and change.before is None and action != PlanAction.REPLACE:
        return None

    before = _render_value(change.before, change.sensitive)
    after = _render_value(change.after, change.sensitive)
    if change.kind == ChangeKind.COMPUTED_PENDING and before == after:
        return None
    line = f"    ~ {change.path} = {before} {_arrow(ascii_mode)} {after}"
    if change.kind == ChangeKind.REQUIRES_REPLACEMENT:
        line += f" {FORCES_REPLACEMENT}"
    return line


def format_change_set(change_set: ChangeSet, ascii_mode: Optional[bool] = None) -> str:
    """
    Format one change set.

    Args:
        change_set: Change set to render
        ascii_mode: Force ASCII output (defaults to CONVERGE_ASCII)

    Returns:
        Multi-line text block
    """
    ascii_mode = _use_ascii(ascii_mode)
    symbol = ACTION_SYMBOLS[change_set.action]
    address = change_set.address or change_set.resource_type

    lines = [f"  # {address} {_action_description(change_set)}"]
    lines.append(f"  {symbol} {address}")
    if change_set.action == PlanAction.DELETE:
        masked = _masked_prior(change_set)
        for name in sorted(masked):
            lines.append(f"    - {name} = {_render_value(masked[name])}")
        return "\n".join(lines)

    for path in sorted(change_set.changes):
        line = _attribute_line(change_set.changes[path], change_set.action, ascii_mode)
        if line:
            lines.append(line)
    return "\n".join(lines)


def format_summary(plan: Plan) -> str:
    """Single summary line for a plan."""
    if not plan.has_changes:
        return "No changes. Your infrastructure matches the configuration."
    counts = plan.summary()
    return f"Plan: {counts['add']} to add, {counts['change']} to change, {counts['destroy']} to destroy."


def format_plan(plan: Plan, ascii_mode: Optional[bool] = None) -> str:
    """
    Format a whole plan for humans.

    Change sets are listed in apply order; objects without changes are
    omitted.

    Args:
        plan: Plan from build_plan
        ascii_mode: Force ASCII output (defaults to CONVERGE_ASCII)

    Returns:
        Formatted text
    """
    ascii_mode = _use_ascii(ascii_mode)
    lines: List[str] = []

    changed = [cs for cs in plan.changes.values() if cs.action != PlanAction.NO_OP]
    if changed:
        lines.extend(_section("EXECUTION PLAN"))
        lines.append("")
        lines.append("Resource actions are indicated with the following symbols:")
        used = sorted({cs.action for cs in changed}, key=lambda a: list(PlanAction).index(a))
        for action in used:
            lines.append(f"  {ACTION_SYMBOLS[action]:<3} {action.value}")
        lines.append("")
        for change_set in changed:
            lines.append(format_change_set(change_set, ascii_mode))
            lines.append("")

    lines.append(format_summary(plan))
    return "\n".join(lines)


def format_diagnostics(problems: Dict[str, List[Diagnostic]]) -> str:
    """Format validation findings grouped by address."""
    if not problems:
        return "Success! The configuration is valid."
    lines = []
    for address in sorted(problems):
        lines.append(f"{address}:")
        for diagnostic in problems[address]:
            lines.append(f"  - {diagnostic}")
    count = sum(len(d) for d in problems.values())
    lines.append("")
    lines.append(f"{count} problem{'s' if count != 1 else ''} in {len(problems)} resource{'s' if len(problems) != 1 else ''}.")
    return "\n".join(lines)


def format_state_list(states: List[ResourceState]) -> str:
    """One line per managed object."""
    return "\n".join(f"{s.address}  {s.status.value}  {s.identity or '-'}" for s in states)


def format_state(state: ResourceState, level: Optional[SchemaLevel] = None) -> str:
    """Format one managed object's recorded attributes (sensitive values masked when level is given)."""
    attributes = mask_sensitive(state.attributes, level) if level is not None else state.attributes
    lines = [
        f"# {state.address}",
        f"identity = {_render_value(state.identity)}",
        f"status   = {state.status.value}",
        f"serial   = {state.serial}",
    ]
    if state.depends_on:
        lines.append(f"depends_on = {json.dumps(state.depends_on)}")
    for name in sorted(attributes):
        lines.append(f"{name} = {_render_value(attributes[name])}")
    return "\n".join(lines)


def _json_default(value: Any) -> Any:
    if is_unknown(value):
        return KNOWN_AFTER_APPLY
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def plan_to_dict(plan: Plan) -> Dict[str, Any]:
    """
    Machine-readable plan.

    Unknown values become None and are listed under after_unknown;
    sensitive values are masked.
    """
    resources = []
    for address, change_set in plan.changes.items():
        changes = []
        masked = _masked_prior(change_set) if change_set.action == PlanAction.DELETE else {}
        for path in sorted(change_set.changes):
            change = change_set.changes[path]
            if change.kind == ChangeKind.UNCHANGED:
                continue
            before = masked.get(path, change.before)
            changes.append({
                "path": path,
                "kind": change.kind.value,
                "before": SENSITIVE_VALUE if change.sensitive and before is not None else before,
                "after": None if is_unknown(change.after) else (
                    SENSITIVE_VALUE if change.sensitive and change.after is not None else change.after
                ),
                "after_unknown": is_unknown(change.after),
            })
        resources.append({
            "address": address,
            "type": change_set.resource_type,
            "identity": change_set.identity,
            "action": change_set.action.value,
            "changes": changes,
        })
    return {
        "format_version": "1.0",
        "destroy": plan.destroy,
        "summary": plan.summary(),
        "apply_order": plan.apply_order,
        "resources": resources,
    }


def format_plan_json(plan: Plan) -> str:
    """Format plan as JSON string."""
    return json.dumps(plan_to_dict(plan), indent=2, default=_json_default)
