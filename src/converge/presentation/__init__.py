"""Presentation layer - human-readable and JSON output for plans and state."""

from .plan_formatter import (
    format_change_set,
    format_diagnostics,
    format_plan,
    format_plan_json,
    format_state,
    format_state_list,
    format_summary,
    mask_sensitive,
    plan_to_dict,
)

__all__ = [
    "format_change_set",
    "format_diagnostics",
    "format_plan",
    "format_plan_json",
    "format_state",
    "format_state_list",
    "format_summary",
    "mask_sensitive",
    "plan_to_dict",
]
