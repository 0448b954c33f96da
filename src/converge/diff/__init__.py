"""Diff engine - plan desired configuration against prior state."""

from .models import AttributeChange, ChangeKind, ChangeSet, Diagnostic, PlanAction
from .engine import compute_change_set, plan_destroy, detect_drift
from .validation import validate_config, ensure_valid

__all__ = [
    "AttributeChange",
    "ChangeKind",
    "ChangeSet",
    "Diagnostic",
    "PlanAction",
    "compute_change_set",
    "plan_destroy",
    "detect_drift",
    "validate_config",
    "ensure_valid",
]
