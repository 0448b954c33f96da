"""Pydantic models for change sets."""

from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class ChangeKind(str, Enum):
    """Per-attribute outcome of a plan."""
    UNCHANGED = "unchanged"
    SET = "set"
    COMPUTED_PENDING = "computed_pending"
    REQUIRES_REPLACEMENT = "requires_replacement"


class PlanAction(str, Enum):
    """Whole-object action derived from the attribute changes."""
    CREATE = "create"
    UPDATE = "update"
    REPLACE = "replace"
    DELETE = "delete"
    NO_OP = "no-op"


class Diagnostic(BaseModel):
    """A single validation finding."""
    path: str = Field(default="", description="Attribute path (empty for resource-level findings)")
    summary: str = Field(..., description="What is wrong")

    def __str__(self) -> str:
        return f"{self.path}: {self.summary}" if self.path else self.summary


class AttributeChange(BaseModel):
    """Planned change for one attribute path."""
    path: str = Field(..., description="Attribute path, e.g. 'location[0].name'")
    kind: ChangeKind = Field(..., description="Change classification")
    before: Any = Field(default=None, description="Value in prior state")
    after: Any = Field(default=None, description="Planned value (UNKNOWN when pending)")
    sensitive: bool = Field(default=False, description="Mask values in output")

    class Config:
        arbitrary_types_allowed = True


class ChangeSet(BaseModel):
    """Planned changes for one managed object. Recomputed every plan, never persisted."""
    resource_type: str = Field(..., description="Resource type name")
    address: Optional[str] = Field(default=None, description="Logical address 'type.name'")
    identity: Optional[str] = Field(default=None, description="Remote identity, if known")
    action: PlanAction = Field(..., description="Whole-object action")
    changes: Dict[str, AttributeChange] = Field(default_factory=dict, description="Changes keyed by attribute path")
    planned: Dict[str, Any] = Field(default_factory=dict, description="Planned attribute tree")
    prior: Optional[Dict[str, Any]] = Field(default=None, description="Prior state attributes")

    class Config:
        arbitrary_types_allowed = True

    @property
    def requires_replacement(self) -> bool:
        return self.action == PlanAction.REPLACE or any(
            c.kind == ChangeKind.REQUIRES_REPLACEMENT for c in self.changes.values()
        )

    def paths_with(self, kind: ChangeKind) -> List[str]:
        """Attribute paths classified with the given kind."""
        return [path for path, change in self.changes.items() if change.kind == kind]

    @property
    def changed(self) -> List[AttributeChange]:
        """All attribute changes other than unchanged."""
        return [c for c in self.changes.values() if c.kind != ChangeKind.UNCHANGED]

    @property
    def is_empty(self) -> bool:
        return self.action == PlanAction.NO_OP
