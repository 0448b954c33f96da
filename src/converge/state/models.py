"""Pydantic models for persisted resource state."""

import copy
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field
from ..schema.values import strip_unknown

STATE_FORMAT_VERSION = 1


class ResourceStatus(str, Enum):
    """Persisted status of a managed object."""
    ABSENT = "absent"
    PRESENT = "present"
    TAINTED = "tainted"


class ResourceState(BaseModel):
    """Last-known-good representation of one managed object."""
    resource_type: str = Field(..., description="Resource type name")
    name: str = Field(..., description="Logical name within the configuration")
    identity: Optional[str] = Field(default=None, description="Stable identity used for remote lookup")
    status: ResourceStatus = Field(default=ResourceStatus.ABSENT, description="Persisted status")
    attributes: Dict[str, Any] = Field(default_factory=dict, description="Attribute values from the last successful read")
    depends_on: List[str] = Field(default_factory=list, description="Addresses this object depends on")
    serial: int = Field(default=0, ge=0, description="Incremented on every state change")
    updated_at: Optional[datetime] = Field(default=None, description="Time of the last state change")

    @property
    def address(self) -> str:
        return f"{self.resource_type}.{self.name}"

    @property
    def exists(self) -> bool:
        return self.status in (ResourceStatus.PRESENT, ResourceStatus.TAINTED)

    @classmethod
    def absent(cls, resource_type: str, name: str, depends_on: Optional[List[str]] = None) -> "ResourceState":
        """Create the empty state held before Create."""
        return cls(resource_type=resource_type, name=name, depends_on=list(depends_on or []))

    def populated(
        self,
        identity: str,
        attributes: Dict[str, Any],
        status: ResourceStatus = ResourceStatus.PRESENT
    ) -> "ResourceState":
        """Return a replacement state holding the given identity and attributes."""
        return self.model_copy(update={
            "identity": identity,
            "status": status,
            "attributes": strip_unknown(copy.deepcopy(attributes)),
            "serial": self.serial + 1,
            "updated_at": datetime.now(timezone.utc),
        })

    def cleared(self) -> "ResourceState":
        """Return the absent state recorded after Delete or a not-found Read."""
        return self.model_copy(update={
            "identity": None,
            "status": ResourceStatus.ABSENT,
            "attributes": {},
            "serial": self.serial + 1,
            "updated_at": datetime.now(timezone.utc),
        })


class StateDocument(BaseModel):
    """On-disk state file layout."""
    version: int = Field(default=STATE_FORMAT_VERSION, description="State format version")
    serial: int = Field(default=0, ge=0, description="Incremented on every save")
    resources: List[ResourceState] = Field(default_factory=list, description="Managed objects")
