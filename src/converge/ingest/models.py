"""Pydantic models for resource configuration documents."""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class ResourceConfig(BaseModel):
    """Desired configuration of one managed object."""
    type: str = Field(..., description="Resource type name (e.g., 'aws_s3_directory_bucket')")
    name: str = Field(..., description="Logical name, unique per type")
    depends_on: List[str] = Field(default_factory=list, description="Addresses this object depends on")
    attributes: Dict[str, Any] = Field(default_factory=dict, description="Desired attribute tree")

    @property
    def address(self) -> str:
        return f"{self.type}.{self.name}"


class ConfigDocument(BaseModel):
    """A configuration document - collection of desired resources."""
    resources: List[ResourceConfig] = Field(default_factory=list, description="Desired resources")
    source: Optional[str] = Field(default=None, description="Path the document was loaded from")

    def get(self, address: str) -> Optional[ResourceConfig]:
        """Get resource configuration by address."""
        for resource in self.resources:
            if resource.address == address:
                return resource
        return None

    @property
    def addresses(self) -> List[str]:
        return [resource.address for resource in self.resources]
