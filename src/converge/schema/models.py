"""Pydantic models for declarative resource schemas."""

from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple
from pydantic import BaseModel, Field, model_validator
from .modifiers import PlanModifier
from .validators import Validator
from ..utils.errors import SchemaError

ConfigValidator = Callable[[Dict[str, Any]], Optional[str]]


class AttributeType(str, Enum):
    """Semantic attribute types."""
    STRING = "string"
    BOOL = "bool"
    INT = "int"
    LIST = "list"
    MAP = "map"
    OBJECT = "object"


class AttributeMode(str, Enum):
    """Who supplies an attribute's value."""
    REQUIRED = "required"
    OPTIONAL = "optional"
    OPTIONAL_COMPUTED = "optional_computed"
    COMPUTED = "computed"


class AttributeSchema(BaseModel):
    """Declarative description of a single attribute."""
    name: str = Field(..., description="Attribute name, unique within its level")
    type: AttributeType = Field(..., description="Semantic type")
    required: bool = Field(default=False, description="Value must be configured")
    optional: bool = Field(default=False, description="Value may be configured")
    computed: bool = Field(default=False, description="Value may be assigned by the remote system")
    sensitive: bool = Field(default=False, description="Value is masked in plan output")
    default: Any = Field(default=None, description="Static default for unconfigured optional attributes")
    validators: List[Validator] = Field(default_factory=list, description="Validation predicates")
    replace_on_change: bool = Field(default=False, description="A change forces destroy and recreate")
    plan_modifier: Optional[PlanModifier] = Field(default=None, description="Rule computing the planned value when unconfigured")
    description: str = Field(default="", description="Human-readable description")

    class Config:
        arbitrary_types_allowed = True

    @model_validator(mode="after")
    def _check_mode(self) -> "AttributeSchema":
        if self.required and (self.optional or self.computed):
            raise SchemaError(f"Attribute '{self.name}': required excludes optional and computed")
        if not (self.required or self.optional or self.computed):
            raise SchemaError(f"Attribute '{self.name}': one of required, optional or computed must be set")
        if self.default is not None and not self.optional:
            raise SchemaError(f"Attribute '{self.name}': only optional attributes may declare a default")
        if self.plan_modifier is not None and not (self.optional and self.computed):
            raise SchemaError(f"Attribute '{self.name}': plan modifiers require optional+computed")
        return self

    @property
    def mode(self) -> AttributeMode:
        if self.required:
            return AttributeMode.REQUIRED
        if self.optional and self.computed:
            return AttributeMode.OPTIONAL_COMPUTED
        if self.optional:
            return AttributeMode.OPTIONAL
        return AttributeMode.COMPUTED

    @property
    def computed_only(self) -> bool:
        return self.mode == AttributeMode.COMPUTED


class SchemaLevel(BaseModel):
    """Attributes and nested blocks at one nesting level."""
    attributes: List[AttributeSchema] = Field(default_factory=list, description="Ordered attributes")
    blocks: List["BlockSchema"] = Field(default_factory=list, description="Ordered nested blocks")

    class Config:
        arbitrary_types_allowed = True

    @model_validator(mode="after")
    def _check_unique_names(self) -> "SchemaLevel":
        seen = set()
        for name in [a.name for a in self.attributes] + [b.name for b in self.blocks]:
            if name in seen:
                raise SchemaError(f"Duplicate attribute or block name: '{name}'")
            seen.add(name)
        return self

    def attribute(self, name: str) -> Optional[AttributeSchema]:
        """Get attribute schema by name."""
        for attribute in self.attributes:
            if attribute.name == name:
                return attribute
        return None

    def block(self, name: str) -> Optional["BlockSchema"]:
        """Get nested block schema by name."""
        for block in self.blocks:
            if block.name == name:
                return block
        return None

    @property
    def names(self) -> List[str]:
        return [a.name for a in self.attributes] + [b.name for b in self.blocks]

    def iter_attributes(self, prefix: str = "") -> Iterator[Tuple[str, AttributeSchema]]:
        """Yield (path, attribute) pairs, using ``block[*]`` for nested elements."""
        for attribute in self.attributes:
            yield (f"{prefix}{attribute.name}", attribute)
        for block in self.blocks:
            yield from block.iter_attributes(f"{prefix}{block.name}[*].")


class BlockSchema(SchemaLevel):
    """Nested block: a list of objects sharing one schema."""
    name: str = Field(..., description="Block name")
    min_items: int = Field(default=0, ge=0, description="Minimum number of elements")
    max_items: Optional[int] = Field(default=None, ge=1, description="Maximum number of elements")
    description: str = Field(default="", description="Human-readable description")

    @model_validator(mode="after")
    def _check_cardinality(self) -> "BlockSchema":
        if self.max_items is not None and self.min_items > self.max_items:
            raise SchemaError(f"Block '{self.name}': min_items exceeds max_items")
        return self


class ResourceSchema(SchemaLevel):
    """Declarative description of a resource kind."""
    type_name: str = Field(..., description="Resource type name (e.g., 'aws_s3_directory_bucket')")
    identity_attribute: str = Field(..., description="Attribute holding the remote identity")
    force_destroy_attribute: Optional[str] = Field(default=None, description="Boolean attribute enabling drain before delete")
    config_validators: List[ConfigValidator] = Field(default_factory=list, description="Cross-attribute validators over the whole config")
    version: int = Field(default=0, description="Schema version")

    @model_validator(mode="after")
    def _check_special_attributes(self) -> "ResourceSchema":
        if self.attribute(self.identity_attribute) is None:
            raise SchemaError(f"{self.type_name}: identity attribute '{self.identity_attribute}' is not declared")
        if self.force_destroy_attribute is not None:
            flag = self.attribute(self.force_destroy_attribute)
            if flag is None or flag.type != AttributeType.BOOL:
                raise SchemaError(f"{self.type_name}: force-destroy attribute must be a declared bool attribute")
        return self


SchemaLevel.model_rebuild()
BlockSchema.model_rebuild()
ResourceSchema.model_rebuild()
