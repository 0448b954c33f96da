"""Schema model - declarative description of resource kinds."""

from .models import AttributeSchema, AttributeType, AttributeMode, BlockSchema, ResourceSchema
from .modifiers import PlanModifier, DefaultFromSibling
from .values import UNKNOWN, is_unknown

__all__ = [
    "AttributeSchema",
    "AttributeType",
    "AttributeMode",
    "BlockSchema",
    "ResourceSchema",
    "PlanModifier",
    "DefaultFromSibling",
    "UNKNOWN",
    "is_unknown",
]
