"""Schema command - describe supported resource types."""

import json
import sys
from typing import Any, Dict, List
import click
from ...lifecycle.registry import get_adapter, supported_types
from ...schema.models import SchemaLevel
from ...utils.errors import ConvergeError
from ..utils import format_error


def _describe_level(level: SchemaLevel) -> Dict[str, Any]:
    return {
        "attributes": [
            {
                "name": a.name,
                "type": a.type.value,
                "mode": a.mode.value,
                "sensitive": a.sensitive,
                "replace_on_change": a.replace_on_change,
                "default": a.default,
                "description": a.description,
            }
            for a in level.attributes
        ],
        "blocks": [
            dict(name=b.name, min_items=b.min_items, max_items=b.max_items, **_describe_level(b))
            for b in level.blocks
        ],
    }


def _format_level(level: SchemaLevel, indent: str = "  ") -> List[str]:
    lines = []
    for a in level.attributes:
        flags = [a.mode.value]
        if a.replace_on_change:
            flags.append("forces replacement")
        if a.sensitive:
            flags.append("sensitive")
        if a.default is not None:
            flags.append(f"default {json.dumps(a.default)}")
        lines.append(f"{indent}{a.name} ({a.type.value}; {', '.join(flags)})")
    for b in level.blocks:
        bounds = f"{b.min_items}..{b.max_items if b.max_items is not None else '*'}"
        lines.append(f"{indent}{b.name} block [{bounds}]")
        lines.extend(_format_level(b, indent + "  "))
    return lines


@click.command()
@click.argument('resource_type', required=False)
@click.option('--json', 'as_json', is_flag=True, help='Output the schema as JSON')
def schema(resource_type, as_json):
    """
    Describe a resource type's schema.

    Without RESOURCE_TYPE, lists the supported resource types.
    """
    try:
        if resource_type is None:
            types = supported_types()
            click.echo(json.dumps(types, indent=2) if as_json else "\n".join(types))
            return

        resource_schema = get_adapter(resource_type).schema
        if as_json:
            description = dict(
                type=resource_schema.type_name,
                identity_attribute=resource_schema.identity_attribute,
                **_describe_level(resource_schema)
            )
            click.echo(json.dumps(description, indent=2))
            return

        lines = [resource_schema.type_name, f"  identity: {resource_schema.identity_attribute}"]
        lines.extend(_format_level(resource_schema))
        click.echo("\n".join(lines))

    except ConvergeError as e:
        click.echo(format_error(str(e), "Run 'converge schema' to list supported resource types."), err=True)
        sys.exit(1)
