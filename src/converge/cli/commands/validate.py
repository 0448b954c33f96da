"""Validate command - check a configuration document against resource schemas."""

import json
import sys
import click
from ...ingest.config_loader import load_config_document
from ...presentation.plan_formatter import format_diagnostics
from ...utils.errors import ConvergeError
from ...utils.logging import get_logger
from ...workflow.planner import validate_document
from ..utils import format_error, load_cli_config, resolve_file_path

logger = get_logger("cli.validate")


@click.command()
@click.argument('config_file', type=click.Path(exists=False))
@click.option('--config', 'engine_config', type=click.Path(), help='Engine config file (YAML)')
@click.option('--json', 'as_json', is_flag=True, help='Output diagnostics as JSON')
def validate(config_file, engine_config, as_json):
    """
    Validate a resource configuration document.

    Checks every resource against its schema without reading state or
    contacting any remote system. Exits 1 when problems are found.
    """
    try:
        try:
            config_path = resolve_file_path(config_file)
        except FileNotFoundError as e:
            click.echo(format_error(str(e)), err=True)
            sys.exit(1)

        load_cli_config(engine_config)
        document = load_config_document(str(config_path))
        problems = validate_document(document)

        if as_json:
            click.echo(json.dumps({
                "valid": not problems,
                "resources": len(document.resources),
                "problems": {
                    address: [d.model_dump() for d in diagnostics]
                    for address, diagnostics in sorted(problems.items())
                },
            }, indent=2))
        else:
            click.echo(format_diagnostics(problems))

        if problems:
            sys.exit(1)

    except ConvergeError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)
