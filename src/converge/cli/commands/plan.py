"""Plan command - show what apply would change."""

import sys
import click
from ...ingest.config_loader import load_config_document
from ...presentation.plan_formatter import format_plan, format_plan_json
from ...utils.errors import ConvergeError
from ...utils.logging import get_logger
from ...workflow.planner import build_plan
from ..utils import format_error, load_cli_config, open_state_store, resolve_file_path, write_output

logger = get_logger("cli.plan")


@click.command()
@click.argument('config_file', type=click.Path(exists=False))
@click.option('--state', 'state_path', type=click.Path(), help='State file (defaults to state.path from config)')
@click.option('--config', 'engine_config', type=click.Path(), help='Engine config file (YAML)')
@click.option('--destroy', is_flag=True, help='Plan deletion of every managed object')
@click.option('--json', 'as_json', is_flag=True, help='Output structured JSON instead of human-readable')
@click.option('--ascii', 'ascii_mode', is_flag=True, default=None, help='Use ASCII-only symbols')
@click.option('--output', '-o', type=click.Path(), help='Save output to file')
@click.option('--quiet', is_flag=True, help='Suppress progress messages')
def plan(config_file, state_path, engine_config, destroy, as_json, ascii_mode, output, quiet):
    """
    Compare a configuration document with recorded state.

    Prints the change set of every object that would be created, updated,
    replaced or deleted. Nothing is written to state.
    """
    try:
        try:
            config_path = resolve_file_path(config_file)
        except FileNotFoundError as e:
            click.echo(format_error(str(e)), err=True)
            sys.exit(1)

        config = load_cli_config(engine_config)
        if not quiet:
            click.echo(f"Loading configuration: {config_path}", err=True)

        document = load_config_document(str(config_path))
        store = open_state_store(config, state_path)
        current_plan = build_plan(document, store, destroy=destroy)

        if as_json:
            output_text = format_plan_json(current_plan)
        else:
            output_text = format_plan(current_plan, ascii_mode or None)

        write_output(output_text, output, quiet)

    except ConvergeError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)
