"""State commands - inspect and edit recorded state."""

import json
import sys
import click
from ...lifecycle.registry import get_adapter
from ...presentation.plan_formatter import format_state, format_state_list, mask_sensitive
from ...utils.errors import ConvergeError
from ...utils.logging import get_logger
from ..utils import format_error, load_cli_config, open_state_store

logger = get_logger("cli.state")

state_option = click.option('--state', 'state_path', type=click.Path(), help='State file (defaults to state.path from config)')
config_option = click.option('--config', 'engine_config', type=click.Path(), help='Engine config file (YAML)')


@click.group()
def state():
    """Inspect and edit recorded state."""
    pass


@state.command(name="list")
@state_option
@config_option
def list_resources(state_path, engine_config):
    """List managed objects."""
    try:
        store = open_state_store(load_cli_config(engine_config), state_path)
        if len(store) == 0:
            click.echo("No managed objects.", err=True)
            return
        click.echo(format_state_list(store.list()))
    except ConvergeError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)


@state.command()
@click.argument('address')
@state_option
@config_option
@click.option('--json', 'as_json', is_flag=True, help='Output the state record as JSON (sensitive values masked)')
def show(address, state_path, engine_config, as_json):
    """Show the recorded attributes of one object."""
    try:
        store = open_state_store(load_cli_config(engine_config), state_path)
        record = store.get(address)
        if record is None:
            click.echo(format_error(
                f"No object at {address} in state",
                "Run 'converge state list' to see managed objects."
            ), err=True)
            sys.exit(1)

        schema = get_adapter(record.resource_type).schema
        if as_json:
            data = record.model_dump(mode="json")
            data["attributes"] = mask_sensitive(record.attributes, schema)
            click.echo(json.dumps(data, indent=2))
            return

        click.echo(format_state(record, schema))
    except ConvergeError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)


@state.command()
@click.argument('address')
@state_option
@config_option
def rm(address, state_path, engine_config):
    """Stop managing an object without deleting it remotely."""
    try:
        store = open_state_store(load_cli_config(engine_config), state_path)
        if not store.remove(address):
            click.echo(format_error(f"No object at {address} in state"), err=True)
            sys.exit(1)
        store.save()
        logger.info(f"Removed {address} from state")
        click.echo(f"Removed {address}")
    except ConvergeError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)
