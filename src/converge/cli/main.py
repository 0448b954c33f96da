"""Main CLI entry point for converge."""

import click
from .commands.validate import validate
from .commands.plan import plan
from .commands.state import state
from .commands.schema import schema
from .commands.version import version
from .. import __version__
from ..utils.logging import get_logger

logger = get_logger("cli.main")


@click.group()
@click.version_option(version=__version__, prog_name="converge", message="%(prog)s version %(version)s")
def cli():
    """converge - Declarative resource reconciliation."""
    pass


cli.add_command(validate)
cli.add_command(plan)
cli.add_command(state)
cli.add_command(schema)
cli.add_command(version)
