"""CLI utilities package."""

from pathlib import Path
from typing import Any, Dict, Optional
import click
from ...config import load_engine_config
from ...state.store import StateStore
from ...utils.logging import get_logger, setup_logging
from .file_resolver import resolve_file_path

logger = get_logger("cli.utils")


def format_error(message: str, suggestion: Optional[str] = None) -> str:
    """
    Format error message with optional suggestion.

    Args:
        message: Error message
        suggestion: Optional suggestion or help text

    Returns:
        Formatted error string
    """
    error = f"Error: {message}"
    if suggestion:
        error += f"\nTip: {suggestion}"
    return error


def load_cli_config(config_path: Optional[str]) -> Dict[str, Any]:
    """
    Load engine config for a command and apply its log level.

    Raises:
        ConfigError: If config cannot be loaded or is invalid
    """
    config = load_engine_config(config_path)
    setup_logging(config["logging"]["level"])
    return config


def open_state_store(config: Dict[str, Any], state_path: Optional[str]) -> StateStore:
    """
    Open the state store named on the command line or in config.

    Raises:
        StateError: If the state file exists but cannot be loaded
    """
    path = state_path or config["state"]["path"]
    logger.debug(f"Using state file {path}")
    return StateStore.open(path)


def write_output(output_text: str, output: Optional[str] = None, quiet: bool = False) -> None:
    """Write command output to a file or stdout."""
    if output:
        output_path = Path(output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'w', encoding='utf-8') as f:
            f.write(output_text)
        if not quiet:
            click.echo(f"Output saved to: {output_path}", err=True)
        return

    try:
        click.echo(output_text)
    except UnicodeEncodeError:
        click.echo(output_text.encode('ascii', errors='replace').decode('ascii'))


__all__ = ["resolve_file_path", "format_error", "load_cli_config", "open_state_store", "write_output"]
