"""Configuration module: load engine settings from layered YAML files."""

from typing import Any, Dict, Optional
from ..utils.errors import ConfigError
from ..utils.logging import get_logger
from .manager import load_config, save_config
from .paths import get_config_path, get_user_config_path, get_project_config_path

logger = get_logger("config")

REQUIRED_SECTIONS = ["engine", "state", "logging", "provider"]


def load_engine_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load and validate engine configuration.

    Args:
        config_path: Optional explicit YAML file layered over the defaults

    Returns:
        Configuration dictionary

    Raises:
        ConfigError: If config cannot be loaded or is invalid
    """
    config = load_config(config_path)

    missing_sections = [s for s in REQUIRED_SECTIONS if not isinstance(config.get(s), dict)]
    if missing_sections:
        raise ConfigError(f"Config missing sections: {', '.join(missing_sections)}")

    validation_issues = []

    engine = config["engine"]
    timeout = engine.get("timeout_seconds")
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
        validation_issues.append(f"engine.timeout_seconds must be a positive number, got {timeout!r}")
    max_workers = engine.get("max_workers")
    if isinstance(max_workers, bool) or not isinstance(max_workers, int) or max_workers < 1:
        validation_issues.append(f"engine.max_workers must be a positive integer, got {max_workers!r}")

    if not isinstance(config["state"].get("path"), str) or not config["state"]["path"]:
        validation_issues.append("state.path must be a non-empty string")

    for key in ("region", "account_id", "partition"):
        if not isinstance(config["provider"].get(key), str):
            validation_issues.append(f"provider.{key} must be a string")

    if validation_issues:
        raise ConfigError("Invalid configuration: " + "; ".join(validation_issues))

    logger.debug(f"Engine config: timeout={timeout}s, max_workers={max_workers}, state={config['state']['path']}")
    return config


__all__ = [
    "load_engine_config",
    "load_config",
    "save_config",
    "get_config_path",
    "get_user_config_path",
    "get_project_config_path",
]
