"""Config path resolution for the layered config system."""

from pathlib import Path
from typing import Optional

CONFIG_DIR_NAME = ".converge"


def get_defaults_path() -> Path:
    """Get packaged defaults: converge/config/defaults.yaml"""
    return Path(__file__).parent / "defaults.yaml"


def get_user_config_path() -> Path:
    """Get user config path: ~/.converge/config.yaml"""
    home = Path.home()
    return home / CONFIG_DIR_NAME / "config.yaml"


def get_project_config_path() -> Optional[Path]:
    """Get project config path: .converge/config.yaml (from current working directory)"""
    cwd = Path.cwd()
    project_config = cwd / CONFIG_DIR_NAME / "config.yaml"
    if project_config.exists():
        return project_config
    return None


def get_config_path() -> Path:
    """
    Resolve config location (project first, then user).

    Returns:
        Path to config file (project if exists, otherwise user)
    """
    project_config = get_project_config_path()
    if project_config:
        return project_config
    return get_user_config_path()
