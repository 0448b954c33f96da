"""Load and validate resource configuration documents (YAML or JSON)."""

import json
from pathlib import Path
import yaml
from ..utils.errors import ConfigLoadError
from ..utils.logging import get_logger
from .config_validator import get_document_summary, validate_document_structure
from .models import ConfigDocument, ResourceConfig

logger = get_logger("ingest.config_loader")

JSON_SUFFIXES = (".json",)


def load_config_document(config_path: str) -> ConfigDocument:
    """
    Load and validate a configuration document.

    Args:
        config_path: Path to a YAML or JSON configuration document

    Returns:
        Parsed and validated configuration document

    Raises:
        ConfigLoadError: If file cannot be loaded or is invalid
    """
    path = Path(config_path)

    if not path.exists():
        raise ConfigLoadError(
            f"Configuration file not found: {config_path}. "
            "Please check the file path and ensure the file exists."
        )

    if not path.is_file():
        raise ConfigLoadError(f"Path is not a file: {config_path}.")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            if path.suffix.lower() in JSON_SUFFIXES:
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except json.JSONDecodeError as e:
        raise ConfigLoadError(f"Invalid JSON in configuration file: {e}")
    except yaml.YAMLError as e:
        raise ConfigLoadError(f"Invalid YAML in configuration file: {e}")
    except OSError as e:
        raise ConfigLoadError(
            f"Error reading configuration file: {e}. "
            "Please check file permissions and try again."
        )

    if data is None:
        logger.warning(f"Configuration file {config_path} is empty")
        data = {"resources": []}

    document = parse_config_document(data)
    document.source = str(path)

    summary = get_document_summary(data)
    logger.info(f"Loaded configuration from {config_path} (resources: {summary['resource_count']})")
    return document


def parse_config_document(data: dict) -> ConfigDocument:
    """
    Build a ConfigDocument from already-parsed data.

    Raises:
        ConfigLoadError: If the structure is invalid
    """
    validate_document_structure(data)
    resources = [
        ResourceConfig(
            type=entry["type"],
            name=entry["name"],
            depends_on=list(entry.get("depends_on") or []),
            attributes=dict(entry.get("attributes") or {})
        )
        for entry in data.get("resources") or []
    ]
    return ConfigDocument(resources=resources)
