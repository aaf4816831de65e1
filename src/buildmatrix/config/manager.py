"""
Run configuration management and singleton pattern.

The run configuration is loaded at most once per process. When no
configuration file was selected, the validated defaults are used.
"""

import logging
from pathlib import Path
from typing import Optional

from ..models.config import ProjectProperties, RunConfig
from ..validation import ConfigurationError, ValidationError
from .loader import load_properties_document, load_run_config_file
from .validators import validate_project_properties, validate_run_config

logger = logging.getLogger(__name__)

# --- Global Singleton for Configuration ---

_CONFIG: Optional[RunConfig] = None

# None means "no file, use defaults". Overridden by the CLI's --config option.
_CONFIG_FILE_PATH: Optional[Path] = None


def set_config_path(config_path: Optional[Path]) -> None:
    """
    Select the run configuration file and drop any cached configuration.

    Args:
        config_path: Path to ``buildmatrix.toml``, or None for defaults
    """
    global _CONFIG_FILE_PATH, _CONFIG
    _CONFIG_FILE_PATH = config_path
    _CONFIG = None
    logger.debug(f"Configuration path set to: {config_path}")


def clear_config_cache() -> None:
    """Clear the cached configuration, forcing a reload on next access."""
    global _CONFIG
    _CONFIG = None
    logger.debug("Configuration cache cleared")


def _load_config(config_path: Optional[Path]) -> RunConfig:
    if config_path is None:
        return validate_run_config({})
    try:
        return validate_run_config(load_run_config_file(config_path))
    except (FileNotFoundError, ValidationError, ValueError) as e:
        raise ConfigurationError(f"Invalid run configuration {config_path}: {e}") from e


def get_config() -> RunConfig:
    """
    Get the run configuration, loading it on first access.

    Raises:
        ConfigurationError: If the selected file is missing or invalid
    """
    global _CONFIG
    if _CONFIG is None:
        _CONFIG = _load_config(_CONFIG_FILE_PATH)
        logger.debug(f"Loaded run configuration: {_CONFIG}")
    return _CONFIG


def is_config_loaded() -> bool:
    return _CONFIG is not None


def load_project_properties(project_dir: Path) -> ProjectProperties:
    """
    Load and validate the properties document of a project.

    Raises:
        ConfigurationError: If the document is malformed or has invalid values
    """
    try:
        raw = load_properties_document(project_dir)
        return validate_project_properties(raw)
    except (ValidationError, ValueError) as e:
        raise ConfigurationError(f"Invalid properties for project {project_dir.name}: {e}") from e
