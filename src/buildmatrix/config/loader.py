"""
Configuration file loading utilities.

This module handles the low-level loading and parsing of the per-project
properties document (``properties.json`` or ``properties.toml``) and the
run-wide ``buildmatrix.toml`` file.
"""

import json
import logging
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional

from ..validation import ErrorSeverity, handle_config_error

logger = logging.getLogger(__name__)

PROPERTIES_FILENAMES = ("properties.json", "properties.toml")


def load_toml_file(file_path: Path, description: str = "configuration file") -> Dict[str, Any]:
    """
    Load and parse a TOML file with error handling.

    Args:
        file_path: Path to the TOML file to load
        description: Human-readable description for error messages

    Returns:
        Parsed TOML data as a dictionary

    Raises:
        FileNotFoundError: If the file doesn't exist
        tomllib.TOMLDecodeError: If the file is malformed
    """
    logger.debug(f"Loading {description} from: {file_path}")

    if not file_path.exists():
        logger.error(f"{description} not found: {file_path}")
        raise FileNotFoundError(f"{description} not found: {file_path}")

    try:
        with open(file_path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        handle_config_error(
            error=e,
            context=f"parsing {description}",
            severity=ErrorSeverity.CRITICAL,
            reraise=True,
            logger=logger
        )
        raise


def load_json_file(file_path: Path, description: str = "configuration file") -> Dict[str, Any]:
    """
    Load and parse a JSON document whose top level must be an object.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is malformed or not a JSON object
    """
    logger.debug(f"Loading {description} from: {file_path}")

    if not file_path.exists():
        raise FileNotFoundError(f"{description} not found: {file_path}")

    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        handle_config_error(
            error=e,
            context=f"parsing {description}",
            severity=ErrorSeverity.ERROR,
            reraise=True,
            logger=logger
        )
        raise
    if not isinstance(data, dict):
        raise ValueError(f"{description} must contain a JSON object: {file_path}")
    return data


def find_properties_file(project_dir: Path) -> Optional[Path]:
    """Return the project's properties document, JSON taking precedence."""
    for filename in PROPERTIES_FILENAMES:
        candidate = project_dir / filename
        if candidate.is_file():
            return candidate
    return None


def load_properties_document(project_dir: Path) -> Dict[str, Any]:
    """
    Load the raw properties document of a project.

    Args:
        project_dir: Root directory of the project

    Returns:
        Raw key/value data; an empty dict when the project has no document
    """
    path = find_properties_file(project_dir)
    if path is None:
        return {}
    if path.suffix == ".toml":
        return load_toml_file(path, "project properties")
    return load_json_file(path, "project properties")


def load_run_config_file(config_path: Path) -> Dict[str, Any]:
    """
    Load the ``[run]`` table of a run configuration file.

    Args:
        config_path: Path to ``buildmatrix.toml``

    Returns:
        The ``[run]`` table (empty if the file has none)
    """
    data = load_toml_file(config_path, "run configuration file")
    return data.get("run", {})
