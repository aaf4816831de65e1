"""
Configuration management for the buildmatrix package.

This module loads and validates the per-project properties document and the
run-wide configuration file.
"""

from .manager import (
    clear_config_cache,
    get_config,
    is_config_loaded,
    load_project_properties,
    set_config_path,
)

from .loader import (
    find_properties_file,
    load_json_file,
    load_properties_document,
    load_run_config_file,
    load_toml_file,
)
from .validators import (
    validate_project_properties,
    validate_run_config,
)

__all__ = [
    # Main interface
    "get_config",
    "set_config_path",
    "clear_config_cache",
    "is_config_loaded",
    "load_project_properties",
    # Advanced interface
    "find_properties_file",
    "load_json_file",
    "load_properties_document",
    "load_run_config_file",
    "load_toml_file",
    "validate_project_properties",
    "validate_run_config",
]
