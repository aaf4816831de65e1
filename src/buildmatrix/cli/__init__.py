"""
Command-line interface for the buildmatrix package.

This module provides the ``buildmatrix`` console entry point.
"""

from .main import main_cli, run

__all__ = [
    "main_cli",
    "run",
]
